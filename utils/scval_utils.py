"""
Helpers to turn Soroban SCVal values into plain Python objects
"""

from stellar_sdk import scval, xdr

_INTEGER_DECODERS = {
    xdr.SCValType.SCV_U32: scval.from_uint32,
    xdr.SCValType.SCV_I32: scval.from_int32,
    xdr.SCValType.SCV_U64: scval.from_uint64,
    xdr.SCValType.SCV_I64: scval.from_int64,
    xdr.SCValType.SCV_U128: scval.from_uint128,
    xdr.SCValType.SCV_I128: scval.from_int128,
    xdr.SCValType.SCV_U256: scval.from_uint256,
    xdr.SCValType.SCV_I256: scval.from_int256,
    xdr.SCValType.SCV_TIMEPOINT: scval.from_timepoint,
    xdr.SCValType.SCV_DURATION: scval.from_duration,
}


def parse_scval(value):
    """Accept an SCVal or its base64 XDR form"""
    if isinstance(value, xdr.SCVal):
        return value
    return xdr.SCVal.from_xdr(value)


def scval_to_native(value):
    """Convert an SCVal (or base64 SCVal) into Python primitives

    Maps become dicts (symbol/string keys become str), vectors become lists,
    addresses become strkey strings and integers become int.
    """
    sc_val = parse_scval(value)
    sc_type = sc_val.type

    if sc_type == xdr.SCValType.SCV_VOID:
        return None
    if sc_type == xdr.SCValType.SCV_BOOL:
        return scval.from_bool(sc_val)
    if sc_type in _INTEGER_DECODERS:
        return _INTEGER_DECODERS[sc_type](sc_val)
    if sc_type == xdr.SCValType.SCV_SYMBOL:
        return scval.from_symbol(sc_val)
    if sc_type == xdr.SCValType.SCV_STRING:
        raw = scval.from_string(sc_val)
        return raw.decode('utf-8', errors='replace') if isinstance(raw, bytes) else raw
    if sc_type == xdr.SCValType.SCV_BYTES:
        return scval.from_bytes(sc_val)
    if sc_type == xdr.SCValType.SCV_ADDRESS:
        return scval.from_address(sc_val).address
    if sc_type == xdr.SCValType.SCV_VEC:
        items = sc_val.vec.sc_vec if sc_val.vec is not None else []
        return [scval_to_native(item) for item in items]
    if sc_type == xdr.SCValType.SCV_MAP:
        entries = sc_val.map.sc_map if sc_val.map is not None else []
        result = {}
        for entry in entries:
            key = scval_to_native(entry.key)
            if isinstance(key, (list, dict)):
                key = str(key)
            result[key] = scval_to_native(entry.val)
        return result

    # Contract instances, ledger keys and errors have no useful native form
    return sc_val.to_xdr()


def contract_address_of(value):
    """Return the contract strkey if the SCVal is a contract address, else None"""
    try:
        sc_val = parse_scval(value)
        if sc_val.type != xdr.SCValType.SCV_ADDRESS:
            return None
        address = scval.from_address(sc_val).address
    except Exception:
        return None
    return address if address.startswith('C') else None
