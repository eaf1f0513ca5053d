import re
from stellar_sdk import StrKey

# Shape only, no checksum: 'C' followed by 55 alphanumerics
CONTRACT_ID_RE = re.compile(r'^C[A-Za-z0-9]{55}$')

# Global scan over raw encodings (base32 alphabet is uppercase + digits)
CONTRACT_SCAN_RE = re.compile(r'C[A-Z0-9]{55}')


def is_contract_id(value):
    """Check if a value has the shape of a contract address"""
    return isinstance(value, str) and bool(CONTRACT_ID_RE.match(value))


def is_account_address(value):
    """Check if a value is a valid account (G...) address"""
    if not isinstance(value, str):
        return False
    return StrKey.is_valid_ed25519_public_key(value)


def scan_contract_ids(*blobs):
    """Return every contract-shaped substring found in the given blobs, in order"""
    matches = []
    for blob in blobs:
        if not blob or not isinstance(blob, str):
            continue
        matches.extend(CONTRACT_SCAN_RE.findall(blob))
    return matches


def unique_in_order(values):
    """De-duplicate while keeping first-seen order"""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def short_id(contract_id, length=8):
    """Shorten an address for display"""
    if not contract_id:
        return ''
    return f"{contract_id[:length]}..."
