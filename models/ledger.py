"""
Read-only views over Horizon transaction and operation records
"""

# Horizon operation type for Soroban calls (invocation and creation)
INVOKE_HOST_FUNCTION = 'invoke_host_function'

# Horizon 'function' values for invoke_host_function operations
HOST_FUNCTION_INVOKE = 'HostFunctionTypeHostFunctionTypeInvokeContract'
HOST_FUNCTION_CREATE = 'HostFunctionTypeHostFunctionTypeCreateContract'
HOST_FUNCTION_CREATE_V2 = 'HostFunctionTypeHostFunctionTypeCreateContractV2'
HOST_FUNCTION_UPLOAD = 'HostFunctionTypeHostFunctionTypeUploadContractWasm'

CREATE_FUNCTIONS = (HOST_FUNCTION_CREATE, HOST_FUNCTION_CREATE_V2, 'HostFunctionTypeCreateContract')

MEMO_TYPE_TEXT = 'text'


class RawOperation:
    """One operation of a ledger transaction"""

    def __init__(self, type, source_account=None, function_parameters_blob=None, host_function=None,
                 parameters=None):
        self.type = type
        self.source_account = source_account
        self.function_parameters_blob = function_parameters_blob
        self.host_function = host_function
        self.parameters = parameters or []

    @classmethod
    def from_horizon(cls, record):
        return cls(
            type=record.get('type'),
            source_account=record.get('source_account'),
            function_parameters_blob=record.get('function_parameters_xdr'),
            host_function=record.get('function'),
            parameters=record.get('parameters') or [],
        )

    @property
    def is_invoke_contract(self):
        return self.type == INVOKE_HOST_FUNCTION

    @property
    def is_contract_creation(self):
        return self.host_function in CREATE_FUNCTIONS

    def parameter_values(self):
        """Base64 SCVal values of the invocation parameters"""
        values = []
        for param in self.parameters:
            if isinstance(param, dict) and isinstance(param.get('value'), str):
                values.append(param['value'])
        return values

    def __repr__(self):
        return f'<RawOperation {self.type} {self.host_function or ""}>'


class RawTransaction:
    """A transaction from an account's history"""

    def __init__(self, hash, successful, created_at, envelope_blob=None, result_blob=None, memo=None,
                 memo_type=None, result_meta_blob=None, operations=None):
        self.hash = hash
        self.successful = successful
        self.created_at = created_at
        self.memo = memo
        self.memo_type = memo_type
        self.envelope_blob = envelope_blob
        self.result_blob = result_blob
        self.result_meta_blob = result_meta_blob
        self.operations = operations or []

    @classmethod
    def from_horizon(cls, record):
        return cls(
            hash=record.get('hash'),
            successful=bool(record.get('successful')),
            created_at=record.get('created_at'),
            memo=record.get('memo'),
            memo_type=record.get('memo_type'),
            envelope_blob=record.get('envelope_xdr'),
            result_blob=record.get('result_xdr'),
            result_meta_blob=record.get('result_meta_xdr'),
        )

    @property
    def memo_text(self):
        """The memo if it is text-typed, else None"""
        if self.memo_type == MEMO_TYPE_TEXT and isinstance(self.memo, str):
            return self.memo
        return None

    def __repr__(self):
        return f'<RawTransaction {self.hash} successful={self.successful}>'
