"""
Error taxonomy for contract discovery
"""


class DiscoveryError(Exception):
    """Base class for all discovery errors"""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        """Uniform error envelope used by the HTTP layer"""
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(DiscoveryError):
    """Malformed input, rejected before any network call"""


class LedgerUnavailableError(DiscoveryError):
    """Network, timeout or decoding failure while fetching ledger history"""


class InconclusiveError(DiscoveryError):
    """Membership could not be determined (distinct from 'not registered')"""

    def __init__(self, message, contract_id=None, cause=None):
        super().__init__(message, details=str(cause) if cause is not None else None)
        self.contract_id = contract_id
        self.cause = cause


class RegistryPersistError(DiscoveryError):
    """The registry file could not be written; in-memory state is kept"""
