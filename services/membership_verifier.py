"""
Membership Verifier
Decides whether an account is registered in a payroll contract by simulating
the contract's participant lookup
"""

import logging
import re

import config
from services.ledger_client import LogicalFailure, Success, TransportFailure
from utils.address_utils import is_contract_id
from utils.errors import InconclusiveError

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = ('not found', 'not_found', 'notfound')
CONTRACT_ERROR_RE = re.compile(r'Error\(Contract,\s*#(\d+)\)')


class MembershipVerifier:
    """Checks employee registration via read-only simulation"""

    def __init__(self, ledger_client, function_name=None, not_found_code=None):
        self.ledger_client = ledger_client
        self.function_name = function_name or config.MEMBERSHIP_FUNCTION
        self.not_found_code = config.EMPLOYEE_NOT_FOUND_CODE if not_found_code is None else not_found_code

    def is_not_found(self, reason):
        """Text marker or the contract's EmployeeNotFound error code, e.g. ``Error(Contract, #4)``"""
        text = str(reason or '')
        lowered = text.lower()
        if any(marker in lowered for marker in NOT_FOUND_MARKERS):
            return True
        return any(int(code) == self.not_found_code for code in CONTRACT_ERROR_RE.findall(text))

    @staticmethod
    def is_active_participant(value):
        """A returned participant counts unless it is explicitly inactive"""
        if value is None:
            return False
        if isinstance(value, dict):
            return value.get('active') is not False
        return bool(value)

    def is_registered(self, account_address, contract_id, timeout=None):
        """
        Check if an account is registered in a contract

        Returns:
            bool: True if registered and active, False if confirmed absent

        Raises:
            InconclusiveError: if the answer could not be determined
        """
        if not is_contract_id(contract_id):
            logger.warning(f"Invalid contract id {contract_id!r}, treating {account_address} as not registered")
            return False

        result = self.ledger_client.simulate_read_call(
            contract_id,
            self.function_name,
            [account_address],
            timeout=timeout,
        )

        if isinstance(result, Success):
            registered = self.is_active_participant(result.decoded_value)
            logger.debug(f"{account_address} in {contract_id}: {registered}")
            return registered

        if isinstance(result, LogicalFailure):
            if self.is_not_found(result.reason):
                logger.debug(f"{account_address} not found in {contract_id}")
                return False
            raise InconclusiveError(
                f'Unexpected contract error checking {contract_id}',
                contract_id=contract_id,
                cause=result.reason,
            )

        if isinstance(result, TransportFailure):
            raise InconclusiveError(
                f'Could not reach ledger checking {contract_id}',
                contract_id=contract_id,
                cause=result.error,
            )

        raise InconclusiveError(f'Unknown simulation result for {contract_id}', contract_id=contract_id,
                                cause=repr(result))
