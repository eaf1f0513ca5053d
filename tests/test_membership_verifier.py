import pytest

from ledger_fakes import FakeLedgerClient, account_id
from services.ledger_client import LogicalFailure, Success, TransportFailure
from services.membership_verifier import MembershipVerifier
from utils.errors import InconclusiveError

CONTRACT = 'C' + 'A' * 55


def verifier_for(result):
    client = FakeLedgerClient(default_simulation=result)
    return MembershipVerifier(client, function_name='get_employee_info'), client


@pytest.mark.parametrize('contract_id', [
    'GABC',
    'C' + 'A' * 54,
    'C' + 'A' * 56,
    'X' + 'A' * 55,
    'C' + 'A' * 54 + '-',
    '',
    None,
])
def test_invalid_contract_id_short_circuits_without_network(contract_id):
    verifier, client = verifier_for(Success({'active': True}))

    assert verifier.is_registered(account_id(), contract_id) is False
    assert client.simulate_calls == []


def test_calls_participant_lookup_with_address_as_sole_argument():
    employee = account_id()
    verifier, client = verifier_for(Success({'active': True}))

    assert verifier.is_registered(employee, CONTRACT) is True
    assert client.simulate_calls == [(CONTRACT, 'get_employee_info', (employee,))]


@pytest.mark.parametrize('value, expected', [
    ({'active': True}, True),
    ({'wage_rate': 10}, True),
    ({'active': False}, False),
    (None, False),
])
def test_success_decision(value, expected):
    verifier, _ = verifier_for(Success(value))
    assert verifier.is_registered(account_id(), CONTRACT) is expected


@pytest.mark.parametrize('reason', [
    'Employee not found',
    'HostError: Error(Contract, #1) not_found',
    'NOT FOUND',
])
def test_not_found_is_confirmed_absence(reason):
    verifier, _ = verifier_for(LogicalFailure(reason))
    assert verifier.is_registered(account_id(), CONTRACT) is False


def test_employee_not_found_contract_error_is_confirmed_absence():
    verifier, _ = verifier_for(LogicalFailure('HostError: Error(Contract, #4)\n\nEvent log (newest first):\n   0: ...'))
    assert verifier.is_registered(account_id(), CONTRACT) is False


def test_other_contract_error_code_is_inconclusive():
    verifier, _ = verifier_for(LogicalFailure('HostError: Error(Contract, #5)'))

    with pytest.raises(InconclusiveError):
        verifier.is_registered(account_id(), CONTRACT)


def test_not_found_code_is_configurable():
    client = FakeLedgerClient(default_simulation=LogicalFailure('HostError: Error(Contract, #7)'))
    verifier = MembershipVerifier(client, not_found_code=7)

    assert verifier.is_registered(account_id(), CONTRACT) is False


def test_unexpected_logical_failure_is_inconclusive():
    verifier, _ = verifier_for(LogicalFailure('HostError: Error(Budget, ExceededLimit)'))

    with pytest.raises(InconclusiveError) as excinfo:
        verifier.is_registered(account_id(), CONTRACT)
    assert excinfo.value.contract_id == CONTRACT


def test_transport_failure_is_inconclusive():
    verifier, _ = verifier_for(TransportFailure('Simulation timed out'))

    with pytest.raises(InconclusiveError) as excinfo:
        verifier.is_registered(account_id(), CONTRACT)
    assert 'timed out' in excinfo.value.details
