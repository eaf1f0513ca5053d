import pytest
import requests
from stellar_sdk import Account, Keypair, scval, xdr

from ledger_fakes import contract_id
from services.ledger_client import LedgerClient, LogicalFailure, Success, TransportFailure
from utils.errors import LedgerUnavailableError, ValidationError

HORIZON = 'https://horizon.test'
RPC = 'https://rpc.test'


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=''):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f'HTTP {self.status_code}')


class FakeSession:
    def __init__(self, get=None, post=None):
        self.get_handler = get
        self.post_handler = post
        self.get_calls = []
        self.post_calls = []

    def get(self, url, params=None, timeout=None):
        self.get_calls.append((url, params, timeout))
        return self.get_handler(url, params)

    def post(self, url, json=None, timeout=None):
        self.post_calls.append((url, json, timeout))
        return self.post_handler(url, json)


def raise_(exc):
    raise exc


def make_client(session, probe=None):
    return LedgerClient(horizon_url=HORIZON, rpc_url=RPC, network_passphrase='Test SDF Network ; September 2015',
                        probe_account=probe or Keypair.random().public_key, timeout=5, session=session)


def horizon_page(records):
    return {'_embedded': {'records': records}}


def test_fetch_account_history_maps_records_and_clamps_limit():
    record = {
        'hash': 'abc',
        'successful': True,
        'created_at': '2025-09-12T10:00:00Z',
        'memo': 'Acme',
        'memo_type': 'text',
        'envelope_xdr': 'ENV',
        'result_xdr': 'RES',
        'result_meta_xdr': 'META',
    }
    session = FakeSession(get=lambda url, params: FakeResponse(body=horizon_page([record, 'junk'])))
    client = make_client(session)

    transactions = client.fetch_account_history('GWALLET', limit=500)

    assert len(transactions) == 1
    tx = transactions[0]
    assert (tx.hash, tx.successful, tx.memo_text, tx.envelope_blob, tx.result_meta_blob) == \
        ('abc', True, 'Acme', 'ENV', 'META')
    url, params, timeout = session.get_calls[0]
    assert url == f'{HORIZON}/accounts/GWALLET/transactions'
    assert params == {'order': 'desc', 'limit': 200}
    assert timeout == 5


def test_fetch_account_history_unknown_account_is_empty():
    session = FakeSession(get=lambda url, params: FakeResponse(status_code=404))
    assert make_client(session).fetch_account_history('GWALLET') == []


@pytest.mark.parametrize('handler', [
    lambda url, params: raise_(requests.exceptions.Timeout('read timed out')),
    lambda url, params: raise_(requests.exceptions.ConnectionError('refused')),
    lambda url, params: FakeResponse(status_code=503, text='unavailable'),
    lambda url, params: FakeResponse(body=ValueError('bad json')),
    lambda url, params: FakeResponse(body={'unexpected': True}),
])
def test_fetch_account_history_transport_errors(handler):
    with pytest.raises(LedgerUnavailableError):
        make_client(FakeSession(get=handler)).fetch_account_history('GWALLET')


def test_fetch_operations_maps_invoke_fields():
    record = {
        'type': 'invoke_host_function',
        'source_account': 'GSOURCE',
        'function': 'HostFunctionTypeHostFunctionTypeCreateContract',
        'parameters': [{'type': 'Address', 'value': 'AAAA'}],
    }
    session = FakeSession(get=lambda url, params: FakeResponse(body=horizon_page([record])))

    operations = make_client(session).fetch_operations('abc', timeout=2)

    assert operations[0].is_invoke_contract
    assert operations[0].is_contract_creation
    assert operations[0].parameter_values() == ['AAAA']
    assert session.get_calls[0][0] == f'{HORIZON}/transactions/abc/operations'
    assert session.get_calls[0][2] == 2


def test_probe_account_is_loaded_once():
    probe = Keypair.random().public_key
    session = FakeSession(get=lambda url, params: FakeResponse(body={'sequence': '42'}))
    client = make_client(session, probe=probe)

    first = client.load_probe_account()
    client.load_probe_account()

    assert first.sequence == 42
    assert len(session.get_calls) == 1


def simulation_client(post_handler, monkeypatch):
    probe = Keypair.random().public_key
    session = FakeSession(post=post_handler)
    client = make_client(session, probe=probe)
    monkeypatch.setattr(client, 'load_probe_account', lambda timeout=None: Account(probe, 1))
    return client, session


def test_simulate_success_decodes_return_value(monkeypatch):
    retval = xdr.SCVal(
        type=xdr.SCValType.SCV_MAP,
        map=xdr.SCMap([xdr.SCMapEntry(key=scval.to_symbol('active'), val=scval.to_bool(True))]),
    )
    body = {'jsonrpc': '2.0', 'id': 1, 'result': {'results': [{'xdr': retval.to_xdr()}]}}
    client, session = simulation_client(lambda url, payload: FakeResponse(body=body), monkeypatch)

    result = client.simulate_read_call(contract_id(1), 'get_employee_info', [Keypair.random().public_key])

    assert isinstance(result, Success)
    assert result.decoded_value == {'active': True}
    url, payload, timeout = session.post_calls[0]
    assert url == RPC
    assert payload['method'] == 'simulateTransaction'
    assert isinstance(payload['params']['transaction'], str)


def test_simulate_contract_error_is_logical_failure(monkeypatch):
    body = {'jsonrpc': '2.0', 'id': 1, 'result': {'error': 'HostError: Employee not found'}}
    client, _ = simulation_client(lambda url, payload: FakeResponse(body=body), monkeypatch)

    result = client.simulate_read_call(contract_id(1), 'get_employee_info', [Keypair.random().public_key])

    assert isinstance(result, LogicalFailure)
    assert 'Employee not found' in result.reason


def test_simulate_without_return_value_is_empty_success(monkeypatch):
    body = {'jsonrpc': '2.0', 'id': 1, 'result': {'results': []}}
    client, _ = simulation_client(lambda url, payload: FakeResponse(body=body), monkeypatch)

    result = client.simulate_read_call(contract_id(1), 'get_employee_info', [Keypair.random().public_key])

    assert isinstance(result, Success)
    assert result.decoded_value is None


@pytest.mark.parametrize('handler', [
    lambda url, payload: raise_(requests.exceptions.Timeout('timed out')),
    lambda url, payload: FakeResponse(status_code=502),
    lambda url, payload: FakeResponse(body={'jsonrpc': '2.0', 'id': 1, 'error': {'message': 'bad request'}}),
    lambda url, payload: FakeResponse(body={'result': {'results': [{'xdr': 'not-xdr'}]}}),
    lambda url, payload: FakeResponse(body={'result': 'oops'}),
    lambda url, payload: FakeResponse(body={'result': {'results': ['oops']}}),
])
def test_simulate_transport_failures(handler, monkeypatch):
    client, _ = simulation_client(handler, monkeypatch)

    result = client.simulate_read_call(contract_id(1), 'get_employee_info', [Keypair.random().public_key])

    assert isinstance(result, TransportFailure)


def test_simulate_probe_account_failure_is_transport_failure():
    session = FakeSession(get=lambda url, params: FakeResponse(status_code=404))
    client = make_client(session)

    result = client.simulate_read_call(contract_id(1), 'get_employee_info', [Keypair.random().public_key])

    assert isinstance(result, TransportFailure)


def test_simulate_refuses_non_probe_fee_account(monkeypatch):
    client, session = simulation_client(lambda url, payload: FakeResponse(body={}), monkeypatch)

    with pytest.raises(ValidationError):
        client.simulate_read_call(contract_id(1), 'get_employee_info', [Keypair.random().public_key],
                                  caller_account=Keypair.random().public_key)
    assert session.post_calls == []


def test_call_arguments_encoding():
    width = scval.to_uint32(7)
    assert LedgerClient._to_scval(width) is width
    assert LedgerClient._to_scval(7).type == xdr.SCValType.SCV_I128
    assert LedgerClient._to_scval(contract_id(2)).type == xdr.SCValType.SCV_ADDRESS
    assert LedgerClient._to_scval('Acme').type == xdr.SCValType.SCV_STRING
    with pytest.raises(ValueError):
        LedgerClient._to_scval(1.5)
