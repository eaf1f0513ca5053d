"""
Ledger Client
Thin adapter over Horizon (transaction history) and Soroban RPC (simulation)
"""

import itertools
import logging
import threading

import requests
from stellar_sdk import Account, TransactionBuilder, scval, xdr

import config
from models.ledger import RawOperation, RawTransaction
from utils.address_utils import is_account_address, is_contract_id
from utils.errors import LedgerUnavailableError, ValidationError
from utils.scval_utils import scval_to_native

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 200


class SimulationResult:
    """Outcome of a read-only contract simulation"""

    ok = False

    def __repr__(self):
        return f'<{self.__class__.__name__}>'


class Success(SimulationResult):
    """The call executed and returned a value"""

    ok = True

    def __init__(self, decoded_value):
        self.decoded_value = decoded_value

    def __repr__(self):
        return f'<Success {self.decoded_value!r}>'


class LogicalFailure(SimulationResult):
    """The call executed but the contract reported a domain-level negative"""

    def __init__(self, reason):
        self.reason = reason

    def __repr__(self):
        return f'<LogicalFailure {self.reason!r}>'


class TransportFailure(SimulationResult):
    """Network, timeout, encoding or probe-account problem"""

    def __init__(self, error):
        self.error = error

    def __repr__(self):
        return f'<TransportFailure {self.error!r}>'


class LedgerClient:
    """Service for reading Stellar ledger history and simulating contract calls"""

    def __init__(self, horizon_url=None, rpc_url=None, network_passphrase=None, probe_account=None,
                 timeout=None, session=None):
        self.horizon_url = (horizon_url or config.HORIZON_URL).rstrip('/')
        self.rpc_url = rpc_url or config.RPC_URL
        self.network_passphrase = network_passphrase or config.NETWORK_PASSPHRASE
        self.probe_account = probe_account or config.PROBE_ACCOUNT
        self.timeout = timeout or config.LEDGER_TIMEOUT
        self.session = session or requests.Session()

        self._probe_sequence = None
        self._probe_lock = threading.Lock()
        self._request_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Horizon
    # ------------------------------------------------------------------

    def _horizon_get(self, path, params=None, timeout=None):
        """GET a Horizon resource and return its JSON body (None on 404)"""
        url = f"{self.horizon_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=timeout or self.timeout)
        except requests.exceptions.Timeout as e:
            raise LedgerUnavailableError(f'Horizon request timed out: {path}', details=str(e))
        except requests.exceptions.RequestException as e:
            raise LedgerUnavailableError(f'Horizon request failed: {path}', details=str(e))

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise LedgerUnavailableError(
                f'Horizon returned HTTP {response.status_code} for {path}',
                details=response.text[:500],
            )
        try:
            return response.json()
        except ValueError as e:
            raise LedgerUnavailableError(f'Horizon returned invalid JSON for {path}', details=str(e))

    @staticmethod
    def _records(body):
        if not body:
            return []
        records = (body.get('_embedded') or {}).get('records')
        if not isinstance(records, list):
            raise LedgerUnavailableError('Horizon response has no record list')
        return records

    def fetch_account_history(self, address, order='desc', limit=MAX_PAGE_LIMIT, timeout=None):
        """Fetch the most recent transactions for an account"""
        if order not in ('asc', 'desc'):
            raise ValidationError(f'Invalid order: {order}')
        limit = max(1, min(int(limit), MAX_PAGE_LIMIT))

        body = self._horizon_get(
            f'/accounts/{address}/transactions',
            params={'order': order, 'limit': limit},
            timeout=timeout,
        )
        if body is None:
            logger.info(f"No history for account {address}")
            return []

        transactions = [RawTransaction.from_horizon(record) for record in self._records(body)
                        if isinstance(record, dict)]
        logger.debug(f"Fetched {len(transactions)} transactions for {address}")
        return transactions

    def fetch_operations(self, transaction_hash, timeout=None):
        """Fetch the operations of one transaction"""
        body = self._horizon_get(
            f'/transactions/{transaction_hash}/operations',
            params={'limit': MAX_PAGE_LIMIT},
            timeout=timeout,
        )
        return [RawOperation.from_horizon(record) for record in self._records(body) if isinstance(record, dict)]

    def load_probe_account(self, timeout=None):
        """Load (once) the probe account used as the fee source for simulations"""
        with self._probe_lock:
            if self._probe_sequence is None:
                body = self._horizon_get(f'/accounts/{self.probe_account}', timeout=timeout)
                if body is None:
                    raise LedgerUnavailableError(f'Probe account {self.probe_account} does not exist')
                try:
                    self._probe_sequence = int(body['sequence'])
                except (KeyError, TypeError, ValueError) as e:
                    raise LedgerUnavailableError('Probe account has no sequence number', details=str(e))
            return Account(self.probe_account, self._probe_sequence)

    # ------------------------------------------------------------------
    # Soroban RPC
    # ------------------------------------------------------------------

    @staticmethod
    def _to_scval(arg):
        """Encode a call argument; plain ints always become i128

        Pass an ``xdr.SCVal`` (e.g. ``scval.to_uint32``) for any other integer width.
        """
        if isinstance(arg, xdr.SCVal):
            return arg
        if isinstance(arg, bool):
            return scval.to_bool(arg)
        if isinstance(arg, int):
            return scval.to_int128(arg)
        if isinstance(arg, str) and (is_account_address(arg) or is_contract_id(arg)):
            return scval.to_address(arg)
        if isinstance(arg, str):
            return scval.to_string(arg)
        raise ValueError(f'Unsupported argument type: {type(arg).__name__}')

    def _build_invocation(self, contract_id, function_name, args, timeout=None):
        source = self.load_probe_account(timeout=timeout)
        parameters = [self._to_scval(arg) for arg in args]
        envelope = (
            TransactionBuilder(
                source_account=source,
                network_passphrase=self.network_passphrase,
                base_fee=config.BASE_FEE,
            )
            .append_invoke_contract_function_op(
                contract_id=contract_id,
                function_name=function_name,
                parameters=parameters,
            )
            .set_timeout(30)
            .build()
        )
        return envelope.to_xdr()

    def _rpc_call(self, method, params, timeout=None):
        payload = {'jsonrpc': '2.0', 'id': next(self._request_ids), 'method': method, 'params': params}
        response = self.session.post(self.rpc_url, json=payload, timeout=timeout or self.timeout)
        response.raise_for_status()
        return response.json()

    def simulate_read_call(self, contract_id, function_name, args, caller_account=None, timeout=None):
        """Simulate a read-only contract call paid for by the probe account"""
        if caller_account and caller_account != self.probe_account:
            raise ValidationError('Simulations must be paid by the probe account')

        try:
            envelope_xdr = self._build_invocation(contract_id, function_name, args, timeout=timeout)
        except LedgerUnavailableError as e:
            return TransportFailure(e.details or e.message)
        except Exception as e:
            return TransportFailure(f'Failed to build invocation: {e}')

        try:
            body = self._rpc_call('simulateTransaction', {'transaction': envelope_xdr}, timeout=timeout)
        except requests.exceptions.Timeout as e:
            logger.debug(f"Simulation of {function_name} on {contract_id} timed out")
            return TransportFailure(f'Simulation timed out: {e}')
        except requests.exceptions.RequestException as e:
            return TransportFailure(f'Simulation request failed: {e}')
        except ValueError as e:
            return TransportFailure(f'Simulation returned invalid JSON: {e}')

        if not isinstance(body, dict):
            return TransportFailure('Simulation returned an unexpected body')
        if body.get('error'):
            error = body['error']
            message = error.get('message') if isinstance(error, dict) else str(error)
            return TransportFailure(f'RPC error: {message}')

        result = body.get('result') or {}
        if not isinstance(result, dict):
            return TransportFailure('Simulation returned an unexpected body')
        if result.get('error'):
            return LogicalFailure(str(result['error']))

        results = result.get('results') or []
        if not isinstance(results, list) or (results and not isinstance(results[0], dict)):
            return TransportFailure('Simulation returned an unexpected body')
        if not results or not results[0].get('xdr'):
            return Success(None)

        try:
            decoded = scval_to_native(results[0]['xdr'])
        except Exception as e:
            return TransportFailure(f'Failed to decode simulation result: {e}')

        logger.debug(f"Simulated {function_name} on {contract_id}: {decoded!r}")
        return Success(decoded)
