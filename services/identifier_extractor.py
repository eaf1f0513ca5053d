"""
Identifier Extractor
Recovers a contract address (and related metadata) from a raw transaction and
one of its operations using a ranked chain of strategies:

1. ResultDecodeStrategy    - structured decode of the transaction result/meta
2. OperationDecodeStrategy - structured decode of the operation itself
3. PatternScanStrategy     - regex scan of the raw encodings (heuristic)

The first strategy that returns a match wins.
"""

import logging
import re

from stellar_sdk import xdr

import config
from models.contract import CONTRACT_TYPE_FAIRWAGE, CONTRACT_TYPE_UNCLASSIFIED
from utils.address_utils import is_contract_id, scan_contract_ids, unique_in_order
from utils.scval_utils import contract_address_of

logger = logging.getLogger(__name__)

# Memo heuristics
COMPANY_NAME_MIN_LENGTH = 4
COMPANY_NAME_MAX_LENGTH = 49
TOKEN_SYMBOL_RE = re.compile(r'\b[A-Z]{3,4}\b')
PAYROLL_KEYWORDS = ('fairwage', 'payroll', 'wage')


class StrategyMatch:
    """Addresses recovered by one strategy"""

    def __init__(self, contract_id, token_contract_id=None):
        self.contract_id = contract_id
        self.token_contract_id = token_contract_id

    def __repr__(self):
        return f'<StrategyMatch {self.contract_id} token={self.token_contract_id}>'


class ExtractedIdentity:
    """Everything the extractor could learn about one operation"""

    def __init__(self, contract_id, token_symbol, contract_type, strategy, token_contract_id=None,
                 company_name=None):
        self.contract_id = contract_id
        self.token_contract_id = token_contract_id
        self.company_name = company_name
        self.token_symbol = token_symbol
        self.contract_type = contract_type
        self.strategy = strategy

    def __repr__(self):
        return f'<ExtractedIdentity {self.contract_id} via {self.strategy}>'


def _parameter_contracts(operation):
    """Contract addresses among the decoded invocation parameters, in order"""
    contracts = []
    for value in operation.parameter_values():
        address = contract_address_of(value)
        if address:
            contracts.append(address)
    return unique_in_order(contracts)


def _token_from_parameters(operation, contract_id):
    for address in _parameter_contracts(operation):
        if address != contract_id:
            return address
    return None


class IdentifierStrategy:
    """One way of recovering a contract address"""

    name = 'base'

    def extract(self, transaction, operation):
        """Return a StrategyMatch or None"""
        raise NotImplementedError


class ResultDecodeStrategy(IdentifierStrategy):
    """Decode the transaction result and read the invocation's return value"""

    name = 'result'

    @staticmethod
    def _operation_results(result_blob):
        result = xdr.TransactionResult.from_xdr(result_blob).result
        if result.results is not None:
            return result.results
        # Fee-bump wrapper
        if result.inner_result_pair is not None:
            return result.inner_result_pair.result.result.results or []
        return []

    def has_invoke_success(self, result_blob):
        """True if any operation result is a successful host function invocation"""
        for op_result in self._operation_results(result_blob):
            tr = op_result.tr
            if tr is None or tr.invoke_host_function_result is None:
                continue
            code = tr.invoke_host_function_result.code
            if code == xdr.InvokeHostFunctionResultCode.INVOKE_HOST_FUNCTION_SUCCESS:
                return True
        return False

    @staticmethod
    def return_value(meta_blob):
        """The Soroban return value stored in the transaction meta, if any"""
        meta = xdr.TransactionMeta.from_xdr(meta_blob)
        for version in ('v4', 'v3'):
            body = getattr(meta, version, None)
            soroban_meta = getattr(body, 'soroban_meta', None) if body is not None else None
            if soroban_meta is not None:
                return getattr(soroban_meta, 'return_value', None)
        return None

    def extract(self, transaction, operation):
        if not transaction.result_blob or not transaction.result_meta_blob:
            return None
        if not self.has_invoke_success(transaction.result_blob):
            return None

        value = self.return_value(transaction.result_meta_blob)
        if value is None:
            return None
        contract_id = contract_address_of(value)
        if not contract_id:
            return None
        return StrategyMatch(contract_id, _token_from_parameters(operation, contract_id))


class OperationDecodeStrategy(IdentifierStrategy):
    """Read an address already present on the operation"""

    name = 'operation'

    def extract(self, transaction, operation):
        if is_contract_id(operation.source_account):
            contract_id = operation.source_account
            return StrategyMatch(contract_id, _token_from_parameters(operation, contract_id))

        contracts = _parameter_contracts(operation)
        if contracts:
            return StrategyMatch(contracts[0], contracts[1] if len(contracts) > 1 else None)

        matches = scan_contract_ids(operation.function_parameters_blob)
        if matches:
            return StrategyMatch(matches[0])
        return None


class PatternScanStrategy(IdentifierStrategy):
    """Scan the raw envelope/result encodings for contract-shaped strings

    No correctness guarantee: it can pick up unrelated addresses or miss
    the contract entirely. The second distinct match is assumed to be the
    token contract because token contracts usually follow the target
    contract in invocation arguments.
    """

    name = 'pattern'

    def extract(self, transaction, operation):
        matches = unique_in_order(scan_contract_ids(transaction.envelope_blob, transaction.result_blob))
        if not matches:
            return None
        return StrategyMatch(matches[0], matches[1] if len(matches) > 1 else None)


DEFAULT_STRATEGIES = (ResultDecodeStrategy, OperationDecodeStrategy, PatternScanStrategy)


class IdentifierExtractor:
    """Runs the strategy chain and attaches memo-derived metadata"""

    def __init__(self, strategies=None, default_token_symbol=None):
        if strategies is None:
            strategies = [strategy() for strategy in DEFAULT_STRATEGIES]
        self.strategies = list(strategies)
        self.default_token_symbol = default_token_symbol or config.DEFAULT_TOKEN_SYMBOL

    def extract(self, transaction, operation):
        """Return an ExtractedIdentity, or None when no strategy matches; never raises"""
        try:
            match, strategy_name = self._first_match(transaction, operation)
            if match is None:
                return None

            return ExtractedIdentity(
                contract_id=match.contract_id,
                token_contract_id=match.token_contract_id,
                company_name=self.company_name(transaction),
                token_symbol=self.token_symbol(transaction),
                contract_type=self.contract_type(transaction, operation),
                strategy=strategy_name,
            )
        except Exception as e:
            logger.warning(f"Failed to extract contract info from {getattr(transaction, 'hash', '?')}: {e}")
            return None

    def _first_match(self, transaction, operation):
        for strategy in self.strategies:
            try:
                match = strategy.extract(transaction, operation)
            except Exception as e:
                # A strategy that cannot parse its input simply does not match
                logger.debug(f"Strategy {strategy.name} failed on {transaction.hash}: {e}")
                continue
            if match is not None and is_contract_id(match.contract_id):
                logger.debug(f"Strategy {strategy.name} found {match.contract_id} in {transaction.hash}")
                return match, strategy.name
        return None, None

    @staticmethod
    def company_name(transaction):
        memo = transaction.memo_text
        if memo and COMPANY_NAME_MIN_LENGTH <= len(memo) <= COMPANY_NAME_MAX_LENGTH:
            return memo
        return None

    def token_symbol(self, transaction):
        memo = transaction.memo_text
        if memo:
            match = TOKEN_SYMBOL_RE.search(memo)
            if match:
                return match.group(0)
        return self.default_token_symbol

    @staticmethod
    def contract_type(transaction, operation):
        memo = transaction.memo_text
        if memo:
            lower_memo = memo.lower()
            if any(keyword in lower_memo for keyword in PAYROLL_KEYWORDS):
                return CONTRACT_TYPE_FAIRWAGE

        # Only payroll contracts are deployed through this flow
        if operation.is_contract_creation:
            return CONTRACT_TYPE_FAIRWAGE
        return CONTRACT_TYPE_UNCLASSIFIED
