"""
Contract Discovery Service
Entry point for the two discovery queries:

- discover_deployed_by: contracts a wallet has deployed or interacted with,
  reconstructed from its transaction history
- discover_membership_of: registry contracts an employee is registered in,
  confirmed by simulation
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import config
from models.contract import DiscoveredContract, EmployeeContract
from services.identifier_extractor import IdentifierExtractor, OperationDecodeStrategy
from services.membership_verifier import MembershipVerifier
from utils.address_utils import is_account_address, is_contract_id
from utils.batch import (BatchReport, ItemResult, SkipReason, STAGE_CANCELLED, STAGE_EXTRACTION,
                         STAGE_OPERATIONS, STAGE_TRANSACTION, STAGE_VALIDATION, STAGE_VERIFICATION)
from utils.errors import InconclusiveError, LedgerUnavailableError, RegistryPersistError, ValidationError

logger = logging.getLogger(__name__)


class DiscoveryReport(BatchReport):
    """Batch report for one discovery request"""

    def __init__(self, subject):
        super().__init__()
        self.subject = subject
        self.registered = []

    def to_dict(self):
        payload = super().to_dict()
        if self.registered:
            payload['registered'] = list(self.registered)
        return payload


class ContractDiscoveryService:
    """Composes the ledger client, extractor, verifier and registry"""

    def __init__(self, ledger_client, registry, extractor=None, verifier=None, max_workers=None,
                 network=None, history_limit=None, scan_limit=None):
        self.ledger_client = ledger_client
        self.registry = registry
        self.extractor = extractor or IdentifierExtractor()
        self.verifier = verifier or MembershipVerifier(ledger_client)
        self.max_workers = max_workers if max_workers is not None else config.DISCOVERY_MAX_WORKERS
        self.network = network or config.NETWORK_NAME
        self.history_limit = history_limit or config.HISTORY_LIMIT
        self.scan_limit = scan_limit or config.SCAN_LIMIT
        self._scan_extractor = IdentifierExtractor(strategies=[OperationDecodeStrategy()])

    # ------------------------------------------------------------------
    # Batch plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_account(address, label):
        if not address:
            raise ValidationError(f'{label} is required')
        if not is_account_address(address):
            raise ValidationError(f'Invalid {label.lower()}: {address}')

    @staticmethod
    def _guarded(worker, item, describe, stage):
        """Run one item; any unexpected error becomes a skip"""
        try:
            return worker(item)
        except Exception as e:
            logger.exception(f"Unexpected error processing {describe(item)}")
            return ItemResult.skip(describe(item), stage, f'Unexpected error: {e}')

    def _run_batch(self, report, items, worker, describe, stage, cancel_event=None):
        """Process items (bounded concurrency), preserving input order in the report"""

        def cancelled():
            return cancel_event is not None and cancel_event.is_set()

        def skip_cancelled(item):
            report.record_skip(SkipReason(describe(item), STAGE_CANCELLED, 'Discovery cancelled'))

        if self.max_workers <= 1:
            for item in items:
                if cancelled():
                    skip_cancelled(item)
                    continue
                report.add(self._guarded(worker, item, describe, stage))
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = []
            for item in items:
                if cancelled():
                    futures.append((item, None))
                else:
                    futures.append((item, executor.submit(self._guarded, worker, item, describe, stage)))

            for item, future in futures:
                if future is None or (cancelled() and future.cancel()):
                    skip_cancelled(item)
                    continue
                report.add(future.result())
        return report

    # ------------------------------------------------------------------
    # Employer: contracts deployed by a wallet
    # ------------------------------------------------------------------

    def _analyze_transaction(self, wallet_address, transaction, extractor):
        """Candidates from every invoke-contract operation of one transaction"""
        if not transaction.successful:
            return ItemResult()

        try:
            operations = self.ledger_client.fetch_operations(transaction.hash)
        except LedgerUnavailableError as e:
            return ItemResult.skip(transaction.hash, STAGE_OPERATIONS, e.message)

        result = ItemResult()
        for index, operation in enumerate(operations):
            if not operation.is_invoke_contract:
                continue
            identity = extractor.extract(transaction, operation)
            if identity is None:
                result.skips.append(SkipReason(
                    f'{transaction.hash}#{index}', STAGE_EXTRACTION, 'No contract address recovered'))
                continue
            result.values.append(DiscoveredContract(
                contract_id=identity.contract_id,
                token_contract_id=identity.token_contract_id,
                company_name=identity.company_name,
                token_symbol=identity.token_symbol,
                deployment_date=transaction.created_at,
                transaction_hash=transaction.hash,
                deployer_address=wallet_address,
                contract_type=identity.contract_type,
                strategy=identity.strategy,
            ))
        return result

    def _fetch_history(self, wallet_address, limit):
        # Failure here means the operation could not start; let it propagate
        return self.ledger_client.fetch_account_history(wallet_address, order='desc', limit=limit)

    def discover_deployed_by(self, wallet_address, cancel_event=None, register=False):
        """
        Discover contracts deployed by a wallet from its transaction history

        Candidates are not de-duplicated: a contract appears once per
        interaction. With register=True, contracts missing from the registry
        are added to it.

        Raises:
            ValidationError: if the wallet address is missing or malformed
            LedgerUnavailableError: if the history itself cannot be fetched
        """
        self._validate_account(wallet_address, 'Wallet address')
        logger.info(f"Discovering contracts for wallet: {wallet_address}")

        transactions = self._fetch_history(wallet_address, self.history_limit)
        logger.info(f"Found {len(transactions)} transactions for wallet {wallet_address}")

        report = DiscoveryReport(wallet_address)
        self._run_batch(
            report,
            transactions,
            lambda tx: self._analyze_transaction(wallet_address, tx, self.extractor),
            describe=lambda tx: getattr(tx, 'hash', None) or '<unknown>',
            stage=STAGE_TRANSACTION,
            cancel_event=cancel_event,
        )

        if register:
            self._register_discovered(report)

        logger.info(f"Discovered {report.total_found} contract candidates for {wallet_address} "
                    f"({len(report.skipped)} skipped)")
        return report

    def _register_discovered(self, report):
        """Promote new contract ids into the registry (newest candidate wins)"""
        seen = set()
        for candidate in report.items:
            if candidate.contract_id in seen:
                continue
            seen.add(candidate.contract_id)
            if self.registry.get(candidate.contract_id) is not None:
                continue
            try:
                self.registry.upsert(candidate.to_record())
            except RegistryPersistError as e:
                # The record is in memory even though the file write failed
                logger.error(f"Registered {candidate.contract_id} but could not persist: {e.details}")
            except ValidationError as e:
                report.record_skip(SkipReason(candidate.contract_id, STAGE_VALIDATION, e.message))
                continue
            report.registered.append(candidate.contract_id)

    # ------------------------------------------------------------------
    # Interaction scan (potential contracts)
    # ------------------------------------------------------------------

    def scan_interactions(self, wallet_address, limit=None, cancel_event=None):
        """
        Find contracts a wallet has interacted with, one entry per contract

        Uses only addresses present on the operations themselves; results are
        potential contracts and should be verified manually.
        """
        self._validate_account(wallet_address, 'Wallet address')
        logger.info(f"Scanning for contract interactions from wallet: {wallet_address}")

        transactions = self._fetch_history(wallet_address, limit or self.scan_limit)
        report = DiscoveryReport(wallet_address)
        self._run_batch(
            report,
            transactions,
            lambda tx: self._analyze_transaction(wallet_address, tx, self._scan_extractor),
            describe=lambda tx: getattr(tx, 'hash', None) or '<unknown>',
            stage=STAGE_TRANSACTION,
            cancel_event=cancel_event,
        )

        interactions = []
        seen = set()
        for candidate in report.items:
            if candidate.contract_id in seen:
                continue
            seen.add(candidate.contract_id)
            interactions.append({
                'contractId': candidate.contract_id,
                'lastInteraction': candidate.deployment_date,
                'transactionHash': candidate.transaction_hash,
            })
        report.items = interactions

        logger.info(f"Found {len(interactions)} potential contracts for {wallet_address}")
        return report

    # ------------------------------------------------------------------
    # Employee: registry contracts the employee belongs to
    # ------------------------------------------------------------------

    def _check_contract(self, employee_address, record):
        if not is_contract_id(record.id):
            return ItemResult.skip(record.id, STAGE_VALIDATION, 'Invalid contract id')
        try:
            registered = self.verifier.is_registered(employee_address, record.id)
        except InconclusiveError as e:
            return ItemResult.skip(record.id, STAGE_VERIFICATION, f'{e.message}: {e.details}')
        if not registered:
            return ItemResult()
        return ItemResult.ok(EmployeeContract(record, self.network))

    def discover_membership_of(self, employee_address, cancel_event=None):
        """
        Find the registry contracts an employee is confirmed to belong to

        Contracts whose check is inconclusive are skipped, never reported as
        'not registered' and never fail the whole request.

        Raises:
            ValidationError: if the employee address is missing or malformed
        """
        self._validate_account(employee_address, 'Employee address')
        records = self.registry.list()
        logger.info(f"Checking {len(records)} registry contracts for employee {employee_address}")

        report = DiscoveryReport(employee_address)
        self._run_batch(
            report,
            records,
            lambda record: self._check_contract(employee_address, record),
            describe=lambda record: record.id,
            stage=STAGE_VERIFICATION,
            cancel_event=cancel_event,
        )

        logger.info(f"Employee {employee_address} belongs to {report.total_found} contracts "
                    f"({len(report.skipped)} skipped)")
        return report
