"""
Registry Store
Durable mapping of contract id -> ContractRecord, persisted as a JSON array
"""

import json
import logging
import os
import threading
from pathlib import Path

import config
from models.contract import ContractRecord
from utils.errors import RegistryPersistError, ValidationError

logger = logging.getLogger(__name__)


class RegistryStore:
    """Registry of known contracts with an explicit load / mutate / persist lifecycle"""

    def __init__(self, path=None):
        self.path = Path(path or config.REGISTRY_PATH)
        self._records = {}
        # Single writer; readers get copies
        self._lock = threading.RLock()

    def load(self):
        """Load the registry file, replacing the in-memory set

        A missing or unreadable file leaves an empty registry instead of failing;
        an unreadable file is moved aside to ``<name>.corrupt`` so the next
        persist cannot overwrite it. Individual invalid entries are skipped.
        """
        if not self.path.exists():
            logger.info(f"Registry file {self.path} not found, starting with an empty registry")
            with self._lock:
                self._records = {}
            return 0

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError('registry document must be a JSON array')
        except (OSError, ValueError) as e:
            logger.error(f"Error loading registry {self.path}: {e}; starting with an empty registry")
            self._set_aside()
            with self._lock:
                self._records = {}
            return 0

        records = {}
        for index, entry in enumerate(data):
            try:
                record = ContractRecord.from_dict(entry)
                record.validate()
            except (ValidationError, AttributeError, TypeError) as e:
                logger.warning(f"Skipping invalid registry entry #{index} in {self.path}: {e}")
                continue
            # Later duplicates win
            if record.id in records:
                record = records[record.id].merged_with(record)
            records[record.id] = record

        with self._lock:
            self._records = records
        logger.info(f"Loaded {len(records)} contracts from {self.path}")
        return len(records)

    def _set_aside(self):
        corrupt_path = self.path.with_name(self.path.name + '.corrupt')
        try:
            os.replace(self.path, corrupt_path)
            logger.warning(f"Moved unreadable registry to {corrupt_path}")
        except OSError as e:
            logger.error(f"Could not move unreadable registry {self.path} aside: {e}")

    def persist(self):
        """Write the registry to disk; raises RegistryPersistError on failure"""
        with self._lock:
            payload = [record.to_dict() for record in self._records.values()]
            tmp_path = self.path.with_name(self.path.name + '.tmp')
            try:
                if self.path.parent and not self.path.parent.exists():
                    self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, 'w') as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_path, self.path)
            except OSError as e:
                logger.error(f"Error persisting registry to {self.path}: {e}")
                raise RegistryPersistError('Failed to persist contract registry', details=str(e))

    def list(self):
        """All active contracts"""
        with self._lock:
            return [record.copy() for record in self._records.values() if record.is_active]

    def get(self, contract_id):
        """A contract by id (active or not), or None"""
        with self._lock:
            record = self._records.get(contract_id)
            return record.copy() if record else None

    def upsert(self, record):
        """Add a contract or merge it into the existing entry with the same id"""
        if isinstance(record, dict):
            record = ContractRecord.from_dict(record)
        record.validate()

        with self._lock:
            existing = self._records.get(record.id)
            if existing:
                merged = existing.merged_with(record)
            else:
                merged = record.copy()
                if merged.active is None:
                    merged.active = True
            self._records[merged.id] = merged

            # In-memory state stays even if the write fails
            self.persist()

        logger.info(f"Contract registry updated: {merged.display_name} ({merged.id})")
        return merged.copy()

    def deactivate(self, contract_id):
        """Mark a contract inactive; records are never deleted"""
        with self._lock:
            existing = self._records.get(contract_id)
            if not existing:
                raise ValidationError(f'Unknown contract: {contract_id}')
            existing.active = False
            self.persist()

        logger.info(f"Contract deactivated: {contract_id}")
        return existing.copy()

    def __len__(self):
        with self._lock:
            return len(self._records)
