"""Ensure the project root is importable during tests."""

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TESTS = Path(__file__).resolve().parent
if str(TESTS) not in sys.path:
    sys.path.insert(0, str(TESTS))

# Never touch a registry file in the working directory during tests
os.environ.setdefault('REGISTRY_PATH', str(TESTS / '.pytest-contracts.json'))


@pytest.fixture
def registry(tmp_path):
    from services.registry_store import RegistryStore

    store = RegistryStore(tmp_path / 'contracts.json')
    store.load()
    return store
