"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (service with in-memory stores, mocked recorder)
    - unit/       : Unit tests (pure functions, adapters with mock transports)
"""
import os
import sys

import pytest

# Set testing environment BEFORE any project imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("LEDGER_STORAGE_BACKEND", "memory")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from tests.contracts.credit_ledger.data_contract import CreditLedgerTestDataFactory


@pytest.fixture
def data_factory():
    """Provide data factory for test data generation"""
    return CreditLedgerTestDataFactory


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
