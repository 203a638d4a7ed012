"""
Pytest configuration and shared fixtures for Contacts bridge tests.

Test Categories:
- unit: Fast tests with no external dependencies
- integration: Tests that talk to real external systems
- requires_contacts: Tests that run real osascript against Contacts.app (macOS only)

Run categories:
- pytest -m unit                      # Fast unit tests only
- pytest -m "not requires_contacts"   # Everything that runs off macOS
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.fakes import FakeRunner, InMemoryContacts  # noqa: E402


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Integration tests against real services")
    config.addinivalue_line("markers", "requires_contacts: Requires macOS Contacts.app and osascript")


@pytest.fixture(autouse=True)
def reset_singletons_after_test():
    yield
    from api.services.contacts_directory import reset_contacts_directory
    reset_contacts_directory()


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def contacts_app():
    return InMemoryContacts()
