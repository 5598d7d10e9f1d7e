"""
Global pytest configuration and fixtures for the content migration tests.

This file contains shared fixtures and configurations that are available
to all test modules without explicit import.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Generator

import pytest # type: ignore
from faker import Faker # type: ignore

# Add the project root to Python path
project_root: Path = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.utils.in_memory_store import InMemoryContentStore  # noqa: E402
from tests.utils.record_factory import LegacyRecordFactory  # noqa: E402

# Initialize Faker for generating test data
fake: Faker = Faker()


# ============================================================================
# Session-level fixtures
# ============================================================================


@pytest.fixture(scope="session")
def faker_instance() -> Faker:
    """
    Provide a Faker instance for generating test data.

    Returns:
        Configured Faker instance
    """
    return fake


# ============================================================================
# Function-level fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """
    Reset environment state before each test.
    This ensures tests don't interfere with each other.
    """
    original_env: Dict[str, str] = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("content_migration.tests")


@pytest.fixture
def store() -> InMemoryContentStore:
    """Empty in-memory store with shuffled reads."""
    return InMemoryContentStore()


@pytest.fixture
def records() -> LegacyRecordFactory:
    return LegacyRecordFactory()


@pytest.fixture
def acting_user_id() -> str:
    """Identity the conversion runs as."""
    return "user-migration-admin"


# ============================================================================
# Test lifecycle hooks
# ============================================================================


def pytest_collection_modifyitems(config, items):
    """
    Auto-mark tests based on their module.
    """
    for item in items:
        if "arango" in item.nodeid.lower():
            item.add_marker(pytest.mark.arango)

        if "conversion_job" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
