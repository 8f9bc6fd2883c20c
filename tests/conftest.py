"""Shared fixtures: every flow runs against a fresh in-memory store."""

import pytest

from duogesto.audit import AuditLogger
from duogesto.services.storage import InMemoryRecordStore


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def audit_logger(store):
    return AuditLogger(store)
