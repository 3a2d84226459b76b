from pathlib import Path

import pytest

from leadscout.repository import LeadRepository
from leadscout.store import LeadStore


@pytest.fixture
def store(tmp_path: Path) -> LeadStore:
    lead_store = LeadStore(tmp_path / "state" / "leads.sqlite")
    lead_store.initialize()
    yield lead_store
    lead_store.close()


@pytest.fixture
def repository(store: LeadStore) -> LeadRepository:
    return LeadRepository(store)
