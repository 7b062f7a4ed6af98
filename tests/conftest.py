"""
Pytest configuration and shared fixtures.

Key fixtures:
- storage: in-memory key-value backend (no retry wait)
- store: a Store loaded from that backend, seeded with the default catalog
- importer / engine / repository: components bound to the store
- scraper_csv: a small scraper export with quoted, comma-bearing fields

No files or network are touched; everything runs against MemoryStorage.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from autobrand_crm.pipeline import LeadImporter, PipelineEngine
from autobrand_crm.repository import CrmRepository
from autobrand_crm.storage import MemoryStorage
from autobrand_crm.store import Store


@pytest.fixture
def storage() -> MemoryStorage:
    """Fresh in-memory backend."""
    return MemoryStorage(retry_wait=0)


@pytest.fixture
def store(storage: MemoryStorage) -> Store:
    """Store loaded from an empty backend (services seeded)."""
    return Store.load(storage, key='test-crm')


@pytest.fixture
def importer(store: Store) -> LeadImporter:
    return LeadImporter(store)


@pytest.fixture
def engine(store: Store) -> PipelineEngine:
    return PipelineEngine(store)


@pytest.fixture
def repository(store: Store) -> CrmRepository:
    return CrmRepository(store)


@pytest.fixture
def scraper_csv() -> str:
    """Scraper export with two named rows and two nameless rows."""
    return (
        'Display Name,Login,Business Email,Followers,Avg Viewers,Lead Score,'
        'Broadcaster Type,Primary Game,Twitter,Description\n'
        'NovaPlays,novaplays,nova@example.com,15000,120,85,affiliate,Valorant,'
        '@nova,"Chill FPS, late nights"\n'
        'QuietRiver,quietriver,,800,12,45,,Stardew Valley,,"Cozy games, ""no rage"""\n'
        ',,,100,1,20,,,,\n'
        ',,,50,0,10,,,,\n'
    )
