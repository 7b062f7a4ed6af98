"""
The persisted store document.

One JSON document holds every collection plus display settings. Records are
validated on load, so a corrupt or out-of-vocabulary value fails loudly
instead of flowing into the pipeline.
"""

from pydantic import Field

from .activity import Activity
from .base import CRMModel
from .client import Client
from .deal import Deal
from .lead import Lead
from .service import Service
from .task import Task


class Settings(CRMModel):
    currency: str = 'USD'
    date_format: str = 'MM/DD/YYYY'


class StoreSnapshot(CRMModel):
    """Full-snapshot form of the store, as written to the key-value backend."""

    leads: list[Lead] = Field(default_factory=list)
    deals: list[Deal] = Field(default_factory=list)
    clients: list[Client] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    activities: list[Activity] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)
