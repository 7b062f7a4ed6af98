"""Client model: a won deal's customer."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from ..utils import new_id, utcnow
from .base import CRMModel
from .lead import Platform


class ClientStatus(str, Enum):
    ONBOARDING = 'onboarding'
    ACTIVE = 'active'
    PAUSED = 'paused'
    CHURNED = 'churned'


class Client(CRMModel):
    """
    A paying customer, created exactly once when a deal is won.

    lead_id and deal_id are non-owning references; services holds Service ids.
    """

    id: str = Field(default_factory=new_id)
    lead_id: str
    deal_id: str
    name: str
    email: str = ''
    platform: Platform = Platform.TWITCH
    status: ClientStatus = ClientStatus.ONBOARDING
    services: list[str] = Field(default_factory=list)
    mrr: int = Field(default=0, ge=0)
    start_date: datetime = Field(default_factory=utcnow)
    notes: str = ''
