"""
Deal model: a lead's position in the sales pipeline.

Stages are ordered pipeline positions, but any stage may move to any other
(regression is allowed). won and lost are terminal outcomes.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from ..utils import new_id, utcnow
from .base import CRMModel

CUSTOM_SERVICE_NAME = 'Custom'


class DealStage(str, Enum):
    """Deal stage lifecycle."""

    LEAD = 'lead'
    QUALIFIED = 'qualified'
    PROPOSAL = 'proposal'
    NEGOTIATION = 'negotiation'
    WON = 'won'
    LOST = 'lost'

    @property
    def is_terminal(self) -> bool:
        return self in (DealStage.WON, DealStage.LOST)

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Deal(CRMModel):
    """
    A sales opportunity created from a lead.

    lead_id and service_id are by-id references; service_name is a
    denormalized cache of the service's name at assignment time.
    """

    id: str = Field(default_factory=new_id)
    lead_id: str
    name: str
    service_id: str | None = None
    service_name: str = CUSTOM_SERVICE_NAME
    value: int = Field(default=0, ge=0)
    stage: DealStage = DealStage.LEAD
    notes: str = ''
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self) -> None:
        self.updated_at = utcnow()
