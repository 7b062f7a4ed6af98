"""Activity log entries, newest first."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from ..utils import new_id, utcnow
from .base import CRMModel


class ActivityType(str, Enum):
    LEAD_ADDED = 'lead_added'
    LEAD_CONTACTED = 'lead_contacted'
    DEAL_CREATED = 'deal_created'
    DEAL_MOVED = 'deal_moved'
    DEAL_WON = 'deal_won'
    DEAL_LOST = 'deal_lost'
    CLIENT_ADDED = 'client_added'
    TASK_COMPLETED = 'task_completed'


class Activity(CRMModel):
    id: str = Field(default_factory=new_id)
    type: ActivityType
    text: str
    timestamp: datetime = Field(default_factory=utcnow)
