"""Task model: follow-ups, onboarding and other to-dos."""

from datetime import date, datetime
from enum import Enum

from pydantic import Field, field_validator

from ..utils import new_id, utcnow
from .base import CRMModel, as_utc


class TaskType(str, Enum):
    FOLLOW_UP = 'follow-up'
    OUTREACH = 'outreach'
    ONBOARDING = 'onboarding'
    SUPPORT = 'support'
    MEETING = 'meeting'


class TaskStatus(str, Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'


class Task(CRMModel):
    """
    A to-do item, optionally tied to a lead or client.

    due_date accepts plain dates from forms; they are stored as midnight UTC.
    """

    id: str = Field(default_factory=new_id)
    title: str
    type: TaskType = TaskType.FOLLOW_UP
    status: TaskStatus = TaskStatus.PENDING
    due_date: datetime
    related_to: str | None = None
    related_type: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator('due_date', mode='before')
    @classmethod
    def _due_date_utc(cls, value):
        if isinstance(value, (date, datetime)):
            return as_utc(value)
        return value

    @field_validator('due_date')
    @classmethod
    def _due_date_aware(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def is_pending(self) -> bool:
        return self.status == TaskStatus.PENDING
