"""
Lead model and its closed vocabularies.

A lead is a prospective client, usually a streamer pulled in by the scraper
export. Its tier is a pure function of its score and is exposed as a computed
property: it is serialized for readers of the snapshot but can never be set,
so score and tier cannot disagree.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field, computed_field

from ..utils import new_id, utcnow
from .base import CRMModel

HOT_THRESHOLD = 70
WARM_THRESHOLD = 40


class Platform(str, Enum):
    TWITCH = 'Twitch'
    YOUTUBE = 'YouTube'
    INSTAGRAM = 'Instagram'


class LeadSource(str, Enum):
    SCRAPER = 'scraper'
    REFERRAL = 'referral'
    INBOUND = 'inbound'
    OUTBOUND = 'outbound'


class LeadStatus(str, Enum):
    """Outreach lifecycle for a lead."""

    NEW = 'new'
    CONTACTED = 'contacted'
    REPLIED = 'replied'
    QUALIFIED = 'qualified'
    UNQUALIFIED = 'unqualified'


class LeadTier(str, Enum):
    """Coarse lead-quality bucket derived from score."""

    HOT = 'hot'
    WARM = 'warm'
    COLD = 'cold'


def tier_from_score(score: int) -> LeadTier:
    """hot at 70 and above, warm from 40 to 69, cold below 40."""
    if score >= HOT_THRESHOLD:
        return LeadTier.HOT
    if score >= WARM_THRESHOLD:
        return LeadTier.WARM
    return LeadTier.COLD


class Lead(CRMModel):
    """A prospective client."""

    id: str = Field(default_factory=new_id)
    name: str
    email: str = ''
    platform: Platform = Platform.TWITCH
    source: LeadSource = LeadSource.SCRAPER
    followers: int = Field(default=0, ge=0)
    avg_viewers: int = Field(default=0, ge=0)
    score: int = Field(default=50, ge=0, le=100)
    status: LeadStatus = LeadStatus.NEW

    # Scraper enrichment
    broadcaster_type: str = ''
    primary_game: str = ''
    twitter: str = ''
    youtube: str = ''
    instagram: str = ''
    discord: str = ''
    twitch_url: str = ''
    description: str = ''

    notes: str = ''
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def tier(self) -> LeadTier:
        return tier_from_score(self.score)

    def touch(self) -> None:
        self.updated_at = utcnow()
