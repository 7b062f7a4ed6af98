"""
Service offering model and the built-in catalog.

client_count is an increment-only counter bumped on each conversion. It is
not decremented when a client churns, so it can drift above the live count
(see views.live_service_client_count).
"""

from enum import Enum

from pydantic import Field

from ..utils import new_id
from .base import CRMModel


class ServicePeriod(str, Enum):
    MONTH = 'month'
    YEAR = 'year'
    ONE_TIME = 'one-time'


class Service(CRMModel):
    """A sellable automation package."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ''
    price: int = Field(default=0, ge=0)
    period: ServicePeriod = ServicePeriod.MONTH
    features: list[str] = Field(default_factory=list)
    client_count: int = Field(default=0, ge=0)


def default_services() -> list[Service]:
    """Fresh copies of the catalog seeded into an empty store."""
    return [
        Service(
            id='svc-1',
            name='Stream Announcements',
            description=(
                'Automated stream announcements to Discord, Twitter, and other '
                'platforms when you go live.'
            ),
            price=149,
            features=[
                'Multi-platform posting',
                'Custom templates',
                'Schedule-aware timing',
                'Engagement tracking',
            ],
        ),
        Service(
            id='svc-2',
            name='Content Repurposing',
            description=(
                'Automatically clip highlights and distribute to YouTube Shorts, '
                'TikTok, and Instagram Reels.'
            ),
            price=299,
            features=[
                'AI clip detection',
                'Auto-captioning',
                'Platform optimization',
                'Scheduling queue',
            ],
        ),
        Service(
            id='svc-3',
            name='Community Automation',
            description=(
                'Discord bot setup with welcome messages, role management, and '
                'engagement features.'
            ),
            price=199,
            features=[
                'Welcome sequences',
                'Role automation',
                'Mod tools',
                'Analytics dashboard',
            ],
        ),
        Service(
            id='svc-4',
            name='Full Stack Automation',
            description=(
                'Complete automation suite: stream alerts, content repurposing, '
                'community management, and analytics.'
            ),
            price=599,
            features=[
                'All services included',
                'Priority support',
                'Custom workflows',
                'Weekly analytics reports',
            ],
        ),
    ]
