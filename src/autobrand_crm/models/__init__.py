"""
Data models for the AutoBrand CRM core.

Provides the stored records (Lead, Deal, Client, Service, Task, Activity),
their closed vocabularies, and the StoreSnapshot document that holds them.
"""

from .activity import Activity, ActivityType
from .base import CRMModel, as_utc, assign_fields, build_record
from .client import Client, ClientStatus
from .deal import CUSTOM_SERVICE_NAME, Deal, DealStage
from .lead import (
    HOT_THRESHOLD,
    WARM_THRESHOLD,
    Lead,
    LeadSource,
    LeadStatus,
    LeadTier,
    Platform,
    tier_from_score,
)
from .service import Service, ServicePeriod, default_services
from .snapshot import Settings, StoreSnapshot
from .task import Task, TaskStatus, TaskType

__all__ = [
    # Base
    'CRMModel',
    'as_utc',
    'assign_fields',
    'build_record',
    # Leads
    'Lead',
    'LeadSource',
    'LeadStatus',
    'LeadTier',
    'Platform',
    'tier_from_score',
    'HOT_THRESHOLD',
    'WARM_THRESHOLD',
    # Deals
    'Deal',
    'DealStage',
    'CUSTOM_SERVICE_NAME',
    # Clients
    'Client',
    'ClientStatus',
    # Services
    'Service',
    'ServicePeriod',
    'default_services',
    # Tasks
    'Task',
    'TaskStatus',
    'TaskType',
    # Activity log
    'Activity',
    'ActivityType',
    # Document
    'Settings',
    'StoreSnapshot',
]
