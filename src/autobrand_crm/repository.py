"""
Manual create/edit/delete operations for each CRM entity.

These back the presentation layer's forms. Submissions arrive as already
validated key/value pairs; field names are the snake_case model attributes.
Each call is one store transaction and is persisted immediately.

Deal creation, stage moves and conversion live in pipeline.engine; this
module only covers the plain record paths.
"""

from datetime import date, datetime
from typing import Any

import structlog

from .errors import ValidationError
from .models import (
    ActivityType,
    Client,
    Lead,
    LeadSource,
    LeadStatus,
    Platform,
    Service,
    ServicePeriod,
    Task,
    TaskStatus,
    TaskType,
    assign_fields,
    build_record,
)
from .store import Store

logger = structlog.get_logger(__name__)

LEAD_EDITABLE_FIELDS = frozenset({
    'name', 'email', 'platform', 'source', 'status', 'followers', 'avg_viewers',
    'score', 'notes', 'twitch_url', 'twitter', 'youtube', 'instagram',
    'discord', 'broadcaster_type', 'primary_game', 'description',
})
CLIENT_EDITABLE_FIELDS = frozenset({'name', 'email', 'platform', 'status', 'mrr', 'notes', 'services'})
SERVICE_EDITABLE_FIELDS = frozenset({'name', 'description', 'price', 'period', 'features'})
TASK_EDITABLE_FIELDS = frozenset({'title', 'type', 'status', 'due_date', 'related_to', 'related_type'})


def parse_features(features: str | list[str] | None) -> list[str]:
    """Accept a newline-separated textarea value or a list; blank lines are dropped."""
    if features is None:
        return []
    if isinstance(features, str):
        features = features.split('\n')
    return [f.strip() for f in features if f.strip()]


def _apply(record: Any, fields: dict[str, Any], allowed: frozenset[str]) -> None:
    """Assign validated fields onto a record, rejecting unknown names."""
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(
            f"Unknown field(s) for {type(record).__name__}: {', '.join(sorted(unknown))}",
            context={'fields': sorted(unknown)},
        )
    assign_fields(record, fields)


class CrmRepository:
    """Record-level operations over a Store."""

    def __init__(self, store: Store):
        self.store = store

    # =========================================================================
    # Leads
    # =========================================================================

    def add_lead(
        self,
        name: str,
        email: str = '',
        platform: Platform | str = Platform.TWITCH,
        source: LeadSource | str = LeadSource.INBOUND,
        followers: int = 0,
        score: int = 50,
        notes: str = '',
    ) -> Lead:
        """Create a lead by hand; it starts as 'new' and is listed first."""
        lead = build_record(
            Lead,
            name=name,
            email=email,
            platform=platform,
            source=source,
            followers=followers,
            score=score,
            status=LeadStatus.NEW,
            notes=notes,
        )
        with self.store.transaction():
            self.store.leads.insert(0, lead)
            self.store.add_activity(ActivityType.LEAD_ADDED, f'New lead {lead.name} was added')

        logger.info('repository.lead_added', lead_id=lead.id, tier=lead.tier.value)
        return lead

    def update_lead(self, lead_id: str, **fields: Any) -> Lead:
        """
        Edit a lead. The tier follows the new score automatically.

        Raises:
            LeadNotFoundError: No lead with lead_id
            ValidationError: Unknown field or invalid value
        """
        lead = self.store.get_lead(lead_id)
        was_contacted = lead.status == LeadStatus.CONTACTED

        with self.store.transaction():
            _apply(lead, fields, LEAD_EDITABLE_FIELDS)
            lead.touch()
            if lead.status == LeadStatus.CONTACTED and not was_contacted:
                self.store.add_activity(
                    ActivityType.LEAD_CONTACTED, f'Reached out to {lead.name}'
                )

        logger.info('repository.lead_updated', lead_id=lead.id, fields=sorted(fields))
        return lead

    def delete_lead(self, lead_id: str) -> Lead:
        """
        Remove a lead. Deals and clients keep their lead_id reference.

        Raises:
            LeadNotFoundError: No lead with lead_id
        """
        lead = self.store.get_lead(lead_id)
        with self.store.transaction():
            self.store.leads.remove(lead)
        logger.info('repository.lead_deleted', lead_id=lead_id)
        return lead

    # =========================================================================
    # Deals
    # =========================================================================

    def delete_deal(self, deal_id: str) -> None:
        """
        Remove a deal. A client already converted from it is kept.

        Raises:
            DealNotFoundError: No deal with deal_id
        """
        deal = self.store.get_deal(deal_id)
        with self.store.transaction():
            self.store.deals.remove(deal)
        logger.info('repository.deal_deleted', deal_id=deal_id)

    # =========================================================================
    # Clients
    # =========================================================================

    def update_client(self, client_id: str, **fields: Any) -> Client:
        """
        Edit a client (status, MRR, contact details, notes).

        Service client counts are not adjusted when a client churns.

        Raises:
            ClientNotFoundError: No client with client_id
            ValidationError: Unknown field or invalid value
        """
        client = self.store.get_client(client_id)
        with self.store.transaction():
            _apply(client, fields, CLIENT_EDITABLE_FIELDS)
        logger.info('repository.client_updated', client_id=client.id, fields=sorted(fields))
        return client

    # =========================================================================
    # Services
    # =========================================================================

    def add_service(
        self,
        name: str,
        description: str = '',
        price: int = 0,
        period: ServicePeriod | str = ServicePeriod.MONTH,
        features: str | list[str] | None = None,
    ) -> Service:
        service = build_record(
            Service,
            name=name,
            description=description,
            price=price,
            period=period,
            features=parse_features(features),
        )
        with self.store.transaction():
            self.store.services.append(service)
        logger.info('repository.service_added', service_id=service.id)
        return service

    def update_service(self, service_id: str, **fields: Any) -> Service:
        """
        Edit a catalog entry. Deals keep the service name cached when they
        were assigned.

        Raises:
            ServiceNotFoundError: No service with service_id
            ValidationError: Unknown field or invalid value
        """
        service = self.store.get_service(service_id)
        if 'features' in fields:
            fields['features'] = parse_features(fields['features'])
        with self.store.transaction():
            _apply(service, fields, SERVICE_EDITABLE_FIELDS)
        logger.info('repository.service_updated', service_id=service.id)
        return service

    # =========================================================================
    # Tasks
    # =========================================================================

    def add_task(
        self,
        title: str,
        due_date: date | datetime | str,
        type: TaskType | str = TaskType.FOLLOW_UP,
        related_to: str | None = None,
    ) -> Task:
        """Create a pending task, optionally tied to a lead or client id."""
        related_type = None
        if related_to:
            if self.store.find_lead(related_to):
                related_type = 'lead'
            elif self.store.find_client(related_to):
                related_type = 'client'

        task = build_record(
            Task,
            title=title,
            type=type,
            status=TaskStatus.PENDING,
            due_date=due_date,
            related_to=related_to or None,
            related_type=related_type,
        )
        with self.store.transaction():
            self.store.tasks.append(task)
        logger.info('repository.task_added', task_id=task.id, type=task.type.value)
        return task

    def update_task(self, task_id: str, **fields: Any) -> Task:
        """
        Raises:
            TaskNotFoundError: No task with task_id
            ValidationError: Unknown field or invalid value
        """
        task = self.store.get_task(task_id)
        with self.store.transaction():
            _apply(task, fields, TASK_EDITABLE_FIELDS)
        logger.info('repository.task_updated', task_id=task.id)
        return task

    def toggle_task(self, task_id: str) -> Task:
        """Flip a task between pending and completed; completion is logged."""
        task = self.store.get_task(task_id)
        with self.store.transaction():
            if task.status == TaskStatus.COMPLETED:
                task.status = TaskStatus.PENDING
            else:
                task.status = TaskStatus.COMPLETED
                self.store.add_activity(
                    ActivityType.TASK_COMPLETED, f'Task {task.title} completed'
                )
        return task

    def delete_task(self, task_id: str) -> None:
        task = self.store.get_task(task_id)
        with self.store.transaction():
            self.store.tasks.remove(task)
        logger.info('repository.task_deleted', task_id=task_id)
