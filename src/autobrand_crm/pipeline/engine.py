"""
Sales pipeline engine: lead -> deal -> client.

Business rules:
- A deal is created from an existing lead at stage 'lead'; the lead becomes
  'qualified'.
- Any stage may move to any other stage (moving backward is allowed).
- Reaching 'won' converts the deal into a client exactly once. The guard is
  shared by the drag-and-drop move path and the edit-form path, both of
  which go through convert_to_client().
- Conversion never aborts on a missing lead: the client falls back to the
  deal's own name.

Every public operation runs in a single store transaction, so a failure at
any step (including the final write) leaves the store as it was.
"""

from dataclasses import dataclass, field
from datetime import timedelta

import structlog

from ..config import config
from ..errors import InvalidStageError
from ..logging import logging_context
from ..models import (
    CUSTOM_SERVICE_NAME,
    Activity,
    ActivityType,
    Client,
    ClientStatus,
    Deal,
    DealStage,
    LeadStatus,
    Platform,
    Task,
    TaskStatus,
    TaskType,
    assign_fields,
    build_record,
)
from ..store import Store
from ..utils import format_currency, utcnow

logger = structlog.get_logger(__name__)

DEFAULT_DEAL_VALUE = 199
EDITED_SERVICE_FALLBACK = 'Service'


def coerce_stage(stage: DealStage | str) -> DealStage:
    """
    Resolve a stage value from the presentation layer.

    Raises:
        InvalidStageError: Not one of the six pipeline stages
    """
    if isinstance(stage, DealStage):
        return stage
    try:
        return DealStage(stage)
    except ValueError as exc:
        raise InvalidStageError(stage) from exc


@dataclass
class DealTransition:
    """What a stage move did, for the presentation layer to display."""

    deal: Deal
    old_stage: DealStage
    new_stage: DealStage
    client: Client | None = None
    activities: list[Activity] = field(default_factory=list)
    message: str | None = None

    @property
    def changed(self) -> bool:
        return self.old_stage != self.new_stage

    @property
    def converted(self) -> bool:
        return self.client is not None


class PipelineEngine:
    """Applies pipeline rules to the deals, clients, services and tasks of a store."""

    def __init__(self, store: Store):
        self.store = store

    def _money(self, amount: int) -> str:
        return format_currency(amount, self.store.settings.currency)

    # =========================================================================
    # Deal Creation
    # =========================================================================

    def create_deal_from_lead(
        self,
        lead_id: str,
        service_id: str | None = None,
        value: int | None = None,
        name: str | None = None,
        notes: str = '',
    ) -> Deal:
        """
        Open a deal for a lead.

        Args:
            lead_id: Lead the deal is for
            service_id: Catalog service being sold (None for a custom deal)
            value: Deal value (defaults to the service price, else the first
                   catalog price, else 199)
            name: Deal name (defaults to "<lead> - Automation Package")
            notes: Free-text notes

        Returns:
            The new Deal at stage 'lead'

        Raises:
            LeadNotFoundError: No lead with lead_id
            ServiceNotFoundError: service_id given but not in the catalog
            ValidationError: value is negative
        """
        lead = self.store.get_lead(lead_id)
        service = self.store.get_service(service_id) if service_id else None

        if value is None:
            if service is not None:
                value = service.price
            elif self.store.services:
                value = self.store.services[0].price
            else:
                value = DEFAULT_DEAL_VALUE

        deal = build_record(
            Deal,
            lead_id=lead.id,
            name=name or f'{lead.name} - Automation Package',
            service_id=service.id if service else None,
            service_name=service.name if service else CUSTOM_SERVICE_NAME,
            value=value,
            stage=DealStage.LEAD,
            notes=notes,
        )

        with self.store.transaction():
            self.store.deals.append(deal)
            lead.status = LeadStatus.QUALIFIED
            lead.touch()
            self.store.add_activity(
                ActivityType.DEAL_CREATED,
                f'New deal {deal.name} created ({self._money(deal.value)})',
            )

        logger.info(
            'engine.deal_created',
            deal_id=deal.id,
            lead_id=lead.id,
            service_id=deal.service_id,
            value=deal.value,
        )
        return deal

    # =========================================================================
    # Stage Transitions
    # =========================================================================

    def move_deal(self, deal_id: str, new_stage: DealStage | str) -> DealTransition:
        """
        Move a deal to another pipeline stage.

        Moving to 'won' converts the deal into a client unless a client
        already exists for its lead; moving a won deal to 'won' again is a
        no-op for the client collection.

        Raises:
            DealNotFoundError: No deal with deal_id
            InvalidStageError: new_stage is not a pipeline stage (the deal
                               is left unchanged)
        """
        deal = self.store.get_deal(deal_id)
        stage = coerce_stage(new_stage)
        transition = DealTransition(deal=deal, old_stage=deal.stage, new_stage=stage)
        log = logger.bind(deal_id=deal.id, old_stage=deal.stage.value, new_stage=stage.value)

        scope = logging_context(operation='move_deal', deal_id=deal.id)
        with scope, self.store.transaction():
            deal.stage = stage
            deal.touch()

            if stage == DealStage.WON:
                transition.client = self._convert_if_needed(deal, transition.activities)
                transition.activities.append(
                    self.store.add_activity(
                        ActivityType.DEAL_WON, f'Deal {deal.name} was WON!'
                    )
                )
                transition.message = 'Congratulations! Deal won!'
            elif stage == DealStage.LOST:
                transition.activities.append(
                    self.store.add_activity(
                        ActivityType.DEAL_LOST, f'Deal {deal.name} was lost'
                    )
                )
                transition.message = 'Deal marked as lost'
            elif transition.changed:
                transition.activities.append(
                    self.store.add_activity(
                        ActivityType.DEAL_MOVED, f'{deal.name} moved to {stage.value}'
                    )
                )

        log.info('engine.deal_moved', converted=transition.converted)
        return transition

    def update_deal(
        self,
        deal_id: str,
        name: str | None = None,
        stage: DealStage | str | None = None,
        value: int | None = None,
        service_id: str | None = None,
        notes: str | None = None,
    ) -> Deal:
        """
        Apply an edit-form submission to a deal.

        The service name cache is refreshed from the catalog. A stage change
        into 'won' goes through the same conversion as move_deal().

        Raises:
            DealNotFoundError: No deal with deal_id
            InvalidStageError: stage is not a pipeline stage
            ValidationError: value is negative (the deal is left unchanged
                             in the store)
        """
        deal = self.store.get_deal(deal_id)
        new_stage = coerce_stage(stage) if stage is not None else deal.stage
        old_stage = deal.stage

        changes = {
            k: v
            for k, v in (('name', name), ('value', value), ('notes', notes))
            if v is not None
        }
        if service_id is not None:
            service = self.store.find_service(service_id)
            changes['service_id'] = service_id
            changes['service_name'] = service.name if service else EDITED_SERVICE_FALLBACK
        changes['stage'] = new_stage

        scope = logging_context(operation='update_deal', deal_id=deal.id)
        with scope, self.store.transaction():
            assign_fields(deal, changes)
            deal.touch()

            if new_stage == DealStage.WON and old_stage != DealStage.WON:
                self._convert_if_needed(deal)

        logger.info('engine.deal_updated', deal_id=deal.id, stage=deal.stage.value)
        return deal

    # =========================================================================
    # Conversion
    # =========================================================================

    def convert_to_client(self, deal: Deal) -> Client | None:
        """
        Turn a won deal into a client.

        Creates the client (identity copied from the lead, or from the deal
        when the lead is gone), bumps the service's client_count, schedules
        an onboarding task and logs the new client.

        Returns:
            The new Client, or None if one already exists for the deal's lead
        """
        with self.store.transaction():
            return self._convert_if_needed(deal)

    def _convert_if_needed(
        self,
        deal: Deal,
        activities: list[Activity] | None = None,
    ) -> Client | None:
        existing = self.store.client_for_deal(deal)
        if existing is not None:
            logger.info(
                'engine.conversion_skipped',
                deal_id=deal.id,
                client_id=existing.id,
            )
            return None

        lead = self.store.find_lead(deal.lead_id)
        service = self.store.find_service(deal.service_id)
        if lead is None:
            logger.warning('engine.conversion_without_lead', deal_id=deal.id, lead_id=deal.lead_id)

        now = utcnow()
        client = Client(
            lead_id=deal.lead_id,
            deal_id=deal.id,
            name=lead.name if lead else deal.name,
            email=lead.email if lead else '',
            platform=lead.platform if lead else Platform.TWITCH,
            status=ClientStatus.ONBOARDING,
            services=[deal.service_id] if deal.service_id else [],
            mrr=deal.value,
            start_date=now,
            notes=deal.notes,
        )

        with self.store.transaction():
            self.store.clients.append(client)
            if service is not None:
                service.client_count += 1

            self.store.tasks.append(
                Task(
                    title=f'Onboard {client.name}',
                    type=TaskType.ONBOARDING,
                    status=TaskStatus.PENDING,
                    due_date=now + timedelta(days=config.ONBOARDING_DUE_DAYS),
                    related_to=client.id,
                    related_type='client',
                    created_at=now,
                )
            )
            activity = self.store.add_activity(
                ActivityType.CLIENT_ADDED, f'New client {client.name} was added!'
            )

        if activities is not None:
            activities.append(activity)
        logger.info(
            'engine.client_converted',
            deal_id=deal.id,
            client_id=client.id,
            mrr=client.mrr,
        )
        return client
