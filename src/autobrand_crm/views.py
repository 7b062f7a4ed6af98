"""
Derived aggregates and read-side queries.

Everything here is recomputed from the live collections on each call; none
of it is stored. The one stored aggregate, Service.client_count, is
increment-only, and live_service_client_count() gives the true figure for
comparison.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .config import config
from .errors import ValidationError
from .models import (
    Activity,
    Client,
    ClientStatus,
    DealStage,
    Lead,
    LeadSource,
    LeadStatus,
    LeadTier,
    Task,
    TaskStatus,
    TaskType,
    as_utc,
)
from .store import Store
from .utils import utcnow

MIN_SEARCH_LENGTH = 2
ALL = 'all'


def _enum_filter(enum: type, value):
    """
    Resolve a filter value; None and the list views' 'all' choice mean no filter.

    Raises:
        ValidationError: Not a member of the enum
    """
    if value is None or value == ALL:
        return None
    try:
        return enum(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown {enum.__name__} filter: {value}",
            context={'filter': enum.__name__, 'value': value},
        ) from exc


# =============================================================================
# Pipeline and Dashboard Aggregates
# =============================================================================


@dataclass
class StageSummary:
    stage: DealStage
    count: int
    total_value: int


@dataclass
class DashboardKPIs:
    total_leads: int
    active_deals: int
    active_deal_value: int
    active_clients: int
    mrr: int
    pending_tasks: int


def stage_summary(store: Store) -> list[StageSummary]:
    """Deal count and summed value for every pipeline stage, in pipeline order."""
    summaries = []
    for stage in DealStage:
        deals = [d for d in store.deals if d.stage == stage]
        summaries.append(
            StageSummary(
                stage=stage,
                count=len(deals),
                total_value=sum(d.value for d in deals),
            )
        )
    return summaries


def dashboard_kpis(store: Store) -> DashboardKPIs:
    """Headline numbers: open deals exclude won/lost, MRR counts active clients."""
    open_deals = [d for d in store.deals if not d.stage.is_terminal]
    active_clients = [c for c in store.clients if c.status == ClientStatus.ACTIVE]
    return DashboardKPIs(
        total_leads=len(store.leads),
        active_deals=len(open_deals),
        active_deal_value=sum(d.value for d in open_deals),
        active_clients=len(active_clients),
        mrr=sum(c.mrr for c in active_clients),
        pending_tasks=pending_task_count(store),
    )


def pending_task_count(store: Store) -> int:
    return sum(1 for t in store.tasks if t.is_pending)


def live_service_client_count(store: Store, service_id: str) -> int:
    """Clients that are not churned and reference the service."""
    return sum(
        1
        for c in store.clients
        if c.status != ClientStatus.CHURNED and service_id in c.services
    )


def hot_leads(store: Store, limit: int = 5) -> list[Lead]:
    """Highest-scoring hot leads that have not been marked unqualified."""
    leads = [
        l
        for l in store.leads
        if l.tier == LeadTier.HOT and l.status != LeadStatus.UNQUALIFIED
    ]
    leads.sort(key=lambda l: l.score, reverse=True)
    return leads[:limit]


def upcoming_tasks(store: Store, limit: int = 5) -> list[Task]:
    """Pending tasks, soonest due first."""
    tasks = sorted((t for t in store.tasks if t.is_pending), key=lambda t: t.due_date)
    return tasks[:limit]


def recent_activities(store: Store, limit: int = 8) -> list[Activity]:
    return store.activities[:limit]


# =============================================================================
# Task Schedule
# =============================================================================


@dataclass
class TaskBuckets:
    """Pending tasks grouped by due date relative to today."""

    overdue: list[Task] = field(default_factory=list)
    today: list[Task] = field(default_factory=list)
    this_week: list[Task] = field(default_factory=list)
    later: list[Task] = field(default_factory=list)


def task_buckets(
    store: Store,
    now: datetime | None = None,
    task_type: TaskType | str | None = None,
    status: TaskStatus | str | None = None,
) -> TaskBuckets:
    """
    Bucket pending tasks: overdue (before today), today, the next six days,
    and later. Days start at midnight in the timezone of ``now`` (UTC by
    default; a naive ``now`` is taken as UTC, like stored due dates).

    Filters accept enum members, their values, or 'all'.
    """
    now = as_utc(now) if now is not None else utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)
    week_end = today + timedelta(days=7)

    task_type = _enum_filter(TaskType, task_type)
    status = _enum_filter(TaskStatus, status)
    tasks = store.tasks
    if task_type is not None:
        tasks = [t for t in tasks if t.type == task_type]
    if status is not None:
        tasks = [t for t in tasks if t.status == status]

    buckets = TaskBuckets()
    for task in tasks:
        if not task.is_pending:
            continue
        if task.due_date < today:
            buckets.overdue.append(task)
        elif task.due_date < tomorrow:
            buckets.today.append(task)
        elif task.due_date < week_end:
            buckets.this_week.append(task)
        else:
            buckets.later.append(task)
    return buckets


# =============================================================================
# Lists, Filters and Search
# =============================================================================


@dataclass
class LeadPage:
    leads: list[Lead]
    page: int
    total_pages: int
    total: int


def filter_leads(
    store: Store,
    tier: LeadTier | str | None = None,
    status: LeadStatus | str | None = None,
    source: LeadSource | str | None = None,
    page: int = 1,
    per_page: int | None = None,
) -> LeadPage:
    """
    Filter leads, sort by score (highest first) and return one page.

    Pages are 1-based; a page past the end returns an empty list.
    """
    per_page = per_page or config.LEADS_PER_PAGE
    tier = _enum_filter(LeadTier, tier)
    status = _enum_filter(LeadStatus, status)
    source = _enum_filter(LeadSource, source)
    leads = list(store.leads)
    if tier is not None:
        leads = [l for l in leads if l.tier == tier]
    if status is not None:
        leads = [l for l in leads if l.status == status]
    if source is not None:
        leads = [l for l in leads if l.source == source]

    leads.sort(key=lambda l: l.score, reverse=True)
    page = max(1, page)
    start = (page - 1) * per_page
    return LeadPage(
        leads=leads[start:start + per_page],
        page=page,
        total_pages=math.ceil(len(leads) / per_page),
        total=len(leads),
    )


def filter_clients(
    store: Store,
    status: ClientStatus | str | None = None,
    service_id: str | None = None,
) -> list[Client]:
    status = _enum_filter(ClientStatus, status)
    clients = list(store.clients)
    if status is not None:
        clients = [c for c in clients if c.status == status]
    if service_id is not None and service_id != ALL:
        clients = [c for c in clients if service_id in c.services]
    return clients


@dataclass
class SearchHit:
    kind: str  # 'lead' | 'client'
    record: Lead | Client


def search(store: Store, query: str) -> list[SearchHit]:
    """
    Case-insensitive substring search over lead and client names and emails.

    Leads come before clients. Queries shorter than two characters match
    nothing.
    """
    needle = query.strip().lower()
    if len(needle) < MIN_SEARCH_LENGTH:
        return []

    hits = [
        SearchHit(kind='lead', record=l)
        for l in store.leads
        if needle in l.name.lower() or needle in l.email.lower()
    ]
    hits.extend(
        SearchHit(kind='client', record=c)
        for c in store.clients
        if needle in c.name.lower() or needle in c.email.lower()
    )
    return hits
