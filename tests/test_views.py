"""
Tests for derived aggregates, task buckets, lead filtering and search.
"""

from datetime import datetime, timedelta, timezone

import pytest

from autobrand_crm.errors import ValidationError
from autobrand_crm.models import (
    Client,
    ClientStatus,
    Deal,
    DealStage,
    Lead,
    LeadStatus,
    LeadTier,
    Task,
    TaskStatus,
    TaskType,
)
from autobrand_crm.views import (
    dashboard_kpis,
    filter_clients,
    filter_leads,
    hot_leads,
    live_service_client_count,
    pending_task_count,
    recent_activities,
    search,
    stage_summary,
    task_buckets,
    upcoming_tasks,
)


@pytest.fixture
def pipeline_store(store):
    """Store with a handful of deals and clients across stages."""
    store.deals.extend([
        Deal(lead_id='l1', name='A', value=100, stage=DealStage.LEAD),
        Deal(lead_id='l2', name='B', value=250, stage=DealStage.PROPOSAL),
        Deal(lead_id='l3', name='C', value=300, stage=DealStage.PROPOSAL),
        Deal(lead_id='l4', name='D', value=500, stage=DealStage.WON),
        Deal(lead_id='l5', name='E', value=700, stage=DealStage.LOST),
    ])
    store.clients.extend([
        Client(lead_id='l4', deal_id='d4', name='Dee', status=ClientStatus.ACTIVE, mrr=500, services=['svc-1']),
        Client(lead_id='l6', deal_id='d6', name='Fay', status=ClientStatus.ONBOARDING, mrr=200, services=['svc-1']),
        Client(lead_id='l7', deal_id='d7', name='Gus', status=ClientStatus.CHURNED, mrr=300, services=['svc-1', 'svc-2']),
    ])
    return store


class TestAggregates:
    """Test stage totals and dashboard KPIs."""

    def test_stage_summary(self, pipeline_store):
        """Every stage is listed in order with count and value."""
        summary = {s.stage: s for s in stage_summary(pipeline_store)}

        assert list(summary) == list(DealStage)
        assert summary[DealStage.PROPOSAL].count == 2
        assert summary[DealStage.PROPOSAL].total_value == 550
        assert summary[DealStage.NEGOTIATION].count == 0

    def test_dashboard_kpis(self, pipeline_store):
        """Open deals exclude won/lost; MRR sums active clients only."""
        pipeline_store.tasks.append(Task(title='t', due_date=datetime.now(timezone.utc)))

        kpis = dashboard_kpis(pipeline_store)

        assert kpis.active_deals == 3
        assert kpis.active_deal_value == 650
        assert kpis.active_clients == 1
        assert kpis.mrr == 500
        assert kpis.pending_tasks == 1

    def test_live_service_count_skips_churned(self, pipeline_store):
        assert live_service_client_count(pipeline_store, 'svc-1') == 2
        assert live_service_client_count(pipeline_store, 'svc-2') == 0

    def test_filter_clients(self, pipeline_store):
        assert [c.name for c in filter_clients(pipeline_store, status='active')] == ['Dee']
        assert len(filter_clients(pipeline_store, service_id='svc-2')) == 1

    def test_filter_clients_all(self, pipeline_store):
        """'all' leaves the client list unfiltered."""
        assert len(filter_clients(pipeline_store, status='all', service_id='all')) == 3


class TestDashboardLists:
    """Test the short dashboard lists."""

    def test_hot_leads_sorted_and_filtered(self, store):
        """Unqualified and non-hot leads are excluded; highest score first."""
        store.leads.extend([
            Lead(name='warm', score=60),
            Lead(name='hot', score=75),
            Lead(name='hotter', score=95),
            Lead(name='dropped', score=99, status=LeadStatus.UNQUALIFIED),
        ])

        assert [l.name for l in hot_leads(store)] == ['hotter', 'hot']

    def test_upcoming_tasks(self, store):
        """Pending tasks only, soonest first."""
        now = datetime.now(timezone.utc)
        store.tasks.extend([
            Task(title='later', due_date=now + timedelta(days=5)),
            Task(title='done', due_date=now, status=TaskStatus.COMPLETED),
            Task(title='soon', due_date=now + timedelta(days=1)),
        ])

        assert [t.title for t in upcoming_tasks(store)] == ['soon', 'later']
        assert pending_task_count(store) == 2

    def test_recent_activities_limit(self, store):
        for i in range(10):
            store.add_activity('lead_added', f'lead {i}')

        assert len(recent_activities(store)) == 8
        assert recent_activities(store)[0].text == 'lead 9'


class TestTaskBuckets:
    """Test due-date bucketing."""

    def test_buckets(self, store):
        """Tasks land in overdue / today / this week / later."""
        now = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)
        store.tasks.extend([
            Task(title='overdue', due_date=datetime(2026, 3, 9, 23, 0, tzinfo=timezone.utc)),
            Task(title='today', due_date=datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)),
            Task(title='week', due_date=datetime(2026, 3, 16, 8, 0, tzinfo=timezone.utc)),
            Task(title='later', due_date=datetime(2026, 3, 17, 0, 0, tzinfo=timezone.utc)),
            Task(title='closed', due_date=datetime(2026, 3, 1, tzinfo=timezone.utc), status=TaskStatus.COMPLETED),
        ])

        buckets = task_buckets(store, now=now)

        assert [t.title for t in buckets.overdue] == ['overdue']
        assert [t.title for t in buckets.today] == ['today']
        assert [t.title for t in buckets.this_week] == ['week']
        assert [t.title for t in buckets.later] == ['later']

    def test_type_filter(self, store):
        now = datetime(2026, 3, 10, tzinfo=timezone.utc)
        store.tasks.extend([
            Task(title='call', type=TaskType.FOLLOW_UP, due_date=now),
            Task(title='onboard', type=TaskType.ONBOARDING, due_date=now),
        ])

        buckets = task_buckets(store, now=now, task_type='onboarding')

        assert [t.title for t in buckets.today] == ['onboard']

    def test_naive_now_taken_as_utc(self, store):
        """A naive reference time buckets the same as its UTC equivalent."""
        store.tasks.extend([
            Task(title='overdue', due_date=datetime(2026, 3, 9, 23, 0, tzinfo=timezone.utc)),
            Task(title='today', due_date=datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)),
        ])

        buckets = task_buckets(store, now=datetime(2026, 3, 10, 15, 0))

        assert [t.title for t in buckets.overdue] == ['overdue']
        assert [t.title for t in buckets.today] == ['today']

    def test_all_filters(self, store):
        now = datetime(2026, 3, 10, tzinfo=timezone.utc)
        store.tasks.extend([
            Task(title='call', type=TaskType.FOLLOW_UP, due_date=now),
            Task(title='onboard', type=TaskType.ONBOARDING, due_date=now),
        ])

        buckets = task_buckets(store, now=now, task_type='all', status='all')

        assert [t.title for t in buckets.today] == ['call', 'onboard']

    def test_unknown_filter_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            task_buckets(store, task_type='meeting')

        assert exc_info.value.context['value'] == 'meeting'


class TestFilterLeads:
    """Test the paged lead list."""

    def test_sorted_by_score_and_paged(self, store):
        """Leads come back highest score first, per_page at a time."""
        store.leads.extend(Lead(name=f'lead {i}', score=i * 5) for i in range(20))

        first = filter_leads(store, per_page=15)
        second = filter_leads(store, page=2, per_page=15)

        assert first.total == 20
        assert first.total_pages == 2
        assert first.leads[0].score == 95
        assert len(second.leads) == 5
        assert filter_leads(store, page=3, per_page=15).leads == []

    def test_tier_filter(self, store):
        store.leads.extend([Lead(name='a', score=80), Lead(name='b', score=45), Lead(name='c', score=10)])

        page = filter_leads(store, tier=LeadTier.WARM)

        assert [l.name for l in page.leads] == ['b']

    def test_all_means_no_filter(self, store):
        store.leads.extend([Lead(name='a', score=80), Lead(name='b', score=45)])

        page = filter_leads(store, tier='all', status='all', source='all')

        assert page.total == 2

    def test_unknown_tier_rejected(self, store):
        """Values outside the enum raise ValidationError, not ValueError."""
        with pytest.raises(ValidationError):
            filter_leads(store, tier='lukewarm')


class TestSearch:
    """Test the global search box."""

    def test_short_query_matches_nothing(self, store):
        store.leads.append(Lead(name='Ada'))

        assert search(store, 'a') == []

    def test_leads_before_clients(self, store):
        """Name and email matches, case-insensitive, leads listed first."""
        store.clients.append(Client(lead_id='l1', deal_id='d1', name='Novak'))
        store.leads.append(Lead(name='Other', email='NOVA@example.com'))

        hits = search(store, 'nova')

        assert [h.kind for h in hits] == ['lead', 'client']
