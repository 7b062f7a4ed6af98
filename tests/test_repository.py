"""
Tests for manual record operations (lead, client, service and task forms).

Run with: pytest tests/test_repository.py -v
"""

import json
from datetime import date, datetime, timezone

import pytest

from autobrand_crm.errors import (
    LeadNotFoundError,
    TaskNotFoundError,
    ValidationError,
)
from autobrand_crm.models import (
    ActivityType,
    ClientStatus,
    DealStage,
    LeadSource,
    LeadStatus,
    LeadTier,
    TaskStatus,
    TaskType,
)
from autobrand_crm.repository import parse_features
from autobrand_crm.views import live_service_client_count


# =============================================================================
# Leads
# =============================================================================


class TestLeads:
    """Test lead create/edit/delete."""

    def test_add_lead(self, repository, store):
        """A manual lead is new, listed first and logged."""
        repository.add_lead('Existing')
        lead = repository.add_lead('Ada', email='ada@x.com', source='referral', score=75)

        assert store.leads[0] is lead
        assert lead.status == LeadStatus.NEW
        assert lead.source == LeadSource.REFERRAL
        assert lead.tier == LeadTier.HOT
        assert store.activities[0].type == ActivityType.LEAD_ADDED
        assert store.activities[0].text == 'New lead Ada was added'

    def test_add_lead_invalid_score(self, repository, store):
        """Out-of-range values are reported as ValidationError."""
        with pytest.raises(ValidationError):
            repository.add_lead('Ada', score=150)

        assert store.leads == []

    def test_score_edit_moves_tier(self, repository):
        """Editing the score re-derives the tier."""
        lead = repository.add_lead('Ada', score=50)

        repository.update_lead(lead.id, score=90)

        assert lead.tier == LeadTier.HOT

    def test_contacted_logged_once(self, repository, store):
        """Moving to contacted logs an outreach activity; re-saving does not."""
        lead = repository.add_lead('Ada')

        repository.update_lead(lead.id, status='contacted')
        repository.update_lead(lead.id, status='contacted', notes='left a DM')

        contacted = [a for a in store.activities if a.type == ActivityType.LEAD_CONTACTED]
        assert len(contacted) == 1
        assert contacted[0].text == 'Reached out to Ada'

    def test_unknown_field_rejected(self, repository):
        """Fields outside the form's allow-list raise ValidationError."""
        lead = repository.add_lead('Ada')

        with pytest.raises(ValidationError) as exc_info:
            repository.update_lead(lead.id, tier='hot')

        assert exc_info.value.context['fields'] == ['tier']

    def test_invalid_value_rolls_back(self, repository, store):
        """A bad value leaves the stored lead unchanged."""
        lead = repository.add_lead('Ada', score=50)

        with pytest.raises(ValidationError):
            repository.update_lead(lead.id, notes='changed', score=-1)

        assert store.get_lead(lead.id).notes == ''
        assert store.get_lead(lead.id).score == 50

    def test_delete_lead_keeps_deals(self, repository, engine, store):
        """Deleting a lead leaves its deals with a dangling lead_id."""
        lead = repository.add_lead('Ada')
        deal = engine.create_deal_from_lead(lead.id)

        repository.delete_lead(lead.id)

        assert store.find_lead(lead.id) is None
        assert store.get_deal(deal.id).lead_id == lead.id

    def test_delete_missing_lead(self, repository):
        with pytest.raises(LeadNotFoundError):
            repository.delete_lead('missing')


# =============================================================================
# Deals and Clients
# =============================================================================


class TestDealsAndClients:
    """Test deal deletion and client edits."""

    def test_delete_won_deal_keeps_client(self, repository, engine, store):
        """Removing a won deal does not remove its client."""
        lead = repository.add_lead('Ada')
        deal = engine.create_deal_from_lead(lead.id, service_id='svc-1')
        engine.move_deal(deal.id, DealStage.WON)

        repository.delete_deal(deal.id)

        assert store.deals == []
        assert len(store.clients) == 1

    def test_churn_does_not_decrement_service_count(self, repository, engine, store):
        """client_count stays put; the live count drops."""
        lead = repository.add_lead('Ada')
        deal = engine.create_deal_from_lead(lead.id, service_id='svc-1')
        client = engine.move_deal(deal.id, 'won').client

        repository.update_client(client.id, status='churned')

        assert client.status == ClientStatus.CHURNED
        assert store.get_service('svc-1').client_count == 1
        assert live_service_client_count(store, 'svc-1') == 0

    def test_update_client_mrr(self, repository, engine, storage):
        """Client edits are persisted."""
        lead = repository.add_lead('Ada')
        deal = engine.create_deal_from_lead(lead.id)
        client = engine.move_deal(deal.id, 'won').client

        repository.update_client(client.id, mrr=450, status=ClientStatus.ACTIVE)

        document = json.loads(storage.data['test-crm'])
        assert document['clients'][0]['mrr'] == 450
        assert document['clients'][0]['status'] == 'active'


# =============================================================================
# Services
# =============================================================================


class TestServices:
    """Test catalog edits."""

    def test_parse_features(self):
        """Textarea input splits on newlines and drops blanks."""
        assert parse_features('Alerts\n\n  Clips \n') == ['Alerts', 'Clips']
        assert parse_features(None) == []

    def test_add_service(self, repository, store):
        """New services start with no clients."""
        service = repository.add_service('Emote Packs', price=99, period='one-time', features='Design\nDelivery')

        assert store.services[-1] is service
        assert service.client_count == 0
        assert service.features == ['Design', 'Delivery']

    def test_rename_keeps_cached_deal_name(self, repository, engine, store):
        """Deals keep the service name they were created with."""
        lead = repository.add_lead('Ada')
        deal = engine.create_deal_from_lead(lead.id, service_id='svc-1')

        repository.update_service('svc-1', name='Go-Live Alerts', features=['A'])

        assert store.get_service('svc-1').name == 'Go-Live Alerts'
        assert deal.service_name == 'Stream Announcements'

    def test_client_count_not_editable(self, repository):
        with pytest.raises(ValidationError):
            repository.update_service('svc-1', client_count=10)


# =============================================================================
# Tasks
# =============================================================================


class TestTasks:
    """Test task create/toggle/delete."""

    def test_related_type_inferred(self, repository):
        """Tasks tied to a lead id are marked as lead-related."""
        lead = repository.add_lead('Ada')

        task = repository.add_task('Follow up', date(2026, 3, 1), related_to=lead.id)
        loose = repository.add_task('Plan week', date(2026, 3, 2))

        assert task.related_type == 'lead'
        assert task.status == TaskStatus.PENDING
        assert task.due_date == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert loose.related_to is None
        assert loose.related_type is None

    def test_toggle_logs_completion(self, repository, store):
        """Completing logs an activity; reopening does not."""
        task = repository.add_task('Send proposal', date(2026, 3, 1), type=TaskType.OUTREACH)

        repository.toggle_task(task.id)
        repository.toggle_task(task.id)

        assert task.status == TaskStatus.PENDING
        completed = [a for a in store.activities if a.type == ActivityType.TASK_COMPLETED]
        assert [a.text for a in completed] == ['Task Send proposal completed']

    def test_update_task(self, repository):
        task = repository.add_task('Call', date(2026, 3, 1))

        repository.update_task(task.id, title='Call back', type='meeting')

        assert task.title == 'Call back'
        assert task.type == TaskType.MEETING

    def test_delete_task(self, repository, store):
        task = repository.add_task('Call', date(2026, 3, 1))

        repository.delete_task(task.id)

        assert store.tasks == []
        with pytest.raises(TaskNotFoundError):
            repository.toggle_task(task.id)
