from datetime import timedelta
from unittest.mock import patch

from django.core import mail
from django.urls import reverse
from django.utils import timezone

from proposals.models import Proposal, ProposalLog
from users.models import RoleCode
from tests.base import BaseAppTestCase
from tests.factories import Factory


class RecipientPortalTests(BaseAppTestCase):
    def setUp(self):
        self.owner = self.make_user(role=RoleCode.USER, email="dono@example.com")
        self.proposal = Factory.proposal(
            company=self.owner.company,
            owner=self.owner,
            client_name="Ana Souza",
            email="ana.contato@example.com",
        )
        self.url = reverse("portal:proposal_view", args=[self.proposal.pk])

    def test_public_page_hides_contact_data(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Ana Souza")
        self.assertContains(response, self.owner.company.name)
        self.assertNotContains(response, "ana.contato@example.com")

    def test_unknown_proposal_is_not_found(self):
        Proposal.objects.filter(pk=self.proposal.pk).delete()
        self.assertEqual(self.client.get(self.url).status_code, 404)

    def test_accept_approves_and_notifies_owner(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.url, {"action": "accept"})
        self.assertRedirects(response, self.url, fetch_redirect_response=False)

        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.APPROVED)
        log = ProposalLog.objects.get(proposal=self.proposal, action=ProposalLog.Action.APPROVED)
        self.assertIsNone(log.created_by)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["dono@example.com"])

    def test_reject_records_rejection(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(self.url, {"action": "reject"})
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.REJECTED)

    def test_second_answer_is_refused(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(self.url, {"action": "accept"})
        response = self.client.post(self.url, {"action": "reject"})

        self.assertEqual(response.status_code, 409)
        self.assertContains(response, "já foi aprovada", status_code=409)
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.APPROVED)
        self.assertEqual(ProposalLog.objects.filter(proposal=self.proposal).count(), 1)

    def test_expired_proposal_cannot_be_answered(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(valid_until=timezone.now() - timedelta(days=1))
        response = self.client.post(self.url, {"action": "accept"})
        self.assertEqual(response.status_code, 410)
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.PENDING)

    def test_invalid_action_is_bad_request(self):
        response = self.client.post(self.url, {"action": "cancelar"})
        self.assertEqual(response.status_code, 400)

    @patch("portal.views.notify_status_change", side_effect=OSError("smtp fora"))
    def test_notification_failure_keeps_answer(self, _mock_notify):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.url, {"action": "accept"})
        self.assertEqual(response.status_code, 302)
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.APPROVED)
