from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.core import mail
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.http import Http404
from django.urls import reverse
from django.utils import timezone

from clients.models import Client
from proposals.filters import FilterCriteria, ProposalFilterForm, filter_proposals
from proposals.forms import ProposalForm
from proposals.models import ClientContact, Proposal, ProposalLog, ReceiverType
from proposals.repositories import ContactRepository, ProposalRepository
from proposals.services.documents import DISCLAIMER, document_filename
from proposals.services.lifecycle import InvalidTransition, approve, can_transition, reject
from proposals.services.notifications import build_email, notify_status_change, share_url
from proposals.services.submission import ProposalSubmissionError, submit_proposal
from users.models import RoleCode, UserPreferences
from tests.base import BaseAppTestCase
from tests.factories import Factory


def _proposal(**kwargs):
    """Proposta em memória para os testes do filtro (sem banco)."""
    defaults = {
        "client_name": "Cliente",
        "status": Proposal.Status.PENDING,
        "receiver_type": ReceiverType.AUTOR,
        "proposal_value": Decimal("1000.00"),
        "cedible_value": Decimal("2000.00"),
        "created_at": timezone.make_aware(datetime(2025, 3, 10, 12, 0)),
    }
    defaults.update(kwargs)
    return Proposal(**defaults)


class ProposalFilterTests(BaseAppTestCase):
    def setUp(self):
        self.pending = _proposal(client_name="Ana Souza", organization_name="INSS")
        self.approved = _proposal(
            client_name="Bruno Lima",
            status=Proposal.Status.APPROVED,
            organization_name="TJSP",
            process_number="5001234-11.2023.4.03.6100",
            proposal_value=Decimal("2500.00"),
        )
        self.rejected = _proposal(
            client_name="Carla Dias",
            status=Proposal.Status.REJECTED,
            receiver_type=ReceiverType.ADVOGADO,
            client_email="carla@example.com",
            proposal_value=Decimal("2500.00"),
            created_at=timezone.make_aware(datetime(2025, 3, 12, 9, 0)),
        )
        self.proposals = [self.pending, self.approved, self.rejected]

    def test_empty_criteria_returns_list_unchanged(self):
        self.assertTrue(FilterCriteria().is_empty)
        self.assertEqual(filter_proposals(self.proposals, FilterCriteria()), self.proposals)
        self.assertEqual(filter_proposals(self.proposals, FilterCriteria(search="   ")), self.proposals)

    def test_status_set_excludes_other_statuses(self):
        result = filter_proposals(self.proposals, FilterCriteria(status=frozenset({"aprovada"})))
        self.assertEqual(result, [self.approved])

    def test_two_statuses_exclude_pending(self):
        result = filter_proposals(
            self.proposals,
            FilterCriteria(status=frozenset({"aprovada", "rejeitada"})),
        )
        self.assertEqual(result, [self.approved, self.rejected])

    def test_search_organization_is_case_insensitive(self):
        self.assertEqual(filter_proposals(self.proposals, FilterCriteria(search="INSS")), [self.pending])
        self.assertEqual(filter_proposals(self.proposals, FilterCriteria(search="inss")), [self.pending])

    def test_search_covers_email_and_process_number(self):
        self.assertEqual(filter_proposals(self.proposals, FilterCriteria(search="CARLA@")), [self.rejected])
        self.assertEqual(filter_proposals(self.proposals, FilterCriteria(search="5001234")), [self.approved])

    def test_receiver_type_filter(self):
        result = filter_proposals(
            self.proposals,
            FilterCriteria(receiver_type=frozenset({ReceiverType.ADVOGADO})),
        )
        self.assertEqual(result, [self.rejected])

    def test_date_to_includes_the_whole_day(self):
        late = _proposal(created_at=timezone.make_aware(datetime(2025, 3, 10, 23, 0)))
        next_day = _proposal(created_at=timezone.make_aware(datetime(2025, 3, 11, 0, 0)))
        result = filter_proposals([late, next_day], FilterCriteria(date_to=date(2025, 3, 10)))
        self.assertEqual(result, [late])

    def test_date_from_starts_at_midnight(self):
        result = filter_proposals(self.proposals, FilterCriteria(date_from=date(2025, 3, 12)))
        self.assertEqual(result, [self.rejected])

    def test_equal_min_and_max_value_returns_exact_matches(self):
        value = Decimal("2500.00")
        result = filter_proposals(self.proposals, FilterCriteria(min_value=value, max_value=value))
        self.assertEqual(result, [self.approved, self.rejected])

    def test_criteria_are_combined_with_and(self):
        result = filter_proposals(
            self.proposals,
            FilterCriteria(status=frozenset({"aprovada", "rejeitada"}), search="bruno"),
        )
        self.assertEqual(result, [self.approved])

    def test_filter_form_builds_criteria(self):
        form = ProposalFilterForm({
            "q": "inss",
            "status": ["aprovada", "rejeitada"],
            "date_to": "2025-03-10",
            "min_value": "R$ 1.000,00",
            "max_value": "",
        })
        criteria = form.criteria()
        self.assertEqual(criteria.search, "inss")
        self.assertEqual(criteria.status, frozenset({"aprovada", "rejeitada"}))
        self.assertEqual(criteria.date_to, date(2025, 3, 10))
        self.assertEqual(criteria.min_value, Decimal("1000.00"))
        self.assertIsNone(criteria.max_value)

    def test_invalid_field_only_drops_its_own_filter(self):
        form = ProposalFilterForm({"status": ["aprovada"], "q": "inss", "date_to": "2025-02-30"})
        criteria = form.criteria()
        self.assertIn("date_to", form.errors)
        self.assertIsNone(criteria.date_to)
        self.assertEqual(criteria.status, frozenset({"aprovada"}))
        self.assertEqual(criteria.search, "inss")
        self.assertFalse(criteria.is_empty)

    def test_unbound_filter_form_does_not_filter(self):
        self.assertTrue(ProposalFilterForm().criteria().is_empty)


class ProposalFormTests(BaseAppTestCase):
    def setUp(self):
        self.company = Factory.company()

    def _data(self, **overrides):
        data = {
            "client_name": "Maria  da Silva",
            "client_email": "Maria@Example.com",
            "client_phone": "(11) 98888-7777",
            "cedible_value": "10000",
            "proposal_value": "8000",
            "receiver_type": ReceiverType.AUTOR,
            "process_number": "0001234-56.2024.8.26.0100",
            "organization_name": "INSS",
        }
        data.update(overrides)
        return data

    def test_currency_mask_reads_digits_as_cents(self):
        form = ProposalForm(self._data(), company=self.company)
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["cedible_value"], Decimal("100.00"))
        self.assertEqual(form.cleaned_data["proposal_value"], Decimal("80.00"))
        self.assertEqual(form.cleaned_data["client_name"], "Maria da Silva")
        self.assertEqual(form.cleaned_data["client_email"], "maria@example.com")

    def test_currency_mask_accepts_formatted_text(self):
        form = ProposalForm(self._data(cedible_value="R$ 1.234,56"), company=self.company)
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["cedible_value"], Decimal("1234.56"))

    def test_amount_over_limit_is_rejected(self):
        form = ProposalForm(self._data(cedible_value="1" + "0" * 15), company=self.company)
        self.assertFalse(form.is_valid())
        self.assertIn("cedible_value", form.errors)

    def test_missing_amounts_have_specific_messages(self):
        form = ProposalForm(self._data(cedible_value="", proposal_value="R$"), company=self.company)
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["cedible_value"], ["Informe o valor cedível."])
        self.assertEqual(form.errors["proposal_value"], ["Informe o valor da proposta."])

    def test_new_client_fields_are_all_required(self):
        form = ProposalForm(
            self._data(client_name="", client_email="", client_phone=""),
            company=self.company,
        )
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["client_name"], ["Informe o nome do cliente."])
        self.assertEqual(form.errors["client_email"], ["Informe o email do cliente."])
        self.assertEqual(form.errors["client_phone"], ["Informe o telefone do cliente."])

    def test_existing_client_fills_contact_fields(self):
        client = Factory.client(company=self.company, first_name="João", last_name="Pereira")
        form = ProposalForm(
            self._data(client=str(client.pk), client_name="", client_email="", client_phone=""),
            company=self.company,
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["client_name"], "João Pereira")
        self.assertEqual(form.cleaned_data["client_email"], client.email)
        self.assertEqual(form.cleaned_data["client_phone"], client.whatsapp)

    def test_existing_client_ignores_errors_in_new_client_fields(self):
        client = Factory.client(company=self.company)
        form = ProposalForm(
            self._data(client=str(client.pk), client_email="half-typed@"),
            company=self.company,
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["client_email"], client.email)

    def test_client_from_other_company_is_not_a_choice(self):
        other = Factory.client(company=Factory.company())
        form = ProposalForm(self._data(client=str(other.pk)), company=self.company)
        self.assertFalse(form.is_valid())
        self.assertIn("client", form.errors)


class ProposalSubmissionTests(BaseAppTestCase):
    def setUp(self):
        self.user = self.make_user(role=RoleCode.USER)
        self.company = self.user.company
        self.data = {
            "client_name": "Maria da Silva",
            "client_email": "maria@example.com",
            "client_phone": "11988887777",
            "cedible_value": "10000",
            "proposal_value": "8000",
            "receiver_type": ReceiverType.PRECATORIO,
            "organization_name": "INSS",
        }

    def test_submit_creates_client_proposal_contact_and_log(self):
        proposal = submit_proposal(self.data, company=self.company, actor=self.user)

        self.assertEqual(proposal.cedible_value, Decimal("100.00"))
        self.assertEqual(proposal.status, Proposal.Status.PENDING)
        self.assertEqual(proposal.owner, self.user)
        self.assertEqual(proposal.assignee, self.user.display_name)
        self.assertEqual(proposal.created_at, proposal.updated_at)
        self.assertEqual(proposal.client_email, "")

        client = Client.objects.get(company=self.company)
        self.assertEqual((client.first_name, client.last_name), ("Maria", "da Silva"))
        self.assertEqual(proposal.client, client)

        contact = ClientContact.objects.get(proposal=proposal)
        self.assertEqual(contact.email, "maria@example.com")
        self.assertEqual(contact.phone, "11988887777")
        self.assertTrue(
            ProposalLog.objects.filter(proposal=proposal, action=ProposalLog.Action.CREATED).exists()
        )

    def test_missing_email_fails_without_persisting(self):
        data = dict(self.data, client_email="")
        with patch("proposals.services.submission.create_proposal") as create:
            with self.assertRaises(ProposalSubmissionError) as ctx:
                submit_proposal(data, company=self.company, actor=self.user)

        create.assert_not_called()
        self.assertIn("client_email", ctx.exception.errors)
        self.assertIsNotNone(ctx.exception.form)
        self.assertFalse(Proposal.objects.exists())
        self.assertFalse(Client.objects.exists())

    def test_all_invalid_fields_are_reported_together(self):
        data = dict(self.data, client_email="", cedible_value="")
        with self.assertRaises(ProposalSubmissionError) as ctx:
            submit_proposal(data, company=self.company, actor=self.user)
        self.assertEqual(set(ctx.exception.errors), {"client_email", "cedible_value"})

    def test_contact_failure_rolls_back_proposal_and_client(self):
        with patch(
            "proposals.services.submission.ContactRepository.create",
            side_effect=DatabaseError("falha ao gravar contato"),
        ):
            with self.assertRaises(DatabaseError):
                submit_proposal(self.data, company=self.company, actor=self.user)

        self.assertFalse(Proposal.objects.exists())
        self.assertFalse(Client.objects.exists())

    def test_existing_client_is_reused(self):
        client = Factory.client(company=self.company)
        data = dict(self.data, client=str(client.pk), client_name="", client_email="", client_phone="")
        proposal = submit_proposal(data, company=self.company, actor=self.user)

        self.assertEqual(proposal.client, client)
        self.assertEqual(Client.objects.count(), 1)
        self.assertEqual(proposal.contact.email, client.email)


class ProposalModelTests(BaseAppTestCase):
    def test_save_bumps_updated_at(self):
        company = Factory.company()
        yesterday = timezone.now() - timedelta(days=1)
        proposal = Factory.proposal(company=company, created_at=yesterday, updated_at=yesterday)

        proposal.description = "Atualizada"
        proposal.save(update_fields=["description"])
        proposal.refresh_from_db()

        self.assertGreater(proposal.updated_at, yesterday)
        self.assertEqual(proposal.created_at, yesterday)

    def test_expiration_and_terminal_flags(self):
        proposal = _proposal(valid_until=timezone.now() - timedelta(minutes=1))
        self.assertTrue(proposal.is_expired)
        self.assertFalse(proposal.is_terminal)
        proposal.status = Proposal.Status.REJECTED
        self.assertTrue(proposal.is_terminal)


class ProposalLifecycleTests(BaseAppTestCase):
    def setUp(self):
        self.user = self.make_user(role=RoleCode.ADMIN)
        self.proposal = Factory.proposal(company=self.user.company, owner=self.user)

    def test_allowed_transitions(self):
        self.assertTrue(can_transition(Proposal.Status.PENDING, Proposal.Status.APPROVED))
        self.assertTrue(can_transition(Proposal.Status.PENDING, Proposal.Status.REJECTED))
        self.assertFalse(can_transition(Proposal.Status.APPROVED, Proposal.Status.REJECTED))
        self.assertFalse(can_transition(Proposal.Status.REJECTED, Proposal.Status.REJECTED))

    def test_approve_pending_proposal(self):
        approve(self.proposal, actor=self.user)

        self.assertEqual(self.proposal.status, Proposal.Status.APPROVED)
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.APPROVED)
        log = ProposalLog.objects.get(proposal=self.proposal, action=ProposalLog.Action.APPROVED)
        self.assertEqual(log.metadata, {"from": "pendente", "to": "aprovada"})
        self.assertEqual(log.created_by, self.user)

    def test_terminal_proposal_cannot_transition_again(self):
        approve(self.proposal)
        with self.assertRaises(InvalidTransition):
            reject(self.proposal)
        with self.assertRaises(InvalidTransition):
            approve(self.proposal)

        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.APPROVED)
        self.assertEqual(ProposalLog.objects.filter(proposal=self.proposal).count(), 1)

    def test_stale_instance_is_checked_against_database(self):
        stale = Proposal.objects.get(pk=self.proposal.pk)
        reject(self.proposal)
        with self.assertRaises(InvalidTransition):
            approve(stale)

    def test_callback_runs_after_commit(self):
        callback = MagicMock()
        with self.captureOnCommitCallbacks(execute=True):
            approve(self.proposal, on_transition=callback)

        callback.assert_called_once()
        notified, previous = callback.call_args[0]
        self.assertEqual(notified.pk, self.proposal.pk)
        self.assertEqual(previous, Proposal.Status.PENDING)

    def test_callback_failure_does_not_undo_transition(self):
        callback = MagicMock(side_effect=RuntimeError("smtp"))
        with self.assertLogs("proposals.services.lifecycle", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                reject(self.proposal, on_transition=callback)

        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.status, Proposal.Status.REJECTED)


class RepositoryTests(BaseAppTestCase):
    def setUp(self):
        self.admin = self.make_user(role=RoleCode.ADMIN)
        self.company = self.admin.company
        self.member = self.make_member(self.company, role=RoleCode.USER)
        self.proposal = Factory.proposal(company=self.company, email="cliente@example.com")

    def test_proposal_repository_is_scoped(self):
        foreign = Factory.proposal(company=Factory.company())
        repo = ProposalRepository(self.company)
        self.assertEqual([p.pk for p in repo.list()], [self.proposal.pk])
        with self.assertRaises(Http404):
            repo.get(foreign.pk)

    def test_lookup_requires_privileged_role(self):
        repo = ContactRepository(self.company)
        self.assertEqual(repo.lookup(self.admin, self.proposal).email, "cliente@example.com")
        with self.assertRaises(PermissionDenied):
            repo.lookup(self.member, self.proposal)

    def test_lookup_missing_contact_is_not_found(self):
        ClientContact.objects.filter(proposal=self.proposal).delete()
        with self.assertRaises(Http404):
            ContactRepository(self.company).lookup(self.admin, self.proposal)

    def test_lookup_other_company_is_not_found(self):
        foreign = Factory.proposal(company=Factory.company())
        with self.assertRaises(Http404):
            ContactRepository(self.company).lookup(self.admin, foreign)

    def test_attach_only_for_privileged_users(self):
        repo = ContactRepository(self.company)
        hidden = repo.attach(self.member, ProposalRepository(self.company).list())
        self.assertEqual(hidden[0].client_email, "")

        shown = repo.attach(self.admin, ProposalRepository(self.company).list())
        self.assertEqual(shown[0].client_email, "cliente@example.com")
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.client_email, "")

    def test_reassign_rejects_user_from_other_company(self):
        outsider = self.make_user(role=RoleCode.USER)
        with self.assertRaises(PermissionDenied):
            ProposalRepository(self.company).reassign(self.proposal, outsider)


class NotificationTests(BaseAppTestCase):
    def setUp(self):
        self.owner = self.make_user(role=RoleCode.USER, email="dono@example.com")
        self.proposal = Factory.proposal(
            company=self.owner.company,
            owner=self.owner,
            client_name="Ana Souza",
            process_number="123",
            status=Proposal.Status.APPROVED,
        )

    def test_build_email_subject_and_mailto(self):
        email = build_email(self.proposal, "ana@example.com", "https://x/proposta/1/")
        self.assertEqual(email.subject, "Proposta de antecipação - Processo 123")
        self.assertIn("https://x/proposta/1/", email.body)
        self.assertTrue(email.mailto_url.startswith("mailto:ana@example.com?subject="))

    def test_share_url_points_to_public_page(self):
        url = share_url(self.proposal, "https://app.example.com/")
        self.assertEqual(url, f"https://app.example.com/proposta/{self.proposal.pk}/")

    def test_status_change_notifies_owner(self):
        self.assertTrue(notify_status_change(self.proposal, Proposal.Status.PENDING))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["dono@example.com"])
        self.assertIn("Ana Souza", mail.outbox[0].subject)

    def test_owner_opt_out_skips_notification(self):
        UserPreferences.for_user(self.owner).update(proposal_updates=False)
        self.assertFalse(notify_status_change(self.proposal))
        self.assertEqual(len(mail.outbox), 0)

    def test_without_owner_notifies_company_responsible(self):
        self.proposal.owner = None
        self.proposal.save(update_fields=["owner"])
        notify_status_change(self.proposal)
        self.assertEqual(mail.outbox[0].to, [self.owner.company.responsible_email])


class ProposalViewTests(BaseAppTestCase):
    def setUp(self):
        self.admin = self.make_user(role=RoleCode.ADMIN, email="admin@example.com")
        self.company = self.admin.company
        self.member = self.make_member(self.company, role=RoleCode.USER, email="membro@example.com")
        self.grant_all(RoleCode.ADMIN)
        self.grant_all(RoleCode.USER)
        self.proposal = Factory.proposal(
            company=self.company,
            owner=self.admin,
            email="contato.cliente@example.com",
            phone="11988887777",
            organization_name="INSS",
        )

    def _url(self, name, proposal=None):
        return reverse(f"proposals:{name}", args=[(proposal or self.proposal).pk])

    def test_create_view_stores_masked_amount(self):
        self.login_as(self.member)
        response = self.client.post(reverse("proposals:proposal_create"), {
            "client_name": "Maria da Silva",
            "client_email": "maria@example.com",
            "client_phone": "11977776666",
            "cedible_value": "10000",
            "proposal_value": "9000",
            "receiver_type": ReceiverType.AUTOR,
        })
        proposal = Proposal.objects.get(client_name="Maria da Silva")
        self.assertRedirects(
            response,
            reverse("proposals:proposal_detail", args=[proposal.pk]),
            fetch_redirect_response=False,
        )
        self.assertEqual(proposal.cedible_value, Decimal("100.00"))
        self.assertEqual(proposal.company, self.company)

    def test_create_view_shows_errors_without_saving(self):
        self.login_as(self.member)
        response = self.client.post(reverse("proposals:proposal_create"), {
            "client_name": "Maria da Silva",
            "client_phone": "11977776666",
            "cedible_value": "10000",
            "proposal_value": "9000",
            "receiver_type": ReceiverType.AUTOR,
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Informe o email do cliente.")
        self.assertEqual(Proposal.objects.count(), 1)

    @patch(
        "proposals.services.submission.ContactRepository.create",
        side_effect=DatabaseError("banco fora"),
    )
    def test_create_view_handles_database_failure(self, _mock_create):
        self.login_as(self.member)
        response = self.client.post(reverse("proposals:proposal_create"), {
            "client_name": "Maria da Silva",
            "client_email": "maria@example.com",
            "client_phone": "11977776666",
            "cedible_value": "10000",
            "proposal_value": "9000",
            "receiver_type": ReceiverType.AUTOR,
        })
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Proposal.objects.filter(client_name="Maria da Silva").exists())

    def test_list_hides_contacts_from_regular_users(self):
        self.login_as(self.member)
        response = self.client.get(reverse("proposals:proposal_list"))
        self.assertEqual(response.status_code, 200)
        self.assertNotContains(response, "contato.cliente@example.com")

        self.login_as(self.admin)
        response = self.client.get(reverse("proposals:proposal_list"))
        self.assertContains(response, "contato.cliente@example.com")

    def test_list_filters_and_counts(self):
        Factory.proposal(company=self.company, status=Proposal.Status.APPROVED, organization_name="TJSP")
        Factory.proposal(company=Factory.company(), organization_name="INSS")
        self.login_as(self.admin)

        response = self.client.get(reverse("proposals:proposal_list"), {"q": "inss"})
        self.assertEqual(response.context["total_count"], 2)
        self.assertEqual(response.context["pending_count"], 1)
        self.assertEqual(response.context["approved_count"], 1)
        self.assertEqual([p.pk for p in response.context["rows"]], [self.proposal.pk])

    def test_list_htmx_returns_table_partial(self):
        self.login_as(self.admin)
        response = self.client.get(
            reverse("proposals:proposal_list"),
            {"status": ["aprovada"]},
            HTTP_HX_REQUEST="true",
        )
        self.assertTemplateUsed(response, "proposals/_proposal_table.html")
        self.assertTemplateNotUsed(response, "proposals/proposal_list.html")
        self.assertEqual(response.context["rows"], [])

    def test_detail_shows_contact_only_to_privileged(self):
        self.login_as(self.member)
        response = self.client.get(self._url("proposal_detail"))
        self.assertEqual(response.status_code, 200)
        self.assertNotContains(response, "contato.cliente@example.com")

        self.login_as(self.admin)
        response = self.client.get(self._url("proposal_detail"))
        self.assertContains(response, "contato.cliente@example.com")
        self.assertIn("mailto_url", response.context)

    def test_detail_of_other_company_is_not_found(self):
        foreign = Factory.proposal(company=Factory.company())
        self.login_as(self.admin)
        self.assertEqual(self.client.get(self._url("proposal_detail", foreign)).status_code, 404)

    def test_send_email_delivers_to_contact(self):
        self.login_as(self.member)
        response = self.client.post(self._url("proposal_send_email"))
        self.assertRedirects(response, self._url("proposal_detail"), fetch_redirect_response=False)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["contato.cliente@example.com"])
        self.assertIn(f"/proposta/{self.proposal.pk}/", message.body)
        self.assertEqual(message.alternatives[0][1], "text/html")
        log = ProposalLog.objects.get(proposal=self.proposal, action=ProposalLog.Action.EMAIL_SENT)
        self.assertNotIn("contato.cliente@example.com", log.message)

    def test_send_email_rejects_get(self):
        self.login_as(self.admin)
        response = self.client.get(self._url("proposal_send_email"))
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json()["error"], "Método não permitido.")

    @patch("proposals.views.send_proposal_email", side_effect=OSError("smtp fora"))
    def test_send_email_failure_is_reported(self, _mock_send):
        self.login_as(self.admin)
        response = self.client.post(self._url("proposal_send_email"))
        self.assertEqual(response.status_code, 302)
        self.assertFalse(
            ProposalLog.objects.filter(proposal=self.proposal, action=ProposalLog.Action.EMAIL_SENT).exists()
        )

    def test_whatsapp_includes_phone_only_for_privileged(self):
        self.login_as(self.admin)
        response = self.client.get(self._url("proposal_whatsapp"))
        self.assertEqual(response.status_code, 302)
        self.assertTrue(response["Location"].startswith("https://wa.me/11988887777?text="))

        self.login_as(self.member)
        response = self.client.get(self._url("proposal_whatsapp"))
        self.assertTrue(response["Location"].startswith("https://wa.me/?text="))

    def test_whatsapp_without_contact_opens_without_phone(self):
        ClientContact.objects.filter(proposal=self.proposal).delete()
        self.login_as(self.admin)
        response = self.client.get(self._url("proposal_whatsapp"))
        self.assertEqual(response.status_code, 302)
        self.assertTrue(response["Location"].startswith("https://wa.me/?text="))

    def test_document_for_privileged_user(self):
        self.login_as(self.admin)
        response = self.client.get(self._url("proposal_document"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response["Content-Disposition"],
            f'inline; filename="{document_filename(self.proposal, "html")}"',
        )
        self.assertContains(response, "contato.cliente@example.com")
        self.assertContains(response, self.company.name)
        self.assertContains(response, DISCLAIMER[:40])
        self.assertTrue(
            ProposalLog.objects.filter(
                proposal=self.proposal,
                action=ProposalLog.Action.DOCUMENT_GENERATED,
            ).exists()
        )

    def test_document_is_forbidden_for_regular_user(self):
        self.login_as(self.member)
        self.assertEqual(self.client.get(self._url("proposal_document")).status_code, 403)
        self.assertEqual(self.client.get(self._url("proposal_pdf")).status_code, 403)

    def test_document_without_contact_is_not_found(self):
        ClientContact.objects.filter(proposal=self.proposal).delete()
        self.login_as(self.admin)
        self.assertEqual(self.client.get(self._url("proposal_document")).status_code, 404)

    @patch("proposals.views.render_proposal_pdf", return_value=b"%PDF-1.7 teste")
    def test_pdf_download(self, mock_pdf):
        self.login_as(self.admin)
        response = self.client.get(self._url("proposal_pdf"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response["Content-Disposition"].startswith("attachment;"))
        self.assertEqual(response.content, b"%PDF-1.7 teste")
        html_content = mock_pdf.call_args[0][0]
        self.assertIn("contato.cliente@example.com", html_content)

    def test_reassign_changes_owner_and_logs(self):
        self.login_as(self.admin)
        response = self.client.post(self._url("proposal_reassign"), {"owner": self.member.pk})
        self.assertEqual(response.status_code, 302)

        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.owner, self.member)
        self.assertEqual(self.proposal.assignee, self.member.display_name)
        self.assertTrue(
            ProposalLog.objects.filter(proposal=self.proposal, action=ProposalLog.Action.REASSIGNED).exists()
        )

    def test_reassign_ignores_user_from_other_company(self):
        outsider = self.make_user(role=RoleCode.USER)
        self.login_as(self.admin)
        self.client.post(self._url("proposal_reassign"), {"owner": outsider.pk})
        self.proposal.refresh_from_db()
        self.assertEqual(self.proposal.owner, self.admin)
