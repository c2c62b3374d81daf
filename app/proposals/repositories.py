"""
Acesso a propostas e contatos, sempre escopado pela empresa do usuário.
As views usam estes repositórios e não o ORM diretamente.
"""
import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from django.shortcuts import get_object_or_404

from users.permissions import can_view_contacts

from .models import ClientContact, Proposal, ProposalLog

logger = logging.getLogger(__name__)


class ProposalRepository:
    def __init__(self, company):
        self.company = company

    def _queryset(self):
        return Proposal.objects.filter(company=self.company).select_related("owner", "client")

    def list(self):
        return list(self._queryset().order_by("-created_at"))

    def get(self, pk):
        return get_object_or_404(self._queryset(), pk=pk)

    def create(self, **fields):
        return Proposal.objects.create(company=self.company, **fields)

    def reassign(self, proposal, user, *, actor=None):
        if proposal.company_id != self.company.pk or user.company_id != self.company.pk:
            raise PermissionDenied("Responsável de outra empresa.")
        previous = proposal.assignee
        proposal.owner = user
        proposal.assignee = user.display_name
        proposal.save(update_fields=["owner", "assignee"])
        ProposalLog.objects.create(
            proposal=proposal,
            action=ProposalLog.Action.REASSIGNED,
            message=f"Responsável alterado para {proposal.assignee}",
            metadata={"from": previous, "to": proposal.assignee},
            created_by=actor,
        )
        logger.info("Proposta %s reatribuída para %s", proposal.pk, user.username)
        return proposal


class ContactRepository:
    def __init__(self, company):
        self.company = company

    def create(self, proposal, email, phone=""):
        return ClientContact.objects.create(proposal=proposal, email=email, phone=phone)

    def lookup(self, user, proposal):
        """Consulta privilegiada do contato de uma proposta."""
        if not can_view_contacts(user):
            raise PermissionDenied("Apenas administradores e moderadores veem os contatos.")
        if proposal.company_id != self.company.pk:
            raise Http404("Proposta não encontrada.")
        try:
            return ClientContact.objects.get(proposal=proposal)
        except ClientContact.DoesNotExist:
            raise Http404("Contato não encontrado para esta proposta.")

    def for_delivery(self, proposal):
        """
        Leitura interna do contato para entregar a proposta (email/WhatsApp).
        O endereço não é exibido a quem disparou o envio.
        """
        return get_object_or_404(
            ClientContact,
            proposal=proposal,
            proposal__company=self.company,
        )

    def attach(self, user, proposals):
        """
        Preenche client_email/client_phone (em memória) para quem pode ver
        contatos. Para os demais a lista segue sem dados de contato.
        """
        if not can_view_contacts(user):
            return proposals
        ids = [p.pk for p in proposals]
        contacts = {
            c.proposal_id: c
            for c in ClientContact.objects.filter(
                proposal_id__in=ids,
                proposal__company=self.company,
            )
        }
        for proposal in proposals:
            contact = contacts.get(proposal.pk)
            if contact is not None:
                proposal.client_email = contact.email
                proposal.client_phone = contact.phone
        return proposals
