import logging

from django.db import transaction
from django.utils import timezone

from clients.models import Client
from core.normalization import split_full_name

from ..forms import ProposalForm
from ..models import Proposal, ProposalLog
from ..repositories import ContactRepository, ProposalRepository

logger = logging.getLogger(__name__)


class ProposalSubmissionError(Exception):
    """Formulário inválido; `errors` traz todos os campos com problema de uma vez."""

    def __init__(self, errors, form=None):
        self.errors = errors
        self.form = form
        fields = ", ".join(sorted(errors))
        super().__init__(f"Proposta inválida: {fields}")


def submit_proposal(data, *, company, actor):
    """Valida os dados crus do formulário e cria a proposta. Nada é gravado se houver erro."""
    form = ProposalForm(data, company=company)
    if not form.is_valid():
        raise ProposalSubmissionError(
            {name: [str(message) for message in messages] for name, messages in form.errors.items()},
            form=form,
        )
    return create_proposal(form.cleaned_data, company=company, actor=actor)


@transaction.atomic
def create_proposal(cleaned, *, company, actor):
    """
    Ordem das gravações: cliente novo (se houver), proposta, contato, log.
    Qualquer falha desfaz todas.
    """
    client = cleaned.get("client")
    if client is None:
        first_name, last_name = split_full_name(cleaned["client_name"])
        client = Client.objects.create(
            company=company,
            first_name=first_name,
            last_name=last_name,
            email=cleaned["client_email"],
            whatsapp=cleaned["client_phone"],
        )
        logger.info("Cliente %s criado junto com a proposta", client.pk)

    now = timezone.now()
    proposal = ProposalRepository(company).create(
        owner=actor,
        assignee=actor.display_name if actor is not None else "",
        client=client,
        client_name=cleaned["client_name"],
        process_number=cleaned.get("process_number", ""),
        organization_name=cleaned.get("organization_name", ""),
        cedible_value=cleaned["cedible_value"],
        proposal_value=cleaned["proposal_value"],
        receiver_type=cleaned["receiver_type"],
        description=cleaned.get("description", ""),
        status=Proposal.Status.PENDING,
        created_at=now,
        updated_at=now,
    )
    ContactRepository(company).create(
        proposal,
        email=cleaned["client_email"],
        phone=cleaned.get("client_phone", ""),
    )
    ProposalLog.objects.create(
        proposal=proposal,
        action=ProposalLog.Action.CREATED,
        message="Proposta criada",
        created_by=actor,
    )
    logger.info("Proposta %s criada por %s", proposal.pk, getattr(actor, "username", "-"))
    return proposal
