"""
Montagem das mensagens de uma proposta (email, WhatsApp, link público) e
envio pelo framework de email do Django.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, send_mail
from django.template.loader import render_to_string
from django.urls import reverse
from django.utils import timezone

from core.currency import format_amount
from core.messaging import build_mailto, build_whatsapp_link
from users.models import UserPreferences

from ..models import ProposalLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    body: str

    @property
    def mailto_url(self) -> str:
        return build_mailto(self.to, self.subject, self.body)


def share_url(proposal, base_url=None) -> str:
    """Link absoluto da página pública da proposta."""
    base = (base_url or settings.SITE_URL).rstrip("/")
    return base + reverse("portal:proposal_view", args=[proposal.pk])


def _message_context(proposal, link):
    return {
        "proposal": proposal,
        "company": proposal.company,
        "link": link,
        "process_number": proposal.process_number or "não informado",
        "cedible_value": format_amount(proposal.cedible_value),
        "proposal_value": format_amount(proposal.proposal_value),
        "valid_until": timezone.localtime(proposal.valid_until).strftime("%d/%m/%Y"),
    }


def email_subject(proposal) -> str:
    if proposal.process_number:
        return f"Proposta de antecipação - Processo {proposal.process_number}"
    return f"Proposta de antecipação - {proposal.client_name}"


def build_email(proposal, contact_email, link) -> OutboundEmail:
    body = render_to_string("emails/proposal.txt", _message_context(proposal, link))
    return OutboundEmail(to=contact_email, subject=email_subject(proposal), body=body)


def build_whatsapp_text(proposal, link) -> str:
    ctx = _message_context(proposal, link)
    return (
        f"Olá {proposal.client_name}! Segue a proposta de antecipação do processo "
        f"{ctx['process_number']}.\n"
        f"Valor cedível: {ctx['cedible_value']}\n"
        f"Valor da proposta: {ctx['proposal_value']}\n"
        f"Veja e responda: {link}"
    )


def build_whatsapp_url(proposal, link, phone="") -> str:
    return build_whatsapp_link(build_whatsapp_text(proposal, link), phone=phone)


def send_proposal_email(proposal, contact, link, actor=None):
    """Entrega a proposta ao email do contato. Erros de SMTP sobem para a view."""
    email = build_email(proposal, contact.email, link)
    html_body = render_to_string("emails/proposal.html", _message_context(proposal, link))

    message = EmailMultiAlternatives(
        email.subject,
        email.body,
        settings.DEFAULT_FROM_EMAIL,
        [email.to],
    )
    message.attach_alternative(html_body, "text/html")
    message.send()

    ProposalLog.objects.create(
        proposal=proposal,
        action=ProposalLog.Action.EMAIL_SENT,
        # sem o endereço: o histórico é visível a quem não vê contatos
        message="Proposta enviada por email ao cliente",
        created_by=actor,
    )
    logger.info("Proposta %s enviada por email", proposal.pk)
    return email


def _status_recipient(proposal):
    owner = proposal.owner
    if owner is not None and owner.email and owner.is_active:
        prefs = UserPreferences.for_user(owner)
        if prefs.get("email_notifications") and prefs.get("proposal_updates"):
            return owner.email
        return ""
    return proposal.company.responsible_email


def notify_status_change(proposal, previous=None):
    """Avisa o responsável quando o destinatário aprova ou rejeita a proposta."""
    recipient = _status_recipient(proposal)
    if not recipient:
        logger.info("Proposta %s sem destinatário para aviso de status", proposal.pk)
        return False

    ctx = {
        "proposal": proposal,
        "previous": previous,
        "detail_url": settings.SITE_URL + reverse("proposals:proposal_detail", args=[proposal.pk]),
        "proposal_value": format_amount(proposal.proposal_value),
    }
    send_mail(
        f"Proposta {proposal.get_status_display().lower()} - {proposal.client_name}",
        render_to_string("emails/status_change.txt", ctx),
        settings.DEFAULT_FROM_EMAIL,
        [recipient],
    )
    logger.info("Aviso de status da proposta %s enviado para %s", proposal.pk, recipient)
    return True
