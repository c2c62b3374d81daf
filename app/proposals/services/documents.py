from io import BytesIO

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from core.currency import format_amount

from ..models import ProposalLog

DISCLAIMER = (
    "Esta proposta não constitui garantia de pagamento. Os valores apresentados "
    "estão sujeitos à análise documental do processo e à confirmação do crédito "
    "junto ao órgão pagador."
)


def document_filename(proposal, ext="html") -> str:
    return f"proposta-{proposal.pk}.{ext}"


def render_proposal_html(proposal, contact) -> str:
    """Documento completo da proposta, incluindo o contato do cliente."""
    company = proposal.company
    context = {
        "proposal": proposal,
        "contact": contact,
        "company": company,
        "cedible_value": format_amount(proposal.cedible_value),
        "proposal_value": format_amount(proposal.proposal_value),
        "created_at": timezone.localtime(proposal.created_at),
        "valid_until": timezone.localtime(proposal.valid_until),
        "disclaimer": DISCLAIMER,
        "generated_at": timezone.localtime(),
    }
    return render_to_string("proposals/proposal_document.html", context)


def render_proposal_pdf(html_content, base_url=None) -> bytes:
    # WeasyPrint depende de libs nativas (pango); importado só ao gerar o PDF
    from weasyprint import HTML

    buffer = BytesIO()
    HTML(string=html_content, base_url=base_url or str(settings.BASE_DIR)).write_pdf(target=buffer)
    return buffer.getvalue()


def log_document(proposal, actor, ext):
    return ProposalLog.objects.create(
        proposal=proposal,
        action=ProposalLog.Action.DOCUMENT_GENERATED,
        message=f"Documento {document_filename(proposal, ext)} gerado",
        created_by=actor,
    )
