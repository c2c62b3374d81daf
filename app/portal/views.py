import logging

from django.shortcuts import get_object_or_404, redirect, render

from proposals.models import Proposal
from proposals.services.lifecycle import InvalidTransition, approve, reject
from proposals.services.notifications import notify_status_change

logger = logging.getLogger(__name__)

ACTIONS = {
    "accept": approve,
    "reject": reject,
}


def _render(request, proposal, *, error="", status=200):
    return render(request, "portal/proposal.html", {
        "proposal": proposal,
        "company": proposal.company,
        "error": error,
    }, status=status)


def proposal_view(request, proposal_id):
    """Página pública do destinatário: mostra a proposta (sem contatos) e registra a resposta."""
    proposal = get_object_or_404(Proposal.objects.select_related("company"), pk=proposal_id)

    if request.method != "POST":
        return _render(request, proposal)

    action = ACTIONS.get(request.POST.get("action", ""))
    if action is None:
        return _render(request, proposal, error="Ação inválida.", status=400)

    if proposal.is_terminal:
        return _render(
            request,
            proposal,
            error=f"Esta proposta já foi {proposal.get_status_display().lower()}.",
            status=409,
        )
    if proposal.is_expired:
        return _render(request, proposal, error="Esta proposta expirou e não pode mais ser respondida.", status=410)

    try:
        action(proposal, on_transition=notify_status_change)
    except InvalidTransition:
        # outra resposta chegou primeiro
        proposal.refresh_from_db()
        return _render(
            request,
            proposal,
            error=f"Esta proposta já foi {proposal.get_status_display().lower()}.",
            status=409,
        )

    logger.info("Proposta %s respondida pelo destinatário: %s", proposal.pk, proposal.status)
    return redirect("portal:proposal_view", proposal_id=proposal.pk)
