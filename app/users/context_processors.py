from proposals.models import Proposal


def pending_proposals_count(request):
    """Adiciona o número de propostas pendentes da empresa ao contexto dos templates."""
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated and user.company_id:
        count = Proposal.objects.filter(
            company_id=user.company_id,
            status=Proposal.Status.PENDING,
        ).count()
        return {"pending_proposals_count": count}
    return {"pending_proposals_count": 0}
