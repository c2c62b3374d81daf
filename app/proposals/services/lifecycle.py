"""
Máquina de estados da proposta.

    pendente -> aprovada | rejeitada

Aprovada e rejeitada são finais: qualquer nova transição, inclusive para o
mesmo estado, levanta InvalidTransition sem alterar nada.
"""
import logging

from django.db import transaction

from ..models import Proposal, ProposalLog

logger = logging.getLogger(__name__)

Status = Proposal.Status

ALLOWED_TRANSITIONS = {
    Status.PENDING: frozenset({Status.APPROVED, Status.REJECTED}),
    Status.APPROVED: frozenset(),
    Status.REJECTED: frozenset(),
}

_LOG_ACTIONS = {
    Status.APPROVED: ProposalLog.Action.APPROVED,
    Status.REJECTED: ProposalLog.Action.REJECTED,
}


class InvalidTransition(Exception):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Transição inválida: {current} -> {target}")


def can_transition(current, target) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _run_callback(callback, proposal, previous):
    try:
        callback(proposal, previous)
    except Exception:
        # a notificação nunca desfaz nem bloqueia a transição
        logger.exception("Falha no callback de transição da proposta %s", proposal.pk)


def transition(proposal, target, *, actor=None, on_transition=None):
    """
    Aplica a transição com a linha travada (select_for_update), de modo que
    dois cliques simultâneos não sejam aceitos ao mesmo tempo.
    `on_transition(proposal, previous_status)` roda após o commit.
    """
    with transaction.atomic():
        locked = Proposal.objects.select_for_update().get(pk=proposal.pk)
        if not can_transition(locked.status, target):
            raise InvalidTransition(locked.status, target)

        previous = locked.status
        locked.status = target
        locked.save(update_fields=["status"])
        ProposalLog.objects.create(
            proposal=locked,
            action=_LOG_ACTIONS[target],
            message=f"Status alterado de {previous} para {target}",
            metadata={"from": previous, "to": target},
            created_by=actor if getattr(actor, "is_authenticated", False) else None,
        )
        logger.info("Proposta %s: %s -> %s", locked.pk, previous, target)

        if on_transition is not None:
            transaction.on_commit(lambda: _run_callback(on_transition, locked, previous))

    proposal.status = locked.status
    proposal.updated_at = locked.updated_at
    return proposal


def approve(proposal, *, actor=None, on_transition=None):
    return transition(proposal, Status.APPROVED, actor=actor, on_transition=on_transition)


def reject(proposal, *, actor=None, on_transition=None):
    return transition(proposal, Status.REJECTED, actor=actor, on_transition=on_transition)
