"""
Filtro da lista de propostas.

`filter_proposals` é uma função pura sobre uma lista já carregada: não
consulta o banco, não reordena e combina todos os critérios com AND.
Critério ausente ou vazio nunca exclui nenhuma proposta.
"""
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional

from django import forms
from django.utils import timezone

from core.currency import parse_currency

from .models import Proposal, ReceiverType

SEARCH_FIELDS = ("client_name", "client_email", "process_number", "organization_name")


@dataclass(frozen=True)
class FilterCriteria:
    search: str = ""
    status: FrozenSet[str] = field(default_factory=frozenset)
    receiver_type: FrozenSet[str] = field(default_factory=frozenset)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        return self == FilterCriteria()


def _day_start(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day, time.min))


def _day_end(day: date) -> datetime:
    # 23:59:59.999999 para que o dia final inteiro seja incluído
    return timezone.make_aware(datetime.combine(day, time.max))


def _comparable(moment: datetime, bound: datetime) -> datetime:
    if timezone.is_naive(moment):
        return timezone.make_naive(bound)
    return bound


def _matches_search(proposal, needle: str) -> bool:
    for name in SEARCH_FIELDS:
        value = getattr(proposal, name, "") or ""
        if needle in value.casefold():
            return True
    return False


def _matches(proposal, criteria: FilterCriteria, needle: str) -> bool:
    if needle and not _matches_search(proposal, needle):
        return False

    if criteria.status and proposal.status not in criteria.status:
        return False

    if criteria.receiver_type and proposal.receiver_type not in criteria.receiver_type:
        return False

    created = proposal.created_at
    if criteria.date_from is not None and created < _comparable(created, _day_start(criteria.date_from)):
        return False
    if criteria.date_to is not None and created > _comparable(created, _day_end(criteria.date_to)):
        return False

    value = proposal.proposal_value
    if criteria.min_value is not None and value < criteria.min_value:
        return False
    if criteria.max_value is not None and value > criteria.max_value:
        return False

    return True


def filter_proposals(proposals: Iterable, criteria: FilterCriteria) -> List:
    needle = (criteria.search or "").strip().casefold()
    return [p for p in proposals if _matches(p, criteria, needle)]


class ProposalFilterForm(forms.Form):
    """Converte os parâmetros GET da listagem em FilterCriteria."""
    q = forms.CharField(
        required=False,
        widget=forms.TextInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Buscar por cliente, email, processo ou órgão",
        }),
    )
    status = forms.MultipleChoiceField(
        required=False,
        choices=Proposal.Status.choices,
        widget=forms.CheckboxSelectMultiple(attrs={"class": "checkbox checkbox-sm"}),
    )
    receiver_type = forms.MultipleChoiceField(
        required=False,
        choices=ReceiverType.choices,
        widget=forms.CheckboxSelectMultiple(attrs={"class": "checkbox checkbox-sm"}),
    )
    date_from = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"class": "input input-bordered w-full", "type": "date"}),
    )
    date_to = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"class": "input input-bordered w-full", "type": "date"}),
    )
    min_value = forms.CharField(
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "R$ 0,00", "inputmode": "numeric"}),
    )
    max_value = forms.CharField(
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "R$ 0,00", "inputmode": "numeric"}),
    )

    @staticmethod
    def _amount(raw):
        if not raw or not re.search(r"\d", raw):
            return None
        return parse_currency(raw)

    def criteria(self) -> FilterCriteria:
        """Critérios dos campos válidos; um campo com erro só deixa de filtrar."""
        if not self.is_bound:
            return FilterCriteria()
        self.is_valid()
        # campos com erro já ficam fora de cleaned_data
        data = self.cleaned_data
        return FilterCriteria(
            search=data.get("q") or "",
            status=frozenset(data.get("status") or ()),
            receiver_type=frozenset(data.get("receiver_type") or ()),
            date_from=data.get("date_from"),
            date_to=data.get("date_to"),
            min_value=self._amount(data.get("min_value")),
            max_value=self._amount(data.get("max_value")),
        )
