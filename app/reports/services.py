"""
Agregações do painel de relatórios.
Funções puras sobre listas de propostas; `build_report` só faz a consulta.
"""
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from babel.dates import format_date
from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.utils import timezone

from proposals.models import Proposal

PERIOD_CHOICES = (7, 30, 90, 365)
DEFAULT_PERIOD = 30
MONTHS_IN_BREAKDOWN = 6

Status = Proposal.Status


def normalize_period(raw) -> int:
    try:
        days = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_PERIOD
    return days if days in PERIOD_CHOICES else DEFAULT_PERIOD


def _rate(part, whole) -> Decimal:
    if not whole:
        return Decimal("0.0")
    return (Decimal(part) * 100 / Decimal(whole)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def summarize(proposals) -> dict:
    proposals = list(proposals)
    total = len(proposals)
    approved = [p for p in proposals if p.status == Status.APPROVED]
    total_value = sum((p.proposal_value for p in proposals), Decimal("0.00"))
    approved_value = sum((p.proposal_value for p in approved), Decimal("0.00"))
    average = (total_value / total).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if total else Decimal("0.00")
    return {
        "total": total,
        "pending": sum(1 for p in proposals if p.status == Status.PENDING),
        "approved": len(approved),
        "rejected": sum(1 for p in proposals if p.status == Status.REJECTED),
        "total_value": total_value,
        "approved_value": approved_value,
        "average_value": average,
        "conversion_rate": _rate(len(approved), total),
    }


def monthly_breakdown(proposals, *, months=MONTHS_IN_BREAKDOWN, now=None) -> list:
    """Últimos `months` meses (o atual incluído), do mais antigo para o mais recente."""
    now = timezone.localtime(now or timezone.now())
    current = now.date().replace(day=1)
    buckets = OrderedDict()
    for offset in range(months - 1, -1, -1):
        month = current - relativedelta(months=offset)
        buckets[month] = {"count": 0, "approved": 0, "value": Decimal("0.00")}

    for proposal in proposals:
        month = timezone.localtime(proposal.created_at).date().replace(day=1)
        bucket = buckets.get(month)
        if bucket is None:
            continue
        bucket["count"] += 1
        bucket["value"] += proposal.proposal_value
        if proposal.status == Status.APPROVED:
            bucket["approved"] += 1

    locale = getattr(settings, "CURRENCY_LOCALE", "pt_BR")
    return [
        {"month": month, "label": format_date(month, "MMM/yyyy", locale=locale), **data}
        for month, data in buckets.items()
    ]


def assignee_ranking(proposals) -> list:
    stats = {}
    for proposal in proposals:
        name = proposal.assignee or "Sem responsável"
        row = stats.setdefault(name, {"assignee": name, "total": 0, "approved": 0, "value": Decimal("0.00")})
        row["total"] += 1
        if proposal.status == Status.APPROVED:
            row["approved"] += 1
            row["value"] += proposal.proposal_value

    ranking = sorted(stats.values(), key=lambda r: (-r["approved"], -r["value"], r["assignee"]))
    for row in ranking:
        row["conversion_rate"] = _rate(row["approved"], row["total"])
    return ranking


def build_report(company, days=DEFAULT_PERIOD, *, now=None) -> dict:
    now = now or timezone.now()
    days = normalize_period(days)
    queryset = Proposal.objects.filter(company=company)

    in_period = list(queryset.filter(created_at__gte=now - timedelta(days=days)))
    breakdown_start = timezone.localtime(now).replace(
        day=1, hour=0, minute=0, second=0, microsecond=0,
    ) - relativedelta(months=MONTHS_IN_BREAKDOWN - 1)
    recent = list(queryset.filter(created_at__gte=breakdown_start))

    return {
        "period": days,
        "summary": summarize(in_period),
        "monthly": monthly_breakdown(recent, now=now),
        "ranking": assignee_ranking(in_period),
    }
