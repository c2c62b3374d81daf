from django.contrib.auth.decorators import login_required
from django.http import Http404
from django.shortcuts import render

from .services import PERIOD_CHOICES, build_report


@login_required
def dashboard(request):
    """Painel de relatórios da empresa, com seletor de período."""
    company = request.company
    if company is None:
        raise Http404("Usuário sem empresa.")

    report = build_report(company, request.GET.get("periodo"))
    ctx = {
        **report,
        "period_choices": PERIOD_CHOICES,
    }
    if request.htmx:
        return render(request, "reports/_report_body.html", ctx)
    return render(request, "reports/dashboard.html", ctx)
