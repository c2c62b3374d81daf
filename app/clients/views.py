import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db.models import Q
from django.http import Http404
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from core.messaging import build_mailto, build_whatsapp_link

from .forms import ClientForm
from .models import Client

logger = logging.getLogger(__name__)


def search_clients(queryset, term):
    """Busca sem diferenciar maiúsculas em nome, sobrenome, email e WhatsApp."""
    term = (term or "").strip()
    if not term:
        return queryset
    return queryset.filter(
        Q(first_name__icontains=term)
        | Q(last_name__icontains=term)
        | Q(email__icontains=term)
        | Q(whatsapp__icontains=term)
    )


@login_required
def client_list(request):
    company_clients = Client.objects.filter(company=request.company)
    term = request.GET.get("q", "")
    clients = search_clients(company_clients, term)

    month_start = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    rows = [
        {
            "client": client,
            "mailto_url": build_mailto(client.email),
            "whatsapp_url": build_whatsapp_link(phone=client.whatsapp),
        }
        for client in clients
    ]
    ctx = {
        "rows": rows,
        "q": term,
        "total_count": company_clients.count(),
        "month_count": company_clients.filter(created_at__gte=month_start).count(),
    }
    if request.htmx:
        return render(request, "clients/_client_table.html", ctx)
    return render(request, "clients/client_list.html", ctx)


@login_required
def client_create(request):
    if request.company is None:
        raise Http404("Usuário sem empresa.")

    if request.method == "POST":
        form = ClientForm(request.POST)
        if form.is_valid():
            client = form.save(commit=False)
            client.company = request.company
            client.save()
            logger.info("Cliente %s criado por %s", client.pk, request.user.username)
            messages.success(request, f"Cliente {client.full_name} cadastrado.")
            return redirect("clients:client_list")
    else:
        form = ClientForm()

    return render(request, "clients/client_form.html", {"form": form})


@login_required
@require_POST
def client_delete(request, pk):
    client = get_object_or_404(Client, pk=pk, company=request.company)
    name = client.full_name
    client.delete()
    logger.info("Cliente %s excluído por %s", pk, request.user.username)
    messages.success(request, f"Cliente {name} excluído.")
    return redirect("clients:client_list")
