import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import redirect, render

from users.permissions import can_view_contacts

from .filters import ProposalFilterForm, filter_proposals
from .forms import ProposalForm, ReassignForm
from .models import Proposal
from .repositories import ContactRepository, ProposalRepository
from .services.documents import (
    document_filename,
    log_document,
    render_proposal_html,
    render_proposal_pdf,
)
from .services.notifications import (
    build_email,
    build_whatsapp_url,
    send_proposal_email,
    share_url,
)
from .services.submission import ProposalSubmissionError, submit_proposal

logger = logging.getLogger(__name__)


def _forbidden(request, message="Você não tem acesso a este recurso."):
    return render(request, "users/403.html", {"message": message}, status=403)


def _repositories(request):
    company = request.user.company
    if company is None:
        raise Http404("Usuário sem empresa.")
    return ProposalRepository(company), ContactRepository(company)


@login_required
def proposal_list(request):
    proposals_repo, contacts_repo = _repositories(request)
    proposals = contacts_repo.attach(request.user, proposals_repo.list())

    filter_form = ProposalFilterForm(request.GET or None)
    criteria = filter_form.criteria()
    rows = filter_proposals(proposals, criteria)

    counts = {status: 0 for status in Proposal.Status.values}
    for proposal in proposals:
        counts[proposal.status] += 1

    ctx = {
        "rows": rows,
        "filter_form": filter_form,
        "total_count": len(proposals),
        "filtered_count": len(rows),
        "pending_count": counts[Proposal.Status.PENDING],
        "approved_count": counts[Proposal.Status.APPROVED],
        "rejected_count": counts[Proposal.Status.REJECTED],
    }
    if request.htmx:
        return render(request, "proposals/_proposal_table.html", ctx)
    return render(request, "proposals/proposal_list.html", ctx)


@login_required
def proposal_create(request):
    company = request.user.company
    if company is None:
        raise Http404("Usuário sem empresa.")

    if request.method == "POST":
        try:
            proposal = submit_proposal(request.POST, company=company, actor=request.user)
        except ProposalSubmissionError as exc:
            form = exc.form
            messages.error(request, "Corrija os campos destacados para criar a proposta.")
        except DatabaseError:
            logger.exception("Falha ao gravar proposta")
            form = ProposalForm(request.POST, company=company)
            messages.error(request, "Não foi possível salvar a proposta. Tente novamente.")
        else:
            messages.success(request, "Proposta criada com sucesso.")
            return redirect("proposals:proposal_detail", pk=proposal.pk)
    else:
        form = ProposalForm(company=company)

    return render(request, "proposals/proposal_form.html", {"form": form})


@login_required
def proposal_detail(request, pk):
    proposals_repo, contacts_repo = _repositories(request)
    proposal = proposals_repo.get(pk)

    contact = None
    privileged = can_view_contacts(request.user)
    if privileged:
        try:
            contact = contacts_repo.lookup(request.user, proposal)
        except Http404:
            contact = None

    link = share_url(proposal, request.build_absolute_uri("/"))
    ctx = {
        "proposal": proposal,
        "contact": contact,
        "can_view_contacts": privileged,
        "share_link": link,
        "logs": proposal.logs.select_related("created_by")[:20],
        "reassign_form": ReassignForm(company=proposal.company, initial={"owner": proposal.owner_id}),
    }
    if contact is not None:
        ctx["mailto_url"] = build_email(proposal, contact.email, link).mailto_url
    return render(request, "proposals/proposal_detail.html", ctx)


@login_required
def proposal_send_email(request, pk):
    if request.method != "POST":
        return JsonResponse({"error": "Método não permitido."}, status=405)

    proposals_repo, contacts_repo = _repositories(request)
    proposal = proposals_repo.get(pk)
    contact = contacts_repo.for_delivery(proposal)
    link = share_url(proposal, request.build_absolute_uri("/"))

    try:
        send_proposal_email(proposal, contact, link, actor=request.user)
    except OSError:
        logger.exception("Falha ao enviar a proposta %s por email", proposal.pk)
        messages.error(request, "Não foi possível enviar o email agora. Tente novamente.")
    else:
        messages.success(request, "Proposta enviada por email ao cliente.")
    return redirect("proposals:proposal_detail", pk=proposal.pk)


@login_required
def proposal_whatsapp(request, pk):
    """Redireciona para o wa.me com o texto da proposta já preenchido."""
    proposals_repo, contacts_repo = _repositories(request)
    proposal = proposals_repo.get(pk)
    link = share_url(proposal, request.build_absolute_uri("/"))

    phone = ""
    if can_view_contacts(request.user):
        try:
            phone = contacts_repo.for_delivery(proposal).phone
        except Http404:
            phone = ""
    return redirect(build_whatsapp_url(proposal, link, phone=phone))


def _document_context(request, pk):
    proposals_repo, contacts_repo = _repositories(request)
    proposal = proposals_repo.get(pk)
    contact = contacts_repo.lookup(request.user, proposal)
    return proposal, render_proposal_html(proposal, contact)


@login_required
def proposal_document(request, pk):
    try:
        proposal, html_content = _document_context(request, pk)
    except PermissionDenied as exc:
        return _forbidden(request, str(exc))

    log_document(proposal, request.user, "html")
    response = HttpResponse(html_content, content_type="text/html; charset=utf-8")
    response["Content-Disposition"] = f'inline; filename="{document_filename(proposal, "html")}"'
    return response


@login_required
def proposal_pdf(request, pk):
    try:
        proposal, html_content = _document_context(request, pk)
    except PermissionDenied as exc:
        return _forbidden(request, str(exc))

    pdf = render_proposal_pdf(html_content, base_url=request.build_absolute_uri("/"))
    log_document(proposal, request.user, "pdf")
    response = HttpResponse(pdf, content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{document_filename(proposal, "pdf")}"'
    return response


@login_required
def proposal_reassign(request, pk):
    if request.method != "POST":
        return JsonResponse({"error": "Método não permitido."}, status=405)

    proposals_repo, _contacts_repo = _repositories(request)
    proposal = proposals_repo.get(pk)
    form = ReassignForm(request.POST, company=proposal.company)
    if form.is_valid():
        proposals_repo.reassign(proposal, form.cleaned_data["owner"], actor=request.user)
        messages.success(request, f"Responsável alterado para {proposal.assignee}.")
    else:
        messages.error(request, "Selecione um responsável válido.")
    return redirect("proposals:proposal_detail", pk=proposal.pk)
