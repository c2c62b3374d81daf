import logging

from django.contrib import messages
from django.contrib.auth import authenticate, login, logout, update_session_auth_hash
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from .forms import (
    ChangePasswordForm,
    CompanyForm,
    InvitationAcceptForm,
    LoginForm,
    PreferencesForm,
    ProfileForm,
    RegisterForm,
    RoleUpdateForm,
    TeamInvitationForm,
)
from .models import AuditLog, TeamInvitation, User, UserPreferences
from .permissions import is_company_admin
from .services import (
    InvitationError,
    accept_invitation,
    change_role,
    create_invitation,
    expire_stale_invitations,
    record_audit,
    register_company_admin,
    send_invitation_email,
)

logger = logging.getLogger(__name__)


def _forbidden(request, message="Você não tem acesso a este recurso."):
    return render(request, "users/403.html", {"message": message}, status=403)


def landing_view(request):
    """Página inicial pública com acesso ao login e ao cadastro."""
    if request.user.is_authenticated:
        return redirect("proposals:proposal_list")
    return render(request, "users/landing.html")


def login_view(request):
    if request.user.is_authenticated:
        return redirect("proposals:proposal_list")

    next_url = request.GET.get("next") or request.POST.get("next") or ""

    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            identifier = form.cleaned_data["identifier"].strip()
            password = form.cleaned_data["password"]
            username = identifier
            if "@" in identifier:
                user_obj = User.objects.filter(email__iexact=identifier).first()
                if user_obj:
                    username = user_obj.username
            user = authenticate(request, username=username, password=password)
            if user is not None:
                login(request, user)
                return redirect(next_url or "proposals:proposal_list")
            form.add_error(None, "Credenciais inválidas ou conta inativa.")
    else:
        form = LoginForm()

    return render(request, "users/login.html", {"form": form, "next": next_url})


def logout_view(request):
    logout(request)
    return redirect("users:login")


def register_view(request):
    """Cadastro público: empresa + primeiro usuário (admin)."""
    if request.user.is_authenticated:
        return redirect("proposals:proposal_list")

    if request.method == "POST":
        form = RegisterForm(request.POST)
        if form.is_valid():
            user = register_company_admin(form.cleaned_data)
            login(request, user)
            messages.success(request, f"Bem-vindo(a)! A empresa {user.company.name} foi criada.")
            return redirect("proposals:proposal_list")
    else:
        form = RegisterForm()

    return render(request, "users/register.html", {"form": form})


@login_required
def profile_view(request):
    """Perfil do usuário: dados pessoais e troca de senha."""
    user = request.user
    profile_form = ProfileForm(instance=user)
    password_form = ChangePasswordForm(user)
    active_tab = request.GET.get("tab", "profile")

    if request.method == "POST":
        action = request.POST.get("action", "")

        if action == "update_profile":
            profile_form = ProfileForm(request.POST, instance=user)
            if profile_form.is_valid():
                profile_form.save()
                record_audit(
                    user,
                    AuditLog.ActionType.PROFILE_UPDATE,
                    "users_user",
                    {field: profile_form.cleaned_data[field] for field in profile_form.changed_data},
                )
                messages.success(request, "Perfil atualizado com sucesso.")
                return redirect(f"{reverse('users:profile')}?tab=profile")

        elif action == "change_password":
            active_tab = "password"
            password_form = ChangePasswordForm(user, request.POST)
            if password_form.is_valid():
                user.set_password(password_form.cleaned_data["new_password1"])
                user.save()
                update_session_auth_hash(request, user)
                messages.success(request, "Senha atualizada com sucesso.")
                return redirect("users:profile")

    return render(request, "users/profile.html", {
        "profile_form": profile_form,
        "password_form": password_form,
        "active_tab": active_tab,
    })


@login_required
def preferences_view(request):
    prefs = UserPreferences.for_user(request.user)

    if request.method == "POST":
        form = PreferencesForm(request.POST)
        if form.is_valid():
            prefs.update(**form.cleaned_data)
            messages.success(request, "Preferências salvas.")
            return redirect("users:preferences")
    else:
        form = PreferencesForm(initial=prefs.as_dict())

    return render(request, "users/preferences.html", {"form": form})


@login_required
def company_settings_view(request):
    if not is_company_admin(request.user) or request.user.company is None:
        return _forbidden(request, "Somente administradores podem alterar os dados da empresa.")

    company = request.user.company
    if request.method == "POST":
        form = CompanyForm(request.POST, instance=company)
        if form.is_valid():
            form.save()
            record_audit(
                request.user,
                AuditLog.ActionType.COMPANY_UPDATE,
                "users_company",
                {field: form.cleaned_data[field] for field in form.changed_data},
            )
            messages.success(request, "Dados da empresa atualizados.")
            return redirect("users:company_settings")
    else:
        form = CompanyForm(instance=company)

    return render(request, "users/company_settings.html", {"form": form, "company": company})


@login_required
def team_list_view(request):
    if not is_company_admin(request.user) or request.user.company is None:
        return _forbidden(request, "Somente administradores podem gerenciar a equipe.")

    company = request.user.company
    expire_stale_invitations(company)
    members = company.members.all().order_by("first_name", "last_name", "username")
    rows = [
        {"member": member, "role_form": RoleUpdateForm(initial={"role": member.role}, prefix=f"m{member.pk}")}
        for member in members
    ]
    invitations = company.invitations.select_related("invited_by")

    return render(request, "users/team_list.html", {
        "rows": rows,
        "invitations": invitations,
        "invite_form": TeamInvitationForm(company),
    })


@login_required
def team_invite_view(request):
    if not is_company_admin(request.user) or request.user.company is None:
        return _forbidden(request, "Somente administradores podem convidar membros.")

    company = request.user.company
    if request.method == "POST":
        form = TeamInvitationForm(company, request.POST)
        if form.is_valid():
            invitation = create_invitation(
                company=company,
                invited_by=request.user,
                data=form.cleaned_data,
            )
            accept_url = request.build_absolute_uri(
                reverse("users:invitation_accept", args=[invitation.token])
            )
            try:
                send_invitation_email(invitation, accept_url)
            except OSError:
                logger.exception("Falha ao enviar convite %s", invitation.pk)
                messages.error(
                    request,
                    "O convite foi criado, mas o email não pôde ser enviado. Tente novamente mais tarde.",
                )
            else:
                messages.success(request, f"Convite enviado para {invitation.email}.")
            return redirect("users:team_list")
    else:
        form = TeamInvitationForm(company)

    return render(request, "users/team_invite.html", {"form": form})


def invitation_accept_view(request, token):
    """Página pública do convite: define a senha e cria a conta."""
    invitation = get_object_or_404(
        TeamInvitation.objects.select_related("company"),
        token=token,
    )
    error = ""
    if not invitation.is_acceptable:
        error = "Este convite expirou ou já foi utilizado."

    if request.method == "POST" and not error:
        form = InvitationAcceptForm(request.POST)
        if form.is_valid():
            try:
                user = accept_invitation(token, form.cleaned_data["password1"])
            except InvitationError as exc:
                error = str(exc)
            else:
                login(request, user)
                messages.success(request, f"Bem-vindo(a) à equipe {invitation.company.name}!")
                return redirect("proposals:proposal_list")
    else:
        form = InvitationAcceptForm()

    status = 410 if error else 200
    return render(request, "users/invitation_accept.html", {
        "invitation": invitation,
        "form": form,
        "error": error,
    }, status=status)


@login_required
@require_POST
def user_role_update(request, pk):
    if not is_company_admin(request.user):
        return _forbidden(request, "Somente administradores podem alterar roles.")

    member = get_object_or_404(User, pk=pk, company=request.user.company)
    if member.pk == request.user.pk:
        messages.error(request, "Você não pode alterar a sua própria role.")
        return redirect("users:team_list")

    form = RoleUpdateForm(request.POST, prefix=f"m{member.pk}")
    if form.is_valid():
        change_role(member, form.cleaned_data["role"], actor=request.user)
        messages.success(request, f"Role de {member.display_name} atualizada.")
    else:
        messages.error(request, "Role inválida.")
    return redirect("users:team_list")


@login_required
@require_POST
def user_toggle_active(request, pk):
    if not is_company_admin(request.user):
        return _forbidden(request, "Somente administradores podem ativar ou desativar membros.")

    member = get_object_or_404(User, pk=pk, company=request.user.company)
    if member.pk == request.user.pk:
        return redirect("users:team_list")

    member.is_active = not member.is_active
    member.save(update_fields=["is_active"])
    return redirect("users:team_list")
