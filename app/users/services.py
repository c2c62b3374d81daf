"""
Regras de cadastro de empresa, convites de equipe e auditoria.
As views só validam formulários e chamam estas funções.
"""
import logging
import re

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone

from .models import AuditLog, Company, RoleCode, TeamInvitation, User, UserRole

logger = logging.getLogger(__name__)


class InvitationError(Exception):
    """Convite inexistente, expirado ou já utilizado."""


def generate_username(email, first_name="", last_name=""):
    """Gera um username único a partir do email."""
    base = email.split("@")[0] if email else ""
    if not base and first_name and last_name:
        base = (first_name[0] + last_name).lower()
    base = re.sub(r"[^a-zA-Z0-9._-]", "", base)[:30] or "usuario"

    username = base
    counter = 1
    while User.objects.filter(username=username).exists():
        username = f"{base}{counter}"
        counter += 1
    return username


def _attach_role(user, role_code):
    role_obj, _created = UserRole.objects.get_or_create(code=role_code)
    user.roles.add(role_obj)


@transaction.atomic
def register_company_admin(data):
    """
    Cria a empresa e, em seguida, o primeiro usuário dela com role ADMIN.
    Tudo ou nada: se o usuário falhar, a empresa não fica órfã.
    """
    company = Company.objects.create(
        name=data["company_name"],
        cnpj=data.get("cnpj", ""),
        responsible_phone=data.get("phone", ""),
        responsible_email=data["email"],
    )
    user = User.objects.create_user(
        username=generate_username(data["email"], data["first_name"], data["last_name"]),
        email=data["email"],
        password=data["password1"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        phone=data.get("phone", ""),
        company=company,
        role=RoleCode.ADMIN,
    )
    _attach_role(user, RoleCode.ADMIN)
    logger.info("Empresa %s criada com admin %s", company.pk, user.username)
    return user


def expire_stale_invitations(company):
    """Marca como expirados os convites pendentes vencidos. Retorna quantos."""
    return TeamInvitation.objects.filter(
        company=company,
        status=TeamInvitation.Status.PENDING,
        expires_at__lte=timezone.now(),
    ).update(status=TeamInvitation.Status.EXPIRED)


def create_invitation(*, company, invited_by, data):
    return TeamInvitation.objects.create(
        company=company,
        invited_by=invited_by,
        email=data["email"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        whatsapp_number=data.get("whatsapp_number", ""),
        role=data.get("role") or RoleCode.USER,
    )


def send_invitation_email(invitation, accept_url):
    """Envia o link de cadastro. Erros de SMTP sobem para a view."""
    context = {
        "invitation": invitation,
        "company": invitation.company,
        "accept_url": accept_url,
        "expiry_days": getattr(settings, "TEAM_INVITATION_EXPIRY_DAYS", 7),
    }
    subject = f"Convite para a equipe {invitation.company.name}"
    body = render_to_string("emails/team_invitation.txt", context)
    html_body = render_to_string("emails/team_invitation.html", context)
    send_mail(
        subject,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [invitation.email],
        html_message=html_body,
    )
    logger.info("Convite %s enviado para %s", invitation.pk, invitation.email)


@transaction.atomic
def accept_invitation(token, password):
    """Cria o usuário dentro da empresa que convidou e fecha o convite."""
    invitation = (
        TeamInvitation.objects.select_for_update()
        .select_related("company")
        .filter(token=token)
        .first()
    )
    if invitation is None:
        raise InvitationError("Convite não encontrado.")
    if invitation.status == TeamInvitation.Status.PENDING and invitation.is_expired:
        raise InvitationError("Este convite expirou.")
    if invitation.status != TeamInvitation.Status.PENDING:
        raise InvitationError(f"Este convite está {invitation.get_status_display().lower()}.")

    user = User.objects.create_user(
        username=generate_username(invitation.email, invitation.first_name, invitation.last_name),
        email=invitation.email,
        password=password,
        first_name=invitation.first_name,
        last_name=invitation.last_name,
        phone=invitation.whatsapp_number,
        company=invitation.company,
        role=invitation.role,
    )
    _attach_role(user, invitation.role)

    invitation.status = TeamInvitation.Status.ACCEPTED
    invitation.save(update_fields=["status"])
    logger.info("Convite %s aceito: usuário %s criado", invitation.pk, user.username)
    return user


@transaction.atomic
def change_role(member, role_code, *, actor):
    member.role = role_code
    member.save(update_fields=["role"])
    member.roles.clear()
    _attach_role(member, role_code)
    record_audit(
        actor,
        AuditLog.ActionType.ROLE_UPDATE,
        "users_user",
        {"user_id": member.pk, "role": role_code},
    )
    return member


def record_audit(user, action_type, table_name, data):
    return AuditLog.objects.create(
        company=getattr(user, "company", None),
        user=user,
        action_type=action_type,
        table_name=table_name,
        new_data=data,
    )
