import secrets
import uuid
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class RoleCode(models.TextChoices):
    ADMIN = 'ADMIN', 'Administrador'
    MODERATOR = 'MODERATOR', 'Moderador'
    USER = 'USER', 'Usuário'


class Company(models.Model):
    """Escritório (tenant). Todo dado de negócio pertence a uma empresa."""
    name = models.CharField("Nome", max_length=200)
    cnpj = models.CharField("CNPJ", max_length=14, blank=True)
    responsible_phone = models.CharField("Telefone do responsável", max_length=20, blank=True)
    responsible_email = models.EmailField("Email do responsável", blank=True)

    address_street = models.CharField("Rua", max_length=200, blank=True)
    address_number = models.CharField("Número", max_length=20, blank=True)
    address_complement = models.CharField("Complemento", max_length=100, blank=True)
    address_neighborhood = models.CharField("Bairro", max_length=100, blank=True)
    address_city = models.CharField("Cidade", max_length=100, blank=True)
    address_state = models.CharField("UF", max_length=2, blank=True)
    address_zip_code = models.CharField("CEP", max_length=9, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Empresa"
        verbose_name_plural = "Empresas"

    def __str__(self):
        return self.name


class User(AbstractUser):
    """
    Usuário da plataforma, sempre vinculado a uma empresa.
    O primeiro usuário de uma empresa é criado como administrador.
    """
    Role = RoleCode

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="members",
        null=True,
        blank=True,
    )
    role = models.CharField(max_length=20, choices=RoleCode.choices, default=RoleCode.USER)
    roles = models.ManyToManyField("users.UserRole", blank=True, related_name="users")
    phone = models.CharField("WhatsApp", max_length=20, blank=True)

    def __str__(self):
        return f"{self.display_name} ({self.role})"

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    @property
    def is_company_admin(self):
        return self.is_superuser or self.has_role(RoleCode.ADMIN)

    def has_role(self, code: str) -> bool:
        if self.role == code:
            return True
        if not self.pk:
            return False
        return self.roles.filter(code=code).exists()


class UserRole(models.Model):
    code = models.CharField("Código", max_length=20, choices=RoleCode.choices, unique=True)

    def __str__(self):
        return self.get_code_display()


class RolePermission(models.Model):
    role_code = models.CharField("Role", max_length=20, choices=RoleCode.choices)
    permission_key = models.CharField("Permissão", max_length=200)
    allowed = models.BooleanField(default=True)
    label = models.CharField("Rótulo", max_length=200, blank=True)
    path = models.CharField("Rota", max_length=200, blank=True)

    class Meta:
        unique_together = ("role_code", "permission_key")

    def __str__(self):
        return f"{self.get_role_code_display()} -> {self.permission_key}"


def _invitation_token():
    return secrets.token_urlsafe(32)


def _invitation_expiry():
    days = getattr(settings, "TEAM_INVITATION_EXPIRY_DAYS", 7)
    return timezone.now() + timedelta(days=days)


class TeamInvitation(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pendente"
        ACCEPTED = "accepted", "Aceito"
        EXPIRED = "expired", "Expirado"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="invitations")
    email = models.EmailField("Email")
    first_name = models.CharField("Nome", max_length=150)
    last_name = models.CharField("Sobrenome", max_length=150)
    whatsapp_number = models.CharField("WhatsApp", max_length=20, blank=True)
    role = models.CharField(max_length=20, choices=RoleCode.choices, default=RoleCode.USER)
    token = models.CharField(max_length=64, unique=True, default=_invitation_token, editable=False)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    invited_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_invitations",
    )
    expires_at = models.DateTimeField(default=_invitation_expiry)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Convite {self.email} ({self.get_status_display()})"

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at

    @property
    def is_acceptable(self):
        return self.status == self.Status.PENDING and not self.is_expired


class AuditLog(models.Model):
    """Registro de alterações em dados cadastrais (empresa, perfil)."""
    class ActionType(models.TextChoices):
        COMPANY_UPDATE = "COMPANY_UPDATE", "Empresa atualizada"
        PROFILE_UPDATE = "PROFILE_UPDATE", "Perfil atualizado"
        ROLE_UPDATE = "ROLE_UPDATE", "Role alterada"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="audit_logs", null=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name="audit_logs")
    action_type = models.CharField(max_length=30, choices=ActionType.choices)
    table_name = models.CharField(max_length=60)
    new_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.action_type} ({self.table_name})"


class UserPreferences(models.Model):
    """
    Preferências do usuário (notificações, tema) em um blob JSON versionado.
    Acessado somente via `for_user`/`update`; chaves desconhecidas são recusadas.
    """
    CURRENT_VERSION = 1
    DEFAULTS = {
        "email_notifications": True,
        "whatsapp_notifications": True,
        "proposal_updates": True,
        "theme": "light",
    }
    THEMES = ("light", "dark", "system")

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="preferences")
    version = models.PositiveSmallIntegerField(default=CURRENT_VERSION)
    data = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Preferências de {self.user}"

    @classmethod
    def for_user(cls, user):
        prefs, _created = cls.objects.get_or_create(user=user)
        if prefs.version != cls.CURRENT_VERSION:
            prefs._migrate()
        return prefs

    def _migrate(self):
        # v0 (sem versão) guardava as mesmas chaves, só sem defaults
        self.data = {key: self.data[key] for key in self.DEFAULTS if key in self.data}
        self.version = self.CURRENT_VERSION
        self.save(update_fields=["data", "version", "updated_at"])

    def as_dict(self):
        merged = dict(self.DEFAULTS)
        merged.update(self.data or {})
        return merged

    def get(self, key):
        return self.as_dict()[key]

    def update(self, **values):
        unknown = set(values) - set(self.DEFAULTS)
        if unknown:
            raise KeyError(f"Preferências desconhecidas: {', '.join(sorted(unknown))}")
        if "theme" in values and values["theme"] not in self.THEMES:
            raise ValueError(f"Tema inválido: {values['theme']}")
        self.data = {**(self.data or {}), **values}
        self.save(update_fields=["data", "updated_at"])
        return self.as_dict()
