import uuid
from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from users.models import Company


def _default_valid_until():
    days = getattr(settings, "PROPOSAL_VALIDITY_DAYS", 30)
    return timezone.now() + timedelta(days=days)


class ReceiverType(models.TextChoices):
    ADVOGADO = "advogado", "Advogado"
    AUTOR = "autor", "Autor"
    PRECATORIO = "precatorio", "Precatório"


class Proposal(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(Company, on_delete=models.PROTECT, related_name="proposals")
    owner = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_proposals",
    )
    # Nome de exibição do responsável, desnormalizado
    assignee = models.CharField("Responsável", max_length=200, blank=True)
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposals",
    )

    client_name = models.CharField("Cliente", max_length=200)
    # Colunas legadas: o contato autoritativo fica em ClientContact
    client_email = models.EmailField("Email do cliente", blank=True)
    client_phone = models.CharField("Telefone do cliente", max_length=20, blank=True)

    process_number = models.CharField("Número do processo", max_length=100, blank=True)
    organization_name = models.CharField("Órgão", max_length=200, blank=True)
    cedible_value = models.DecimalField(
        "Valor cedível",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    proposal_value = models.DecimalField(
        "Valor da proposta",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    receiver_type = models.CharField(
        "Tipo de recebedor",
        max_length=20,
        choices=ReceiverType.choices,
        default=ReceiverType.AUTOR,
    )

    class Status(models.TextChoices):
        PENDING = "pendente", "Pendente"
        APPROVED = "aprovada", "Aprovada"
        REJECTED = "rejeitada", "Rejeitada"

    TERMINAL_STATUSES = frozenset({Status.APPROVED, Status.REJECTED})

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    description = models.TextField("Descrição", blank=True)
    valid_until = models.DateTimeField("Válida até", default=_default_valid_until)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Proposta"
        verbose_name_plural = "Propostas"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(cedible_value__gte=0) & models.Q(proposal_value__gte=0),
                name="proposal_values_non_negative",
            ),
        ]

    def __str__(self):
        return f"Proposta {self.client_name} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        # na criação updated_at já vem igual a created_at
        if not self._state.adding:
            self.updated_at = timezone.now()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"updated_at"}
        super().save(*args, **kwargs)

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def is_expired(self):
        return self.valid_until is not None and self.valid_until < timezone.now()


class ClientContact(models.Model):
    """
    Email/telefone do cliente, separados da proposta.
    Lidos apenas pela consulta privilegiada (ContactRepository.lookup).
    """
    proposal = models.OneToOneField(
        Proposal,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="contact",
    )
    email = models.EmailField("Email")
    phone = models.CharField("Telefone", max_length=20, blank=True)

    class Meta:
        verbose_name = "Contato do cliente"
        verbose_name_plural = "Contatos dos clientes"

    def __str__(self):
        return f"Contato da proposta {self.proposal_id}"


class ProposalLog(models.Model):
    class Action(models.TextChoices):
        CREATED = "CREATED", "Criação"
        APPROVED = "APPROVED", "Aprovada"
        REJECTED = "REJECTED", "Rejeitada"
        REASSIGNED = "REASSIGNED", "Reatribuída"
        EMAIL_SENT = "EMAIL_SENT", "Email enviado"
        DOCUMENT_GENERATED = "DOCUMENT", "Documento gerado"

    proposal = models.ForeignKey(Proposal, on_delete=models.CASCADE, related_name="logs")
    action = models.CharField(max_length=20, choices=Action.choices)
    message = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposal_logs",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.get_action_display()} - {self.proposal_id}"
