import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import proposals.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
        ("clients", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Proposal",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("assignee", models.CharField(blank=True, max_length=200, verbose_name="Responsável")),
                ("client_name", models.CharField(max_length=200, verbose_name="Cliente")),
                ("client_email", models.EmailField(blank=True, max_length=254, verbose_name="Email do cliente")),
                ("client_phone", models.CharField(blank=True, max_length=20, verbose_name="Telefone do cliente")),
                ("process_number", models.CharField(blank=True, max_length=100, verbose_name="Número do processo")),
                ("organization_name", models.CharField(blank=True, max_length=200, verbose_name="Órgão")),
                ("cedible_value", models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)], verbose_name="Valor cedível")),
                ("proposal_value", models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)], verbose_name="Valor da proposta")),
                ("receiver_type", models.CharField(choices=[("advogado", "Advogado"), ("autor", "Autor"), ("precatorio", "Precatório")], default="autor", max_length=20, verbose_name="Tipo de recebedor")),
                ("status", models.CharField(choices=[("pendente", "Pendente"), ("aprovada", "Aprovada"), ("rejeitada", "Rejeitada")], default="pendente", max_length=10)),
                ("description", models.TextField(blank=True, verbose_name="Descrição")),
                ("valid_until", models.DateTimeField(default=proposals.models._default_valid_until, verbose_name="Válida até")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="proposals", to="clients.client")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="proposals", to="users.company")),
                ("owner", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="owned_proposals", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Proposta",
                "verbose_name_plural": "Propostas",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("cedible_value__gte", 0), ("proposal_value__gte", 0)),
                        name="proposal_values_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClientContact",
            fields=[
                ("proposal", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name="contact", serialize=False, to="proposals.proposal")),
                ("email", models.EmailField(max_length=254, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="Telefone")),
            ],
            options={
                "verbose_name": "Contato do cliente",
                "verbose_name_plural": "Contatos dos clientes",
            },
        ),
        migrations.CreateModel(
            name="ProposalLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("CREATED", "Criação"), ("APPROVED", "Aprovada"), ("REJECTED", "Rejeitada"), ("REASSIGNED", "Reatribuída"), ("EMAIL_SENT", "Email enviado"), ("DOCUMENT", "Documento gerado")], max_length=20)),
                ("message", models.CharField(blank=True, max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="proposal_logs", to=settings.AUTH_USER_MODEL)),
                ("proposal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="logs", to="proposals.proposal")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
