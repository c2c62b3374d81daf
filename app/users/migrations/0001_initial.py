import uuid

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import users.models

ROLE_CHOICES = [
    ("ADMIN", "Administrador"),
    ("MODERATOR", "Moderador"),
    ("USER", "Usuário"),
]


def create_roles(apps, schema_editor):
    UserRole = apps.get_model("users", "UserRole")
    for code, _label in ROLE_CHOICES:
        UserRole.objects.get_or_create(code=code)


def reverse_roles(apps, schema_editor):
    UserRole = apps.get_model("users", "UserRole")
    UserRole.objects.all().delete()


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="Nome")),
                ("cnpj", models.CharField(blank=True, max_length=14, verbose_name="CNPJ")),
                ("responsible_phone", models.CharField(blank=True, max_length=20, verbose_name="Telefone do responsável")),
                ("responsible_email", models.EmailField(blank=True, max_length=254, verbose_name="Email do responsável")),
                ("address_street", models.CharField(blank=True, max_length=200, verbose_name="Rua")),
                ("address_number", models.CharField(blank=True, max_length=20, verbose_name="Número")),
                ("address_complement", models.CharField(blank=True, max_length=100, verbose_name="Complemento")),
                ("address_neighborhood", models.CharField(blank=True, max_length=100, verbose_name="Bairro")),
                ("address_city", models.CharField(blank=True, max_length=100, verbose_name="Cidade")),
                ("address_state", models.CharField(blank=True, max_length=2, verbose_name="UF")),
                ("address_zip_code", models.CharField(blank=True, max_length=9, verbose_name="CEP")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Empresa",
                "verbose_name_plural": "Empresas",
            },
        ),
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(choices=ROLE_CHOICES, max_length=20, unique=True, verbose_name="Código")),
            ],
        ),
        migrations.CreateModel(
            name="RolePermission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role_code", models.CharField(choices=ROLE_CHOICES, max_length=20, verbose_name="Role")),
                ("permission_key", models.CharField(max_length=200, verbose_name="Permissão")),
                ("allowed", models.BooleanField(default=True)),
                ("label", models.CharField(blank=True, max_length=200, verbose_name="Rótulo")),
                ("path", models.CharField(blank=True, max_length=200, verbose_name="Rota")),
            ],
            options={
                "unique_together": {("role_code", "permission_key")},
            },
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("role", models.CharField(choices=ROLE_CHOICES, default="USER", max_length=20)),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="WhatsApp")),
                ("company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="members", to="users.company")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
                ("roles", models.ManyToManyField(blank=True, related_name="users", to="users.userrole")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="TeamInvitation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=254, verbose_name="Email")),
                ("first_name", models.CharField(max_length=150, verbose_name="Nome")),
                ("last_name", models.CharField(max_length=150, verbose_name="Sobrenome")),
                ("whatsapp_number", models.CharField(blank=True, max_length=20, verbose_name="WhatsApp")),
                ("role", models.CharField(choices=ROLE_CHOICES, default="USER", max_length=20)),
                ("token", models.CharField(default=users.models._invitation_token, editable=False, max_length=64, unique=True)),
                ("status", models.CharField(choices=[("pending", "Pendente"), ("accepted", "Aceito"), ("expired", "Expirado")], default="pending", max_length=10)),
                ("expires_at", models.DateTimeField(default=users.models._invitation_expiry)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invitations", to="users.company")),
                ("invited_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sent_invitations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action_type", models.CharField(choices=[("COMPANY_UPDATE", "Empresa atualizada"), ("PROFILE_UPDATE", "Perfil atualizado"), ("ROLE_UPDATE", "Role alterada")], max_length=30)),
                ("table_name", models.CharField(max_length=60)),
                ("new_data", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(null=True, on_delete=django.db.models.deletion.CASCADE, related_name="audit_logs", to="users.company")),
                ("user", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="audit_logs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="UserPreferences",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveSmallIntegerField(default=1)),
                ("data", models.JSONField(blank=True, default=dict)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="preferences", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.RunPython(create_roles, reverse_roles),
    ]
