from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core import mail
from django.core.management import call_command
from django.db import IntegrityError
from django.urls import reverse
from django.utils import timezone

from users.models import AuditLog, Company, RoleCode, RolePermission, TeamInvitation, User, UserPreferences
from users.permissions import can_view_contacts, is_company_admin
from users.services import InvitationError, accept_invitation, register_company_admin
from tests.base import BaseAppTestCase
from tests.factories import Factory


class UsersAuthAndPermissionTests(BaseAppTestCase):
    def setUp(self):
        self.admin = self.make_user(role=RoleCode.ADMIN, username="admin")
        self.member = self.make_member(self.admin.company, username="membro")
        self.grant_permissions(RoleCode.ADMIN, ["proposals:proposal_list", "users:profile"])
        self.grant_permissions(RoleCode.USER, ["users:profile"])

    def test_login_view_authenticates_and_redirects(self):
        response = self.client.post(
            reverse("users:login"),
            {"identifier": "admin", "password": "pass1234"},
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("proposals:proposal_list"))

    def test_login_accepts_email_identifier(self):
        response = self.client.post(
            reverse("users:login"),
            {"identifier": self.admin.email.upper(), "password": "pass1234"},
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("proposals:proposal_list"))

    def test_login_rejects_wrong_password(self):
        response = self.client.post(
            reverse("users:login"),
            {"identifier": "admin", "password": "errada123"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Credenciais inválidas")

    def test_landing_is_public_and_redirects_authenticated_users(self):
        self.assertEqual(self.client.get(reverse("users:landing")).status_code, 200)

        self.login_as(self.admin)
        response = self.client.get(reverse("users:landing"))
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("proposals:proposal_list"))

    def test_middleware_redirects_anonymous_and_blocks_role_without_permission(self):
        anonymous = self.client.get(reverse("proposals:proposal_list"))
        self.assertEqual(anonymous.status_code, 302)
        self.assertIn(reverse("users:login"), anonymous.url)

        self.login_as(self.member)
        forbidden = self.client.get(reverse("proposals:proposal_list"))
        self.assertEqual(forbidden.status_code, 403)

        self.assertEqual(self.client.get(reverse("users:profile")).status_code, 200)

    def test_account_without_company_is_refused(self):
        orphan = User.objects.create_user(username="orfao", password="pass1234", role=RoleCode.ADMIN)
        self.login_as(orphan)
        response = self.client.get(reverse("proposals:proposal_list"))
        self.assertEqual(response.status_code, 403)
        self.assertContains(response, "não está vinculada", status_code=403)

    def test_public_routes_skip_permission_check(self):
        self.login_as(self.member)
        self.assertEqual(self.client.get(reverse("users:login")).status_code, 302)
        self.assertEqual(self.client.get("/proposta/00000000-0000-0000-0000-000000000000/").status_code, 404)

    def test_contact_privilege_follows_role(self):
        moderator = self.make_member(self.admin.company, role=RoleCode.MODERATOR)
        superuser = self.make_user(role=RoleCode.USER, is_superuser=True)

        self.assertTrue(can_view_contacts(self.admin))
        self.assertTrue(can_view_contacts(moderator))
        self.assertTrue(can_view_contacts(superuser))
        self.assertFalse(can_view_contacts(self.member))
        self.assertTrue(is_company_admin(self.admin))
        self.assertFalse(is_company_admin(moderator))


class RegistrationTests(BaseAppTestCase):
    def _payload(self, **overrides):
        data = {
            "first_name": "Maria",
            "last_name": "Souza",
            "email": "Maria@Escritorio.com.br",
            "phone": "(11) 99999-0000",
            "company_name": "Souza Advogados",
            "cnpj": "12.345.678/0001-90",
            "password1": "segredo123",
            "password2": "segredo123",
        }
        data.update(overrides)
        return data

    def test_register_creates_company_and_admin(self):
        response = self.client.post(reverse("users:register"), self._payload())
        self.assertEqual(response.status_code, 302)

        user = User.objects.get(email="maria@escritorio.com.br")
        self.assertEqual(user.role, RoleCode.ADMIN)
        self.assertTrue(user.has_role(RoleCode.ADMIN))
        self.assertEqual(user.company.name, "Souza Advogados")
        self.assertEqual(user.company.cnpj, "12345678000190")
        self.assertEqual(user.phone, "11999990000")

    def test_register_rejects_mismatched_passwords(self):
        response = self.client.post(reverse("users:register"), self._payload(password2="outra1234"))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Company.objects.filter(name="Souza Advogados").exists())

    def test_register_rejects_short_cnpj(self):
        response = self.client.post(reverse("users:register"), self._payload(cnpj="123"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "14 dígitos")

    def test_register_is_atomic(self):
        data = {
            "first_name": "Maria",
            "last_name": "Souza",
            "email": "maria@escritorio.com.br",
            "company_name": "Escritório Órfão",
            "password1": "segredo123",
        }
        with patch.object(User.objects, "create_user", side_effect=IntegrityError("falha")):
            with self.assertRaises(IntegrityError):
                register_company_admin(data)
        self.assertFalse(Company.objects.filter(name="Escritório Órfão").exists())


class TeamInvitationTests(BaseAppTestCase):
    def setUp(self):
        self.admin = self.login_as(self.make_user(role=RoleCode.ADMIN))
        self.company = self.admin.company
        self.grant_permissions(
            RoleCode.ADMIN,
            ["users:team_list", "users:team_invite", "users:user_role_update", "users:user_toggle_active"],
        )

    def _invite(self, email="novo@example.com", role=RoleCode.USER):
        return self.client.post(reverse("users:team_invite"), {
            "email": email,
            "first_name": "Novo",
            "last_name": "Membro",
            "whatsapp_number": "(11) 97777-6666",
            "role": role,
        })

    def test_invite_creates_invitation_and_sends_email(self):
        response = self._invite()
        self.assertRedirects(response, reverse("users:team_list"), fetch_redirect_response=False)

        invitation = TeamInvitation.objects.get(email="novo@example.com")
        self.assertEqual(invitation.company, self.company)
        self.assertEqual(invitation.status, TeamInvitation.Status.PENDING)
        self.assertEqual(invitation.whatsapp_number, "11977776666")
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["novo@example.com"])
        self.assertIn(invitation.token, mail.outbox[0].body)

    def test_invite_rejects_duplicate_pending_invitation(self):
        self._invite()
        response = self._invite()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(TeamInvitation.objects.filter(email="novo@example.com").count(), 1)

    def test_invite_rejects_existing_user_email(self):
        response = self._invite(email=self.admin.email)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(TeamInvitation.objects.exists())

    @patch("users.views.send_invitation_email", side_effect=OSError("smtp fora do ar"))
    def test_invite_keeps_invitation_when_email_fails(self, _mock_send):
        response = self._invite()
        self.assertEqual(response.status_code, 302)
        self.assertTrue(TeamInvitation.objects.filter(email="novo@example.com").exists())

    def test_moderator_cannot_open_team_pages(self):
        moderator = self.make_member(self.company, role=RoleCode.MODERATOR)
        self.grant_permissions(RoleCode.MODERATOR, ["users:team_list"])
        self.login_as(moderator)
        self.assertEqual(self.client.get(reverse("users:team_list")).status_code, 403)

    def test_accept_invitation_creates_member_in_company(self):
        self._invite(role=RoleCode.MODERATOR)
        invitation = TeamInvitation.objects.get(email="novo@example.com")
        self.client.logout()

        response = self.client.post(
            reverse("users:invitation_accept", args=[invitation.token]),
            {"password1": "segredo123", "password2": "segredo123"},
        )
        self.assertEqual(response.status_code, 302)

        user = User.objects.get(email="novo@example.com")
        self.assertEqual(user.company, self.company)
        self.assertEqual(user.role, RoleCode.MODERATOR)
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, TeamInvitation.Status.ACCEPTED)

    def test_expired_invitation_is_refused(self):
        invitation = TeamInvitation.objects.create(
            company=self.company,
            email="atrasado@example.com",
            first_name="Atrasado",
            last_name="Silva",
            expires_at=timezone.now() - timedelta(days=1),
        )
        self.client.logout()
        response = self.client.get(reverse("users:invitation_accept", args=[invitation.token]))
        self.assertEqual(response.status_code, 410)

        with self.assertRaises(InvitationError):
            accept_invitation(invitation.token, "segredo123")
        self.assertFalse(User.objects.filter(email="atrasado@example.com").exists())

    def test_team_list_marks_stale_invitations_as_expired(self):
        invitation = TeamInvitation.objects.create(
            company=self.company,
            email="velho@example.com",
            first_name="Velho",
            last_name="Convite",
            expires_at=timezone.now() - timedelta(hours=1),
        )
        self.assertEqual(self.client.get(reverse("users:team_list")).status_code, 200)
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, TeamInvitation.Status.EXPIRED)

    def test_role_update_records_audit(self):
        member = self.make_member(self.company)
        response = self.client.post(
            reverse("users:user_role_update", args=[member.pk]),
            {f"m{member.pk}-role": RoleCode.MODERATOR},
        )
        self.assertEqual(response.status_code, 302)
        member.refresh_from_db()
        self.assertEqual(member.role, RoleCode.MODERATOR)
        self.assertTrue(
            AuditLog.objects.filter(user=self.admin, action_type=AuditLog.ActionType.ROLE_UPDATE).exists()
        )

    def test_role_update_is_scoped_to_company(self):
        outsider = self.make_user(role=RoleCode.USER)
        response = self.client.post(
            reverse("users:user_role_update", args=[outsider.pk]),
            {f"m{outsider.pk}-role": RoleCode.ADMIN},
        )
        self.assertEqual(response.status_code, 404)

    def test_toggle_active_deactivates_member(self):
        member = self.make_member(self.company)
        self.client.post(reverse("users:user_toggle_active", args=[member.pk]))
        member.refresh_from_db()
        self.assertFalse(member.is_active)


class CompanyAndProfileTests(BaseAppTestCase):
    def setUp(self):
        self.admin = self.login_as(self.make_user(role=RoleCode.ADMIN, username="admin"))
        self.grant_permissions(RoleCode.ADMIN, ["users:company_settings", "users:profile", "users:preferences"])

    def test_company_settings_update_writes_audit(self):
        response = self.client.post(reverse("users:company_settings"), {
            "name": "Novo Nome Advocacia",
            "cnpj": "98.765.432/0001-10",
            "responsible_phone": "(21) 3333-4444",
            "responsible_email": "contato@novonome.com.br",
            "address_state": "rj",
        })
        self.assertEqual(response.status_code, 302)

        company = Company.objects.get(pk=self.admin.company_id)
        self.assertEqual(company.name, "Novo Nome Advocacia")
        self.assertEqual(company.cnpj, "98765432000110")
        self.assertEqual(company.address_state, "RJ")
        audit = AuditLog.objects.get(action_type=AuditLog.ActionType.COMPANY_UPDATE)
        self.assertEqual(audit.company, company)
        self.assertEqual(audit.new_data["name"], "Novo Nome Advocacia")

    def test_company_settings_requires_admin(self):
        moderator = self.make_member(self.admin.company, role=RoleCode.MODERATOR)
        self.grant_permissions(RoleCode.MODERATOR, ["users:company_settings"])
        self.login_as(moderator)
        self.assertEqual(self.client.get(reverse("users:company_settings")).status_code, 403)

    def test_profile_update_writes_audit(self):
        response = self.client.post(reverse("users:profile"), {
            "action": "update_profile",
            "first_name": "Ana",
            "last_name": "Lima",
            "email": "ana@example.com",
            "phone": "11 98888-7777",
        })
        self.assertEqual(response.status_code, 302)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.first_name, "Ana")
        self.assertEqual(self.admin.phone, "11988887777")
        self.assertTrue(AuditLog.objects.filter(action_type=AuditLog.ActionType.PROFILE_UPDATE).exists())

    def test_change_password_checks_current_password(self):
        response = self.client.post(reverse("users:profile"), {
            "action": "change_password",
            "current_password": "errada",
            "new_password1": "novasenha123",
            "new_password2": "novasenha123",
        })
        self.assertEqual(response.status_code, 200)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.check_password("pass1234"))

    def test_preferences_view_saves_values(self):
        response = self.client.post(reverse("users:preferences"), {
            "email_notifications": "on",
            "theme": "dark",
        })
        self.assertEqual(response.status_code, 302)
        prefs = UserPreferences.for_user(self.admin)
        self.assertEqual(prefs.get("theme"), "dark")
        self.assertTrue(prefs.get("email_notifications"))
        self.assertFalse(prefs.get("proposal_updates"))


class UserPreferencesTests(BaseAppTestCase):
    def setUp(self):
        self.user = Factory.user()

    def test_defaults_are_merged(self):
        prefs = UserPreferences.for_user(self.user)
        self.assertEqual(prefs.as_dict(), UserPreferences.DEFAULTS)

    def test_unknown_key_is_refused(self):
        prefs = UserPreferences.for_user(self.user)
        with self.assertRaises(KeyError):
            prefs.update(sms_notifications=True)

    def test_invalid_theme_is_refused(self):
        prefs = UserPreferences.for_user(self.user)
        with self.assertRaises(ValueError):
            prefs.update(theme="neon")

    def test_old_version_is_migrated(self):
        prefs = UserPreferences.objects.create(
            user=self.user,
            version=0,
            data={"theme": "dark", "legado": 1},
        )
        prefs = UserPreferences.for_user(self.user)
        self.assertEqual(prefs.version, UserPreferences.CURRENT_VERSION)
        self.assertEqual(prefs.data, {"theme": "dark"})


class SeedRolePermissionsTests(BaseAppTestCase):
    def test_seed_builds_role_matrix(self):
        call_command("seed_role_permissions", stdout=StringIO())

        def keys(role):
            return set(RolePermission.objects.filter(role_code=role).values_list("permission_key", flat=True))

        admin_keys = keys(RoleCode.ADMIN)
        moderator_keys = keys(RoleCode.MODERATOR)
        user_keys = keys(RoleCode.USER)

        self.assertIn("users:team_invite", admin_keys)
        self.assertNotIn("users:team_invite", moderator_keys)
        self.assertIn("proposals:proposal_document", moderator_keys)
        self.assertNotIn("proposals:proposal_document", user_keys)
        self.assertIn("proposals:proposal_create", user_keys)
        self.assertFalse(any(key.startswith("portal:") for key in admin_keys))
        self.assertNotIn("users:login", admin_keys)

    def test_seed_is_idempotent(self):
        call_command("seed_role_permissions", stdout=StringIO())
        total = RolePermission.objects.count()
        call_command("seed_role_permissions", stdout=StringIO())
        self.assertEqual(RolePermission.objects.count(), total)
