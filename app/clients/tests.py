from django.urls import reverse

from clients.models import Client
from clients.views import search_clients
from users.models import RoleCode
from tests.base import BaseAppTestCase
from tests.factories import Factory


class ClientCrmTests(BaseAppTestCase):
    def setUp(self):
        self.user = self.login_as(self.make_user(role=RoleCode.USER))
        self.company = self.user.company
        self.grant_permissions(
            RoleCode.USER,
            ["clients:client_list", "clients:client_create", "clients:client_delete"],
        )

    def test_create_client_normalizes_fields(self):
        response = self.client.post(reverse("clients:client_create"), {
            "first_name": "  João ",
            "last_name": "da   Silva",
            "email": "Joao@Email.com",
            "whatsapp": "(11) 91234-5678",
        })
        self.assertRedirects(response, reverse("clients:client_list"), fetch_redirect_response=False)

        client = Client.objects.get(company=self.company)
        self.assertEqual(client.full_name, "João da Silva")
        self.assertEqual(client.email, "joao@email.com")
        self.assertEqual(client.whatsapp, "11912345678")

    def test_create_client_requires_whatsapp_digits(self):
        response = self.client.post(reverse("clients:client_create"), {
            "first_name": "João",
            "last_name": "Silva",
            "email": "joao@email.com",
            "whatsapp": "sem número",
        })
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Client.objects.exists())

    def test_list_is_scoped_to_company_and_counts(self):
        Factory.client(company=self.company, first_name="Ana")
        Factory.client(company=self.company, first_name="Bruno")
        Factory.client(company=Factory.company(), first_name="Intrusa")

        response = self.client.get(reverse("clients:client_list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["total_count"], 2)
        self.assertEqual(response.context["month_count"], 2)
        names = [row["client"].first_name for row in response.context["rows"]]
        self.assertCountEqual(names, ["Ana", "Bruno"])
        self.assertTrue(response.context["rows"][0]["whatsapp_url"].startswith("https://wa.me/"))

    def test_htmx_search_returns_table_partial(self):
        Factory.client(company=self.company, first_name="Ana", email="ana@example.com")
        Factory.client(company=self.company, first_name="Bruno", email="bruno@example.com")

        response = self.client.get(
            reverse("clients:client_list"),
            {"q": "BRUNO"},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "clients/_client_table.html")
        self.assertTemplateNotUsed(response, "clients/client_list.html")
        self.assertEqual(len(response.context["rows"]), 1)

    def test_search_matches_any_field(self):
        Factory.client(company=self.company, first_name="Carla", last_name="Mendes", whatsapp="21988887777")
        queryset = Client.objects.filter(company=self.company)
        self.assertEqual(search_clients(queryset, "mend").count(), 1)
        self.assertEqual(search_clients(queryset, "88887").count(), 1)
        self.assertEqual(search_clients(queryset, "   ").count(), 1)
        self.assertEqual(search_clients(queryset, "zzz").count(), 0)

    def test_delete_only_within_company(self):
        own = Factory.client(company=self.company)
        foreign = Factory.client(company=Factory.company())

        self.assertEqual(self.client.post(reverse("clients:client_delete", args=[foreign.pk])).status_code, 404)
        self.assertEqual(self.client.post(reverse("clients:client_delete", args=[own.pk])).status_code, 302)
        self.assertFalse(Client.objects.filter(pk=own.pk).exists())
        self.assertTrue(Client.objects.filter(pk=foreign.pk).exists())

    def test_delete_rejects_get(self):
        own = Factory.client(company=self.company)
        self.assertEqual(self.client.get(reverse("clients:client_delete", args=[own.pk])).status_code, 405)
