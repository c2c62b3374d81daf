import re
from decimal import Decimal

from django import forms

from clients.models import Client
from core.currency import format_currency, parse_currency
from core.normalization import normalize_person_name, normalize_phone
from users.models import User

from .models import ReceiverType

MAX_AMOUNT = Decimal("1000000000000")

NEW_CLIENT_FIELDS = {
    "client_name": "Informe o nome do cliente.",
    "client_email": "Informe o email do cliente.",
    "client_phone": "Informe o telefone do cliente.",
}


class CurrencyMaskField(forms.CharField):
    """
    Campo monetário com máscara de centavos: cada dígito digitado entra pela
    direita ("10000" -> R$ 100,00). Aceita tanto os dígitos crus quanto o texto
    já formatado e devolve Decimal.
    """

    def to_python(self, value):
        value = super().to_python(value)
        if not re.search(r"\d", value or ""):
            return None
        return parse_currency(format_currency(value))

    def validate(self, value):
        super().validate(value)
        # DecimalField(max_digits=14, decimal_places=2)
        if value is not None and value >= MAX_AMOUNT:
            raise forms.ValidationError("Valor acima do limite permitido.")


class ProposalForm(forms.Form):
    client = forms.ModelChoiceField(
        label="Cliente cadastrado",
        queryset=Client.objects.none(),
        required=False,
        empty_label="Novo cliente",
        widget=forms.Select(attrs={"class": "select select-bordered w-full"}),
    )
    client_name = forms.CharField(
        label="Nome do cliente",
        max_length=200,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "Nome completo"}),
    )
    client_email = forms.EmailField(
        label="Email do cliente",
        required=False,
        widget=forms.EmailInput(attrs={"class": "input input-bordered w-full", "placeholder": "cliente@email.com"}),
    )
    client_phone = forms.CharField(
        label="Telefone do cliente",
        max_length=20,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "(11) 99999-9999"}),
    )
    cedible_value = CurrencyMaskField(
        label="Valor cedível",
        error_messages={"required": "Informe o valor cedível."},
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "R$ 0,00", "inputmode": "numeric", "data-currency-mask": "1"}),
    )
    proposal_value = CurrencyMaskField(
        label="Valor da proposta",
        error_messages={"required": "Informe o valor da proposta."},
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "R$ 0,00", "inputmode": "numeric", "data-currency-mask": "1"}),
    )
    receiver_type = forms.ChoiceField(
        label="Tipo de recebedor",
        choices=ReceiverType.choices,
        initial=ReceiverType.AUTOR,
        widget=forms.Select(attrs={"class": "select select-bordered w-full"}),
    )
    process_number = forms.CharField(
        label="Número do processo",
        max_length=100,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "0000000-00.0000.0.00.0000"}),
    )
    organization_name = forms.CharField(
        label="Órgão",
        max_length=200,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "ex. INSS"}),
    )
    description = forms.CharField(
        label="Descrição",
        required=False,
        widget=forms.Textarea(attrs={"class": "textarea textarea-bordered w-full", "rows": 4}),
    )

    def __init__(self, *args, company=None, **kwargs):
        super().__init__(*args, **kwargs)
        if company is not None:
            self.fields["client"].queryset = Client.objects.filter(company=company).order_by("first_name", "last_name")

    def clean_client_name(self):
        return normalize_person_name(self.cleaned_data.get("client_name"))

    def clean_client_email(self):
        return (self.cleaned_data.get("client_email") or "").strip().lower()

    def clean_client_phone(self):
        return normalize_phone(self.cleaned_data.get("client_phone"))

    def clean(self):
        cleaned = super().clean()
        client = cleaned.get("client")
        if client is not None:
            # o subformulário de cliente novo é ignorado
            for name in NEW_CLIENT_FIELDS:
                self.errors.pop(name, None)
            cleaned["client_name"] = client.full_name
            cleaned["client_email"] = client.email
            cleaned["client_phone"] = client.whatsapp
            return cleaned

        # Sem cliente cadastrado o subformulário precisa estar completo
        for name, message in NEW_CLIENT_FIELDS.items():
            if name not in self.errors and not cleaned.get(name):
                self.add_error(name, message)
        return cleaned


class ReassignForm(forms.Form):
    owner = forms.ModelChoiceField(
        label="Responsável",
        queryset=User.objects.none(),
        widget=forms.Select(attrs={"class": "select select-bordered w-full"}),
    )

    def __init__(self, *args, company=None, **kwargs):
        super().__init__(*args, **kwargs)
        if company is not None:
            self.fields["owner"].queryset = company.members.filter(is_active=True).order_by("first_name", "username")
