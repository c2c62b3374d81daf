from django import forms

from core.normalization import normalize_person_name, normalize_phone

from .models import Client


class ClientForm(forms.ModelForm):
    class Meta:
        model = Client
        fields = ["first_name", "last_name", "email", "whatsapp"]
        widgets = {
            "first_name": forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "ex. João"}),
            "last_name": forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "ex. Pereira"}),
            "email": forms.EmailInput(attrs={"class": "input input-bordered w-full", "placeholder": "joao@email.com"}),
            "whatsapp": forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "(11) 99999-9999"}),
        }

    def clean_first_name(self):
        return normalize_person_name(self.cleaned_data.get("first_name"))

    def clean_last_name(self):
        return normalize_person_name(self.cleaned_data.get("last_name"))

    def clean_email(self):
        return (self.cleaned_data.get("email") or "").strip().lower()

    def clean_whatsapp(self):
        whatsapp = normalize_phone(self.cleaned_data.get("whatsapp"))
        if not whatsapp:
            raise forms.ValidationError("Informe um WhatsApp válido.")
        return whatsapp
