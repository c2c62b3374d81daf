from django import forms

from core.normalization import normalize_document_number, normalize_phone

from .models import Company, RoleCode, TeamInvitation, User


class LoginForm(forms.Form):
    identifier = forms.CharField(
        label="Usuário ou email",
        widget=forms.TextInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "seu_usuario ou email@escritorio.com.br",
            "autocomplete": "username",
        }),
    )
    password = forms.CharField(
        label="Senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Sua senha",
            "autocomplete": "current-password",
        }),
    )


class PasswordPairMixin:
    """Valida password1/password2 (iguais e com no mínimo 8 caracteres)."""

    def _clean_password_pair(self, cleaned):
        password1 = cleaned.get("password1")
        password2 = cleaned.get("password2")
        if password1 and password2 and password1 != password2:
            self.add_error("password2", "As senhas não coincidem.")
        if password1 and len(password1) < 8:
            self.add_error("password1", "A senha deve ter pelo menos 8 caracteres.")
        return cleaned


class RegisterForm(PasswordPairMixin, forms.Form):
    """Cadastro público: cria a empresa e o primeiro usuário (admin)."""
    first_name = forms.CharField(
        label="Nome",
        max_length=150,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "ex. Maria"}),
    )
    last_name = forms.CharField(
        label="Sobrenome",
        max_length=150,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "ex. Souza"}),
    )
    email = forms.EmailField(
        label="Email",
        widget=forms.EmailInput(attrs={"class": "input input-bordered w-full", "placeholder": "maria@escritorio.com.br"}),
    )
    phone = forms.CharField(
        label="WhatsApp",
        max_length=20,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "(11) 99999-9999"}),
    )
    company_name = forms.CharField(
        label="Nome do escritório",
        max_length=200,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full"}),
    )
    cnpj = forms.CharField(
        label="CNPJ",
        max_length=18,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "00.000.000/0000-00"}),
    )
    password1 = forms.CharField(
        label="Senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Mínimo 8 caracteres",
            "autocomplete": "new-password",
        }),
    )
    password2 = forms.CharField(
        label="Confirmar senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Repita a senha",
            "autocomplete": "new-password",
        }),
    )

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("Já existe um usuário com este email.")
        return email

    def clean_cnpj(self):
        cnpj = normalize_document_number(self.cleaned_data.get("cnpj"))
        if cnpj and len(cnpj) != 14:
            raise forms.ValidationError("O CNPJ deve ter 14 dígitos.")
        return cnpj

    def clean_phone(self):
        return normalize_phone(self.cleaned_data.get("phone"))

    def clean(self):
        return self._clean_password_pair(super().clean())


class ProfileForm(forms.ModelForm):
    """Formulário para o usuário editar o próprio perfil."""

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "phone"]
        widgets = {
            "first_name": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "last_name": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "email": forms.EmailInput(attrs={"class": "input input-bordered w-full"}),
            "phone": forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "(11) 99999-9999"}),
        }

    def clean_email(self):
        email = (self.cleaned_data.get("email") or "").strip().lower()
        if email and User.objects.filter(email__iexact=email).exclude(pk=self.instance.pk).exists():
            raise forms.ValidationError("Já existe um usuário com este email.")
        return email

    def clean_phone(self):
        return normalize_phone(self.cleaned_data.get("phone"))


class ChangePasswordForm(forms.Form):
    """Troca de senha a partir do perfil."""
    current_password = forms.CharField(
        label="Senha atual",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "autocomplete": "current-password",
        }),
    )
    new_password1 = forms.CharField(
        label="Nova senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Mínimo 8 caracteres",
            "autocomplete": "new-password",
        }),
    )
    new_password2 = forms.CharField(
        label="Confirmar nova senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "autocomplete": "new-password",
        }),
    )

    def __init__(self, user, *args, **kwargs):
        self.user = user
        super().__init__(*args, **kwargs)

    def clean_current_password(self):
        current = self.cleaned_data.get("current_password")
        if not self.user.check_password(current):
            raise forms.ValidationError("A senha atual está incorreta.")
        return current

    def clean(self):
        cleaned = super().clean()
        p1 = cleaned.get("new_password1")
        p2 = cleaned.get("new_password2")
        if p1 and p2 and p1 != p2:
            self.add_error("new_password2", "As senhas não coincidem.")
        if p1 and len(p1) < 8:
            self.add_error("new_password1", "A senha deve ter pelo menos 8 caracteres.")
        return cleaned


class CompanyForm(forms.ModelForm):
    # aceita o CNPJ com máscara; normalizado em clean_cnpj
    cnpj = forms.CharField(
        label="CNPJ",
        max_length=18,
        required=False,
        widget=forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "00.000.000/0000-00"}),
    )

    class Meta:
        model = Company
        fields = [
            "name",
            "cnpj",
            "responsible_phone",
            "responsible_email",
            "address_street",
            "address_number",
            "address_complement",
            "address_neighborhood",
            "address_city",
            "address_state",
            "address_zip_code",
        ]
        widgets = {
            "name": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "responsible_phone": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "responsible_email": forms.EmailInput(attrs={"class": "input input-bordered w-full"}),
            "address_street": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "address_number": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "address_complement": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "address_neighborhood": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "address_city": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "address_state": forms.TextInput(attrs={"class": "input input-bordered w-full", "maxlength": 2}),
            "address_zip_code": forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "00000-000"}),
        }

    def clean_cnpj(self):
        cnpj = normalize_document_number(self.cleaned_data.get("cnpj"))
        if cnpj and len(cnpj) != 14:
            raise forms.ValidationError("O CNPJ deve ter 14 dígitos.")
        return cnpj

    def clean_responsible_phone(self):
        return normalize_phone(self.cleaned_data.get("responsible_phone"))

    def clean_address_state(self):
        return (self.cleaned_data.get("address_state") or "").strip().upper()


class TeamInvitationForm(forms.ModelForm):
    class Meta:
        model = TeamInvitation
        fields = ["email", "first_name", "last_name", "whatsapp_number", "role"]
        widgets = {
            "email": forms.EmailInput(attrs={"class": "input input-bordered w-full"}),
            "first_name": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "last_name": forms.TextInput(attrs={"class": "input input-bordered w-full"}),
            "whatsapp_number": forms.TextInput(attrs={"class": "input input-bordered w-full", "placeholder": "(11) 99999-9999"}),
            "role": forms.Select(attrs={"class": "select select-bordered w-full"}),
        }

    def __init__(self, company, *args, **kwargs):
        self.company = company
        super().__init__(*args, **kwargs)

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("Já existe um usuário com este email.")
        pending = TeamInvitation.objects.filter(
            company=self.company,
            email__iexact=email,
            status=TeamInvitation.Status.PENDING,
        )
        if any(not invitation.is_expired for invitation in pending):
            raise forms.ValidationError("Já existe um convite pendente para este email.")
        return email

    def clean_whatsapp_number(self):
        return normalize_phone(self.cleaned_data.get("whatsapp_number"))


class InvitationAcceptForm(PasswordPairMixin, forms.Form):
    password1 = forms.CharField(
        label="Senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Mínimo 8 caracteres",
            "autocomplete": "new-password",
        }),
    )
    password2 = forms.CharField(
        label="Confirmar senha",
        widget=forms.PasswordInput(attrs={
            "class": "input input-bordered w-full",
            "placeholder": "Repita a senha",
            "autocomplete": "new-password",
        }),
    )

    def clean(self):
        return self._clean_password_pair(super().clean())


class RoleUpdateForm(forms.Form):
    role = forms.ChoiceField(
        choices=RoleCode.choices,
        widget=forms.Select(attrs={"class": "select select-bordered select-sm"}),
    )


class PreferencesForm(forms.Form):
    email_notifications = forms.BooleanField(
        label="Notificações por email",
        required=False,
        widget=forms.CheckboxInput(attrs={"class": "toggle"}),
    )
    whatsapp_notifications = forms.BooleanField(
        label="Notificações por WhatsApp",
        required=False,
        widget=forms.CheckboxInput(attrs={"class": "toggle"}),
    )
    proposal_updates = forms.BooleanField(
        label="Avisar quando uma proposta for respondida",
        required=False,
        widget=forms.CheckboxInput(attrs={"class": "toggle"}),
    )
    theme = forms.ChoiceField(
        label="Tema",
        choices=[("light", "Claro"), ("dark", "Escuro"), ("system", "Sistema")],
        widget=forms.Select(attrs={"class": "select select-bordered w-full"}),
    )
