from datetime import timedelta
from decimal import Decimal
from itertools import count

from django.utils import timezone

from clients.models import Client
from proposals.models import ClientContact, Proposal
from users.models import Company, RoleCode, User


class Factory:
    _seq = count(1)

    @classmethod
    def _n(cls):
        return next(cls._seq)

    @classmethod
    def company(cls, **kwargs):
        n = cls._n()
        defaults = {
            "name": f"Escritório {n}",
            "cnpj": f"{n:014d}",
            "responsible_email": f"responsavel{n}@example.com",
        }
        defaults.update(kwargs)
        return Company.objects.create(**defaults)

    @classmethod
    def user(cls, *, role=RoleCode.ADMIN, password="pass1234", company=None, **kwargs):
        n = cls._n()
        if company is None:
            company = cls.company()
        defaults = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "first_name": "Usuário",
            "last_name": f"{n}",
            "is_active": True,
            "role": role,
            "company": company,
        }
        defaults.update(kwargs)
        return User.objects.create_user(password=password, **defaults)

    @classmethod
    def client(cls, *, company, **kwargs):
        n = cls._n()
        defaults = {
            "company": company,
            "first_name": "Cliente",
            "last_name": f"Número {n}",
            "email": f"cliente{n}@example.com",
            "whatsapp": "11999990000",
        }
        defaults.update(kwargs)
        return Client.objects.create(**defaults)

    @classmethod
    def proposal(
        cls,
        *,
        company,
        owner=None,
        email=None,
        phone="11988887777",
        cedible_value="10000.00",
        proposal_value="8000.00",
        **kwargs,
    ):
        n = cls._n()
        now = timezone.now()
        defaults = {
            "company": company,
            "owner": owner,
            "assignee": owner.display_name if owner else "",
            "client_name": f"Cliente {n}",
            "process_number": f"0000{n}-12.2024.8.26.0100",
            "organization_name": "TJSP",
            "cedible_value": Decimal(str(cedible_value)),
            "proposal_value": Decimal(str(proposal_value)),
            "created_at": now,
            "updated_at": now,
            "valid_until": now + timedelta(days=30),
        }
        defaults.update(kwargs)
        proposal = Proposal.objects.create(**defaults)
        ClientContact.objects.create(
            proposal=proposal,
            email=email if email is not None else f"contato{n}@example.com",
            phone=phone,
        )
        return proposal
