import re


def normalize_document_number(value: str) -> str:
    """Keep only digits for CNPJ/CPF identifiers."""
    return re.sub(r"\D", "", (value or "").strip())


def normalize_person_name(value: str) -> str:
    """
    Collapse repeated spaces and trim.
    Accents are kept: names are shown back to the client as typed.
    """
    return re.sub(r"\s+", " ", (value or "").strip())


def normalize_phone(value: str) -> str:
    """Keep only digits."""
    return re.sub(r"\D", "", (value or "").strip())


def split_full_name(value: str) -> tuple:
    """'Maria da Silva' -> ('Maria', 'da Silva')."""
    name = normalize_person_name(value)
    first, _, last = name.partition(" ")
    return first, last
