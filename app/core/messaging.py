"""Links de mensagem (mailto e WhatsApp) montados a partir de texto puro."""
from urllib.parse import quote, urlencode

from .normalization import normalize_phone

WHATSAPP_BASE_URL = "https://wa.me/"


def build_mailto(to: str, subject: str = "", body: str = "") -> str:
    params = {}
    if subject:
        params["subject"] = subject
    if body:
        params["body"] = body
    query = urlencode(params, quote_via=quote)
    return f"mailto:{to}" + (f"?{query}" if query else "")


def build_whatsapp_link(text: str = "", phone: str = "") -> str:
    """https://wa.me/<dígitos>?text=... ; sem telefone o usuário escolhe o contato."""
    url = WHATSAPP_BASE_URL + normalize_phone(phone)
    if text:
        url += "?" + urlencode({"text": text}, quote_via=quote)
    return url
