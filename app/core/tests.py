from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

from django.test import SimpleTestCase

from core.currency import format_amount, format_currency, parse_currency, to_cents
from core.messaging import build_mailto, build_whatsapp_link
from core.normalization import (
    normalize_document_number,
    normalize_person_name,
    normalize_phone,
    split_full_name,
)


class CurrencyTests(SimpleTestCase):
    def test_digits_are_read_as_cents(self):
        self.assertEqual(parse_currency(format_currency("10000")), Decimal("100.00"))
        self.assertEqual(parse_currency(format_currency("123456")), Decimal("1234.56"))
        self.assertEqual(parse_currency(format_currency("5")), Decimal("0.05"))

    def test_format_uses_brazilian_separators(self):
        formatted = format_currency("123456")
        self.assertTrue(formatted.startswith("R$"))
        self.assertIn("1.234,56", formatted)

    def test_format_ignores_non_digit_characters(self):
        self.assertEqual(format_currency("R$ 1.234,56"), format_currency("123456"))
        self.assertEqual(format_currency("abc"), format_currency(""))

    def test_empty_input_formats_as_zero(self):
        self.assertIn("0,00", format_currency(""))
        self.assertIn("0,00", format_currency(None))

    def test_parse_display_text(self):
        self.assertEqual(parse_currency("R$ 1.234,56"), Decimal("1234.56"))
        self.assertEqual(parse_currency("1.234"), Decimal("1234.00"))
        self.assertEqual(parse_currency("12,5"), Decimal("12.50"))

    def test_parse_without_digits_is_zero(self):
        self.assertEqual(parse_currency(""), Decimal("0.00"))
        self.assertEqual(parse_currency("R$"), Decimal("0.00"))

    def test_round_trip_keeps_value(self):
        for raw in ("1", "99", "100", "250075", "999999999999"):
            amount = parse_currency(format_currency(raw))
            self.assertEqual(to_cents(amount), int(raw))

    def test_format_amount_rounds_half_up(self):
        self.assertIn("10,01", format_amount(Decimal("10.005")))
        self.assertIn("0,00", format_amount("invalido"))


class MessagingTests(SimpleTestCase):
    def test_mailto_encodes_subject_and_body(self):
        url = build_mailto("ana@example.com", "Proposta - Processo 1", "Olá Ana,\nsegue.")
        parts = urlsplit(url)
        self.assertEqual(parts.scheme, "mailto")
        self.assertEqual(parts.path, "ana@example.com")
        query = parse_qs(parts.query)
        self.assertEqual(query["subject"], ["Proposta - Processo 1"])
        self.assertEqual(query["body"], ["Olá Ana,\nsegue."])
        self.assertNotIn("+", parts.query)

    def test_mailto_without_params(self):
        self.assertEqual(build_mailto("ana@example.com"), "mailto:ana@example.com")

    def test_whatsapp_link_with_phone(self):
        url = build_whatsapp_link("Olá & bem-vindo", phone="(11) 99999-0000")
        self.assertTrue(url.startswith("https://wa.me/11999990000?text="))
        self.assertEqual(parse_qs(urlsplit(url).query)["text"], ["Olá & bem-vindo"])

    def test_whatsapp_link_without_phone(self):
        self.assertEqual(build_whatsapp_link(""), "https://wa.me/")
        self.assertTrue(build_whatsapp_link("oi").startswith("https://wa.me/?text="))


class NormalizationTests(SimpleTestCase):
    def test_document_number_keeps_digits(self):
        self.assertEqual(normalize_document_number("12.345.678/0001-90"), "12345678000190")

    def test_person_name_collapses_spaces(self):
        self.assertEqual(normalize_person_name("  José   da  Silva "), "José da Silva")

    def test_phone_keeps_digits(self):
        self.assertEqual(normalize_phone("+55 (11) 98888-7777"), "5511988887777")
        self.assertEqual(normalize_phone(None), "")

    def test_split_full_name(self):
        self.assertEqual(split_full_name("Maria  da Silva"), ("Maria", "da Silva"))
        self.assertEqual(split_full_name("Maria"), ("Maria", ""))
