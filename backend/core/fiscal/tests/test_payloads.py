from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from fiscal.exceptions import FiscalValidationError
from fiscal.models import DocumentKind, FiscalConfig, FiscalDocument, FiscalDocumentItem
from fiscal.payloads import (
    build_nfe_payload,
    build_nfse_payload,
    only_digits,
    validate_nfe,
    validate_nfse,
)

ISSUED_AT = datetime(2026, 3, 10, 12, 0, tzinfo=dt_timezone.utc)


def _config(**overrides):
    data = {
        "cnpj": "12.345.678/0001-90",
        "municipal_registration": "123456",
        "municipality_code": "3550308",
        "uf": "SP",
        "nfe_enabled": True,
        "nfse_enabled": True,
        "nfse_iss_rate": Decimal("2.00"),
        "nfse_service_code": "01.07",
    }
    data.update(overrides)
    return FiscalConfig(**data)


def _document(kind=DocumentKind.NFE, **overrides):
    data = {
        "kind": kind,
        "recipient_name": "Maria da Silva",
        "recipient_tax_id": "123.456.789-09",
        "recipient_person_type": FiscalDocument.PersonType.INDIVIDUAL,
        "recipient_street": "Rua A",
        "recipient_municipality": "Sao Paulo",
        "recipient_uf": "SP",
        "recipient_postal_code": "01001-000",
        "total_amount": Decimal("30.00"),
    }
    data.update(overrides)
    return FiscalDocument(**data)


def _item(sequence, **overrides):
    data = {
        "sequence": sequence,
        "description": f"Item {sequence}",
        "quantity": Decimal("1"),
        "unit_price": Decimal("10.00"),
        "total": Decimal("10.00"),
    }
    data.update(overrides)
    return FiscalDocumentItem(**data)


class ValidateNfeTests(SimpleTestCase):
    def test_requires_draft(self):
        document = _document(status=FiscalDocument.Status.AUTHORIZED)
        with self.assertRaisesMessage(FiscalValidationError, "authorized"):
            validate_nfe(document, [_item(1)], _config())

    def test_requires_items(self):
        with self.assertRaisesMessage(FiscalValidationError, "at least one item"):
            validate_nfe(_document(), [], _config())

    def test_requires_nfe_enabled(self):
        with self.assertRaises(FiscalValidationError):
            validate_nfe(_document(), [_item(1)], _config(nfe_enabled=False))

    def test_expired_certificate(self):
        config = _config(certificate_expires_at=date(2026, 1, 9))
        with self.assertRaisesMessage(FiscalValidationError, "2026-01-09"):
            validate_nfe(_document(), [_item(1)], config, today=date(2026, 1, 10))

    def test_certificate_valid_on_expiry_day(self):
        config = _config(certificate_expires_at=date(2026, 1, 10))
        validate_nfe(_document(), [_item(1)], config, today=date(2026, 1, 10))

    def test_requires_recipient_identity(self):
        with self.assertRaises(FiscalValidationError):
            validate_nfe(_document(recipient_tax_id="..-"), [_item(1)], _config())
        with self.assertRaises(FiscalValidationError):
            validate_nfe(_document(recipient_name="  "), [_item(1)], _config())

    def test_requires_recipient_address(self):
        with self.assertRaisesMessage(FiscalValidationError, "address"):
            validate_nfe(_document(recipient_municipality=""), [_item(1)], _config())


class ValidateNfseTests(SimpleTestCase):
    def test_requires_nfse_enabled(self):
        with self.assertRaises(FiscalValidationError):
            validate_nfse(_document(DocumentKind.NFSE), _config(nfse_enabled=False))

    def test_address_is_optional(self):
        validate_nfse(_document(DocumentKind.NFSE, recipient_street=""), _config())


class BuildNfePayloadTests(SimpleTestCase):
    def test_individual_recipient_and_defaults(self):
        payload = build_nfe_payload(_document(), [_item(1)], _config(), issued_at=ISSUED_AT)

        self.assertEqual(payload["cpf_destinatario"], "12345678909")
        self.assertNotIn("cnpj_destinatario", payload)
        self.assertEqual(payload["consumidor_final"], 1)
        self.assertEqual(payload["numero_destinatario"], "S/N")
        self.assertEqual(payload["bairro_destinatario"], "Centro")
        self.assertEqual(payload["cep_destinatario"], "01001000")
        self.assertEqual(payload["finalidade_emissao"], 1)
        self.assertEqual(payload["presenca_comprador"], 0)
        self.assertEqual(payload["data_emissao"], ISSUED_AT.isoformat())
        self.assertEqual(
            payload["forma_pagamento"],
            [{"forma_pagamento": "90", "valor_pagamento": Decimal("30.00")}],
        )

    def test_company_recipient_uses_cnpj_field(self):
        document = _document(
            recipient_tax_id="98.765.432/0001-10",
            recipient_person_type=FiscalDocument.PersonType.COMPANY,
        )
        payload = build_nfe_payload(document, [_item(1)], _config(), issued_at=ISSUED_AT)
        self.assertEqual(payload["cnpj_destinatario"], "98765432000110")
        self.assertEqual(payload["consumidor_final"], 0)

    def test_empty_postal_code_is_still_sent(self):
        payload = build_nfe_payload(
            _document(recipient_postal_code=""), [_item(1)], _config(), issued_at=ISSUED_AT
        )
        self.assertEqual(payload["cep_destinatario"], "")

    def test_items_are_renumbered_and_defaulted(self):
        items = [_item(7), _item(9, icms_cst="60", icms_origin="estrangeira_importacao")]
        payload = build_nfe_payload(_document(), items, _config(), issued_at=ISSUED_AT)

        first, second = payload["items"]
        self.assertEqual([first["numero_item"], second["numero_item"]], [1, 2])
        self.assertEqual(first["cfop"], "5102")
        self.assertEqual(first["unidade_comercial"], "UN")
        self.assertEqual(first["ncm"], "00000000")
        self.assertEqual(first["icms_origem"], "0")
        self.assertEqual(first["icms_situacao_tributaria"], "102")
        self.assertEqual(first["pis_situacao_tributaria"], "99")
        self.assertNotIn("cest", first)
        self.assertEqual(second["cfop"], "5405")
        self.assertEqual(second["icms_origem"], "1")

    def test_interstate_cfop_and_explicit_cfop(self):
        items = [_item(1), _item(2, cfop="5949")]
        payload = build_nfe_payload(
            _document(recipient_uf="RJ"), items, _config(), issued_at=ISSUED_AT
        )
        self.assertEqual(payload["items"][0]["cfop"], "6102")
        self.assertEqual(payload["items"][1]["cfop"], "5949")


class BuildNfsePayloadTests(SimpleTestCase):
    def test_structure(self):
        document = _document(
            DocumentKind.NFSE,
            recipient_tax_id="98.765.432/0001-10",
            service_description="Consultoria",
            recipient_phone="(11) 99999-0000",
        )
        payload = build_nfse_payload(document, _config(), issued_at=ISSUED_AT)

        self.assertEqual(payload["prestador"]["cnpj"], "12345678000190")
        self.assertEqual(payload["prestador"]["codigo_municipio"], "3550308")
        self.assertEqual(payload["tomador"]["cnpj"], "98765432000110")
        self.assertEqual(payload["tomador"]["telefone"], "11999990000")
        self.assertEqual(payload["tomador"]["endereco"]["cep"], "01001000")
        self.assertEqual(payload["tomador"]["endereco"]["numero"], "S/N")
        self.assertEqual(payload["servico"]["discriminacao"], "Consultoria")
        self.assertEqual(payload["servico"]["item_lista_servico"], "01.07")
        self.assertEqual(payload["servico"]["valor_servicos"], Decimal("30.00"))

    def test_withheld_flag_is_a_string(self):
        payload = build_nfse_payload(_document(DocumentKind.NFSE), _config(), issued_at=ISSUED_AT)
        self.assertEqual(payload["servico"]["iss_retido"], "false")

        payload = build_nfse_payload(
            _document(DocumentKind.NFSE, iss_withheld=True), _config(), issued_at=ISSUED_AT
        )
        self.assertEqual(payload["servico"]["iss_retido"], "true")

    def test_iss_rate_fallbacks(self):
        document = _document(DocumentKind.NFSE, iss_rate=Decimal("3.50"))
        payload = build_nfse_payload(document, _config(), issued_at=ISSUED_AT)
        self.assertEqual(payload["servico"]["aliquota"], Decimal("3.50"))

        payload = build_nfse_payload(_document(DocumentKind.NFSE), _config(), issued_at=ISSUED_AT)
        self.assertEqual(payload["servico"]["aliquota"], Decimal("2.00"))

        payload = build_nfse_payload(
            _document(DocumentKind.NFSE), _config(nfse_iss_rate=None), issued_at=ISSUED_AT
        )
        self.assertEqual(payload["servico"]["aliquota"], Decimal("0"))

    def test_default_description(self):
        payload = build_nfse_payload(_document(DocumentKind.NFSE), _config(), issued_at=ISSUED_AT)
        self.assertEqual(payload["servico"]["discriminacao"], "Prestação de serviços")


class OnlyDigitsTests(SimpleTestCase):
    def test_strips_formatting(self):
        self.assertEqual(only_digits("12.345.678/0001-90"), "12345678000190")
        self.assertEqual(only_digits(None), "")
