from __future__ import annotations

from decimal import Decimal
from typing import Any

from customers.models import Company
from fiscal.crypto import encrypt_credential
from fiscal.models import DocumentKind, FiscalConfig, FiscalDocument, FiscalDocumentItem


def make_company(code: str = "acme", **overrides: Any) -> Company:
    data = {"name": f"Empresa {code}", "tenant_code": code}
    data.update(overrides)
    return Company.objects.create(**data)


def make_config(company: Company, **overrides: Any) -> FiscalConfig:
    data = {
        "company": company,
        "cnpj": "12.345.678/0001-90",
        "municipal_registration": "123456",
        "municipality_code": "3550308",
        "uf": "SP",
        "nfe_enabled": True,
        "nfse_enabled": True,
        "environment": FiscalConfig.Environment.SANDBOX,
        "sandbox_token": encrypt_credential("sandbox-token"),
        "nfse_iss_rate": Decimal("5.00"),
        "nfse_service_code": "01.07",
    }
    data.update(overrides)
    return FiscalConfig.all_objects.create(**data)


def make_document(company: Company, kind: str = DocumentKind.NFE, **overrides: Any) -> FiscalDocument:
    data = {
        "company": company,
        "kind": kind,
        "recipient_name": "Cliente Teste LTDA",
        "recipient_tax_id": "98.765.432/0001-10",
        "recipient_person_type": FiscalDocument.PersonType.COMPANY,
        "recipient_street": "Rua das Flores",
        "recipient_number": "100",
        "recipient_district": "Centro",
        "recipient_municipality": "Sao Paulo",
        "recipient_municipality_code": "3550308",
        "recipient_uf": "SP",
        "recipient_postal_code": "01001-000",
        "total_amount": Decimal("150.00"),
    }
    if kind == DocumentKind.NFSE:
        data["service_description"] = "Consultoria em sistemas"
    data.update(overrides)
    return FiscalDocument.all_objects.create(**data)


def add_item(document: FiscalDocument, sequence: int = 1, **overrides: Any) -> FiscalDocumentItem:
    data = {
        "document": document,
        "sequence": sequence,
        "product_code": f"SKU-{sequence}",
        "description": f"Produto {sequence}",
        "quantity": Decimal("1.0000"),
        "unit_price": Decimal("150.0000"),
        "total": Decimal("150.00"),
        "ncm": "84713012",
    }
    data.update(overrides)
    return FiscalDocumentItem.objects.create(**data)
