"""Pure transformations from fiscal records to Focus NFe request payloads.

Nothing here touches the database or the network: callers pass the already
loaded document, its items and the tenant configuration.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Sequence

from django.utils import timezone

from fiscal import codes
from fiscal.exceptions import FiscalValidationError
from fiscal.models import DocumentKind, FiscalConfig, FiscalDocument, FiscalDocumentItem

_NON_DIGITS_RE = re.compile(r"\D")

DEFAULT_NFE_OPERATION_NATURE = "Venda de mercadoria"
DEFAULT_NFSE_DESCRIPTION = "Prestação de serviços"
# "1" = taxation in the municipality.
NFSE_OPERATION_NATURE = "1"


def only_digits(value: str | None) -> str:
    return _NON_DIGITS_RE.sub("", value or "")


def _compact(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None or an empty string."""

    return {key: value for key, value in data.items() if value is not None and value != ""}


def _ensure_draft(document: FiscalDocument) -> None:
    if document.status != FiscalDocument.Status.DRAFT:
        raise FiscalValidationError(
            f"Only draft documents can be emitted (current status: {document.status})."
        )


def _ensure_recipient_identity(document: FiscalDocument, *, role: str) -> None:
    if not (document.recipient_name or "").strip() or not only_digits(document.recipient_tax_id):
        raise FiscalValidationError(
            f"{role} data is incomplete: name and CPF/CNPJ are required."
        )


def validate_nfe(
    document: FiscalDocument,
    items: Sequence[FiscalDocumentItem],
    config: FiscalConfig,
    *,
    today: date | None = None,
) -> None:
    """Raise FiscalValidationError when a goods document cannot be emitted."""

    _ensure_draft(document)

    if not items:
        raise FiscalValidationError("The document must have at least one item.")

    if not config.is_enabled_for(DocumentKind.NFE):
        raise FiscalValidationError("NF-e emission is not enabled in the fiscal configuration.")

    today = today or timezone.localdate()
    expires_at = config.certificate_expires_at
    if expires_at is not None and expires_at < today:
        raise FiscalValidationError(
            f"Digital certificate expired on {expires_at.isoformat()}."
        )

    _ensure_recipient_identity(document, role="Recipient")

    if not (
        (document.recipient_street or "").strip()
        and (document.recipient_municipality or "").strip()
        and (document.recipient_uf or "").strip()
    ):
        raise FiscalValidationError(
            "Recipient address is incomplete: street, municipality and UF are required."
        )


def validate_nfse(document: FiscalDocument, config: FiscalConfig) -> None:
    """Raise FiscalValidationError when a service document cannot be emitted."""

    _ensure_draft(document)

    if not config.is_enabled_for(DocumentKind.NFSE):
        raise FiscalValidationError("NFS-e emission is not enabled in the fiscal configuration.")

    _ensure_recipient_identity(document, role="Service taker")


def build_nfe_item(
    item: FiscalDocumentItem,
    *,
    position: int,
    same_state: bool,
) -> dict[str, Any]:
    cfop = (item.cfop or "").strip() or codes.sale_cfop(
        same_state=same_state,
        tax_substitution=codes.has_tax_substitution(item.icms_cst),
    )
    return _compact(
        {
            "numero_item": position,
            "codigo_produto": (item.product_code or "").strip() or str(item.id)[:8],
            "descricao": item.description,
            "cfop": cfop,
            "unidade_comercial": (item.unit or "").strip() or codes.DEFAULT_UNIT,
            "quantidade_comercial": item.quantity,
            "valor_unitario_comercial": item.unit_price,
            "valor_bruto": item.total,
            "ncm": (item.ncm or "").strip() or codes.DEFAULT_NCM,
            "cest": (item.cest or "").strip() or None,
            "icms_origem": codes.icms_origin_code(item.icms_origin),
            "icms_situacao_tributaria": (item.icms_cst or "").strip() or codes.DEFAULT_CSOSN,
            "pis_situacao_tributaria": (item.pis_cst or "").strip() or codes.DEFAULT_PIS_COFINS_CST,
            "cofins_situacao_tributaria": (item.cofins_cst or "").strip() or codes.DEFAULT_PIS_COFINS_CST,
        }
    )


def build_nfe_payload(
    document: FiscalDocument,
    items: Sequence[FiscalDocumentItem],
    config: FiscalConfig,
    *,
    issued_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the `POST /v2/nfe` body.

    Items are renumbered from 1 in the given order, whatever their stored
    sequence.
    """

    issued_at = issued_at or timezone.now()
    same_state = codes.is_same_state(config.uf, document.recipient_uf)

    tax_id = only_digits(document.recipient_tax_id)
    tax_id_field = "cnpj_destinatario" if len(tax_id) == 14 else "cpf_destinatario"

    payload = {
        "natureza_operacao": (document.operation_nature or "").strip() or DEFAULT_NFE_OPERATION_NATURE,
        "data_emissao": issued_at.isoformat(),
        "tipo_documento": 1,
        "finalidade_emissao": codes.emission_purpose_code(document.purpose),
        "consumidor_final": (
            1 if document.recipient_person_type == FiscalDocument.PersonType.INDIVIDUAL else 0
        ),
        "presenca_comprador": codes.buyer_presence_code(document.presence_indicator),
        "nome_destinatario": document.recipient_name,
        tax_id_field: tax_id,
        "inscricao_estadual_destinatario": document.recipient_state_registration or None,
        "telefone_destinatario": only_digits(document.recipient_phone) or None,
        "email_destinatario": document.recipient_email or None,
        "logradouro_destinatario": document.recipient_street,
        "numero_destinatario": (document.recipient_number or "").strip() or "S/N",
        "complemento_destinatario": document.recipient_complement or None,
        "bairro_destinatario": (document.recipient_district or "").strip() or "Centro",
        "municipio_destinatario": document.recipient_municipality,
        "uf_destinatario": document.recipient_uf,
        "codigo_municipio_destinatario": (
            document.recipient_municipality_code or config.municipality_code or None
        ),
        "informacoes_adicionais_contribuinte": document.additional_info or None,
    }
    payload = _compact(payload)
    # Always sent, even when empty.
    payload["cep_destinatario"] = only_digits(document.recipient_postal_code)
    payload["forma_pagamento"] = [
        {
            "forma_pagamento": codes.PAYMENT_METHOD_OTHER,
            "valor_pagamento": document.total_amount,
        }
    ]
    payload["items"] = [
        build_nfe_item(item, position=index, same_state=same_state)
        for index, item in enumerate(items, start=1)
    ]
    return payload


def build_nfse_payload(
    document: FiscalDocument,
    config: FiscalConfig,
    *,
    issued_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the `POST /v2/nfse` body.

    The gateway expects boolean flags as the strings "true"/"false".
    """

    issued_at = issued_at or timezone.now()
    tax_id = only_digits(document.recipient_tax_id)
    tax_id_field = "cnpj" if len(tax_id) == 14 else "cpf"

    iss_rate = document.iss_rate
    if iss_rate is None:
        iss_rate = config.nfse_iss_rate
    if iss_rate is None:
        iss_rate = Decimal("0")

    tomador = _compact(
        {
            tax_id_field: tax_id,
            "razao_social": document.recipient_name,
            "email": document.recipient_email or None,
            "telefone": only_digits(document.recipient_phone) or None,
        }
    )
    tomador["endereco"] = {
        "logradouro": document.recipient_street or "",
        "numero": (document.recipient_number or "").strip() or "S/N",
        "complemento": document.recipient_complement or "",
        "bairro": document.recipient_district or "",
        "codigo_municipio": document.recipient_municipality_code or config.municipality_code,
        "uf": document.recipient_uf or config.uf,
        "cep": only_digits(document.recipient_postal_code),
    }

    return {
        "data_emissao": issued_at.isoformat(),
        "natureza_operacao": NFSE_OPERATION_NATURE,
        "prestador": {
            "cnpj": only_digits(config.cnpj),
            "inscricao_municipal": config.municipal_registration,
            "codigo_municipio": config.municipality_code,
        },
        "tomador": tomador,
        "servico": {
            "aliquota": iss_rate,
            "discriminacao": (
                (document.service_description or "").strip()
                or (document.additional_info or "").strip()
                or DEFAULT_NFSE_DESCRIPTION
            ),
            "iss_retido": "true" if document.iss_withheld else "false",
            "item_lista_servico": document.service_code or config.nfse_service_code or "",
            "valor_servicos": document.total_amount,
        },
    }
