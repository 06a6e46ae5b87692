from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping

from django.db import transaction
from django.utils import timezone

from fiscal import payloads, store
from fiscal.config import resolve_gateway_target
from fiscal.events import record_fiscal_event
from fiscal.exceptions import FiscalEmissionError, FiscalTenantMissing, FiscalValidationError
from fiscal.gateway import GatewayClientBase, get_gateway_client
from fiscal.models import DocumentKind, FiscalConfig, FiscalDocument, FiscalEvent
from tenancy.context import get_current_company
from tenancy.logging import mask_cpf_cnpj

logger = logging.getLogger(__name__)

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

GATEWAY_STATUS_AUTHORIZED = "autorizado"
GATEWAY_STATUS_AUTHORIZATION_ERROR = "erro_autorizacao"
GATEWAY_STATUS_DENIED = "denegado"
GATEWAY_STATUS_ERROR = "erro"

_reference_lock = threading.Lock()
_last_reference_millis = 0


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def _next_reference_millis() -> int:
    # Strictly increasing within the process, so references generated in the
    # same millisecond still differ in their timestamp part.
    global _last_reference_millis
    with _reference_lock:
        now_millis = time.time_ns() // 1_000_000
        if now_millis <= _last_reference_millis:
            now_millis = _last_reference_millis + 1
        _last_reference_millis = now_millis
        return now_millis


def generate_gateway_reference(kind: str, company_id) -> str:
    """Idempotency reference for one emission attempt.

    Format: `{kind}_{first 8 chars of the company id}_{base36 millis}_{6 random base36 chars}`.
    """

    timestamp = to_base36(_next_reference_millis())
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(6))
    return f"{kind}_{str(company_id)[:8]}_{timestamp}_{suffix}"


def map_gateway_status(kind: str, gateway_status: Any) -> str:
    """Stored status for the `status` reported by the gateway."""

    value = str(gateway_status or "").strip().lower()
    if value == GATEWAY_STATUS_AUTHORIZED:
        return FiscalDocument.Status.AUTHORIZED
    if value == GATEWAY_STATUS_AUTHORIZATION_ERROR:
        return FiscalDocument.Status.REJECTED
    if value == GATEWAY_STATUS_DENIED and kind == DocumentKind.NFE:
        return FiscalDocument.Status.REJECTED
    return FiscalDocument.Status.PROCESSING


def _parse_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True, slots=True)
class EmissionResult:
    document: FiscalDocument
    gateway_status: str

    def as_dict(self) -> dict[str, Any]:
        from fiscal.serializers import FiscalDocumentSerializer

        return {
            "success": True,
            "document": FiscalDocumentSerializer(self.document).data,
            "gateway_status": self.gateway_status,
        }


def _fields_from_response(
    *,
    kind: str,
    response: Mapping[str, Any],
    status: str,
    config: FiscalConfig,
    now: datetime,
) -> dict[str, Any]:
    gateway_status = _text(response.get("status"))
    if kind == DocumentKind.NFE:
        fields: dict[str, Any] = {
            "status": status,
            "series": _parse_int(response.get("serie")) or config.nfe_series,
            "access_key": _text(response.get("chave_nfe")),
            "protocol": _text(response.get("protocolo")),
            "gateway_status": gateway_status,
            "sefaz_status": _text(response.get("status_sefaz")),
            "gateway_message": _text(response.get("mensagem_sefaz")),
            "xml_url": _text(response.get("caminho_xml_nota_fiscal")),
            "danfe_url": _text(response.get("caminho_danfe")),
        }
    else:
        fields = {
            "status": status,
            "gateway_status": gateway_status,
            "gateway_message": _text(response.get("mensagem")),
            "xml_url": _text(response.get("caminho_xml_nota_fiscal")),
            "pdf_url": _text(response.get("url")),
        }

    if status == FiscalDocument.Status.AUTHORIZED:
        fields["issued_at"] = now
        number = _parse_int(response.get("numero"))
        if number is not None:
            fields["number"] = number
    fields["updated_at"] = now
    return fields


def _mark_failed(company, document_id, message: str) -> None:
    """Move a claimed document to `error`.

    A failed write is logged; the caller still records the event and raises
    the original error.
    """

    try:
        with transaction.atomic():
            store.update_document(
                company,
                document_id,
                status=FiscalDocument.Status.ERROR,
                gateway_message=message,
            )
    except Exception:
        logger.exception(
            "fiscal.emit.error_status_failed company_id=%s document_id=%s",
            company.id,
            document_id,
        )


def _default_event_message(kind: str) -> str:
    if kind == DocumentKind.NFE:
        return "NF-e sent for processing."
    return "NFS-e sent for processing."


def _emit(
    *,
    kind: str,
    document_id,
    gateway_client: GatewayClientBase | None,
    today: date | None = None,
) -> EmissionResult:
    company = get_current_company()
    if company is None:
        raise FiscalTenantMissing(
            "Tenant context is required. Call within a tenant-scoped request."
        )

    logger.info(
        "fiscal.emit.started company_id=%s document_id=%s kind=%s",
        company.id,
        document_id,
        kind,
    )

    # 1) Load records.
    document = store.get_document(company, document_id, kind=kind)
    config = store.get_config(company)

    # 2) Preconditions and gateway target. Nothing is persisted on failure.
    if kind == DocumentKind.NFE:
        items = store.list_items(document)
        payloads.validate_nfe(document, items, config, today=today)
    else:
        items = []
        payloads.validate_nfse(document, config)

    target = resolve_gateway_target(config)
    client = gateway_client or get_gateway_client()

    # 3) + 4) Reference and optimistic claim.
    reference = generate_gateway_reference(kind, company.id)
    if not store.claim_for_emission(company, document.id, reference=reference):
        logger.warning(
            "fiscal.emit.claim_lost company_id=%s document_id=%s kind=%s",
            company.id,
            document.id,
            kind,
        )
        raise FiscalValidationError(
            "Only draft documents can be emitted; another emission attempt is already in progress."
        )

    # 5) Build and submit.
    now = timezone.now()
    try:
        if kind == DocumentKind.NFE:
            payload = payloads.build_nfe_payload(document, items, config, issued_at=now)
        else:
            payload = payloads.build_nfse_payload(document, config, issued_at=now)

        response = client.submit(
            kind=kind,
            reference=reference,
            payload=payload,
            credential=target.credential,
            base_url=target.base_url,
        )

        # 6) Interpret and persist.
        gateway_status = _text(response.get("status"))
        status = map_gateway_status(kind, gateway_status)
        fields = _fields_from_response(
            kind=kind,
            response=response,
            status=status,
            config=config,
            now=now,
        )
        with transaction.atomic():
            store.update_document(company, document.id, **fields)
            if status == FiscalDocument.Status.AUTHORIZED and fields.get("number") is not None:
                store.advance_last_number(company, kind, fields["number"])
    except Exception as exc:
        # 7) Terminal error state; no rollback to draft.
        message = str(exc) or exc.__class__.__name__
        _mark_failed(company, document.id, message)
        # 8) Audit (failure branch).
        record_fiscal_event(
            company=company,
            document_id=document.id,
            kind=FiscalEvent.Kind.ERROR,
            gateway_status=GATEWAY_STATUS_ERROR,
            message=message,
            payload={"error": message},
        )
        logger.warning(
            "fiscal.emit.failed company_id=%s document_id=%s kind=%s reference=%s error=%s",
            company.id,
            document.id,
            kind,
            reference,
            mask_cpf_cnpj(message),
        )
        if isinstance(exc, FiscalEmissionError):
            raise
        raise FiscalEmissionError(f"Emission failed: {message}") from exc

    # 8) Audit (success branch).
    message = _text(
        response.get("mensagem_sefaz") if kind == DocumentKind.NFE else response.get("mensagem")
    ) or _default_event_message(kind)
    record_fiscal_event(
        company=company,
        document_id=document.id,
        kind=FiscalEvent.Kind.EMISSION,
        gateway_status=gateway_status,
        message=message,
        payload=response,
    )

    # 9) Final state.
    document = store.get_document(company, document.id, kind=kind)
    logger.info(
        "fiscal.emit.completed company_id=%s document_id=%s kind=%s reference=%s status=%s gateway_status=%s",
        company.id,
        document.id,
        kind,
        reference,
        document.status,
        gateway_status,
    )
    return EmissionResult(document=document, gateway_status=gateway_status)


def emit_nfe(
    document_id,
    *,
    gateway_client: GatewayClientBase | None = None,
    today: date | None = None,
) -> EmissionResult:
    """Emit a draft goods invoice (NF-e) of the current tenant.

    Steps:
    1) Load document, items and fiscal configuration.
    2) Validate preconditions and resolve the gateway credential.
    3) Claim the document (draft -> processing) with a fresh reference.
    4) Submit to the gateway and persist the interpreted result.
    5) Record one FiscalEvent for the attempt.

    Raises:
        FiscalTenantMissing, FiscalNotFoundError, FiscalValidationError,
        FiscalConfigurationError: nothing was changed.
        FiscalGatewayError: the document was moved to `error`.
    """

    return _emit(kind=DocumentKind.NFE, document_id=document_id, gateway_client=gateway_client, today=today)


def emit_nfse(
    document_id,
    *,
    gateway_client: GatewayClientBase | None = None,
) -> EmissionResult:
    """Emit a draft service invoice (NFS-e) of the current tenant.

    Same workflow and error contract as `emit_nfe`.
    """

    return _emit(kind=DocumentKind.NFSE, document_id=document_id, gateway_client=gateway_client)
