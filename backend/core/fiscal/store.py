"""Narrow persistence operations used by the emission workflow.

Every function is scoped by company so one tenant can never read or write
another tenant's fiscal records.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from django.utils import timezone

from fiscal.exceptions import FiscalNotFoundError
from fiscal.models import DocumentKind, FiscalConfig, FiscalDocument, FiscalDocumentItem, FiscalEvent

_KIND_LABELS = {
    DocumentKind.NFE: "NF-e",
    DocumentKind.NFSE: "NFS-e",
}


def _parse_uuid(value: Any) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def get_document(company, document_id, *, kind: str | None = None) -> FiscalDocument:
    label = _KIND_LABELS.get(kind, "Fiscal document")
    parsed_id = _parse_uuid(document_id)
    if parsed_id is None:
        raise FiscalNotFoundError(f"{label} not found.")

    qs = FiscalDocument.all_objects.for_company(company).filter(id=parsed_id)
    if kind is not None:
        qs = qs.filter(kind=kind)
    document = qs.first()
    if document is None:
        raise FiscalNotFoundError(f"{label} not found.")
    return document


def list_items(document: FiscalDocument) -> list[FiscalDocumentItem]:
    return list(FiscalDocumentItem.objects.filter(document_id=document.id).order_by("sequence", "id"))


def get_config(company) -> FiscalConfig:
    config = FiscalConfig.all_objects.for_company(company).first()
    if config is None:
        raise FiscalNotFoundError("Fiscal configuration not found. Configure it before emitting.")
    return config


def claim_for_emission(company, document_id, *, reference: str) -> bool:
    """Move a document from draft to processing, only if it is still a draft.

    Returns False when another attempt already moved it.
    """

    updated = FiscalDocument.all_objects.for_company(company).filter(
        id=document_id,
        status=FiscalDocument.Status.DRAFT,
    ).update(
        status=FiscalDocument.Status.PROCESSING,
        gateway_reference=reference,
        updated_at=timezone.now(),
    )
    return updated == 1


def update_document(company, document_id, **fields: Any) -> int:
    fields.setdefault("updated_at", timezone.now())
    return FiscalDocument.all_objects.for_company(company).filter(id=document_id).update(**fields)


def advance_last_number(company, kind: str, number: int) -> bool:
    """Raise the tenant's last-used number for `kind` to `number`.

    A single conditional UPDATE: concurrent emissions can only move the
    counter forward.
    """

    field = FiscalConfig.last_number_field(kind)
    updated = FiscalConfig.all_objects.for_company(company).filter(
        **{f"{field}__lt": number},
    ).update(**{field: number, "updated_at": timezone.now()})
    return updated == 1


def insert_event(
    *,
    company,
    document_id,
    kind: str,
    gateway_status: str,
    message: str,
    payload: dict[str, Any],
) -> FiscalEvent:
    return FiscalEvent.all_objects.create(
        company=company,
        document_id=document_id,
        kind=kind,
        gateway_status=gateway_status or "",
        message=message or "",
        payload=payload or {},
    )

