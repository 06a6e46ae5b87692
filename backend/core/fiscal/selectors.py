from __future__ import annotations

from datetime import timedelta

from django.utils import timezone

from fiscal import store
from fiscal.exceptions import FiscalTenantMissing, FiscalValidationError
from fiscal.models import FiscalDocument, FiscalDocumentItem, FiscalEvent
from fiscal.payloads import only_digits
from tenancy.context import get_current_company

MAX_PAGE_SIZE = 100


def _require_company():
    company = get_current_company()
    if company is None:
        raise FiscalTenantMissing(
            "Tenant context is required. Call within a tenant-scoped request."
        )
    return company


def list_fiscal_documents(
    *,
    kind: str | None = None,
    status: str | None = None,
    recipient_tax_id: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[FiscalDocument], int]:
    """Page through the current tenant's fiscal documents, newest first.

    Returns the page and the total number of matching documents.
    """

    _require_company()
    if not 1 <= int(limit) <= MAX_PAGE_SIZE:
        raise FiscalValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}.")
    if int(offset) < 0:
        raise FiscalValidationError("offset must be zero or positive.")

    qs = FiscalDocument.objects.all()
    if kind:
        qs = qs.filter(kind=kind)
    if status:
        qs = qs.filter(status=status)
    if recipient_tax_id:
        qs = qs.filter(recipient_tax_id__in={recipient_tax_id, only_digits(recipient_tax_id)})

    total = qs.count()
    rows = list(qs.order_by("-created_at", "id")[offset : offset + limit])
    return rows, total


def get_fiscal_document(document_id) -> tuple[FiscalDocument, list[FiscalDocumentItem]]:
    """Current tenant's document plus its items in sequence order."""

    company = _require_company()
    document = store.get_document(company, document_id)
    return document, store.list_items(document)


def list_fiscal_events(document_id) -> list[FiscalEvent]:
    company = _require_company()
    document = store.get_document(company, document_id)
    return list(FiscalEvent.objects.filter(document=document).order_by("created_at", "id"))


def find_stuck_processing_documents(*, older_than_minutes: int) -> list[FiscalDocument]:
    """Documents of any tenant held in `processing` for too long.

    Emission never leaves `processing` on its own once the gateway call was
    lost; an operator has to inspect these.
    """

    threshold = timezone.now() - timedelta(minutes=max(int(older_than_minutes), 0))
    return list(
        FiscalDocument.all_objects.select_related("company")
        .filter(status=FiscalDocument.Status.PROCESSING, updated_at__lt=threshold)
        .order_by("updated_at", "id")
    )
