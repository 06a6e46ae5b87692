from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db import transaction

from fiscal import store
from fiscal.models import FiscalEvent
from tenancy.logging import mask_cpf_cnpj

logger = logging.getLogger(__name__)


def record_fiscal_event(
    *,
    company,
    document_id,
    kind: str,
    gateway_status: str,
    message: str,
    payload: Mapping[str, Any] | None = None,
) -> FiscalEvent | None:
    """Append the audit event for one emission attempt.

    The document status change is the primary effect of an attempt; a failed
    audit write is logged and never propagated. Returns None in that case.
    """

    try:
        # Savepoint: a failed insert must not poison an enclosing transaction.
        with transaction.atomic():
            event = store.insert_event(
                company=company,
                document_id=document_id,
                kind=kind,
                gateway_status=gateway_status,
                message=message,
                payload=dict(payload or {}),
            )
    except Exception:
        logger.exception(
            "fiscal.event.record_failed company_id=%s document_id=%s kind=%s gateway_status=%s",
            getattr(company, "id", company),
            document_id,
            kind,
            gateway_status,
        )
        return None

    logger.info(
        "fiscal.event.recorded company_id=%s document_id=%s event_id=%s kind=%s gateway_status=%s message=%s",
        event.company_id,
        document_id,
        event.id,
        kind,
        gateway_status,
        mask_cpf_cnpj(message or ""),
    )
    return event
