from __future__ import annotations

import hmac
import logging
from uuid import UUID

from django.conf import settings

from customers.models import ApiKey, Company, hash_api_key

logger = logging.getLogger(__name__)


class ApiKeyError(RuntimeError):
    """Raised when an API key cannot be mapped to a company."""


def resolve_company_for_api_key(raw_key: str, *, company_override: str | None = None) -> Company | None:
    """Map an opaque API key to the company it grants access to.

    Regular keys always resolve to their own company and ignore
    `company_override`. The master key (`MASTER_API_KEY`) resolves to the
    override, then to `MASTER_API_KEY_COMPANY_ID`, and otherwise to `None`,
    meaning cross-tenant access.
    """

    key = (raw_key or "").strip()
    if not key:
        raise ApiKeyError("API key is required.")

    master_key = (getattr(settings, "MASTER_API_KEY", "") or "").strip()
    if master_key and hmac.compare_digest(key, master_key):
        company_id = (company_override or "").strip() or (
            getattr(settings, "MASTER_API_KEY_COMPANY_ID", "") or ""
        ).strip()
        if not company_id:
            logger.warning("tenancy.api_key.master cross_tenant=true")
            return None
        try:
            company_uuid = UUID(company_id)
        except ValueError as exc:
            raise ApiKeyError("Invalid company id for master API key.") from exc
        company = Company.objects.filter(id=company_uuid, is_active=True).first()
        if company is None:
            raise ApiKeyError("Company not found for master API key.")
        logger.info("tenancy.api_key.master company_id=%s", company.id)
        return company

    api_key = (
        ApiKey.objects.select_related("company")
        .filter(key_hash=hash_api_key(key), active=True, company__is_active=True)
        .first()
    )
    if api_key is None:
        raise ApiKeyError("Invalid API key. Check the key and try again.")

    logger.info("tenancy.api_key.authenticated company_id=%s", api_key.company_id)
    return api_key.company
