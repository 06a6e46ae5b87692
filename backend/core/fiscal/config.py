from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings

from fiscal.crypto import CredentialCryptoError, decrypt_credential
from fiscal.exceptions import FiscalConfigurationError
from fiscal.models import FiscalConfig
from tenancy.logging import mask_secret

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://homologacao.focusnfe.com.br"
DEFAULT_PRODUCTION_URL = "https://api.focusnfe.com.br"


@dataclass(frozen=True, slots=True)
class GatewayTarget:
    credential: str
    base_url: str
    environment: str

    def __repr__(self) -> str:
        return (
            f"GatewayTarget(credential={mask_secret(self.credential)!r}, "
            f"base_url={self.base_url!r}, environment={self.environment!r})"
        )


def _decrypt_slot(config: FiscalConfig, field_name: str) -> str:
    try:
        return decrypt_credential(getattr(config, field_name) or "").strip()
    except CredentialCryptoError as exc:
        raise FiscalConfigurationError(
            f"Stored gateway credential '{field_name}' cannot be decrypted. Reconfigure it."
        ) from exc


def resolve_credential(config: FiscalConfig) -> str:
    """Pick the gateway credential for the configured environment.

    Order: environment slot, legacy `api_token`, process-wide
    `FOCUS_NFE_MASTER_TOKEN`.
    """

    environment = config.environment or FiscalConfig.Environment.SANDBOX
    slot = (
        "production_token"
        if environment == FiscalConfig.Environment.PRODUCTION
        else "sandbox_token"
    )

    credential = _decrypt_slot(config, slot)
    source = slot
    if not credential:
        credential = _decrypt_slot(config, "api_token")
        source = "api_token"
    if not credential:
        credential = (getattr(settings, "FOCUS_NFE_MASTER_TOKEN", "") or "").strip()
        source = "master"

    if not credential:
        raise FiscalConfigurationError(
            f"Gateway credential is not configured for environment '{environment}'."
        )

    logger.debug(
        "fiscal.config.credential_resolved company_id=%s environment=%s source=%s credential=%s",
        config.company_id,
        environment,
        source,
        mask_secret(credential),
    )
    return credential


def resolve_base_url(config: FiscalConfig) -> str:
    if config.environment == FiscalConfig.Environment.PRODUCTION:
        url = (getattr(settings, "FOCUS_NFE_API_URL", "") or "").strip() or DEFAULT_PRODUCTION_URL
        return url.rstrip("/")
    return SANDBOX_URL


def resolve_gateway_target(config: FiscalConfig) -> GatewayTarget:
    return GatewayTarget(
        credential=resolve_credential(config),
        base_url=resolve_base_url(config),
        environment=config.environment or FiscalConfig.Environment.SANDBOX,
    )
