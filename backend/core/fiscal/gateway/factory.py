from __future__ import annotations

from django.conf import settings
from django.utils.module_loading import import_string

from fiscal.exceptions import FiscalConfigurationError

from .base import GatewayClientBase


def get_gateway_client() -> GatewayClientBase:
    """Instantiate the gateway client named by `FISCAL_GATEWAY_CLIENT`."""

    client_path = (getattr(settings, "FISCAL_GATEWAY_CLIENT", "") or "").strip()
    if not client_path:
        raise FiscalConfigurationError("FISCAL_GATEWAY_CLIENT is not configured.")

    try:
        client_class = import_string(client_path)
    except ImportError as exc:
        raise FiscalConfigurationError(
            f"Unsupported FISCAL_GATEWAY_CLIENT={client_path!r}."
        ) from exc

    return client_class(timeout_seconds=getattr(settings, "FISCAL_GATEWAY_TIMEOUT_SECONDS", None))
