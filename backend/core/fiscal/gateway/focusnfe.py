from __future__ import annotations

import base64
import json
import logging
import socket
from decimal import Decimal
from typing import Any, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .base import (
    FiscalGatewayBusinessError,
    FiscalGatewayTechnicalError,
    FiscalGatewayTimeoutError,
    GatewayClientBase,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def basic_auth_header(credential: str) -> str:
    token = base64.b64encode(f"{credential}:".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def extract_error_message(body: Any, status_code: int) -> str:
    """Best-effort human message from a Focus NFe error body."""

    if isinstance(body, Mapping):
        for key in ("mensagem", "message", "erro"):
            value = body.get(key)
            if value:
                return str(value)

        errors = body.get("erros")
        if isinstance(errors, list) and errors:
            messages = [
                str(error.get("mensagem"))
                for error in errors
                if isinstance(error, Mapping) and error.get("mensagem")
            ]
            if messages:
                return "; ".join(messages)

    return f"HTTP {status_code}"


class FocusNFeGatewayClient(GatewayClientBase):
    """Focus NFe REST client (`/v2/nfe`, `/v2/nfse`)."""

    def submit(
        self,
        *,
        kind: str,
        reference: str,
        payload: Mapping[str, Any],
        credential: str,
        base_url: str,
    ) -> dict[str, Any]:
        url = f"{base_url.rstrip('/')}{self.path_for(kind)}?{urlencode({'ref': reference})}"
        body = json.dumps(payload, default=_json_default).encode("utf-8")
        request = Request(
            url,
            data=body,
            headers={
                "Authorization": basic_auth_header(credential),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            method="POST",
        )
        timeout = self.timeout_seconds or DEFAULT_TIMEOUT_SECONDS

        logger.info("fiscal.gateway.submit kind=%s reference=%s", kind, reference)
        try:
            with urlopen(request, timeout=timeout) as response:  # nosec B310
                status_code = response.status
                raw = response.read()
        except HTTPError as exc:
            try:
                error_body = json.loads(exc.read().decode("utf-8") or "null")
            except (ValueError, OSError):
                error_body = None
            message = extract_error_message(error_body, exc.code)
            logger.warning(
                "fiscal.gateway.rejected kind=%s reference=%s http_status=%s",
                kind,
                reference,
                exc.code,
            )
            raise FiscalGatewayBusinessError(
                message,
                status_code=exc.code,
                details=error_body,
            ) from exc
        except (TimeoutError, socket.timeout) as exc:
            raise FiscalGatewayTimeoutError(
                f"Fiscal gateway did not answer within {timeout:g}s."
            ) from exc
        except URLError as exc:
            if isinstance(exc.reason, (TimeoutError, socket.timeout)):
                raise FiscalGatewayTimeoutError(
                    f"Fiscal gateway did not answer within {timeout:g}s."
                ) from exc
            raise FiscalGatewayTechnicalError(
                f"Fiscal gateway unreachable: {exc.reason}"
            ) from exc
        except OSError as exc:
            raise FiscalGatewayTechnicalError(f"Fiscal gateway unreachable: {exc}") from exc

        try:
            decoded = json.loads(raw.decode("utf-8")) if raw else {}
        except ValueError as exc:
            raise FiscalGatewayTechnicalError(
                "Fiscal gateway returned an invalid JSON body.",
                status_code=status_code,
            ) from exc

        if not isinstance(decoded, dict):
            raise FiscalGatewayTechnicalError(
                "Fiscal gateway returned an unexpected response body.",
                status_code=status_code,
            )

        logger.info(
            "fiscal.gateway.answered kind=%s reference=%s http_status=%s gateway_status=%s",
            kind,
            reference,
            status_code,
            decoded.get("status"),
        )
        return decoded
