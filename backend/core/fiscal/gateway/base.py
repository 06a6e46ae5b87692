from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from fiscal.exceptions import FiscalEmissionError

GATEWAY_PATHS = {
    "nfe": "/v2/nfe",
    "nfse": "/v2/nfse",
}


class FiscalGatewayError(FiscalEmissionError):
    """Base error for gateway failures. The message is meant for humans."""

    def __init__(self, message: str, *, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class FiscalGatewayTechnicalError(FiscalGatewayError):
    """Transport failure talking to the gateway (network, DNS, bad response body)."""


class FiscalGatewayTimeoutError(FiscalGatewayTechnicalError):
    """Gateway request exceeded the configured timeout."""


class FiscalGatewayBusinessError(FiscalGatewayError):
    """The gateway answered with a non-success HTTP status."""


class GatewayClientBase(ABC):
    """Client for the external fiscal gateway.

    Clients only exchange requests and responses. Interpreting the returned
    `status` and persisting anything belongs to the emission service.
    """

    def __init__(self, *, timeout_seconds: float | None = None) -> None:
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def path_for(kind: str) -> str:
        try:
            return GATEWAY_PATHS[kind]
        except KeyError:
            raise ValueError(f"Unsupported fiscal document kind: {kind!r}") from None

    @abstractmethod
    def submit(
        self,
        *,
        kind: str,
        reference: str,
        payload: Mapping[str, Any],
        credential: str,
        base_url: str,
    ) -> dict[str, Any]:
        """Submit a document for authorization.

        Args:
            kind: "nfe" or "nfse".
            reference: Idempotency reference for this attempt.
            payload: Request body built by `fiscal.payloads`.
            credential: Gateway token for the tenant environment.
            base_url: Gateway base URL for the tenant environment.

        Returns:
            The decoded JSON body, verbatim. It carries at least `status`.

        Raises:
            FiscalGatewayError: on transport or business failure.
        """
