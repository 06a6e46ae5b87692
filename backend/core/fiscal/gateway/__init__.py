"""Fiscal gateway clients (provider interface + implementations).

Clients talk to the external gateway only. Status interpretation,
persistence and auditing belong to `fiscal.services`.
"""

from .base import (
    FiscalGatewayBusinessError,
    FiscalGatewayError,
    FiscalGatewayTechnicalError,
    FiscalGatewayTimeoutError,
    GatewayClientBase,
)
from .factory import get_gateway_client
from .focusnfe import FocusNFeGatewayClient
from .mock import MockGatewayClient

__all__ = [
    "FiscalGatewayBusinessError",
    "FiscalGatewayError",
    "FiscalGatewayTechnicalError",
    "FiscalGatewayTimeoutError",
    "FocusNFeGatewayClient",
    "GatewayClientBase",
    "MockGatewayClient",
    "get_gateway_client",
]
