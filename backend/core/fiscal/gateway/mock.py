from __future__ import annotations

import itertools
from typing import Any, Mapping
from uuid import uuid4

from .base import GatewayClientBase


class MockGatewayClient(GatewayClientBase):
    """In-memory gateway for local development and tests.

    Behavior:
    - By default every submission is authorized with a fresh number.
    - `response` replaces the generated body; `error` is raised instead.
    - Every call is appended to `calls`.
    """

    _sequence = itertools.count(1)

    def __init__(
        self,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds)
        self.response = dict(response) if response is not None else None
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def submit(
        self,
        *,
        kind: str,
        reference: str,
        payload: Mapping[str, Any],
        credential: str,
        base_url: str,
    ) -> dict[str, Any]:
        path = self.path_for(kind)
        self.calls.append(
            {
                "kind": kind,
                "reference": reference,
                "payload": dict(payload),
                "credential": credential,
                "url": f"{base_url}{path}?ref={reference}",
            }
        )

        if self.error is not None:
            raise self.error
        if self.response is not None:
            return dict(self.response)

        number = str(next(self._sequence))
        if kind == "nfse":
            return {
                "ref": reference,
                "status": "autorizado",
                "numero": number,
                "codigo_verificacao": uuid4().hex[:8].upper(),
                "url": f"https://mock.focusnfe.local/nfse/{reference}",
                "caminho_xml_nota_fiscal": f"/arquivos/mock/{reference}.xml",
                "mensagem": "Autorizado (mock).",
            }
        return {
            "ref": reference,
            "status": "autorizado",
            "status_sefaz": "100",
            "mensagem_sefaz": "Autorizado o uso da NF-e (mock).",
            "numero": number,
            "serie": "1",
            "chave_nfe": f"NFe{uuid4().hex}{uuid4().hex[:12]}",
            "protocolo": uuid4().hex[:15],
            "caminho_xml_nota_fiscal": f"/arquivos/mock/{reference}-nfe.xml",
            "caminho_danfe": f"/arquivos/mock/{reference}.pdf",
        }
