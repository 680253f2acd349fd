from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from brokercrm.domain.rules import validate_cep

DEFAULT_CEP_URL = "https://viacep.com.br"


@dataclass(frozen=True)
class CepAddress:
    cep: str
    street: str
    complement: str
    district: str
    city: str
    state: str


class CepLookupError(RuntimeError):
    pass


class CepClient:
    def __init__(
        self,
        base_url: str = DEFAULT_CEP_URL,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, cep: str) -> CepAddress | None:
        cleaned = validate_cep(cep, "cep")
        url = f"{self.base_url}/ws/{cleaned}/json/"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CepLookupError(f"CEP lookup failed: {exc}") from exc
        if response.status_code >= 400:
            raise CepLookupError(f"CEP lookup error {response.status_code}")
        data: dict[str, Any] = response.json()
        if data.get("erro"):
            return None
        return CepAddress(
            cep=cleaned,
            street=data.get("logradouro") or "",
            complement=data.get("complemento") or "",
            district=data.get("bairro") or "",
            city=data.get("localidade") or "",
            state=data.get("uf") or "",
        )


def format_cep(cep: str) -> str:
    cleaned = "".join(ch for ch in cep if ch.isdigit())
    if len(cleaned) != 8:
        return cleaned
    return f"{cleaned[:5]}-{cleaned[5:]}"
