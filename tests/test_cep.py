import pytest
import requests

from brokercrm.adapters.cep import CepClient, CepLookupError, format_cep
from brokercrm.domain.rules import ValidationError


class FakeResponse:
    def __init__(self, status_code=200, body=None) -> None:
        self.status_code = status_code
        self._body = body or {}

    def json(self):
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.response


def test_lookup_maps_fields() -> None:
    session = FakeSession(
        FakeResponse(
            body={
                "cep": "01310-100",
                "logradouro": "Avenida Paulista",
                "complemento": "de 612 a 1510 - lado par",
                "bairro": "Bela Vista",
                "localidade": "São Paulo",
                "uf": "SP",
            }
        )
    )
    client = CepClient("https://cep.test/", session=session)

    address = client.lookup("01310-100")

    assert session.urls == ["https://cep.test/ws/01310100/json/"]
    assert address.street == "Avenida Paulista"
    assert address.city == "São Paulo"
    assert address.state == "SP"


def test_unknown_cep_returns_none() -> None:
    client = CepClient(session=FakeSession(FakeResponse(body={"erro": True})))
    assert client.lookup("99999999") is None


def test_invalid_cep_never_hits_the_network() -> None:
    session = FakeSession()
    with pytest.raises(ValidationError):
        CepClient(session=session).lookup("1234")
    assert session.urls == []


def test_lookup_failures() -> None:
    with pytest.raises(CepLookupError):
        CepClient(session=FakeSession(error=requests.ConnectionError("down"))).lookup("01310100")
    with pytest.raises(CepLookupError, match="400"):
        CepClient(session=FakeSession(FakeResponse(status_code=400))).lookup("01310100")


def test_format_cep() -> None:
    assert format_cep("01310100") == "01310-100"
    assert format_cep("123") == "123"
