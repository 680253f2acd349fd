from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import backoff
import requests

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransportError(RuntimeError):
    pass


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in {401, 403}


class BrokerApiClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def __enter__(self) -> BrokerApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=_clean_params(params))

    def post(self, path: str, json: Any | None = None) -> Any:
        return self._request("POST", path, json=json)

    def put(self, path: str, json: Any | None = None) -> Any:
        return self._request("PUT", path, json=json)

    def patch(self, path: str, json: Any | None = None) -> Any:
        return self._request("PATCH", path, json=json)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("DELETE", path, params=_clean_params(params))

    def upload(self, path: str, files: dict[str, Any], data: dict[str, Any] | None = None) -> Any:
        return self._request("POST", path, files=files, data=data)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        files: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                files=files,
                data=data,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise TransportError(f"Request timeout after {self.timeout}s: {method} {path}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Network error: {method} {path}: {exc}") from exc

        if response.status_code >= 400:
            message, code = _error_details(response)
            raise ApiError(message, status_code=response.status_code, code=code)
        if response.status_code == 204 or not response.content:
            return None
        content_type = response.headers.get("Content-Type", "")
        if "application/json" in content_type:
            return response.json()
        return response.text


def call_with_retry(func: Callable[[], T], attempts: int = 3, delay: float = 1.0) -> T:
    """Call ``func`` up to ``attempts`` times, backing off exponentially.

    Only transport failures and 5xx responses are retried; anything else is
    raised on the first occurrence.
    """

    @backoff.on_exception(
        backoff.expo,
        (TransportError, ApiError),
        max_tries=max(1, attempts),
        giveup=lambda exc: not _retryable(exc),
        factor=delay,
        jitter=None,
        on_backoff=_on_retry,
        logger=None,
    )
    def _do_call() -> T:
        return func()

    return _do_call()


def _on_retry(details: dict) -> None:
    logger.warning(
        "Request failed (attempt %d), retrying in %.1fs: %s",
        details["tries"],
        details["wait"],
        details.get("exception"),
    )


def _retryable(exc: Exception) -> bool:
    if isinstance(exc, TransportError):
        return True
    return isinstance(exc, ApiError) and (exc.status_code or 0) >= 500


def _error_details(response: requests.Response) -> tuple[str, str | None]:
    fallback = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return (f"{fallback}: {text}" if text else fallback), None
    if not isinstance(body, dict):
        return fallback, None
    message = body.get("error") or body.get("message") or fallback
    return str(message), body.get("code")


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    return {key: value for key, value in params.items() if value is not None and value != ""}
