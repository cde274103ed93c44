"""Thin async HTTP client for the DesiCargo API.

Error envelopes (``{"error": {"code", "message", "details"}}``) are turned
back into the exception classes the service raised, so callers catch
``InvalidIdentifierError``, ``PersistenceError``, ``DomainValidationError``
and friends on both sides of the wire.
"""

import logging
from typing import Any

import httpx

from desicargo.middleware.exceptions import (
    ERROR_CODE_MAP,
    AuthError,
    DesiCargoException,
    DomainValidationError,
    PermissionDeniedError,
    PersistenceError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

# Fallback when the envelope carries a code we do not know (e.g. HTTP_401)
STATUS_FALLBACK: dict[int, type[DesiCargoException]] = {
    401: AuthError,
    403: PermissionDeniedError,
    404: ResourceNotFoundError,
    409: PersistenceError,
    422: DomainValidationError,
}


def build_error(
    cls: type[DesiCargoException],
    message: str,
    status_code: int,
    error_code: str,
    details: dict | None = None,
) -> DesiCargoException:
    """Instantiate ``cls`` with the wire values, bypassing subclass constructors.

    Subclass ``__init__`` signatures differ (``ResourceNotFoundError`` takes a
    resource and an identifier), but the server already rendered the message.
    """
    exc = cls.__new__(cls)
    DesiCargoException.__init__(exc, message, status_code, error_code, details)
    return exc


def error_from_response(response: httpx.Response) -> DesiCargoException:
    try:
        body = response.json()
    except ValueError:
        body = None

    envelope = body.get("error") if isinstance(body, dict) else None
    if isinstance(envelope, dict):
        code = envelope.get("code") or f"HTTP_{response.status_code}"
        message = envelope.get("message") or response.reason_phrase
        details = envelope.get("details")
    else:
        code = f"HTTP_{response.status_code}"
        message = response.text or response.reason_phrase
        details = None

    cls = ERROR_CODE_MAP.get(code) or STATUS_FALLBACK.get(response.status_code, DesiCargoException)
    return build_error(cls, message, response.status_code, code, details)


class ApiClient:
    """Bearer-token aware wrapper around ``httpx.AsyncClient``.

    Usage:
        async with ApiClient("http://localhost:8000") as api:
            api.token = access_token
            bookings = await api.get("/api/bookings/")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None for 204).

        Raises:
            DesiCargoException subclass matching the error envelope.
            PersistenceError: when the service cannot be reached.
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise PersistenceError(f"Service unreachable: {e}", error_code="NETWORK_ERROR") from e

        if response.is_error:
            exc = error_from_response(response)
            logger.error(f"{method} {path} -> {response.status_code} {exc.error_code}: {exc.message}")
            raise exc

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, **params) -> Any:
        return await self.request("GET", path, params=params or None)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
