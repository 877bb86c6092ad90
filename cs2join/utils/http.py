"""Request building and execution against the Steam Web API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping
from urllib.parse import urlencode

import httpx

from cs2join.auth import AuthMode, classify
from cs2join.constants import STEAM_API_BASE
from cs2join.endpoints import Endpoint, resolve
from cs2join.errors import ApiError, MalformedResponseError, NetworkError, SteamError
from cs2join.log import TRACE
from cs2join.utils.privacy import mask_auth_in_url, mask_secret

_DEFAULT_HEADERS = {
    "User-Agent": "cs2join/0.1",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class RequestSpec:
    """One Web API call: which method, with what, and how failures map."""

    method: str
    params: Mapping[str, Any] = field(default_factory=dict)
    allow_failure: bool = False
    error_overrides: Mapping[int, type[SteamError]] = field(default_factory=dict)

    def with_params(
        self, params: Mapping[str, Any] | None = None, **extra: Any
    ) -> RequestSpec:
        return replace(self, params={**self.params, **(params or {}), **extra})

    def allowing_failure(self, allow: bool = True) -> RequestSpec:
        return replace(self, allow_failure=allow)

    def overriding(self, status: int, error: type[SteamError]) -> RequestSpec:
        return replace(self, error_overrides={**self.error_overrides, status: error})


def build_query(
    endpoint: Endpoint,
    mode: AuthMode,
    credential: str,
    params: Mapping[str, Any] | None = None,
) -> list[tuple[str, str]]:
    """Auth parameter first, then endpoint defaults, then call parameters."""
    query: list[tuple[str, str]] = [(mode.query_param, credential)]
    for source in (endpoint.default_params, params or {}):
        for name, value in source.items():
            if value is not None:
                query.append((name, str(value)))
    return query


def build_url(base_url: str, endpoint: Endpoint, query: list[tuple[str, str]]) -> str:
    return f"{base_url.rstrip('/')}{endpoint.path}?{urlencode(query)}"


class RequestExecutor:
    """Performs Web API calls and turns HTTP outcomes into results or errors.

    A shared ``httpx.AsyncClient`` may be supplied; otherwise each call opens
    its own short-lived client.
    """

    def __init__(
        self,
        base_url: str = STEAM_API_BASE,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client = client
        self._owns_client = False
        self.logger = logger or logging.getLogger(__name__)

    async def __aenter__(self) -> RequestExecutor:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    async def execute(
        self,
        spec: RequestSpec,
        credential: str,
        context: Mapping[str, Any] | None = None,
    ) -> Any | None:
        """Run *spec* and return the decoded JSON body.

        Returns None instead of raising for HTTP and transport failures when
        ``spec.allow_failure`` is set, unless a status override applies.
        """
        mode = classify(credential)
        endpoint = resolve(spec.method, mode)
        url = build_url(self.base_url, endpoint, build_query(endpoint, mode, credential, spec.params))
        masked_url = mask_auth_in_url(url)

        self.logger.info("Making %s request (%s auth): %s", spec.method, mode.value, masked_url)
        if context:
            self.logger.debug("%s request context: %s", spec.method, dict(context))

        try:
            response = await self._get(url)
        except httpx.TransportError as exc:
            reason = mask_secret(str(exc) or type(exc).__name__, credential)
            self.logger.error(
                "%s request to %s failed without a response: %s",
                spec.method,
                masked_url,
                reason,
            )
            if spec.allow_failure:
                return None
            raise NetworkError(f"{spec.method} failed: {reason}") from exc

        if self.logger.isEnabledFor(TRACE):
            self.logger.log(
                TRACE,
                "Raw %s response (%s) from %s: %s",
                spec.method,
                response.status_code,
                masked_url,
                response.text,
            )

        if not response.is_success:
            return self._handle_failure(spec, response, masked_url)

        try:
            return response.json()
        except ValueError as exc:
            self.logger.error("%s returned a non-JSON body from %s", spec.method, masked_url)
            raise MalformedResponseError(
                f"{spec.method} returned a body that is not valid JSON",
                status=response.status_code,
            ) from exc

    def _handle_failure(
        self, spec: RequestSpec, response: httpx.Response, masked_url: str
    ) -> None:
        status = response.status_code
        override = spec.error_overrides.get(status)
        if override is not None:
            self.logger.warning(
                "%s request failed with status %s: %s", spec.method, status, masked_url
            )
            raise override(status=status)

        self.logger.error(
            "%s request failed with status %s: %s", spec.method, status, masked_url
        )
        if spec.allow_failure:
            return None
        raise ApiError(
            f"{spec.method} failed: {status} {response.reason_phrase}".rstrip(),
            status=status,
        )

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=_DEFAULT_HEADERS)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.get(url, headers=_DEFAULT_HEADERS)
