"""Base class for provider REST adapters.

An adapter is a plain value holding a token and a base URL. It keeps no
connection state: every request opens and closes its own ``httpx`` client,
so building one per request is cheap and nothing is shared between callers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from app.config import settings
from app.errors import UpstreamRequestError
from app.schemas.provider import Provider

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def default_base_url(provider: Provider) -> str:
    match provider:
        case Provider.GITLAB:
            return settings.gitlab_api_url
        case Provider.GITHUB:
            return settings.github_api_url
        case Provider.CLOUDFLARE:
            return settings.cloudflare_api_url


class RestAdapter(ABC):
    """Contract that any provider adapter must satisfy."""

    provider: ClassVar[Provider]

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self.token = token
        self.base_url = (base_url or "").strip() or default_base_url(self.provider)
        self._transport = transport
        self._timeout = settings.http_timeout if timeout is None else timeout

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Headers that authenticate a request with this provider."""

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def error_message(self, response: httpx.Response) -> str:
        return response.text or f"{self.provider.label} request failed: {response.status_code}"

    def unwrap(self, data: Any) -> Any:
        return data

    def parse(self, model: type[M], data: Any) -> M:
        """Validate an upstream payload; an unexpected shape is an upstream error."""
        try:
            return model.model_validate(data)
        except SchemaError as exc:
            raise UpstreamRequestError(
                None, f"{self.provider.label} returned an unexpected {model.__name__} payload."
            ) from exc

    def parse_list(self, model: type[M], data: Any) -> list[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise UpstreamRequestError(
                None, f"{self.provider.label} returned an unexpected {model.__name__} list."
            )
        return [self.parse(model, item) for item in data]

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Content-Type": "application/json", **self.auth_headers()}
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            try:
                response = await client.request(
                    method, self.url(path), json=json, params=params, headers=headers
                )
            except httpx.HTTPError as exc:
                raise UpstreamRequestError(
                    None, f"{self.provider.label} request failed: {exc}"
                ) from exc

        logger.debug("%s %s %s -> %d", self.provider.label, method, path, response.status_code)
        if response.is_error:
            raise UpstreamRequestError(response.status_code, self.error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamRequestError(
                response.status_code, f"{self.provider.label} returned a response that is not JSON."
            ) from exc
        return self.unwrap(data)
