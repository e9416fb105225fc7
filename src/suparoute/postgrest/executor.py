"""PostgrestExecutor — performs routes against a live PostgREST API.

Raw HTTP via httpx, no client SDK. One ``httpx.AsyncClient`` is kept for
the executor's lifetime; pass your own ``client`` to share a pool or to
plug in ``httpx.MockTransport`` in tests::

    async with PostgrestExecutor(ClientConfig.from_env()) as executor:
        router = DatabaseRouter[AppRoute](executor)
        todos = await router.call(Todos(FetchTodos()), list[Todo])

Requests carry the project's ``apikey`` and are authorized with the
current user's access token when one is set in ``suparoute.context``,
falling back to the api key otherwise.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from suparoute.codec import JSONCodec
from suparoute.config import ClientConfig
from suparoute.context import get_current_user
from suparoute.errors import TransportError
from suparoute.postgrest.request import PostgrestRequest, build_request
from suparoute.routing.route import DatabaseRoute

logger = logging.getLogger("suparoute.postgrest")

_READ_METHODS = frozenset({"GET", "HEAD"})


class PostgrestExecutor:
    """An ``Executor`` that sends each route as one PostgREST request."""

    __slots__ = ("_client", "_codec", "_config", "_owns_client")

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.AsyncClient | None = None,
        codec: JSONCodec | None = None,
    ) -> None:
        self._config = config
        self._codec = codec or JSONCodec()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def execute(self, route: DatabaseRoute) -> bytes:
        """Build the request for ``route``, send it, return the raw body."""
        return await self.send(build_request(route))

    async def send(self, request: PostgrestRequest) -> bytes:
        """Send ``request`` and return the raw response body.

        Raises ``TransportError`` when the request fails to complete or the
        server answers with an error status.
        """
        url = f"{self._config.rest_url}{request.path}"
        content = None if request.body is None else self._codec.encode(request.body)

        if self._config.echo:
            logger.debug("%s %s params=%s", request.http_method, url, request.params)

        try:
            response = await self._client.request(
                request.http_method,
                url,
                params=list(request.params),
                headers=self._headers(request),
                content=content,
            )
        except httpx.HTTPError as exc:
            msg = f"{type(exc).__name__}: {exc}"
            raise TransportError(msg) from exc

        if self._config.echo:
            logger.debug("%s %s -> %d", request.http_method, url, response.status_code)

        if response.status_code >= 400:
            raise TransportError(_error_detail(response), status=response.status_code)
        return response.content

    def _headers(self, request: PostgrestRequest) -> httpx.Headers:
        user = get_current_user()
        token = user.access_token if user is not None and user.access_token else self._config.api_key

        headers = httpx.Headers(list(self._config.headers))
        headers["apikey"] = self._config.api_key
        headers["Authorization"] = f"Bearer {token}"
        headers["Accept"] = "application/json"
        if request.http_method in _READ_METHODS:
            headers["Accept-Profile"] = self._config.schema
        else:
            headers["Content-Profile"] = self._config.schema
        if request.body is not None:
            headers["Content-Type"] = "application/json"
        for name, value in request.headers:
            headers[name] = value
        return headers

    # -- Lifecycle --

    async def aclose(self) -> None:
        """Close the HTTP client, unless it was passed in."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> PostgrestExecutor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"PostgrestExecutor({self._config.rest_url!r})"


def _error_detail(response: httpx.Response) -> str:
    """The ``message`` of a PostgREST error body, or the raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        detail = str(body["message"])
        if body.get("code"):
            detail = f"{detail} ({body['code']})"
        return detail
    return response.text
