"""
Perplexica HTTP client using httpx.

Provides:
- Provider discovery and default model selection
- A single-shot search call returning a QueryResult
- A lightweight reachability check

Every call opens and closes its own ``httpx.Client`` so no connection
is held while callers sleep between attempts.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from perplexica_search import __app_name__, __version__
from perplexica_search.core.config.models import ClientConfig, OptimizationMode

from .base import (
    FetchError,
    ModelRef,
    ModelSelection,
    Provider,
    ProviderConfigError,
    ProvidersResponse,
    QueryResult,
    SearchRequest,
    SearchResponse,
)

logger = logging.getLogger(__name__)


SEARCH_PATH = "/api/search"
PROVIDERS_PATH = "/api/providers"

USER_AGENT = f"{__app_name__}/{__version__}"


def default_models(providers: list[Provider], setup_url: str | None = None) -> ModelSelection:
    """Pick the first provider offering both a chat and an embedding model.

    This is the same choice the Perplexica UI makes on first load.

    Args:
        providers: Providers returned by ``SearchClient.providers()``
        setup_url: URL mentioned in the error hint

    Returns:
        ModelSelection using the first model of each kind

    Raises:
        ProviderConfigError: If no provider qualifies
    """
    where = setup_url or "the Perplexica web UI"

    if not providers:
        raise ProviderConfigError(
            "No providers configured in Perplexica. "
            f"Open {where} and complete the setup wizard."
        )

    for provider in providers:
        if provider.chat_models and provider.embedding_models:
            return ModelSelection(
                chat_model=ModelRef(provider_id=provider.id, key=provider.chat_models[0].key),
                embedding_model=ModelRef(
                    provider_id=provider.id, key=provider.embedding_models[0].key
                ),
            )

    raise ProviderConfigError(
        "No provider with both a chat model and an embedding model was found. "
        f"Open {where} and add an API key or connect Ollama."
    )


class SearchClient:
    """Synchronous client for one Perplexica instance.

    The endpoint comes from an explicit ``ClientConfig``; to target another
    instance, build another client.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        models: ModelSelection | None = None,
        transport: httpx.BaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ):
        """Initialize the client.

        Args:
            config: Endpoint, timeout and default mode
            models: Fixed model selection; discovered per search when omitted
            transport: Custom httpx transport (e.g. ``httpx.MockTransport``)
            headers: Extra headers for every request
        """
        self.config = config or ClientConfig()
        self.models = models
        self._transport = transport
        self.headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            **(headers or {}),
        }

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
            headers=self.headers,
            transport=self._transport,
        )

    def _request_json(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Perform one request and decode the JSON body.

        Raises:
            FetchError: On transport failure, non-2xx status or invalid JSON
        """
        url = f"{self.base_url}{path}"
        try:
            with self._client() as client:
                response = client.request(method, path, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"{method} {path} returned HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                f"{method} {path} failed: {e}",
                url=url,
                cause=e,
            ) from e
        except ValueError as e:
            raise FetchError(
                f"{method} {path} returned a malformed JSON body",
                url=url,
                cause=e,
            ) from e

    # -------------------------------------------------------------------------
    # Model discovery
    # -------------------------------------------------------------------------

    def providers(self) -> list[Provider]:
        """List providers configured in Perplexica."""
        data = self._request_json("GET", PROVIDERS_PATH)
        try:
            return ProvidersResponse.model_validate(data).providers
        except ValidationError as e:
            raise FetchError(
                "Malformed providers response",
                url=f"{self.base_url}{PROVIDERS_PATH}",
                cause=e,
            ) from e

    def resolve_models(self) -> ModelSelection:
        """Return the fixed model selection, or discover the default one."""
        if self.models is not None:
            return self.models
        return default_models(self.providers(), setup_url=self.base_url)

    def status(self) -> bool:
        """Check whether the API is reachable.

        Returns:
            True only if ``/api/providers`` answers HTTP 200
        """
        try:
            with self._client() as client:
                response = client.get(PROVIDERS_PATH)
        except httpx.HTTPError as e:
            logger.debug("Status check against %s failed: %s", self.base_url, e)
            return False
        return response.status_code == 200

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def build_request(
        self,
        query: str,
        mode: OptimizationMode | str | None = None,
        models: ModelSelection | None = None,
    ) -> SearchRequest:
        """Build the outbound search body."""
        models = models or self.resolve_models()
        return SearchRequest(
            chat_model=models.chat_model,
            embedding_model=models.embedding_model,
            optimization_mode=OptimizationMode(mode) if mode else self.config.mode,
            query=query,
        )

    def search(
        self,
        query: str,
        mode: OptimizationMode | str | None = None,
        verbose: bool = False,
    ) -> QueryResult:
        """Send one query to ``/api/search``.

        No retry happens here; failures propagate to the caller.

        Args:
            query: Search query
            mode: Optimisation mode (default: the client's configured mode)
            verbose: Log the query before sending it

        Returns:
            QueryResult with the answer and its source URLs

        Raises:
            FetchError: On transport failure, non-2xx status or bad body
            ProviderConfigError: If no usable model is configured
        """
        if verbose:
            logger.info("Querying Perplexica: %s", query)

        request = self.build_request(query, mode)
        data = self._request_json("POST", SEARCH_PATH, request.to_payload())

        try:
            response = SearchResponse.model_validate(data)
        except ValidationError as e:
            raise FetchError(
                "Malformed search response",
                url=f"{self.base_url}{SEARCH_PATH}",
                cause=e,
            ) from e

        result = response.to_result()
        logger.debug(
            "Search returned %d chars, %d sources", len(result.message), len(result.sources)
        )
        return result
