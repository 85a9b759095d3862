# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

import logging
from typing import Any, Dict, Optional

import httpx

from .models import SearchParams, SearchResponse, SearchResult


logger = logging.getLogger(__name__)

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class SearchAPIError(Exception):
    """A failed Custom Search call. status_code is None for transport errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    text = response.text.strip()
    if text:
        return f"HTTP {response.status_code}: {text[:200]}"
    return f"HTTP {response.status_code}"


class GoogleSearchClient:
    def __init__(
        self,
        timeout: float = 30.0,
        shared_client: Optional[httpx.AsyncClient] = None,
        base_url: str = CUSTOM_SEARCH_URL,
    ) -> None:
        self.timeout = timeout
        self.base_url = base_url
        self._shared_client = shared_client
        self._owns_client = shared_client is None
        self.client: Optional[httpx.AsyncClient] = shared_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._shared_client is not None:
            return self._shared_client

        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout=self.timeout), follow_redirects=True
            )
        return self.client

    async def close(self) -> None:
        if not self._owns_client:
            return
        if self.client and not self.client.is_closed:
            try:
                await self.client.aclose()
            except Exception as exc:
                logger.warning(f"Error closing HTTP client: {exc}")

    async def search(
        self,
        api_key: str,
        search_engine_id: str,
        params: SearchParams,
    ) -> SearchResponse:
        """
        Run one Custom Search query with the given credentials.

        Raises:
            SearchAPIError: On transport errors, non-2xx statuses and
                unparsable bodies
        """
        query_params: Dict[str, Any] = {
            "key": api_key,
            "cx": search_engine_id,
            **params.to_query_params(),
        }
        client = await self._get_client()

        try:
            response = await client.get(self.base_url, params=query_params)
        except httpx.RequestError as exc:
            raise SearchAPIError(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            raise SearchAPIError(_error_message(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchAPIError("Malformed response from Custom Search API") from exc
        if not isinstance(data, dict):
            raise SearchAPIError("Malformed response from Custom Search API")

        items = data.get("items") or []
        info = data.get("searchInformation") or {}
        return SearchResponse(
            results=[SearchResult.from_item(item) for item in items if isinstance(item, dict)],
            total_results=str(info.get("totalResults") or "0"),
            search_time=str(info.get("searchTime") or "0"),
        )

    async def __aenter__(self) -> "GoogleSearchClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
