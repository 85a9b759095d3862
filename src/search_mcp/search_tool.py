# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from quota_rotator import CallOutcome, CredentialSelector, classify_outcome
from quota_rotator.error_handler import get_status_code
from quota_rotator.failure_logger import log_failure

from .models import SearchParams
from .search_client import GoogleSearchClient


logger = logging.getLogger(__name__)

TOOL_NAME = "google_search"
TOOL_TITLE = "Google Search with API Key Rotation"
TOOL_DESCRIPTION = """
Performs Google searches using the official API with automatic API key rotation.

Features:
- Official Google Web Search
- Automatic API key rotation
- Intelligent quota management
- Multi-language and geolocation support

Parameters:
- query: Search query (required)
- num: Number of results (1-10, default: 5)
- start: Starting index (default: 1)
- safe: SafeSearch (off/active, default: off)
- lr: Language (ex: lang_fr, lang_en)
- gl: Country (ex: fr, us, uk)

Returns a JSON list of results with title, link, description and domain.
"""

QUOTA_EXHAUSTED_MESSAGE = (
    "All Google API keys have reached their daily quota. Try again tomorrow."
)
REJECTION_REASON = "Quota exceeded or 403 error"


@dataclass
class ToolResponse:
    text: str
    is_error: bool = False


class GoogleSearchTool:
    """The google_search operation: pick a key, call the API, record the outcome."""

    def __init__(
        self,
        selector: CredentialSelector,
        client: GoogleSearchClient,
    ) -> None:
        self.selector = selector
        self.client = client

    async def execute(self, params: SearchParams) -> ToolResponse:
        credential = self.selector.acquire()
        if credential is None:
            return self._error_response(QUOTA_EXHAUSTED_MESSAGE)

        try:
            response = await self.client.search(
                credential.api_key, credential.search_engine_id, params
            )
        except Exception as exc:
            logger.error(f"Google Search error with key {credential.id}: {exc}")
            status_code = get_status_code(exc)
            outcome = classify_outcome(exc)
            reason = (
                REJECTION_REASON
                if outcome is CallOutcome.QUOTA_OR_AUTH_REJECTION
                else str(exc)
            )
            self.selector.report_outcome(credential.id, outcome, reason=reason)
            log_failure(
                credential.id,
                credential.api_key,
                params.query,
                exc,
                status_code=status_code,
            )
            return self._error_response(str(exc), status_code)

        self.selector.report_success(credential.id)

        payload = {
            "results": [result.model_dump() for result in response.results],
            "metadata": {
                "query": params.query,
                "totalResults": response.total_results,
                "searchTime": response.search_time,
                "resultsCount": len(response.results),
                "usedApiKey": credential.id,
                "quotaStatus": self.selector.quota_snapshot().to_dict(),
            },
        }
        return ToolResponse(text=json.dumps(payload, indent=2))

    def _error_response(
        self, message: str, status_code: Optional[int] = None
    ) -> ToolResponse:
        payload: Dict[str, Any] = {
            "error": "Google Search error",
            "message": message,
            "details": f"Code: {status_code}" if status_code else "Unknown error",
            "quotaStatus": self.selector.quota_snapshot().to_dict(),
        }
        return ToolResponse(text=json.dumps(payload, indent=2), is_error=True)
