# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from typing import Optional

from .types import CallOutcome

# Google answers 403 for both an exhausted daily quota and a revoked key.
REJECTION_STATUS_CODES = frozenset({403})


def get_status_code(e: BaseException) -> Optional[int]:
    """Extracts an HTTP status code from an exception, if it carries one."""
    for attr in ("status_code", "code"):
        value = getattr(e, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(e, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def is_rejection_error(e: BaseException) -> bool:
    """Checks if the upstream refused the key itself (quota or authorization)."""
    return get_status_code(e) in REJECTION_STATUS_CODES


def classify_outcome(error: Optional[BaseException]) -> CallOutcome:
    """
    Maps the result of an upstream call to a CallOutcome.

    Only a rejection status deactivates a key. Network errors, malformed
    responses and every other status are OTHER_FAILURE.
    """
    if error is None:
        return CallOutcome.SUCCESS
    if is_rejection_error(error):
        return CallOutcome.QUOTA_OR_AUTH_REJECTION
    return CallOutcome.OTHER_FAILURE
