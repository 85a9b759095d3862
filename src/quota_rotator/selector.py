# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Credential selection and post-call bookkeeping.

The selector answers "which key may be used right now" and turns the
outcome of the upstream call into usage or deactivation on the store.
"""

import logging
from typing import Optional

from .store import QuotaStore
from .types import CallOutcome, CredentialRecord, QuotaSnapshot
from .utils import mask_secret

lib_logger = logging.getLogger("quota_rotator")


class CredentialSelector:
    """
    First-eligible rotation over a QuotaStore.

    Keys are tried in store order; a key stays selected until it reaches
    its daily limit or is rejected upstream, then the next one takes over.
    """

    def __init__(self, store: QuotaStore):
        self.store = store

    def acquire(self) -> Optional[CredentialRecord]:
        """
        Pick the key for the next call.

        Returns:
            The key to use, or None if every key is exhausted or disabled
        """
        credential = self.store.select_eligible()
        if credential is None:
            lib_logger.warning("No API key available: all daily quotas are exhausted")
            return None

        lib_logger.info(
            f"Using API key {credential.id} -> {mask_secret(credential.api_key)}"
        )
        lib_logger.debug(f"Search engine id: {credential.search_engine_id}")
        return credential

    def report_success(self, credential_id: str) -> None:
        self.store.record_usage(credential_id)

    def report_rejection(self, credential_id: str, reason: str) -> None:
        self.store.deactivate(credential_id, reason)

    def report_outcome(
        self,
        credential_id: str,
        outcome: CallOutcome,
        reason: str = "",
    ) -> None:
        """
        Record the result of one upstream call.

        Args:
            credential_id: Key that served the call
            outcome: Classified result, see error_handler.classify_outcome
            reason: Logged when the key is disabled
        """
        if outcome is CallOutcome.SUCCESS:
            self.report_success(credential_id)
        elif outcome is CallOutcome.QUOTA_OR_AUTH_REJECTION:
            self.report_rejection(
                credential_id, reason or "Quota exceeded or 403 error"
            )
        else:
            lib_logger.debug(
                f"Key {credential_id} left unchanged after failure: {reason}"
            )

    def quota_snapshot(self) -> QuotaSnapshot:
        return self.store.quota_snapshot()

    def has_usable_configuration(self) -> bool:
        return self.store.has_usable_configuration()
