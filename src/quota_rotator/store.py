# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
QuotaStore: the durable record of API keys and their daily usage.

All operations are synchronous and local. Every mutation is persisted
before returning; a failed write is logged and the in-memory state stays
authoritative for the rest of the process.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .storage import QuotaStorage, default_config_path
from .types import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_DAILY_LIMIT,
    CredentialRecord,
    QuotaSnapshot,
    StoreDocument,
    utc_today,
)

lib_logger = logging.getLogger("quota_rotator")


class QuotaStore:
    """
    Ordered pool of API keys with per-key daily quotas.

    Store order is selection order: the first eligible key wins.
    Keys are created in bulk by bulk_replace() and afterwards only have
    their counters and active flag changed.

    Usage:
        store = QuotaStore()
        key = store.select_eligible()
        if key is not None:
            ...  # call the API with key.api_key / key.search_engine_id
            store.record_usage(key.id)
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        today: Optional[Callable[[], str]] = None,
    ):
        """
        Create the store and load it from disk.

        Args:
            path: Quota file location. Defaults to ~/.google-search-mcp.json
            today: Callable returning the current UTC date (YYYY-MM-DD).
                Defaults to the system clock.
        """
        self._storage = QuotaStorage(path if path is not None else default_config_path())
        self._today = today or utc_today
        self._document = StoreDocument()
        self.load()

    @property
    def config_path(self) -> Path:
        return self._storage.file_path

    @property
    def credentials(self) -> Tuple[CredentialRecord, ...]:
        """Current records in store order. Treat as read-only."""
        return tuple(self._document.keys)

    # =========================================================================
    # LOADING AND SETUP
    # =========================================================================

    def load(self) -> None:
        """
        (Re)load the store from its file.

        An absent or unparsable file yields an empty store. A file without
        a version field is stamped with the current version and saved.
        """
        document = self._storage.load()
        if document is None:
            self._document = StoreDocument()
            return

        self._document = document
        if not self._document.version:
            lib_logger.info(
                f"Migrating quota file to version {CURRENT_SCHEMA_VERSION}"
            )
            self._document.version = CURRENT_SCHEMA_VERSION
            self._persist()

        self._reset_daily_usage_if_needed()

    def bulk_replace(
        self,
        api_keys: Sequence[str],
        search_engine_ids: Sequence[str],
    ) -> None:
        """
        Replace every configured key.

        Each API key is paired with the search engine id at the same
        position, falling back to the first id, then to an empty string.

        Args:
            api_keys: Secrets in the order they should be tried
            search_engine_ids: Search engine ids, positional to api_keys
        """
        engine_ids = [engine_id.strip() for engine_id in search_engine_ids]
        fallback_engine_id = engine_ids[0] if engine_ids else ""
        today = self._today()

        records: List[CredentialRecord] = []
        for index, api_key in enumerate(api_keys):
            engine_id = engine_ids[index] if index < len(engine_ids) else ""
            records.append(
                CredentialRecord(
                    id=f"key_{index + 1}",
                    api_key=api_key.strip(),
                    search_engine_id=engine_id or fallback_engine_id,
                    daily_usage=0,
                    daily_limit=DEFAULT_DAILY_LIMIT,
                    last_reset=today,
                    is_active=True,
                )
            )

        self._document.keys = records
        self._document.version = CURRENT_SCHEMA_VERSION
        self._persist()
        lib_logger.info(f"{len(records)} API keys configured")

    # =========================================================================
    # SELECTION AND BOOKKEEPING
    # =========================================================================

    def select_eligible(self) -> Optional[CredentialRecord]:
        """
        Return the first active key that is under its daily limit.

        Returns:
            The selected record, or None if every key is exhausted or disabled
        """
        self._reset_daily_usage_if_needed()
        for record in self._document.keys:
            if record.is_eligible:
                return record
        return None

    def record_usage(self, credential_id: str) -> None:
        """Count one successful call against a key."""
        record = self._find(credential_id)
        if record is None:
            lib_logger.warning(f"Cannot record usage for unknown key {credential_id}")
            return

        record.daily_usage += 1
        self._persist()
        lib_logger.info(
            f"Key {credential_id}: {record.daily_usage}/{record.daily_limit} requests used"
        )

    def deactivate(self, credential_id: str, reason: str) -> None:
        """
        Disable a key until the next day rollover.

        Args:
            credential_id: Id of the key to disable
            reason: Human-readable cause, logged
        """
        record = self._find(credential_id)
        if record is None:
            lib_logger.warning(f"Cannot disable unknown key {credential_id}")
            return

        record.is_active = False
        self._persist()
        lib_logger.warning(f"Key {credential_id} disabled: {reason}")

    # =========================================================================
    # REPORTING
    # =========================================================================

    def quota_snapshot(self) -> QuotaSnapshot:
        self._reset_daily_usage_if_needed()
        return QuotaSnapshot.from_records(self._document.keys)

    def has_usable_configuration(self) -> bool:
        """True if at least one key has both a secret and a search engine id."""
        return any(
            record.api_key and record.search_engine_id
            for record in self._document.keys
        )

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _find(self, credential_id: str) -> Optional[CredentialRecord]:
        for record in self._document.keys:
            if record.id == credential_id:
                return record
        return None

    def _reset_daily_usage_if_needed(self) -> None:
        """Zero usage and re-enable every key whose last reset is not today."""
        today = self._today()
        changed = False
        for record in self._document.keys:
            if record.last_reset != today:
                record.daily_usage = 0
                record.last_reset = today
                record.is_active = True
                changed = True
                lib_logger.info(f"Reset quota for {record.id}")

        if changed:
            self._persist()

    def _persist(self) -> None:
        self._storage.save(self._document)
