# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Quota file storage.

Handles loading and saving the credential document to a single JSON file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .types import (
    CURRENT_SCHEMA_VERSION,
    CredentialRecord,
    StoreDocument,
    utc_now_iso,
)

lib_logger = logging.getLogger("quota_rotator")

CONFIG_FILE_NAME = ".google-search-mcp.json"


def default_config_path() -> Path:
    """
    Resolve the per-user quota file.

    USERPROFILE wins over HOME so that Windows and POSIX installs share
    the same lookup order.
    """
    home = os.environ.get("USERPROFILE") or os.environ.get("HOME")
    base = Path(home) if home else Path.home()
    return base / CONFIG_FILE_NAME


class QuotaStorage:
    """
    Handles persistence of the quota document.

    Features:
    - Tolerant loading (absent or corrupt files yield None, never raise)
    - Atomic writes (write to temp, then replace)
    - Best-effort saves: failures are logged and reported, not raised
    """

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize storage.

        Args:
            file_path: Path to the quota JSON file
        """
        self.file_path = Path(file_path)

    def load(self) -> Optional[StoreDocument]:
        """
        Load the quota document from file.

        Returns:
            The parsed document, or None if the file is absent or unusable.
            A corrupt file is left untouched on disk.
        """
        if not self.file_path.exists():
            lib_logger.warning(
                f"No quota file found at {self.file_path}. Run setup to configure API keys."
            )
            return None

        try:
            content = self.file_path.read_text(encoding="utf-8")
            data = json.loads(content)
            document = self._parse_document(data)
        except json.JSONDecodeError as e:
            lib_logger.warning(f"Failed to parse quota file {self.file_path}: {e}")
            return None
        except (OSError, KeyError, TypeError, ValueError) as e:
            lib_logger.warning(f"Ignoring unusable quota file {self.file_path}: {e}")
            return None

        lib_logger.info(
            f"Loaded {len(document.keys)} API keys from {self.file_path}"
        )
        return document

    def save(self, document: StoreDocument) -> bool:
        """
        Save the quota document to file.

        last_updated is set on the document only once the write succeeds,
        so it always names the last successful persistence.

        Args:
            document: Document to persist

        Returns:
            True if saved, False if the write failed
        """
        stamp = utc_now_iso()
        try:
            content = json.dumps(
                self._serialize_document(document, last_updated=stamp), indent=2
            )
            self._write_file(content)
        except (OSError, TypeError, ValueError) as e:
            lib_logger.error(f"Failed to save quota file {self.file_path}: {e}")
            return False

        document.last_updated = stamp
        lib_logger.debug(f"Quota file saved to {self.file_path}")
        return True

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _write_file(self, content: str) -> None:
        """Write file contents atomically."""
        temp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            temp_path.write_text(content, encoding="utf-8")
            temp_path.replace(self.file_path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

    def _parse_document(self, data: Any) -> StoreDocument:
        """Parse the top-level document, raising on any structural problem."""
        if not isinstance(data, dict):
            raise TypeError("quota document is not a JSON object")

        raw_keys = data.get("keys", [])
        if not isinstance(raw_keys, list):
            raise TypeError("'keys' is not a list")

        keys = []
        seen = set()
        for raw in raw_keys:
            if not isinstance(raw, dict):
                raise TypeError("key entry is not a JSON object")
            record = CredentialRecord.from_dict(raw)
            if record.id in seen:
                raise ValueError(f"duplicate key id {record.id}")
            seen.add(record.id)
            keys.append(record)

        version = data.get("version") or None
        return StoreDocument(
            keys=keys,
            last_updated=data.get("lastUpdated"),
            version=version,
        )

    def _serialize_document(
        self, document: StoreDocument, last_updated: Optional[str] = None
    ) -> Dict[str, Any]:
        return {
            "keys": [record.to_dict() for record in document.keys],
            "lastUpdated": last_updated or document.last_updated,
            "version": document.version or CURRENT_SCHEMA_VERSION,
        }
