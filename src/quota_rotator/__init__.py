# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging

from .error_handler import classify_outcome, is_rejection_error
from .selector import CredentialSelector
from .storage import QuotaStorage, default_config_path
from .store import QuotaStore
from .types import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_DAILY_LIMIT,
    CallOutcome,
    CredentialRecord,
    CredentialStatus,
    QuotaSnapshot,
)

lib_logger = logging.getLogger("quota_rotator")
lib_logger.propagate = False
if not lib_logger.handlers:
    lib_logger.addHandler(logging.NullHandler())

__all__ = [
    "QuotaStore",
    "QuotaStorage",
    "CredentialSelector",
    "CredentialRecord",
    "CredentialStatus",
    "QuotaSnapshot",
    "CallOutcome",
    "classify_outcome",
    "is_rejection_error",
    "default_config_path",
    "CURRENT_SCHEMA_VERSION",
    "DEFAULT_DAILY_LIMIT",
]
