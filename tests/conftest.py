import json
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FakeClock:
    """Callable returning a controllable UTC date string."""

    def __init__(self, today: str = "2026-03-14") -> None:
        self.current = date.fromisoformat(today)

    def __call__(self) -> str:
        return self.current.isoformat()

    def advance(self, days: int = 1) -> None:
        self.current += timedelta(days=days)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quota_path(tmp_path: Path) -> Path:
    return tmp_path / ".google-search-mcp.json"


def write_quota_file(path: Path, keys: list, **extra) -> None:
    document = {"keys": keys, "lastUpdated": "2026-03-13T08:00:00.000Z", "version": "1.0.0"}
    document.update(extra)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")


def stored_key(key_id: str, **overrides) -> dict:
    key = {
        "id": key_id,
        "apiKey": f"AIzaSy-{key_id}-0123456789abcdefghijklmn",
        "searchEngineId": "cx-main",
        "dailyUsage": 0,
        "dailyLimit": 100,
        "lastReset": "2026-03-14",
        "isActive": True,
    }
    key.update(overrides)
    return key
