import json
from pathlib import Path

import pytest

from conftest import FakeClock, stored_key, write_quota_file
from quota_rotator import CURRENT_SCHEMA_VERSION, CredentialRecord, QuotaStorage, QuotaStore
from quota_rotator.types import StoreDocument


def test_missing_file_yields_empty_store(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)

    assert store.credentials == ()
    assert store.has_usable_configuration() is False
    assert store.select_eligible() is None
    assert not quota_path.exists()


def test_corrupt_file_is_ignored_and_left_untouched(quota_path: Path, clock: FakeClock) -> None:
    quota_path.write_text("{not json", encoding="utf-8")

    store = QuotaStore(quota_path, today=clock)

    assert store.credentials == ()
    assert store.quota_snapshot().total_limit == 0
    assert quota_path.read_text(encoding="utf-8") == "{not json"


@pytest.mark.parametrize(
    "content",
    [
        "[]",
        '{"keys": "nope"}',
        '{"keys": [{"apiKey": "no-id"}]}',
        '{"keys": [{"id": "key_1", "dailyUsage": "many"}]}',
        '{"keys": [{"id": "key_1", "dailyUsage": 5.9}]}',
        '{"keys": [{"id": "key_1", "dailyLimit": "100"}]}',
        '{"keys": [{"id": "key_1", "dailyUsage": true}]}',
        '{"keys": [{"id": "key_1", "isActive": "false"}]}',
        '{"keys": [{"id": "key_1"}, {"id": "key_1"}]}',
    ],
)
def test_structurally_invalid_documents_are_treated_as_corrupt(
    quota_path: Path, clock: FakeClock, content: str
) -> None:
    quota_path.write_text(content, encoding="utf-8")

    store = QuotaStore(quota_path, today=clock)

    assert store.credentials == ()
    assert quota_path.read_text(encoding="utf-8") == content


def test_missing_version_is_stamped_and_persisted(quota_path: Path, clock: FakeClock) -> None:
    quota_path.write_text(
        json.dumps({"keys": [stored_key("key_1", dailyUsage=3)], "lastUpdated": "x"}),
        encoding="utf-8",
    )

    store = QuotaStore(quota_path, today=clock)

    on_disk = json.loads(quota_path.read_text(encoding="utf-8"))
    assert on_disk["version"] == CURRENT_SCHEMA_VERSION
    assert on_disk["keys"][0]["dailyUsage"] == 3
    assert store.credentials[0].daily_usage == 3


def test_bulk_replace_pairs_engine_ids_and_falls_back_to_first(
    quota_path: Path, clock: FakeClock
) -> None:
    store = QuotaStore(quota_path, today=clock)

    store.bulk_replace([" key-a ", "key-b", "key-c"], [" cx-1 ", "cx-2"])

    records = store.credentials
    assert [r.id for r in records] == ["key_1", "key_2", "key_3"]
    assert [r.api_key for r in records] == ["key-a", "key-b", "key-c"]
    assert [r.search_engine_id for r in records] == ["cx-1", "cx-2", "cx-1"]
    for record in records:
        assert record.daily_usage == 0
        assert record.daily_limit == 100
        assert record.last_reset == "2026-03-14"
        assert record.is_active is True


def test_bulk_replace_without_engine_ids_uses_empty_string(
    quota_path: Path, clock: FakeClock
) -> None:
    store = QuotaStore(quota_path, today=clock)

    store.bulk_replace(["key-a"], [])

    assert store.credentials[0].search_engine_id == ""
    assert store.has_usable_configuration() is False


def test_bulk_replace_discards_previous_keys(quota_path: Path, clock: FakeClock) -> None:
    write_quota_file(quota_path, [stored_key("key_1", dailyUsage=40), stored_key("key_2")])
    store = QuotaStore(quota_path, today=clock)

    store.bulk_replace(["fresh"], ["cx"])

    assert [r.id for r in store.credentials] == ["key_1"]
    assert store.credentials[0].daily_usage == 0
    on_disk = json.loads(quota_path.read_text(encoding="utf-8"))
    assert len(on_disk["keys"]) == 1
    assert on_disk["keys"][0]["apiKey"] == "fresh"


def test_key_at_limit_is_skipped_until_rollover(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)
    store.bulk_replace(["a", "b"], ["cx"])

    for _ in range(100):
        assert store.select_eligible().id == "key_1"
        store.record_usage("key_1")

    for _ in range(5):
        assert store.select_eligible().id == "key_2"

    clock.advance()
    assert store.select_eligible().id == "key_1"


def test_rollover_reactivates_and_zeroes_yesterdays_keys(quota_path: Path, clock: FakeClock) -> None:
    write_quota_file(
        quota_path,
        [stored_key("key_1", dailyUsage=57, isActive=False, lastReset="2026-03-13")],
    )

    store = QuotaStore(quota_path, today=clock)

    record = store.credentials[0]
    assert record.is_active is True
    assert record.daily_usage == 0
    assert record.last_reset == "2026-03-14"
    on_disk = json.loads(quota_path.read_text(encoding="utf-8"))
    assert on_disk["keys"][0]["lastReset"] == "2026-03-14"
    assert on_disk["keys"][0]["isActive"] is True


def test_rollover_happens_once_per_day(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)
    store.bulk_replace(["a"], ["cx"])
    store.record_usage("key_1")
    clock.advance()

    store.quota_snapshot()
    store.record_usage("key_1")
    store.quota_snapshot()

    assert store.credentials[0].daily_usage == 1


def test_record_usage_persists_each_call(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)
    store.bulk_replace(["a"], ["cx"])

    store.record_usage("key_1")
    store.record_usage("key_1")

    on_disk = json.loads(quota_path.read_text(encoding="utf-8"))
    assert on_disk["keys"][0]["dailyUsage"] == 2
    assert on_disk["lastUpdated"]


def test_unknown_ids_are_ignored(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)
    store.bulk_replace(["a"], ["cx"])
    before = quota_path.read_text(encoding="utf-8")

    store.record_usage("key_9")
    store.deactivate("key_9", "403")

    assert quota_path.read_text(encoding="utf-8") == before
    assert store.credentials[0].daily_usage == 0
    assert store.credentials[0].is_active is True


def test_deactivate_does_not_touch_usage(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)
    store.bulk_replace(["a", "b"], ["cx"])
    store.record_usage("key_1")

    store.deactivate("key_1", "Quota exceeded or 403 error")

    assert store.credentials[0].is_active is False
    assert store.credentials[0].daily_usage == 1
    assert store.select_eligible().id == "key_2"


def test_quota_snapshot_totals_and_idempotence(quota_path: Path, clock: FakeClock) -> None:
    write_quota_file(
        quota_path,
        [
            stored_key("key_1", dailyUsage=12),
            stored_key("key_2", dailyUsage=100, dailyLimit=100),
            stored_key("key_3", dailyUsage=4, dailyLimit=50, isActive=False),
        ],
    )
    store = QuotaStore(quota_path, today=clock)

    first = store.quota_snapshot()
    second = store.quota_snapshot()

    assert first == second
    assert first.total_used == 12 + 100 + 4
    assert first.total_used == sum(status.used for status in first.keys_status)
    assert first.total_limit == 250
    assert first.keys_status[2].remaining == 46
    assert first.keys_status[2].active is False
    assert first.to_dict()["keysStatus"][0] == {
        "id": "key_1",
        "used": 12,
        "limit": 100,
        "remaining": 88,
        "active": True,
    }


def test_round_trip_preserves_records_and_order(quota_path: Path, clock: FakeClock) -> None:
    store = QuotaStore(quota_path, today=clock)
    store.bulk_replace(["a", "b", "c"], ["cx-1", "cx-2", "cx-3"])
    store.record_usage("key_2")
    store.deactivate("key_3", "403")

    reloaded = QuotaStore(quota_path, today=clock)

    assert reloaded.credentials == store.credentials


def test_failed_write_keeps_in_memory_state(tmp_path: Path, clock: FakeClock) -> None:
    path = tmp_path / "missing-dir" / ".google-search-mcp.json"
    store = QuotaStore(path, today=clock)

    store.bulk_replace(["a"], ["cx"])
    store.record_usage("key_1")

    assert not path.exists()
    assert store.credentials[0].daily_usage == 1
    assert store.select_eligible().id == "key_1"


def test_last_updated_only_moves_on_successful_save(tmp_path: Path) -> None:
    document = StoreDocument(keys=[CredentialRecord.from_dict(stored_key("key_1"))])

    failing = QuotaStorage(tmp_path / "missing-dir" / ".google-search-mcp.json")
    assert failing.save(document) is False
    assert document.last_updated is None

    working = QuotaStorage(tmp_path / ".google-search-mcp.json")
    assert working.save(document) is True
    on_disk = json.loads(working.file_path.read_text(encoding="utf-8"))
    assert document.last_updated is not None
    assert on_disk["lastUpdated"] == document.last_updated


def test_has_usable_configuration_needs_key_and_engine_id(
    quota_path: Path, clock: FakeClock
) -> None:
    write_quota_file(
        quota_path,
        [stored_key("key_1", apiKey=""), stored_key("key_2", searchEngineId="")],
    )
    assert QuotaStore(quota_path, today=clock).has_usable_configuration() is False

    write_quota_file(quota_path, [stored_key("key_1", apiKey=""), stored_key("key_2")])
    assert QuotaStore(quota_path, today=clock).has_usable_configuration() is True


def test_default_path_uses_home_directory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("USERPROFILE", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    store = QuotaStore()

    assert store.config_path == tmp_path / ".google-search-mcp.json"
