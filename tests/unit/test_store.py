# tests/unit/test_store.py
"""
Tests for deltabuild.state.store - loading and persisting state units.
"""

import json
from pathlib import Path

import pytest

from deltabuild.core.exceptions import StatePersistError
from deltabuild.state.schema import BuildState, Fingerprint, MessageEntry
from deltabuild.state.store import SnapshotStore


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "state")


@pytest.fixture
def base(tmp_path):
    return (tmp_path / "project").resolve()


def make_state(base: Path) -> BuildState:
    return BuildState(
        base_directory=str(base),
        files={"a.txt": Fingerprint(size=3, mtime_ns=10)},
        values={"k": [1, 2]},
        messages={str(base / "a.txt"): [MessageEntry(line=1, text="oops", severity=1)]},
    )


@pytest.mark.tier2
class TestSnapshotStore:
    """Tests for SnapshotStore."""

    def test_round_trip(self, store, base):
        path = store.persist(base, make_state(base))

        loaded = store.load(base)

        assert path == store.path_for(base)
        assert loaded is not None
        assert loaded.files == {"a.txt": Fingerprint(size=3, mtime_ns=10)}
        assert loaded.values == {"k": [1, 2]}
        assert loaded.messages[str(base / "a.txt")][0].text == "oops"

    def test_missing_unit_returns_none(self, store, base):
        assert store.load(base) is None

    def test_corrupt_unit_returns_none(self, store, base, caplog):
        path = store.path_for(base)
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        assert store.load(base) is None
        assert "Ignoring previous state" in caplog.text

    def test_wrong_schema_version_returns_none(self, store, base):
        store.persist(base, make_state(base))
        path = store.path_for(base)
        data = json.loads(path.read_text(encoding="utf-8"))
        data["schema_version"] = 99
        path.write_text(json.dumps(data), encoding="utf-8")

        assert store.load(base) is None

    def test_invalid_fields_return_none(self, store, base):
        store.persist(base, make_state(base))
        path = store.path_for(base)
        data = json.loads(path.read_text(encoding="utf-8"))
        data["files"]["a.txt"] = {"size": "big"}
        path.write_text(json.dumps(data), encoding="utf-8")

        assert store.load(base) is None

    def test_unit_of_other_base_is_ignored(self, store, base, tmp_path):
        other = make_state(tmp_path / "elsewhere")
        path = store.path_for(base)
        path.parent.mkdir(parents=True)
        path.write_text(other.model_dump_json(), encoding="utf-8")

        assert store.load(base) is None

    def test_failed_persist_keeps_previous_unit(self, store, base, monkeypatch):
        store.persist(base, make_state(base))
        before = store.path_for(base).read_bytes()

        def failing_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", failing_replace)
        state = make_state(base)
        state.values = {"k": "new"}

        with pytest.raises(StatePersistError, match="disk full"):
            store.persist(base, state)

        assert store.path_for(base).read_bytes() == before
        assert list(store.state_dir.glob("*.tmp")) == []

    def test_delete(self, store, base):
        store.persist(base, make_state(base))

        assert store.delete(base) is True
        assert store.delete(base) is False
        assert store.load(base) is None
