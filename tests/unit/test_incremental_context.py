# tests/unit/test_incremental_context.py
"""
Tests for IncrementalBuildContext.

Each test drives one or more consecutive builds over the `project` fixture
(a.txt and b.txt). Edits pin mtimes explicitly so change detection never
depends on filesystem timestamp resolution.
"""

from pathlib import Path

import pytest

from deltabuild.context.incremental import IncrementalBuildContext
from deltabuild.context.messages import Severity
from deltabuild.core.exceptions import ContextClosedError, StatePersistError
from deltabuild.scan.scanner import DeleteScanner, DeltaScanner, DirectoryScanner, EmptyScanner
from tests.conftest import BASE_MTIME_NS, SECOND_NS, write_file


def run_build(open_build, base, **config):
    """Open and immediately close a build, establishing a baseline."""
    context = open_build(base, **config)
    context.close()
    return context


# =============================================================================
# Change detection
# =============================================================================


@pytest.mark.tier2
class TestChangeDetection:
    """has_delta() across consecutive builds."""

    def test_first_build_is_not_incremental(self, project, open_build):
        context = open_build(project)

        assert context.is_incremental() is False
        assert context.has_delta("a.txt") is True
        assert context.has_delta("no/such/file") is True
        assert context.delta.added == ("a.txt", "b.txt")
        context.close()

    def test_two_builds_with_one_modified_file(self, project, open_build):
        with open_build(project) as context:
            assert context.is_incremental() is False
            assert context.has_delta("a.txt") is True
            assert context.has_delta([]) is True

        write_file(project / "b.txt", "bbb, edited", mtime_ns=BASE_MTIME_NS + SECOND_NS)

        with open_build(project) as context:
            assert context.is_incremental() is True
            assert context.has_delta("a.txt") is False
            assert context.has_delta("b.txt") is True
            assert context.new_scanner(project).scan().included_files == ["b.txt"]
            assert context.new_scanner(project, True).scan().included_files == ["a.txt", "b.txt"]

    def test_unchanged_build_has_no_delta(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            assert context.is_incremental() is True
            assert context.has_delta("a.txt") is False
            assert context.has_delta("") is False
            assert context.delta.is_empty is True

    def test_modified_file(self, project, open_build):
        run_build(open_build, project)
        write_file(project / "a.txt", "changed", mtime_ns=BASE_MTIME_NS + SECOND_NS)

        with open_build(project) as context:
            assert context.has_delta("a.txt") is True
            assert context.has_delta(project / "a.txt") is True
            assert context.has_delta("b.txt") is False
            assert context.has_delta("") is True
            assert context.has_delta(["a.txt", "b.txt"]) is True
            assert context.has_delta(["b.txt"]) is False
            assert context.has_delta([]) is False

    def test_added_file_marks_parent_directories(self, project, open_build):
        run_build(open_build, project)
        write_file(project / "src" / "main" / "c.txt", "c")

        with open_build(project) as context:
            assert context.delta.added == ("src/main/c.txt",)
            assert context.has_delta("src") is True
            assert context.has_delta(project / "src" / "main") is True
            assert context.has_delta("b.txt") is False

    def test_removed_file(self, project, open_build):
        run_build(open_build, project)
        (project / "b.txt").unlink()

        with open_build(project) as context:
            assert context.delta.removed == ("b.txt",)
            assert context.has_delta("b.txt") is True
            assert context.has_delta("a.txt") is False

    def test_paths_outside_base_always_changed(self, project, open_build, tmp_path):
        run_build(open_build, project)
        outside = write_file(tmp_path / "outside.txt", "x")

        with open_build(project) as context:
            assert context.has_delta(outside) is True
            assert context.has_delta("../outside.txt") is True
            assert context.has_delta("/etc/hosts") is True

    def test_untracked_paths_always_changed(self, project, open_build):
        write_file(project / "build" / "gen.txt", "x")
        run_build(open_build, project, exclude=["build/**"])

        with open_build(project, exclude=["build/**"]) as context:
            assert context.has_delta("build/gen.txt") is True
            assert context.has_delta(".deltabuild/state") is True
            assert context.has_delta("a.txt") is False

    def test_state_directory_is_not_tracked(self, project, open_build):
        run_build(open_build, project)
        run_build(open_build, project)

        with open_build(project) as context:
            assert context.delta.is_empty is True
            assert not any(p.startswith(".deltabuild") for p in context.delta.changed)

    def test_rejects_unsupported_targets(self, project, open_build):
        with open_build(project) as context:
            with pytest.raises(TypeError):
                context.has_delta(42)

    def test_hash_policy_detects_same_size_edit(self, project, open_build):
        run_build(open_build, project, fingerprint="hash")
        write_file(project / "a.txt", "xyz")

        with open_build(project, fingerprint="hash") as context:
            assert context.has_delta("a.txt") is True

    def test_stat_policy_misses_same_size_edit_with_same_mtime(self, project, open_build):
        run_build(open_build, project)
        write_file(project / "a.txt", "xyz")

        with open_build(project) as context:
            assert context.has_delta("a.txt") is False

    def test_policy_change_forces_clean_build(self, project, open_build, caplog):
        run_build(open_build, project)

        with open_build(project, fingerprint="hash") as context:
            assert context.is_incremental() is False
        assert "fingerprint policy" in caplog.text

    def test_corrupt_state_forces_clean_build(self, project, open_build, caplog):
        context = run_build(open_build, project)
        context.state_path.write_text("garbage", encoding="utf-8")

        with open_build(project) as rebuilt:
            assert rebuilt.is_incremental() is False
            assert rebuilt.has_delta("a.txt") is True
        assert "Ignoring previous state" in caplog.text

    def test_external_state_dir(self, project, open_build, tmp_path):
        state_dir = tmp_path / "shared-state"
        context = run_build(open_build, project, state_dir=state_dir)

        assert context.state_path.parent == state_dir
        assert not (project / ".deltabuild").exists()
        with open_build(project, state_dir=state_dir) as again:
            assert again.is_incremental() is True


# =============================================================================
# Scanners
# =============================================================================


@pytest.mark.tier2
class TestScanners:
    """new_scanner() and new_delete_scanner()."""

    def test_clean_build_scanner_sees_everything(self, project, open_build):
        write_file(project / "src" / "c.txt", "c")

        with open_build(project) as context:
            scanner = context.new_scanner(project)
            assert isinstance(scanner, DirectoryScanner)
            scanner.scan()
            assert scanner.included_files == ["a.txt", "b.txt", "src/c.txt"]
            assert scanner.included_directories == ["src"]

    def test_delta_scanner_sees_only_changes(self, project, open_build):
        run_build(open_build, project)
        write_file(project / "a.txt", "changed", mtime_ns=BASE_MTIME_NS + SECOND_NS)
        write_file(project / "src" / "c.txt", "c")

        with open_build(project) as context:
            scanner = context.new_scanner(project)
            assert isinstance(scanner, DeltaScanner)
            scanner.scan()
            assert scanner.included_files == ["a.txt", "src/c.txt"]
            assert scanner.included_directories == ["src"]

            nested = context.new_scanner(project / "src").scan()
            assert nested.included_files == ["c.txt"]
            assert nested.included_directories == []

    def test_delta_scanner_applies_includes(self, project, open_build):
        run_build(open_build, project)
        write_file(project / "src" / "c.txt", "c")
        write_file(project / "src" / "d.md", "d")

        with open_build(project) as context:
            scanner = context.new_scanner(project).set_includes(["**/*.md"]).scan()
            assert scanner.included_files == ["src/d.md"]

    def test_ignore_delta_scans_everything(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            scanner = context.new_scanner(project, ignore_delta=True).scan()
            assert scanner.included_files == ["a.txt", "b.txt"]
            assert scanner.included_directories == []

    def test_scanner_outside_base_is_empty(self, project, open_build, tmp_path):
        with open_build(project) as context:
            scanner = context.new_scanner(tmp_path)
            assert isinstance(scanner, EmptyScanner)
            assert scanner.scan().included_files == []

    def test_delete_scanner(self, project, open_build):
        write_file(project / "old" / "x.txt", "x")
        write_file(project / "keep" / "y.txt", "y")
        write_file(project / "keep" / "z.txt", "z")
        run_build(open_build, project)
        (project / "old" / "x.txt").unlink()
        (project / "old").rmdir()
        (project / "keep" / "y.txt").unlink()

        with open_build(project) as context:
            scanner = context.new_delete_scanner(project)
            assert isinstance(scanner, DeleteScanner)
            scanner.scan()
            assert scanner.included_files == ["keep/y.txt", "old/x.txt"]
            assert scanner.included_directories == ["old"]

            nested = context.new_delete_scanner(project / "keep").scan()
            assert nested.included_files == ["y.txt"]

    def test_delete_scanner_is_empty_on_clean_build(self, project, open_build):
        with open_build(project) as context:
            assert context.new_delete_scanner(project).scan().included_files == []


# =============================================================================
# is_uptodate
# =============================================================================


@pytest.mark.tier2
class TestIsUptodate:
    @pytest.fixture
    def pair(self, project):
        source = write_file(project / "src.txt", "source")
        target = write_file(project / "out.txt", "target", mtime_ns=BASE_MTIME_NS + SECOND_NS)
        return target, source

    def test_unchanged_newer_target(self, project, open_build, pair):
        target, source = pair
        run_build(open_build, project)

        with open_build(project) as context:
            assert context.is_uptodate(target, source) is True
            assert context.is_uptodate(source, target) is False

    def test_missing_files(self, project, open_build, pair):
        target, source = pair
        run_build(open_build, project)

        with open_build(project) as context:
            assert context.is_uptodate(project / "missing", source) is False
            assert context.is_uptodate(target, project / "missing") is False

    def test_changed_source(self, project, open_build, pair):
        target, source = pair
        run_build(open_build, project)
        write_file(source, "edited source")

        with open_build(project) as context:
            assert context.is_uptodate(target, source) is False

    def test_clean_build_is_never_uptodate(self, project, open_build, pair):
        target, source = pair

        with open_build(project) as context:
            assert context.is_uptodate(target, source) is False


# =============================================================================
# Outputs and refresh
# =============================================================================


@pytest.mark.tier2
class TestOutputs:
    def test_written_output_is_not_a_delta_next_build(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            with context.new_file_output_stream(project / "gen" / "out.txt") as out:
                out.write(b"generated")

        with open_build(project) as context:
            assert context.has_delta("gen/out.txt") is False
            assert context.delta.is_empty is True

    def test_unrecorded_write_is_a_delta_next_build(self, project, open_build):
        run_build(open_build, project)

        with open_build(project):
            write_file(project / "gen" / "out.txt", "generated")

        with open_build(project) as context:
            assert context.delta.added == ("gen/out.txt",)

    def test_refresh_records_external_writes(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            write_file(project / "a.txt", "rewritten", mtime_ns=BASE_MTIME_NS + SECOND_NS)
            context.refresh(project / "a.txt")

        with open_build(project) as context:
            assert context.has_delta("a.txt") is False

    def test_refresh_of_deleted_file_forgets_it(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            (project / "b.txt").unlink()
            context.refresh(project / "b.txt")

        with open_build(project) as context:
            assert context.delta.is_empty is True
            assert context.new_delete_scanner(project).scan().included_files == []

    def test_refresh_of_directory(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            write_file(project / "gen" / "one.txt", "1")
            write_file(project / "gen" / "two.txt", "2")
            context.refresh(project / "gen")

        with open_build(project) as context:
            assert context.delta.is_empty is True

    def test_refresh_outside_base_is_ignored(self, project, open_build, tmp_path):
        with open_build(project) as context:
            context.refresh(tmp_path / "elsewhere.txt")

    def test_identical_output_is_not_rewritten(self, project, open_build):
        with open_build(project) as context:
            out = context.new_file_output_stream(project / "a.txt")
            out.write(b"aaa")
            out.close()

            assert out.written is False
            assert (project / "a.txt").stat().st_mtime_ns == BASE_MTIME_NS

    def test_failed_step_keeps_previous_output(self, project, open_build):
        target = write_file(project / "out.txt", "good")
        run_build(open_build, project)

        with open_build(project) as context:
            with pytest.raises(RuntimeError):
                with context.new_file_output_stream(target) as out:
                    out.write(b"parti")
                    raise RuntimeError("step failed")

        assert target.read_bytes() == b"good"
        with open_build(project) as context:
            assert context.delta.is_empty is True

    def test_failed_step_output_is_rebuilt_next_time(self, project, open_build):
        run_build(open_build, project)
        target = project / "gen" / "out.txt"

        with open_build(project) as context:
            with pytest.raises(RuntimeError):
                with context.new_file_output_stream(target) as out:
                    out.write(b"parti")
                    raise RuntimeError("step failed")

        assert not target.exists()
        with open_build(project) as context:
            assert context.is_uptodate(target, project / "a.txt") is False

    def test_refresh_of_deleted_directory(self, project, open_build):
        write_file(project / "gen" / "one.txt", "1")
        write_file(project / "gen" / "sub" / "two.txt", "2")
        run_build(open_build, project)

        with open_build(project) as context:
            (project / "gen" / "sub" / "two.txt").unlink()
            (project / "gen" / "sub").rmdir()
            (project / "gen" / "one.txt").unlink()
            (project / "gen").rmdir()
            context.refresh(project / "gen")

        with open_build(project) as context:
            assert context.delta.is_empty is True

    def test_delta_is_fixed_for_the_build(self, project, open_build):
        run_build(open_build, project)

        with open_build(project) as context:
            write_file(project / "late.txt", "late")
            assert context.has_delta("late.txt") is False
            assert context.new_scanner(project).scan().included_files == []


# =============================================================================
# Values
# =============================================================================


@pytest.mark.tier2
class TestValues:
    def test_values_flow_to_the_next_build(self, project, open_build):
        with open_build(project) as context:
            context.set_value("first", {"a": [1, 2]})
            assert context.get_value("first") is None

        with open_build(project) as context:
            assert context.get_value("first") == {"a": [1, 2]}
            context.set_value("second", [1, 2.5, None, True, "x"])
            assert context.get_value("second") is None

        with open_build(project) as context:
            assert context.get_value("first") == {"a": [1, 2]}
            assert context.get_value("second") == [1, 2.5, None, True, "x"]

    @pytest.mark.parametrize("value", [(1, 2), {1: "one"}, {"s": {3}}, float("nan")])
    def test_values_that_would_read_back_different_are_rejected(
        self, project, open_build, value
    ):
        with open_build(project) as context:
            with pytest.raises(TypeError):
                context.set_value("key", value)

        with open_build(project) as context:
            assert context.get_value("key") is None

    def test_values_are_hidden_from_clean_builds(self, project, open_build):
        with open_build(project) as context:
            context.set_value("key", "value")
        context.state_path.unlink()

        with open_build(project) as context:
            assert context.get_value("key") is None

    def test_non_json_value_is_rejected(self, project, open_build):
        with open_build(project) as context:
            with pytest.raises(TypeError):
                context.set_value("key", object())


# =============================================================================
# Messages
# =============================================================================


@pytest.mark.tier2
class TestMessages:
    def test_messages_carry_over_until_removed(self, project, open_build):
        a_key = str(project / "a.txt")

        with open_build(project) as context:
            context.add_message(project / "a.txt", 3, 4, "old problem", Severity.WARNING)
            assert [m.text for m in context.get_messages()[a_key]] == ["old problem"]

        with open_build(project) as context:
            carried = context.get_messages()[a_key]
            assert [m.text for m in carried] == ["old problem"]
            assert carried[0].line == 3
            assert carried[0].severity is Severity.WARNING

            context.remove_messages(project / "a.txt")
            context.add_message(project / "a.txt", 1, 0, "new problem", Severity.ERROR)
            assert [m.text for m in context.get_messages()[a_key]] == ["new problem"]

        with open_build(project) as context:
            assert [m.text for m in context.get_messages()[a_key]] == ["new problem"]

    def test_remove_does_not_drop_current_messages(self, project, open_build):
        with open_build(project) as context:
            context.add_message(project / "a.txt", 1, 1, "current", Severity.ERROR)
            context.remove_messages(project / "a.txt")

            assert len(context.get_messages()[str(project / "a.txt")]) == 1

    def test_cause_is_persisted_as_summary(self, project, open_build):
        with open_build(project) as context:
            context.add_message(
                project / "a.txt", 1, 1, "parse failed", Severity.ERROR, ValueError("bad")
            )

        with open_build(project) as context:
            message = context.get_messages()[str(project / "a.txt")][0]
            assert message.cause is None
            assert message.cause_summary == "ValueError: bad"

    def test_messages_are_logged_at_close(self, project, open_build, caplog):
        with open_build(project) as context:
            context.add_message(project / "a.txt", 2, 5, "broken", Severity.ERROR)

        assert "a.txt:2:5: broken" in caplog.text

    def test_deprecated_aliases(self, project, open_build):
        with open_build(project) as context:
            with pytest.deprecated_call():
                context.add_warning(project / "a.txt", 1, 1, "w")
            with pytest.deprecated_call():
                context.add_error(project / "b.txt", 1, 1, "e")

            messages = context.get_messages()
            assert messages[str(project / "a.txt")][0].severity is Severity.WARNING
            assert messages[str(project / "b.txt")][0].severity is Severity.ERROR


# =============================================================================
# Lifecycle
# =============================================================================


@pytest.mark.tier2
class TestLifecycle:
    def test_close_is_idempotent(self, project, open_build):
        context = open_build(project)
        context.close()
        context.close()

        assert context.closed is True
        assert context.state_path.exists()

    def test_closed_context_rejects_mutations(self, project, open_build):
        context = run_build(open_build, project)

        with pytest.raises(ContextClosedError):
            context.set_value("k", 1)
        with pytest.raises(ContextClosedError):
            context.refresh(project / "a.txt")
        with pytest.raises(ContextClosedError):
            context.add_message(project / "a.txt", 0, 0, "x", Severity.WARNING)
        with pytest.raises(ContextClosedError):
            context.new_file_output_stream(project / "x.txt")

    def test_stream_closed_after_context_still_writes(self, project, open_build):
        context = open_build(project)
        out = context.new_file_output_stream(project / "late.txt")
        out.write(b"late")
        context.close()

        with pytest.raises(ContextClosedError):
            out.close()
        assert (project / "late.txt").read_bytes() == b"late"

    def test_discard_keeps_previous_state(self, project, open_build):
        run_build(open_build, project)
        write_file(project / "a.txt", "changed", mtime_ns=BASE_MTIME_NS + SECOND_NS)

        inspection = open_build(project)
        inspection.discard()

        with open_build(project) as context:
            assert context.has_delta("a.txt") is True

    def test_persist_failure_propagates(self, project, open_build, monkeypatch):
        first = run_build(open_build, project)
        before = first.state_path.read_bytes()

        def failing_replace(self, target):
            raise OSError("read-only filesystem")

        context = open_build(project)
        context.set_value("k", 1)
        monkeypatch.setattr(Path, "replace", failing_replace)

        with pytest.raises(StatePersistError):
            context.close()
        assert first.state_path.read_bytes() == before

    def test_config_loaded_from_workspace(self, project):
        config_file = project / ".deltabuild" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("deltabuild:\n  fingerprint: hash\n", encoding="utf-8")

        with IncrementalBuildContext(project) as context:
            assert context.config.fingerprint == "hash"
            assert context.has_delta(".deltabuild/config.yaml") is True
