"""Tests for MetadataStore: merge rules, comments, persistence, concurrency."""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from codeview.models import FileMetadata, LineRange
from codeview.store import MetadataStore, _ReadWriteLock
from tests._factories import make_suggestion, make_test


class TestTestMetadata:
    def test_get_unknown_path_is_none(self, store: MetadataStore) -> None:
        assert store.get_test_metadata("nope.go") is None

    def test_add_merges_by_file_and_name(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test("TestA"), make_test("TestB")])
        store.add_test_metadata("a.go", [make_test("TestB", comment="v2"), make_test("TestC")])

        meta = store.get_test_metadata("a.go")
        assert meta is not None
        by_name = {t.test_name: t for t in meta.tests}
        assert set(by_name) == {"TestA", "TestB", "TestC"}
        assert by_name["TestB"].comment == "v2"

    def test_replacement_is_whole_entry(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test("TestA", input_lines=LineRange(2, 3))])
        store.add_test_metadata("a.go", [make_test("TestA")])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert meta.tests[0].input_lines is None

    def test_same_name_in_different_files_are_distinct(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test("TestA", test_file="x_test.go")])
        store.add_test_metadata("a.go", [make_test("TestA", test_file="y_test.go")])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert len(meta.tests) == 2

    def test_merge_order_is_deterministic(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test("TestA"), make_test("TestB")])
        store.add_test_metadata("a.go", [make_test("TestC"), make_test("TestA", comment="v2")])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert [t.test_name for t in meta.tests] == ["TestA", "TestB", "TestC"]

    def test_duplicates_in_one_batch_keep_last(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test("TestA", comment="first"), make_test("TestA", comment="last")])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert [t.comment for t in meta.tests] == ["last"]

    def test_set_replaces_and_empty_clears(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test("TestA"), make_test("TestB")])
        store.set_test_metadata("a.go", [make_test("TestZ")])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert [t.test_name for t in meta.tests] == ["TestZ"]

        store.set_test_metadata("a.go", [])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert meta.tests == []

    def test_set_keeps_suggestions_and_comments(self, store: MetadataStore) -> None:
        store.add_suggestions("a.go", [make_suggestion()])
        store.add_comment("a.go", line=1, content="note")
        store.set_test_metadata("a.go", [])
        assert len(store.get_suggestions("a.go")) == 1
        assert len(store.get_comments("a.go")) == 1

    def test_paths_are_not_normalized(self, store: MetadataStore) -> None:
        store.add_test_metadata("./a.go", [make_test()])
        assert store.get_test_metadata("a.go") is None

    def test_returned_metadata_is_a_copy(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test()])
        meta = store.get_test_metadata("a.go")
        assert meta is not None
        meta.tests[0].comment = "mutated"
        meta.tests.clear()
        again = store.get_test_metadata("a.go")
        assert again is not None
        assert again.tests[0].comment == "checks the happy path"

    @pytest.mark.parametrize("method", ["set_test_metadata", "add_test_metadata"])
    def test_stored_tests_are_detached_from_caller(self, store: MetadataStore, method: str) -> None:
        test = make_test()
        getattr(store, method)("a.go", [test])
        test.comment = "changed after the call"
        test.covered_lines = LineRange(1, 1)

        meta = store.get_test_metadata("a.go")
        assert meta is not None
        assert meta.tests[0].comment == "checks the happy path"
        assert meta.tests[0].covered_lines == LineRange(10, 20)


class TestSuggestions:
    def test_stored_suggestions_are_detached_from_caller(self, store: MetadataStore) -> None:
        suggestion = make_suggestion()
        store.add_suggestions("a.go", [suggestion])
        suggestion.reason = "changed after the call"
        assert store.get_suggestions("a.go")[0].reason == "error branch is never exercised"

    def test_unknown_path_is_empty(self, store: MetadataStore) -> None:
        assert store.get_suggestions("nope.go") == []

    def test_merge_by_suggested_name(self, store: MetadataStore) -> None:
        store.add_suggestions("a.go", [make_suggestion("TestX"), make_suggestion("TestY")])
        store.add_suggestions("a.go", [make_suggestion("TestY", priority="low")])
        items = {s.suggested_name: s for s in store.get_suggestions("a.go")}
        assert set(items) == {"TestX", "TestY"}
        assert items["TestY"].priority == "low"


class TestComments:
    def test_add_assigns_unique_ids_and_equal_timestamps(self, store: MetadataStore) -> None:
        c1 = store.add_comment("a.go", line=3, content="first")
        c2 = store.add_comment("a.go", line=3, content="first")
        assert c1.id != c2.id
        assert c1.created_at == c1.updated_at
        assert c1.resolved is False
        assert [c.id for c in store.get_comments("a.go")] == [c1.id, c2.id]

    def test_add_carries_context_and_author(self, store: MetadataStore) -> None:
        c = store.add_comment("a.go", line=3, content="x", context_lines=LineRange(2, 4), author="sam")
        stored = store.get_comments("a.go")[0]
        assert stored.context_lines == LineRange(2, 4)
        assert stored.author == "sam"
        assert stored == c

    def test_update_sets_content_and_bumps_updated_at(self, store: MetadataStore) -> None:
        c = store.add_comment("a.go", line=1, content="old")
        assert store.update_comment("a.go", c.id, "new") is True
        updated = store.get_comments("a.go")[0]
        assert updated.content == "new"
        assert updated.created_at == c.created_at
        assert datetime.fromisoformat(updated.updated_at) > datetime.fromisoformat(c.updated_at)

    def test_update_unknown_id_is_silent_noop(self, store: MetadataStore) -> None:
        c = store.add_comment("a.go", line=1, content="keep")
        assert store.update_comment("a.go", "missing", "x") is False
        assert store.update_comment("other.go", c.id, "x") is False
        assert store.get_comments("a.go")[0].content == "keep"

    def test_delete_removes_only_match(self, store: MetadataStore) -> None:
        c1 = store.add_comment("a.go", line=1, content="one")
        c2 = store.add_comment("a.go", line=2, content="two")
        assert store.delete_comment("a.go", c1.id) is True
        assert [c.id for c in store.get_comments("a.go")] == [c2.id]
        assert store.delete_comment("a.go", c1.id) is False

    def test_double_toggle_restores_resolved(self, store: MetadataStore) -> None:
        c = store.add_comment("a.go", line=1, content="x")
        assert store.toggle_comment_resolved("a.go", c.id) is True
        assert store.get_comments("a.go")[0].resolved is True
        store.toggle_comment_resolved("a.go", c.id)
        after = store.get_comments("a.go")[0]
        assert after.resolved is False
        assert datetime.fromisoformat(after.updated_at) > datetime.fromisoformat(c.updated_at)

    def test_toggle_unknown_path_is_noop(self, store: MetadataStore) -> None:
        assert store.toggle_comment_resolved("nope.go", "x") is False
        assert store.get_all_metadata() == {}


class TestGetAllMetadata:
    def test_snapshot_is_shallow_copy(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test()])
        snapshot = store.get_all_metadata()
        snapshot["b.go"] = FileMetadata()
        assert set(store.get_all_metadata()) == {"a.go"}


class TestPersistence:
    def test_missing_file_means_empty_store(self, persistent_store: MetadataStore, metadata_path: Path) -> None:
        assert persistent_store.get_all_metadata() == {}
        assert not metadata_path.exists()

    def test_every_mutation_rewrites_file(self, persistent_store: MetadataStore, metadata_path: Path) -> None:
        persistent_store.add_test_metadata("a.go", [make_test()])
        doc = json.loads(metadata_path.read_text())
        assert doc["a.go"]["tests"][0]["testName"] == "TestA"
        assert "suggestions" not in doc["a.go"]

        c = persistent_store.add_comment("a.go", line=2, content="look")
        doc = json.loads(metadata_path.read_text())
        assert doc["a.go"]["comments"][0]["id"] == c.id

    def test_save_then_reload_round_trips(self, persistent_store: MetadataStore, metadata_path: Path) -> None:
        persistent_store.add_test_metadata("a.go", [make_test(input_lines=LineRange(2, 3))])
        persistent_store.add_suggestions("a.go", [make_suggestion()])
        c = persistent_store.add_comment("b.go", line=7, content="why?", author="sam")
        persistent_store.toggle_comment_resolved("b.go", c.id)
        persistent_store.save()

        reloaded = MetadataStore(metadata_path)
        assert reloaded.get_all_metadata() == persistent_store.get_all_metadata()

    def test_noop_comment_ops_do_not_write(self, persistent_store: MetadataStore, metadata_path: Path) -> None:
        persistent_store.update_comment("a.go", "missing", "x")
        persistent_store.delete_comment("a.go", "missing")
        assert not metadata_path.exists()

    def test_corrupt_file_starts_empty(self, metadata_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        metadata_path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="codeview.store"):
            s = MetadataStore(metadata_path)
        assert s.get_all_metadata() == {}
        assert "Failed to load metadata" in caplog.text

    def test_wrong_shape_starts_empty(self, metadata_path: Path) -> None:
        metadata_path.write_text("[1, 2, 3]")
        assert MetadataStore(metadata_path).get_all_metadata() == {}

    def test_save_without_path_is_noop(self, store: MetadataStore) -> None:
        store.add_test_metadata("a.go", [make_test()])
        store.save()

    def test_write_failure_propagates_and_keeps_memory(self, tmp_path: Path) -> None:
        target = tmp_path / "missing-dir" / "metadata.json"
        s = MetadataStore(target)
        with pytest.raises(OSError):
            s.add_test_metadata("a.go", [make_test()])
        meta = s.get_test_metadata("a.go")
        assert meta is not None
        assert len(meta.tests) == 1


class TestConcurrency:
    def test_parallel_writers_lose_nothing(self, persistent_store: MetadataStore, metadata_path: Path) -> None:
        barrier = threading.Barrier(8)
        errors: list[BaseException] = []

        def worker(n: int) -> None:
            try:
                barrier.wait()
                for i in range(10):
                    persistent_store.add_test_metadata("a.go", [make_test(f"T{n}_{i}")])
                    persistent_store.add_comment("a.go", line=n + 1, content=f"{n}:{i}")
                    persistent_store.get_test_metadata("a.go")
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        meta = persistent_store.get_test_metadata("a.go")
        assert meta is not None
        assert len(meta.tests) == 80
        assert len(meta.comments) == 80
        assert MetadataStore(metadata_path).get_all_metadata() == persistent_store.get_all_metadata()


def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class TestReadWriteLock:
    def test_readers_share_the_lock(self) -> None:
        lock = _ReadWriteLock()
        both_inside = threading.Barrier(2, timeout=2)
        errors: list[BaseException] = []

        def reader() -> None:
            try:
                with lock.read():
                    # Only passes if the other reader is inside at the same time.
                    both_inside.wait()
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert errors == []

    def test_writer_excludes_readers(self) -> None:
        lock = _ReadWriteLock()
        entered = threading.Event()

        def reader() -> None:
            with lock.read():
                entered.set()

        with lock.write():
            t = threading.Thread(target=reader)
            t.start()
            assert not entered.wait(0.2)
        assert entered.wait(2)
        t.join(timeout=5)

    def test_writer_excludes_writers(self) -> None:
        lock = _ReadWriteLock()
        entered = threading.Event()

        def writer() -> None:
            with lock.write():
                entered.set()

        with lock.write():
            t = threading.Thread(target=writer)
            t.start()
            assert not entered.wait(0.2)
        assert entered.wait(2)
        t.join(timeout=5)

    def test_waiting_writer_goes_before_new_readers(self) -> None:
        lock = _ReadWriteLock()
        order: list[str] = []

        def writer() -> None:
            with lock.write():
                order.append("writer")

        def late_reader() -> None:
            with lock.read():
                order.append("reader")

        with lock.read():
            w = threading.Thread(target=writer)
            w.start()
            assert _wait_until(lambda: lock._waiting_writers == 1)
            r = threading.Thread(target=late_reader)
            r.start()
            time.sleep(0.1)
            assert order == []
        w.join(timeout=5)
        r.join(timeout=5)

        assert order == ["writer", "reader"]
