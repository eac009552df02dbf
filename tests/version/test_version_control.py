"""Tests for the in-memory version store."""

import threading

import pytest

from summary_desk.core.exceptions import InvalidArgumentError, NotFoundError
from summary_desk.core.models import RevisionAction
from summary_desk.version.version_control import VersionStore


def test_save_version_sanitizes_and_records_stats(store):
    revision = store.save_version("doc-1", "  <b onclick=x>Hello</b> world; <script>x()</script> ")

    assert revision.content == "<b>Hello</b> world"
    assert revision.document_id == "doc-1"
    assert revision.author_id == "anonymous"
    assert revision.action == "edit"
    assert revision.stats.word_count == 2
    assert revision.stats.character_count == len(revision.content)
    assert revision.extra == {}


@pytest.mark.parametrize("document_id, content", [("", "text"), ("doc-1", ""), (None, "text"), ("doc-1", None)])
def test_save_version_requires_document_and_content(store, document_id, content):
    with pytest.raises(InvalidArgumentError):
        store.save_version(document_id, content)


def test_saved_revision_can_be_fetched(store):
    saved = store.save_version("doc-1", "Meeting notes", "bob", "auto-save", {"source": "editor"})
    fetched = store.get_version("doc-1", saved.id)

    assert fetched == saved
    assert fetched.content == "Meeting notes"
    assert fetched.action == "auto-save"
    assert fetched.stats == saved.stats
    assert fetched.extra == {"source": "editor"}


def test_enum_action_is_stored_as_its_value(store):
    revision = store.save_version("doc-1", "imported", action=RevisionAction.IMPORT)
    assert revision.action == "import"


def test_get_version_absent_returns_none(store):
    store.save_version("doc-1", "text")
    assert store.get_version("doc-1", "missing") is None
    assert store.get_version("other", "missing") is None


def test_get_version_requires_ids(store):
    with pytest.raises(InvalidArgumentError):
        store.get_version("doc-1", "")


def test_versions_are_newest_first(store):
    saved = [store.save_version("doc-1", f"revision {i}") for i in range(5)]
    versions = store.get_versions("doc-1")

    assert [v.id for v in versions] == [r.id for r in reversed(saved)]
    assert versions == sorted(versions, key=lambda v: v.timestamp, reverse=True)
    assert store.get_latest_version("doc-1") == versions[0] == saved[-1]


def test_ids_are_unique_and_ordered_for_rapid_saves():
    store = VersionStore(max_versions=200)
    saved = [store.save_version("doc-1", "same content") for _ in range(100)]

    ids = [r.id for r in saved]
    assert len(set(ids)) == 100
    assert ids == sorted(ids)
    assert [r.timestamp for r in saved] == sorted(r.timestamp for r in saved)


def test_unknown_document_has_no_versions(store):
    assert store.get_versions("nobody") == []
    assert store.get_latest_version("nobody") is None


def test_get_versions_requires_document_id(store):
    with pytest.raises(InvalidArgumentError):
        store.get_versions("")


def test_documents_are_partitioned(store):
    store.save_version("doc-1", "first")
    store.save_version("doc-2", "second")
    assert [v.content for v in store.get_versions("doc-1")] == ["first"]
    assert store.document_ids() == ["doc-1", "doc-2"]


def test_retention_cap_evicts_oldest():
    store = VersionStore(max_versions=3)
    saved = [store.save_version("doc-1", f"revision {i}") for i in range(5)]
    versions = store.get_versions("doc-1")

    assert len(versions) == 3
    assert [v.id for v in versions] == [r.id for r in reversed(saved[2:])]


def test_default_retention_cap_is_fifty(store):
    for i in range(55):
        store.save_version("doc-1", f"revision {i}")
    versions = store.get_versions("doc-1")
    assert len(versions) == 50
    assert versions[0].content == "revision 54"
    assert versions[-1].content == "revision 5"


def test_zero_cap_keeps_newest_revision():
    store = VersionStore(max_versions=0)
    store.save_version("doc-1", "old")
    newest = store.save_version("doc-1", "new")
    assert store.get_versions("doc-1") == [newest]


def test_negative_cap_is_rejected():
    with pytest.raises(InvalidArgumentError):
        VersionStore(max_versions=-1)


def test_list_versions_paginates(store):
    for i in range(5):
        store.save_version("doc-1", f"revision {i}")

    first = store.list_versions("doc-1", offset=0, limit=2)
    assert [v.content for v in first.versions] == ["revision 4", "revision 3"]
    assert first.total == 5
    assert first.has_more is True

    last = store.list_versions("doc-1", offset=4, limit=2)
    assert [v.content for v in last.versions] == ["revision 0"]
    assert last.has_more is False
    assert last.to_dict()["has_more"] is False


def test_list_versions_rejects_negative_paging(store):
    with pytest.raises(InvalidArgumentError):
        store.list_versions("doc-1", offset=-1)


def test_compare_restore_scenario(store):
    first = store.save_version("doc-1", "Hello world", action="edit")
    second = store.save_version("doc-1", "Hello brave world", action="edit")

    comparison = store.compare_versions("doc-1", first.id, second.id)
    assert "Hello brave world" in comparison.added
    assert "Hello world" in comparison.removed
    assert comparison.total_changes == 2

    restored = store.restore_version("doc-1", first.id)
    assert restored.content == "Hello world"
    assert restored.action == "restore"
    assert restored.extra["restored_from"] == first.id
    assert restored.extra["original_timestamp"] == first.timestamp
    assert store.get_latest_version("doc-1") == restored


def test_compare_is_order_sensitive(store):
    first = store.save_version("doc-1", "alpha beta")
    second = store.save_version("doc-1", "gamma")

    forward = store.compare_versions("doc-1", first.id, second.id)
    backward = store.compare_versions("doc-1", second.id, first.id)

    assert forward.added == backward.removed
    assert forward.removed == backward.added
    assert forward.total_changes == backward.total_changes
    assert forward.to_dict()["differences"]["total_changes"] == 2


def test_compare_missing_version_is_not_found(store):
    first = store.save_version("doc-1", "text")
    with pytest.raises(NotFoundError):
        store.compare_versions("doc-1", first.id, "missing")
    with pytest.raises(NotFoundError):
        store.compare_versions("doc-2", first.id, first.id)


def test_compare_requires_both_ids(store):
    with pytest.raises(InvalidArgumentError):
        store.compare_versions("doc-1", "1", "")


def test_restore_keeps_history(store):
    first = store.save_version("doc-1", "original")
    store.save_version("doc-1", "changed")

    store.restore_version("doc-1", first.id, "carol")

    versions = store.get_versions("doc-1")
    assert len(versions) == 3
    assert store.get_version("doc-1", first.id) == first
    assert versions[0].author_id == "carol"
    assert versions[0].content == first.content


def test_restore_missing_version_is_not_found(store):
    store.save_version("doc-1", "text")
    with pytest.raises(NotFoundError):
        store.restore_version("doc-1", "missing")


def test_stats_for_empty_document(store):
    stats = store.get_version_stats("nobody")
    assert stats.total_versions == 0
    assert stats.first_version is None
    assert stats.last_version is None
    assert stats.average_word_count == 0
    assert stats.timeline == []
    assert stats.to_dict()["first_version"] is None


def test_stats_summarize_history(store):
    first = store.save_version("doc-1", "one two")
    store.save_version("doc-1", "one two three", action="auto-save")
    last = store.save_version("doc-1", "one two three", action="edit")

    stats = store.get_version_stats("doc-1")
    assert stats.total_versions == 3
    assert stats.first_version == first
    assert stats.last_version == last
    # (2 + 3 + 3) / 3 rounds to 3
    assert stats.average_word_count == 3
    assert stats.total_edits == 2
    assert [entry.action for entry in stats.timeline] == ["edit", "auto-save", "edit"]
    assert stats.timeline[0].timestamp == last.timestamp


def test_stats_average_rounds_half_up(store):
    store.save_version("doc-1", "one two")
    store.save_version("doc-1", "one two three")
    assert store.get_version_stats("doc-1").average_word_count == 3


def test_cleanup_keeps_most_recent(store):
    saved = [store.save_version("doc-1", f"revision {i}") for i in range(5)]

    removed = store.cleanup_old_versions("doc-1", keep_count=2)

    assert removed == 3
    assert [v.id for v in store.get_versions("doc-1")] == [saved[4].id, saved[3].id]


def test_cleanup_is_noop_when_within_limit(store):
    store.save_version("doc-1", "only")
    assert store.cleanup_old_versions("doc-1", keep_count=1) == 0
    assert store.cleanup_old_versions("nobody", keep_count=1) == 0
    assert len(store.get_versions("doc-1")) == 1


def test_cleanup_uses_default_keep_count():
    store = VersionStore(default_keep_count=3)
    for i in range(6):
        store.save_version("doc-1", f"revision {i}")
    assert store.cleanup_old_versions("doc-1") == 3
    assert len(store.get_versions("doc-1")) == 3


def test_cleanup_to_zero_keeps_newest(store):
    store.save_version("doc-1", "old")
    newest = store.save_version("doc-1", "new")
    store.cleanup_old_versions("doc-1", keep_count=0)
    assert store.get_versions("doc-1") == [newest]


def test_cleanup_rejects_negative_keep_count(store):
    with pytest.raises(InvalidArgumentError):
        store.cleanup_old_versions("doc-1", keep_count=-1)


def test_export_version_history_is_metadata_only(store):
    store.save_version("doc-1", "private words", "dave")
    bundle = store.export_version_history("doc-1")

    data = bundle.to_dict()
    assert data["document_id"] == "doc-1"
    assert data["total_versions"] == 1
    assert data["versions"][0]["author_id"] == "dave"
    assert "content" not in data["versions"][0]
    assert store.history_filename("doc-1") == "version-history-doc-1.json"


def test_concurrent_saves_respect_cap():
    store = VersionStore(max_versions=20)
    errors = []

    def worker(n):
        try:
            for i in range(25):
                store.save_version("shared", f"worker {n} save {i}")
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    versions = store.get_versions("shared")
    assert errors == []
    assert len(versions) == 20
    assert len({v.id for v in versions}) == 20
    assert versions == sorted(versions, key=lambda v: v.timestamp, reverse=True)


@pytest.mark.parametrize("content", ["   ", "<script>x()</script>", "<!-- note -->", "\x00\n"])
def test_content_empty_after_sanitizing_is_rejected(store, content):
    with pytest.raises(InvalidArgumentError):
        store.save_version("doc-1", content)
    assert store.get_versions("doc-1") == []


@pytest.mark.parametrize("content", ["Q&A session", "AT&T", "R&D budget", "x<y", "if a < b & c > d"])
def test_restore_reproduces_content_exactly(store, content):
    first = store.save_version("doc-1", content)
    store.save_version("doc-1", "something else")

    restored = store.restore_version("doc-1", first.id)

    assert restored.content == first.content
    assert restored.stats == first.stats


def test_special_characters_are_kept(store):
    assert store.save_version("doc-1", "Q&A with AT&T").content == "Q&A with AT&T"


def test_revision_extra_is_read_only(store):
    source = {"source": "editor", "tags": ["a"]}
    saved = store.save_version("doc-1", "text", extra=source)

    with pytest.raises(TypeError):
        saved.extra["source"] = "tampered"
    source["source"] = "changed by caller"
    source["tags"].append("b")

    fetched = store.get_version("doc-1", saved.id)
    assert fetched.extra == {"source": "editor", "tags": ["a"]}


def test_reads_do_not_register_unknown_documents(store):
    store.get_versions("ghost")
    store.get_version("ghost", "1")
    store.cleanup_old_versions("ghost", 1)
    store.get_version_stats("ghost")

    assert "ghost" not in store._locks
    assert store.document_ids() == []


def test_document_ids_while_saving_concurrently():
    store = VersionStore()
    errors = []

    def writer(n):
        for i in range(50):
            store.save_version(f"doc-{n}-{i}", "text")

    def reader():
        try:
            for _ in range(200):
                store.document_ids()
        except RuntimeError as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads.append(threading.Thread(target=reader))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(store.document_ids()) == 200
