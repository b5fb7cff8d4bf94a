from __future__ import annotations

import pytest

from storecheck import ConfigurationError, InvocationError, NotFoundError, OperationConfig, RecordShape
from storecheck.metrics.registry import STORECHECK_OPERATIONS_SKIPPED_TOTAL
from storecheck.ops import OperationDescriptor, OperationKind, StoreDescriptor, validate_operation_configs

from ._notes import MemoryNoteStore, Note

NOTE = RecordShape.of(Note)


class ExtendedNoteStore(MemoryNoteStore):
    storecheck_operations = {
        **MemoryNoteStore.storecheck_operations,
        "reindex_all": OperationConfig(skip=True),
    }

    def rebuild_index(self) -> None:
        pass

    def reindex_all(self) -> None:
        pass

    def get_by_author(self, author: str) -> Note:
        raise NotImplementedError


class WrappingNoteStore(MemoryNoteStore):
    """Wraps every failure of get() the way an RPC client would."""

    def get(self, id_: int) -> Note:
        try:
            return super().get(id_)
        except NotFoundError as exc:
            raise InvocationError("remote call failed") from exc


def _skipped(store: str, reason: str) -> float:
    return STORECHECK_OPERATIONS_SKIPPED_TOTAL.labels(store=store, reason=reason)._value.get()


class TestOperationDescriptor:
    """Tests for OperationDescriptor.create()."""

    def test_update_with_unmodified_config(self) -> None:
        store = MemoryNoteStore()
        op = OperationDescriptor.create(NOTE, store, "update", store.storecheck_operations["update"])
        assert op.kind is OperationKind.UPDATE
        assert op.target is None
        assert op.identifier is NOTE.identifier
        assert op.unmodified == {"id", "create_time", "delete_time"}
        assert op.modified == {"title", "body", "tags", "pinned", "modify_time"}

    def test_target_update_with_modified_config(self) -> None:
        store = MemoryNoteStore()
        op = OperationDescriptor.create(NOTE, store, "update_body", store.storecheck_operations["update_body"])
        assert op.target is NOTE["body"]
        assert op.identifier is NOTE["id"]
        assert op.modified == {"body", "modify_time"}
        assert "title" in op.unmodified

    def test_computed_fields_are_neither_modified_nor_unmodified(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "update")
        assert "headline" not in op.modified
        assert "headline" not in op.unmodified

    def test_readonly_fields_are_always_unmodified(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "update", OperationConfig(modified=("id", "title")))
        assert op.modified == {"title"}
        assert "id" in op.unmodified

    def test_delete_modifies_only_the_delete_time(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "delete_by_title")
        assert op.identifier is NOTE["title"]
        assert op.modified == {"delete_time"}

    def test_create_modifies_nothing_by_default(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "add")
        assert op.modified == frozenset()
        assert op.identifier is None

    def test_unmatched_name_is_skipped(self) -> None:
        before = _skipped("ExtendedNoteStore", "unmatched")
        assert OperationDescriptor.create(NOTE, ExtendedNoteStore(), "rebuild_index") is None
        assert _skipped("ExtendedNoteStore", "unmatched") == before + 1

    def test_unknown_field_is_skipped(self) -> None:
        before = _skipped("ExtendedNoteStore", "unknown_field")
        assert OperationDescriptor.create(NOTE, ExtendedNoteStore(), "get_by_author") is None
        assert _skipped("ExtendedNoteStore", "unknown_field") == before + 1

    def test_skip_config(self) -> None:
        before = _skipped("MemoryNoteStore", "configured")
        assert OperationDescriptor.create(NOTE, MemoryNoteStore(), "get", OperationConfig(skip=True)) is None
        assert _skipped("MemoryNoteStore", "configured") == before + 1

    def test_identifier_override(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "get", OperationConfig(identifier="title"))
        assert op.identifier is NOTE["title"]

    def test_uri_and_qualified_name(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "get_by_title_or_null")
        assert op.qualified_name == "MemoryNoteStore.get_by_title_or_null"
        assert op.uri.startswith("store://")
        assert op.uri.endswith("MemoryNoteStore/get_by_title_or_null")
        assert op.allow_null_return

    def test_invoke_unwraps_invocation_errors(self) -> None:
        op = OperationDescriptor.create(NOTE, WrappingNoteStore(), "get")
        with pytest.raises(NotFoundError) as excinfo:
            op.invoke(404)
        assert excinfo.value.value == 404

    def test_invoke_passes_other_errors_through(self) -> None:
        op = OperationDescriptor.create(NOTE, MemoryNoteStore(), "get")
        with pytest.raises(NotFoundError):
            op.invoke(404, log_errors=True)


class TestStoreDescriptor:
    """Tests for StoreDescriptor classification of a whole store."""

    def test_operations_and_canonical_verbs(self) -> None:
        descriptor = StoreDescriptor(ExtendedNoteStore(), NOTE)
        assert "rebuild_index" not in descriptor.operations
        assert "reindex_all" not in descriptor.operations
        assert "get_by_author" not in descriptor.operations
        assert {verb: op.name for verb, op in descriptor.canonical.items()} == {
            "add": "add",
            "clear": "clear",
            "count": "count",
            "delete": "delete",
            "erase": "erase",
            "exist": "exist",
            "get": "get",
            "update": "update",
        }
        assert descriptor.has_delete
        assert descriptor.has_exist

    def test_sorted_operations_follow_kind_order(self) -> None:
        kinds = [op.kind.order for op in StoreDescriptor(MemoryNoteStore(), NOTE).sorted_operations()]
        assert kinds == sorted(kinds)

    def test_update_for(self) -> None:
        descriptor = StoreDescriptor(MemoryNoteStore(), NOTE)
        assert descriptor.update_for(NOTE["id"]).name == "update"
        assert descriptor.update_for(NOTE["title"]) is None

    def test_canonical_fixtures_call_the_store(self) -> None:
        store = MemoryNoteStore()
        descriptor = StoreDescriptor(store, NOTE)
        note = Note(title="groceries")
        descriptor.add(note)
        assert descriptor.exist(note.id)
        assert descriptor.get(note.id) == note
        assert descriptor.count() == 1
        descriptor.delete(note.id)
        descriptor.erase(note.id)
        assert descriptor.clear() == 0

    def test_operation_lookup(self) -> None:
        descriptor = StoreDescriptor(MemoryNoteStore(), NOTE)
        assert descriptor.operation("get_body").target is NOTE["body"]
        with pytest.raises(ConfigurationError, match="not a testable operation"):
            descriptor.operation("rebuild_index")

    def test_registration_time_configs_override_class_configs(self) -> None:
        descriptor = StoreDescriptor(
            MemoryNoteStore(), NOTE, {"update": OperationConfig(modified=("title", "modify_time"))}
        )
        assert descriptor.operation("update").modified == {"title", "modify_time"}

    def test_ambiguous_names_are_rejected(self) -> None:
        class AmbiguousStore(MemoryNoteStore):
            def getByTitle(self, title: str) -> Note:
                return self.get_by_title(title)

        with pytest.raises(ConfigurationError, match="Ambiguous"):
            StoreDescriptor(AmbiguousStore(), NOTE)

    def test_store_without_add_is_rejected(self) -> None:
        class ReadOnlyStore:
            def get(self, id_: int) -> Note:
                return Note(id=id_)

        with pytest.raises(ConfigurationError, match="No add operation"):
            StoreDescriptor(ReadOnlyStore(), NOTE)

    def test_store_without_operations_is_rejected(self) -> None:
        class EmptyStore:
            def rebuild_index(self) -> None:
                pass

        with pytest.raises(ConfigurationError, match="No testable operation"):
            StoreDescriptor(EmptyStore(), NOTE)

    def test_missing_canonical_operation(self) -> None:
        class AddOnlyStore:
            def add(self, note: Note) -> None:
                pass

        descriptor = StoreDescriptor(AddOnlyStore(), NOTE)
        assert not descriptor.has_delete
        with pytest.raises(ConfigurationError, match="No get operation"):
            descriptor.get(1)


class TestValidateOperationConfigs:
    """Tests for registration-time validation of operation configs."""

    def test_valid_configs(self) -> None:
        validate_operation_configs(ExtendedNoteStore(), NOTE)

    def test_unknown_operation(self) -> None:
        with pytest.raises(ConfigurationError, match="no operation named 'publish'"):
            validate_operation_configs(MemoryNoteStore(), NOTE, {"publish": OperationConfig(skip=True)})

    def test_unknown_field(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown field Note.author"):
            validate_operation_configs(MemoryNoteStore(), NOTE, {"update": OperationConfig(modified=("author",))})

    def test_mutated_fields_on_a_delete(self) -> None:
        with pytest.raises(ConfigurationError, match="only be declared for add/update"):
            validate_operation_configs(MemoryNoteStore(), NOTE, {"delete": OperationConfig(modified=("title",))})

    def test_config_type(self) -> None:
        with pytest.raises(ConfigurationError, match="must be an OperationConfig"):
            validate_operation_configs(MemoryNoteStore(), NOTE, {"update": {"modified": ("title",)}})


def test_modified_and_unmodified_are_exclusive() -> None:
    with pytest.raises(ConfigurationError, match="mutually exclusive"):
        OperationConfig(modified=("title",), unmodified=("body",))
