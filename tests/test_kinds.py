from __future__ import annotations

import pytest

from storecheck.ops import OperationKind, classify
from storecheck.ops.kinds import to_camel_case

K = OperationKind


@pytest.mark.parametrize(
    "name, kind, target, key",
    [
        ("exist", K.EXISTS, None, None),
        ("exist_by_code", K.EXISTS, None, "code"),
        ("exist_name", K.EXISTS, None, "name"),
        ("exist_non_deleted", K.EXISTS_IGNORING_DELETED, None, None),
        ("exist_non_deleted_by_code", K.EXISTS_IGNORING_DELETED, None, "code"),
        ("count", K.COUNT, None, None),
        ("list", K.LIST, None, None),
        ("get", K.READ, None, None),
        ("get_by_code", K.READ, None, "code"),
        ("get_info", K.READ, "info", None),
        ("get_info_by_code", K.READ, "info", "code"),
        ("get_or_null", K.READ_OR_NULL, None, None),
        ("get_by_code_or_null", K.READ_OR_NULL, None, "code"),
        ("add", K.CREATE, None, None),
        ("update", K.UPDATE, None, None),
        ("update_by_code", K.UPDATE, None, "code"),
        ("update_name", K.UPDATE, "name", None),
        ("update_name_by_code", K.UPDATE, "name", "code"),
        ("update_phone_area_by_code", K.UPDATE, "phone_area", "code"),
        ("add_or_update", K.CREATE_OR_UPDATE, None, None),
        ("add_or_update_by_code", K.CREATE_OR_UPDATE, None, "code"),
        ("delete", K.DELETE, None, None),
        ("delete_by_name", K.DELETE, None, "name"),
        ("restore_by_code", K.RESTORE, None, "code"),
        ("purge", K.PURGE, None, None),
        ("purge_all", K.PURGE_ALL, None, None),
        ("erase_by_code", K.ERASE, None, "code"),
        ("clear", K.CLEAR, None, None),
    ],
)
def test_classify_snake_case_names(name: str, kind: OperationKind, target, key) -> None:
    result = classify(name)
    assert result is not None
    assert result.kind is kind
    assert result.target == target
    assert result.key == key


@pytest.mark.parametrize(
    "name, kind, target, key",
    [
        ("getByCode", K.READ, None, "code"),
        ("existNonDeletedByCode", K.EXISTS_IGNORING_DELETED, None, "code"),
        ("updatePhoneAreaByCode", K.UPDATE, "phone_area", "code"),
        ("addOrUpdateByName", K.CREATE_OR_UPDATE, None, "name"),
        ("purgeAll", K.PURGE_ALL, None, None),
    ],
)
def test_classify_camel_case_names(name: str, kind: OperationKind, target, key) -> None:
    result = classify(name)
    assert result is not None
    assert (result.kind, result.target, result.key) == (kind, target, key)


@pytest.mark.parametrize(
    "name",
    ["rebuild_index", "add_all", "exists", "counter", "find_by_code", "listing", "get_by_2fa", "getBy2fa", "exist_by_code2"],
)
def test_unmatched_names_are_not_classified(name: str) -> None:
    assert classify(name) is None


class TestOperationKind:
    """Tests for the OperationKind properties generators rely on."""

    def test_declaration_order_is_classification_order(self) -> None:
        """EXISTS is tried first and CLEAR last."""
        assert K.EXISTS.order == 0
        assert K.CLEAR.order == len(OperationKind) - 1
        assert K.READ_OR_NULL.order < K.READ.order

    def test_only_read_or_null_allows_null_return(self) -> None:
        assert [k for k in OperationKind if k.allows_null_return] == [K.READ_OR_NULL]

    def test_target_kinds(self) -> None:
        assert {k for k in OperationKind if k.takes_target} == {
            K.READ,
            K.READ_OR_NULL,
            K.UPDATE,
            K.CREATE_OR_UPDATE,
        }

    def test_table_wide_kinds_take_no_identifier(self) -> None:
        for kind in (K.COUNT, K.LIST, K.CREATE, K.PURGE_ALL, K.CLEAR):
            assert not kind.takes_identifier, kind

    def test_delete_and_restore_modify_the_delete_time(self) -> None:
        assert K.DELETE.default_modified == frozenset({"delete_time"})
        assert K.RESTORE.default_modified == frozenset({"delete_time"})
        assert K.PURGE.default_modified == frozenset()

    def test_configurable_kinds(self) -> None:
        assert {k for k in OperationKind if k.configurable} == {K.CREATE, K.UPDATE, K.CREATE_OR_UPDATE}


@pytest.mark.parametrize(
    "name, expected",
    [
        ("exist_non_deleted_by_code", "existNonDeletedByCode"),
        ("getByCode", "getByCode"),
        ("get", "get"),
        ("update_phone_area", "updatePhoneArea"),
    ],
)
def test_to_camel_case(name: str, expected: str) -> None:
    assert to_camel_case(name) == expected
