import pytest
from unittest.mock import MagicMock

from crealink.db.firebase_ops import InvalidCursor, Page, StorePermissionDenied
from crealink.services.directory import (
    backfill_display_names,
    count_expert_projects,
    ensure_display_name,
    load_directory,
    roles_for,
)


@pytest.fixture
def ops():
    mock_ops = MagicMock()
    mock_ops.query_many.return_value = []
    return mock_ops


def _doc(uid, role="expert", name=None):
    return {"id": uid, "role": role, "display_name": name or uid}


def test_roles_for():
    assert roles_for("experts") == ["expert"]
    assert roles_for("creators") == ["creator", "influencer"]


def test_load_first_page(ops):
    ops.paginate.return_value = Page(items=[_doc("a"), _doc("b")], next_cursor="b", has_more=True)

    page = load_directory(ops, "experts", limit=2)

    assert [p.uid for p in page.profiles] == ["a", "b"]
    assert page.next_cursor == "b"
    assert page.has_more is True
    assert page.degraded is False
    ops.paginate.assert_called_once_with(
        "users", [("role", "==", "expert")], order_by="display_name", limit=2, start_after=None
    )


def test_load_next_page_uses_cursor(ops):
    ops.paginate.return_value = Page(items=[_doc("c")], next_cursor="c", has_more=False)

    page = load_directory(ops, "experts", cursor="b", limit=2)

    assert ops.paginate.call_args.kwargs["start_after"] == "b"
    assert page.has_more is False


def test_default_page_size(ops):
    ops.paginate.return_value = Page(items=[], next_cursor=None, has_more=False)

    page = load_directory(ops, "creators")

    assert ops.paginate.call_args.kwargs["limit"] == 6
    assert page.profiles == []
    assert page.next_cursor is None


def test_permission_denied_falls_back_once(ops):
    ops.paginate.side_effect = StorePermissionDenied("users")
    ops.get_all.return_value = [_doc("a"), _doc("c1", role="creator"), _doc("b")]

    page = load_directory(ops, "experts")

    ops.get_all.assert_called_once_with("users", limit=20)
    assert [p.uid for p in page.profiles] == ["a", "b"]
    assert page.degraded is True
    assert page.has_more is False
    assert page.next_cursor is None


def test_permission_denied_with_cursor_propagates(ops):
    ops.paginate.side_effect = StorePermissionDenied("users")

    with pytest.raises(StorePermissionDenied):
        load_directory(ops, "experts", cursor="b")
    ops.get_all.assert_not_called()


def test_invalid_cursor_propagates(ops):
    ops.paginate.side_effect = InvalidCursor("zz")

    with pytest.raises(InvalidCursor):
        load_directory(ops, "creators", cursor="zz")


def test_expert_pages_carry_project_counts(ops):
    ops.paginate.return_value = Page(items=[_doc("a")], next_cursor="a", has_more=False)
    ops.query_many.return_value = [{"id": "p1"}, {"id": "p2"}, {"id": "p3"}]

    page = load_directory(ops, "experts")

    assert page.profiles[0].project_count == 3
    ops.query_many.assert_called_once_with("projects", [("provider_id", "==", "a")], limit=100)


def test_creator_pages_skip_project_counts(ops):
    ops.paginate.return_value = Page(items=[_doc("c", role="creator")], next_cursor="c", has_more=False)

    page = load_directory(ops, "creators")

    assert page.profiles[0].project_count is None
    ops.query_many.assert_not_called()


def test_count_expert_projects_failure_is_zero(ops):
    ops.query_many.side_effect = RuntimeError("offline")

    assert count_expert_projects(ops, "a") == 0


# --- display_name backfill ---

def test_ensure_display_name_copies_legacy_name(ops):
    ops.update.return_value = True

    assert ensure_display_name(ops, "u1", {"id": "u1", "displayName": "Ana"}) is True
    ops.update.assert_called_once_with(collection_name="users", document_id="u1", updates={"display_name": "Ana"})


def test_ensure_display_name_without_any_name_writes_null(ops):
    ops.update.return_value = True

    ensure_display_name(ops, "u1", {"id": "u1"})

    ops.update.assert_called_once_with(collection_name="users", document_id="u1", updates={"display_name": None})


def test_ensure_display_name_leaves_current_documents(ops):
    assert ensure_display_name(ops, "u1", {"id": "u1", "display_name": None}) is False
    ops.update.assert_not_called()


def test_backfill_display_names(ops):
    ops.update.return_value = True
    ops.get_all.return_value = [
        {"id": "a", "displayName": "Ana"},
        {"id": "b", "display_name": "Ben"},
        {"id": "c", "name": "Cleo"},
    ]

    assert backfill_display_names(ops) == 2
    ops.get_all.assert_called_once_with("users")
    updated_ids = [call.kwargs["document_id"] for call in ops.update.call_args_list]
    assert updated_ids == ["a", "c"]
