"""
Profile directory loader.

Lists experts or creators from the `users` collection one page at a time,
ordered by display name. A page's cursor is the id of its last document; the
next request passes it back to continue strictly after that document.
"""
from typing import Any, Dict, List, Literal, Optional

from loguru import logger

from crealink.core.config import get_settings
from crealink.db.firebase_ops import FirestoreBaseModel, StorePermissionDenied
from crealink.models.schemas import CREATOR_ROLES, DirectoryPage, UnifiedProfile
from crealink.services.search import to_unified_profile

DirectoryKind = Literal["experts", "creators"]

USERS_COLLECTION = "users"
ORDER_FIELD = "display_name"


def roles_for(kind: DirectoryKind) -> List[str]:
    if kind == "experts":
        return ["expert"]
    return list(CREATOR_ROLES)


def _role_filter(kind: DirectoryKind):
    roles = roles_for(kind)
    if len(roles) == 1:
        return ("role", "==", roles[0])
    return ("role", "in", roles)


def ensure_display_name(firestore_ops: FirestoreBaseModel, uid: str, data: Dict[str, Any]) -> bool:
    """
    Copy a legacy `displayName`/`name` into `display_name` when the field is absent.

    Ordered queries skip documents that lack the order field, so a users
    document without `display_name` never shows up on a directory page.
    Returns True when the document was updated.
    """
    if ORDER_FIELD in data:
        return False
    name = data.get("displayName") or data.get("name")
    updated = firestore_ops.update(collection_name=USERS_COLLECTION, document_id=uid, updates={ORDER_FIELD: name})
    if updated:
        logger.info(f"Backfilled {ORDER_FIELD} for user {uid}")
    return updated


def backfill_display_names(firestore_ops: FirestoreBaseModel) -> int:
    """Run `ensure_display_name` over the whole users collection. Returns the number updated."""
    documents = firestore_ops.get_all(USERS_COLLECTION)
    return sum(1 for doc in documents if ensure_display_name(firestore_ops, doc["id"], doc))


def count_expert_projects(firestore_ops: FirestoreBaseModel, expert_id: str) -> int:
    """Number of projects assigned to an expert, capped by settings. 0 on failure."""
    cap = get_settings().expert_project_count_cap
    try:
        projects = firestore_ops.query_many(
            "projects", [("provider_id", "==", expert_id)], limit=cap
        )
    except Exception as e:
        logger.error(f"Could not count projects for expert {expert_id}: {e}")
        return 0
    return len(projects)


def _with_project_counts(firestore_ops: FirestoreBaseModel, profiles: List[UnifiedProfile]) -> List[UnifiedProfile]:
    return [
        p.model_copy(update={"project_count": count_expert_projects(firestore_ops, p.uid)})
        for p in profiles
    ]


def _fallback_scan(firestore_ops: FirestoreBaseModel, kind: DirectoryKind) -> DirectoryPage:
    """Unfiltered read, role filtering done here. Single page, no cursor."""
    settings = get_settings()
    logger.info(f"Falling back to unfiltered scan for {kind} directory")
    roles = set(roles_for(kind))
    documents = firestore_ops.get_all(USERS_COLLECTION, limit=settings.directory_fallback_limit)
    profiles = [
        to_unified_profile(doc, doc["id"])
        for doc in documents
        if doc.get("role") in roles
    ]
    return DirectoryPage(profiles=profiles, next_cursor=None, has_more=False, degraded=True)


def load_directory(
    firestore_ops: FirestoreBaseModel,
    kind: DirectoryKind,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
) -> DirectoryPage:
    """
    Load one directory page.

    Raises InvalidCursor for an unknown cursor and StoreError for other store
    failures. Permission denial on the first page degrades to a single
    unfiltered scan instead.
    """
    page_size = limit or get_settings().directory_page_size
    try:
        page = firestore_ops.paginate(
            USERS_COLLECTION,
            [_role_filter(kind)],
            order_by=ORDER_FIELD,
            limit=page_size,
            start_after=cursor,
        )
    except StorePermissionDenied:
        # Only the first page degrades; a fallback page has no cursor to continue from
        if cursor:
            raise
        result = _fallback_scan(firestore_ops, kind)
    else:
        result = DirectoryPage(
            profiles=[to_unified_profile(doc, doc["id"]) for doc in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )

    if kind == "experts":
        result.profiles = _with_project_counts(firestore_ops, result.profiles)
    return result
