from fastapi import APIRouter, HTTPException, Query, status
from typing import List, Optional

from crealink.core import labels
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel, InvalidCursor, StoreError
from crealink.models.schemas import DirectoryPage
from crealink.services.directory import DirectoryKind, load_directory
from crealink.services.search import filter_profiles, public_view

router = APIRouter(prefix="/profiles", tags=["Profiles"])


def _directory(
    kind: DirectoryKind,
    cursor: Optional[str],
    limit: Optional[int],
    q: Optional[str],
    main_type: Optional[str],
    sub_type: Optional[str],
    skills: Optional[List[str]],
) -> DirectoryPage:
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    try:
        page = load_directory(firestore_ops, kind, cursor=cursor, limit=limit)
    except InvalidCursor:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cursor")
    except StoreError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Could not load {kind}")

    # Filters narrow the fetched page only; the cursor still walks the whole role
    profiles = filter_profiles(page.profiles, query=q, main_type=main_type, sub_type=sub_type, skills=skills)
    page.profiles = [public_view(p) for p in profiles]
    return page


@router.get("/experts", response_model=DirectoryPage)
async def list_experts(
    cursor: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    q: Optional[str] = None,
    main_type: Optional[str] = None,
    sub_type: Optional[str] = None,
    skills: Optional[List[str]] = Query(default=None),
):
    return _directory("experts", cursor, limit, q, main_type, sub_type, skills)


@router.get("/creators", response_model=DirectoryPage)
async def list_creators(
    cursor: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    q: Optional[str] = None,
    main_type: Optional[str] = None,
    sub_type: Optional[str] = None,
    skills: Optional[List[str]] = Query(default=None),
):
    return _directory("creators", cursor, limit, q, main_type, sub_type, skills)


@router.get("/labels")
async def get_labels():
    """Lookup tables the frontend uses to render type codes."""
    return {
        "creator_types": labels.CREATOR_TYPES,
        "creator_sub_types": labels.CREATOR_SUB_TYPES,
        "audience_ranges": labels.AUDIENCE_RANGES,
        "expert_types": labels.EXPERT_TYPES,
        "expert_sub_types": labels.EXPERT_SUB_TYPES,
    }
