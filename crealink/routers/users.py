from fastapi import APIRouter, HTTPException, Depends, status
from pydantic import ValidationError
from typing import Any, Dict, List

from crealink.models.schemas import (
    CREATOR_ROLES,
    Block,
    CreatorInfo,
    ExpertiseInfo,
    OnboardingRequest,
    ProfileSettings,
    ProfileUpdate,
    SocialLinks,
    UnifiedProfile,
    User,
)
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import get_bearer_token, require_user
from crealink.services.search import public_view, to_unified_profile

router = APIRouter(prefix="/users", tags=["Users"])

SIMPLE_PROFILE_FIELDS = ("display_name", "photo_url", "phone", "description", "location", "skills")


def _merge_sub_object(existing, patch: Dict[str, Any], model):
    merged = existing.model_dump() if existing else {}
    merged.update(patch)
    try:
        return model(**merged).model_dump()
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {model.__name__}: {e.errors()}")


def _reload_profile(firestore_ops: FirestoreBaseModel, uid: str) -> UnifiedProfile:
    data = firestore_ops.get(collection_name="users", document_id=uid)
    if not data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found after update")
    return to_unified_profile(data, uid)


def _apply_updates(firestore_ops: FirestoreBaseModel, uid: str, updates: Dict[str, Any]) -> UnifiedProfile:
    if not firestore_ops.update(collection_name="users", document_id=uid, updates=updates):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update profile")
    return _reload_profile(firestore_ops, uid)


@router.get("/{user_id}/profile", response_model=UnifiedProfile)
async def get_user_profile(user_id: str):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()

    user_data = firestore_ops.get(collection_name="users", document_id=user_id)
    if not user_data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return public_view(to_unified_profile(user_data, user_id))


@router.put("/me/profile", response_model=UnifiedProfile)
async def update_user_profile(profile_in: ProfileUpdate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    updates: Dict[str, Any] = {
        field: getattr(profile_in, field)
        for field in SIMPLE_PROFILE_FIELDS
        if getattr(profile_in, field) is not None
    }

    if profile_in.socials:
        socials = current_user.socials.model_dump()
        socials.update({k: v for k, v in profile_in.socials.items() if k in SocialLinks.model_fields})
        updates["socials"] = socials

    # Role-specific sub-objects are only writable by the matching role
    if profile_in.expertise and current_user.role == "expert":
        updates["expertise"] = _merge_sub_object(current_user.expertise, profile_in.expertise, ExpertiseInfo)
    if profile_in.creator and current_user.role in CREATOR_ROLES:
        updates["creator"] = _merge_sub_object(current_user.creator, profile_in.creator, CreatorInfo)

    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    return _apply_updates(firestore_ops, current_user.uid, updates)


@router.put("/me/settings", response_model=UnifiedProfile)
async def update_profile_settings(settings_in: ProfileSettings, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    return _apply_updates(firestore_ops, current_user.uid, {"settings": settings_in.model_dump()})


@router.put("/me/socials", response_model=UnifiedProfile)
async def update_social_links(socials_in: SocialLinks, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    return _apply_updates(firestore_ops, current_user.uid, {"socials": socials_in.model_dump()})


@router.post("/me/onboarding", response_model=UnifiedProfile)
async def complete_onboarding(onboarding_in: OnboardingRequest, token: str = Depends(get_bearer_token)):
    """Final step of the onboarding wizard: pick a side and fill in its details."""
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    if current_user.role not in ("pending", onboarding_in.role):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Role already set to '{current_user.role}'",
        )

    updates: Dict[str, Any] = {
        "role": onboarding_in.role,
        "display_name": onboarding_in.display_name,
        "description": onboarding_in.description,
        "skills": onboarding_in.skills,
        "onboarding_completed": True,
    }
    if onboarding_in.role == "expert":
        if not onboarding_in.expertise:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Experts must describe their expertise")
        updates["expertise"] = onboarding_in.expertise.model_dump()
    else:
        if not onboarding_in.creator:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Creators must describe their content")
        updates["creator"] = onboarding_in.creator.model_dump()

    return _apply_updates(firestore_ops, current_user.uid, updates)


@router.get("/me/blocks", response_model=List[Block])
async def get_profile_blocks(token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    profile_doc = firestore_ops.get(collection_name="profiles", document_id=current_user.uid)
    if profile_doc and isinstance(profile_doc.get("blocks"), list):
        return [Block(**block) for block in profile_doc["blocks"]]

    # Missing or malformed layout: start over with an empty one
    firestore_ops.save(collection_name="profiles", data_model={"blocks": []}, document_id=current_user.uid)
    return []


@router.put("/me/blocks", response_model=List[Block])
async def save_profile_blocks(blocks: List[Block], token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    saved = firestore_ops.save(
        collection_name="profiles",
        data_model={"blocks": [block.model_dump() for block in blocks]},
        document_id=current_user.uid,
    )
    if not saved:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save profile layout")
    return blocks
