"""
Profile normalisation and in-memory filtering.

Directory pages are fetched from the store already ordered; everything in this
module works on the fetched list and keeps its order.
"""
import re
import unicodedata
from typing import Any, Dict, Iterable, List, Optional

from crealink.core import labels
from crealink.models.schemas import (
    CREATOR_ROLES,
    CreatorInfo,
    ExpertiseInfo,
    ProfileSettings,
    Rating,
    SocialLinks,
    UnifiedProfile,
)

_TRAILING_COMMA = re.compile(r",\s*$")


def _first(data: Dict[str, Any], *keys: str) -> Any:
    # Older documents were written by the SPA with camelCase keys
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _sub_object(raw: Any, model):
    if not isinstance(raw, dict):
        return None
    main_type = _first(raw, "main_type", "mainType")
    if not main_type:
        return None
    values = {k: v for k, v in raw.items() if k in model.model_fields}
    values["main_type"] = main_type
    sub_type = _first(raw, "sub_type", "subType")
    if sub_type:
        values["sub_type"] = sub_type
    return model(**values)


def _rating(raw: Any) -> Optional[Rating]:
    if isinstance(raw, dict):
        return Rating(**raw)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return Rating(average=float(raw), count=0)
    return None


def to_unified_profile(data: Dict[str, Any], uid: str) -> UnifiedProfile:
    """Map a raw `users` document onto the public profile shape."""
    skills = data.get("skills") if isinstance(data.get("skills"), list) else []
    expertise = _sub_object(data.get("expertise"), ExpertiseInfo)
    creator = _sub_object(data.get("creator"), CreatorInfo)

    # Skills that only repeat the expertise type are noise on a card
    expertise_terms = set()
    if expertise:
        expertise_terms = {t.lower() for t in (expertise.main_type, expertise.sub_type) if t}
    filtered_skills = [s for s in skills if s.lower() not in expertise_terms]

    description = _first(data, "description", "bio") or ""
    if description and skills:
        description = description.replace(", ".join(skills), "").strip()
        description = _TRAILING_COMMA.sub("", description).strip()

    raw_socials = data.get("socials") if isinstance(data.get("socials"), dict) else {}
    socials = SocialLinks(**{
        name: data.get(name) or raw_socials.get(name) or ""
        for name in SocialLinks.model_fields
    })

    raw_settings = data.get("settings") if isinstance(data.get("settings"), dict) else {}
    settings = ProfileSettings(**{k: v for k, v in raw_settings.items() if k in ProfileSettings.model_fields})

    role = data.get("role") or "creator"
    type_label = sub_type_label = audience_label = None
    if role == "expert" and expertise:
        type_label = labels.expert_type_label(expertise.main_type)
        if expertise.sub_type:
            sub_type_label = labels.expert_sub_type_label(expertise.main_type, expertise.sub_type)
    elif role in CREATOR_ROLES and creator:
        type_label = labels.creator_type_label(creator.main_type)
        if creator.sub_type:
            sub_type_label = labels.creator_sub_type_label(creator.main_type, creator.sub_type)
        if creator.audience_size:
            audience_label = labels.audience_range_label(creator.audience_size)

    return UnifiedProfile(
        uid=uid,
        display_name=_first(data, "display_name", "displayName", "name"),
        photo_url=_first(data, "photo_url", "photoURL", "avatar"),
        email=data.get("email") or None,
        phone=data.get("phone") or None,
        description=description,
        role=role,
        expertise=expertise,
        creator=creator,
        type_label=type_label,
        sub_type_label=sub_type_label,
        audience_label=audience_label,
        skills=filtered_skills,
        socials=socials,
        settings=settings,
        verified=bool(data.get("verified")),
        rating=_rating(data.get("rating")),
        onboarding_completed=bool(data.get("onboarding_completed")),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def public_view(profile: UnifiedProfile) -> UnifiedProfile:
    """Hide contact details the owner marked private."""
    hidden = {}
    if profile.settings.email_visibility == "private":
        hidden["email"] = None
    if profile.settings.phone_visibility == "private":
        hidden["phone"] = None
    return profile.model_copy(update=hidden) if hidden else profile


def normalize_text(text: Optional[str]) -> str:
    """Lower-case, strip accents and drop all whitespace."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    without_accents = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"\s+", "", without_accents)


def matches_query(profile: UnifiedProfile, query: Optional[str]) -> bool:
    needle = normalize_text(query)
    if not needle:
        return True
    haystacks = [profile.display_name, profile.description, *profile.skills]
    return any(needle in normalize_text(h) for h in haystacks)


def _main_and_sub(profile: UnifiedProfile):
    info = profile.expertise if profile.role == "expert" else profile.creator
    info = info or profile.expertise or profile.creator
    if info is None:
        return None, None
    return info.main_type, info.sub_type


def filter_profiles(
    profiles: Iterable[UnifiedProfile],
    query: Optional[str] = None,
    main_type: Optional[str] = None,
    sub_type: Optional[str] = None,
    skills: Optional[List[str]] = None,
) -> List[UnifiedProfile]:
    """Apply free-text and facet filters; all given criteria must match."""
    wanted_skills = {s.lower() for s in skills or [] if s}
    results = []
    for profile in profiles:
        if not matches_query(profile, query):
            continue
        profile_main, profile_sub = _main_and_sub(profile)
        if main_type and profile_main != main_type:
            continue
        if sub_type and profile_sub != sub_type:
            continue
        if wanted_skills:
            have = {s.lower() for s in profile.skills}
            if profile.expertise:
                have.update(s.lower() for s in profile.expertise.skills)
            if not wanted_skills <= have:
                continue
        results.append(profile)
    return results
