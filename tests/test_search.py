from crealink.models.schemas import ProfileSettings
from crealink.services.search import (
    filter_profiles,
    matches_query,
    normalize_text,
    public_view,
    to_unified_profile,
)


def test_normalize_text():
    assert normalize_text("  Élodie  Café ") == "elodiecafe"
    assert normalize_text(None) == ""
    assert normalize_text("") == ""


def test_to_unified_profile_reads_legacy_keys():
    data = {
        "displayName": "Old Account",
        "photoURL": "https://img/x.png",
        "role": "expert",
        "expertise": {"mainType": "editor", "subType": "youtube"},
        "youtube": "oldchannel",
        "rating": 4.5,
    }

    profile = to_unified_profile(data, "u1")

    assert profile.display_name == "Old Account"
    assert profile.photo_url == "https://img/x.png"
    assert profile.expertise.main_type == "editor"
    assert profile.type_label == "Monteur"
    assert profile.sub_type_label == "Monteur YouTube"
    assert profile.socials.youtube == "oldchannel"
    assert profile.rating.average == 4.5


def test_to_unified_profile_defaults():
    profile = to_unified_profile({}, "u2")

    assert profile.role == "creator"
    assert profile.display_name is None
    assert profile.skills == []
    assert profile.settings == ProfileSettings()
    assert profile.type_label is None
    assert profile.rating is None


def test_to_unified_profile_drops_expertise_skills():
    data = {
        "role": "expert",
        "expertise": {"main_type": "editor", "sub_type": "gaming"},
        "skills": ["Editor", "gaming", "Premiere Pro"],
        "description": "Fast cuts. Editor, gaming, Premiere Pro",
    }

    profile = to_unified_profile(data, "u3")

    assert profile.skills == ["Premiere Pro"]
    assert profile.description == "Fast cuts."


def test_to_unified_profile_creator_labels():
    data = {
        "role": "influencer",
        "creator": {"main_type": "food", "sub_type": "vegan", "audience_size": "xl"},
    }

    profile = to_unified_profile(data, "u4")

    assert profile.type_label == "Cuisine"
    assert profile.sub_type_label == "Cuisine végétale"
    assert profile.audience_label == "500K-1M abonnés"


def test_to_unified_profile_unknown_codes_fall_back_to_code():
    profile = to_unified_profile({"role": "expert", "expertise": {"main_type": "juggler", "sub_type": "fire"}}, "u5")

    assert profile.type_label == "juggler"
    assert profile.sub_type_label == "fire"


def test_public_view_respects_visibility():
    profile = to_unified_profile(
        {"email": "a@example.com", "phone": "123", "settings": {"phone_visibility": "public"}}, "u6"
    )

    visible = public_view(profile)

    assert visible.email is None
    assert visible.phone == "123"


def test_matches_query_searches_name_description_and_skills():
    profile = to_unified_profile(
        {"display_name": "Jean Dupont", "description": "Motion design", "skills": ["Cinéma 4D"]}, "u7"
    )

    assert matches_query(profile, "jean dupont")
    assert matches_query(profile, "MOTION")
    assert matches_query(profile, "cinema")
    assert not matches_query(profile, "photo")
    assert matches_query(profile, "")


def test_filter_profiles_combines_criteria():
    profiles = [
        to_unified_profile(
            {
                "role": "expert",
                "display_name": "Ana",
                "expertise": {"main_type": "editor", "sub_type": "shorts", "skills": ["CapCut"]},
                "skills": ["Premiere Pro"],
            },
            "a",
        ),
        to_unified_profile(
            {"role": "expert", "display_name": "Ben", "expertise": {"main_type": "editor", "sub_type": "youtube"}},
            "b",
        ),
        to_unified_profile({"role": "expert", "display_name": "Cleo", "expertise": {"main_type": "designer"}}, "c"),
    ]

    assert [p.uid for p in filter_profiles(profiles, main_type="editor")] == ["a", "b"]
    assert [p.uid for p in filter_profiles(profiles, main_type="editor", sub_type="shorts")] == ["a"]
    assert [p.uid for p in filter_profiles(profiles, skills=["capcut", "premiere pro"])] == ["a"]
    assert filter_profiles(profiles, skills=["capcut", "blender"]) == []
    assert [p.uid for p in filter_profiles(profiles)] == ["a", "b", "c"]
    assert [p.uid for p in filter_profiles(profiles, query="cle")] == ["c"]
