"""Tests for resume document defaults and merge rules."""

from resume_builder.domain import (
    apply_patch,
    default_document,
    filename_from_url,
    referenced_filenames,
    set_slot_url,
    slot_url,
    writable_fields,
)


def test_default_document_has_one_blank_record_per_section():
    document = default_document("My Resume")

    assert document["title"] == "My Resume"
    assert document["thumbnailUrl"] is None
    assert document["profileInfo"]["profileImageUrl"] is None
    assert document["interests"] == [""]
    for section in ("workExperience", "education", "skills", "projects", "certifications", "languages"):
        assert len(document[section]) == 1
    assert document["workExperience"][0] == {
        "company": "",
        "role": "",
        "startDate": "",
        "endDate": "",
        "description": "",
    }


def test_default_documents_do_not_share_records():
    first = default_document("A")
    second = default_document("B")

    first["skills"][0]["name"] = "Python"

    assert second["skills"][0]["name"] == ""


def test_apply_patch_replaces_top_level_keys_only():
    document = default_document("Original")
    document["skills"] = [{"name": "Go", "progress": 3}, {"name": "Rust", "progress": 2}]

    merged = apply_patch(document, {"title": "Updated", "skills": [{"name": "Python", "progress": 5}]})

    assert merged["title"] == "Updated"
    assert merged["skills"] == [{"name": "Python", "progress": 5}]
    assert merged["workExperience"] == document["workExperience"]
    assert document["title"] == "Original"


def test_apply_patch_ignores_protected_keys():
    document = default_document("Original")

    merged = apply_patch(
        document,
        {"id": "other", "ownerId": "intruder", "thumbnailUrl": "http://evil/x.png", "version": 99},
    )

    assert "id" not in merged
    assert "ownerId" not in merged
    assert merged["thumbnailUrl"] is None


def test_apply_patch_keeps_stored_profile_image():
    document = default_document("Original")
    set_slot_url(document, "profileImage", "http://host/uploads/me.png")

    merged = apply_patch(
        document,
        {"profileInfo": {"fullName": "Jane", "profileImageUrl": "http://host/uploads/other.png"}},
    )

    assert merged["profileInfo"] == {"fullName": "Jane", "profileImageUrl": "http://host/uploads/me.png"}


def test_writable_fields_drops_completion_and_timestamps():
    assert writable_fields({"completion": 50, "createdAt": "x", "updatedAt": "y", "title": "T"}) == {"title": "T"}


def test_slot_urls_round_trip_through_document():
    document = default_document("Slots")

    set_slot_url(document, "thumbnail", "http://host/uploads/thumb.png")
    set_slot_url(document, "profileImage", "http://host/uploads/face.jpg")

    assert slot_url(document, "thumbnail") == "http://host/uploads/thumb.png"
    assert slot_url(document, "profileImage") == "http://host/uploads/face.jpg"


def test_filename_from_url():
    assert filename_from_url("http://host:8000/uploads/abc123.png") == "abc123.png"
    assert filename_from_url("http://host/uploads/abc123.png?v=2") == "abc123.png"


def test_referenced_filenames_collects_both_slots():
    first = default_document("A")
    set_slot_url(first, "thumbnail", "http://host/uploads/a.png")
    second = default_document("B")
    set_slot_url(second, "profileImage", "http://host/uploads/b.jpg")

    assert referenced_filenames([first, second, default_document("C")]) == {"a.png", "b.jpg"}
