"""HTTP-level tests for the resume endpoints."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from resume_builder.web.app import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
ALICE = {"X-User-ID": "alice"}
BOB = {"X-User-ID": "bob"}


@pytest.fixture
def api_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    uploads = tmp_path / "uploads"
    monkeypatch.setenv("RESUME_BUILDER_ASSET_ROOT", str(uploads))
    return uploads


@pytest.fixture
def client(api_env: Path):
    with TestClient(create_app()) as test_client:
        yield test_client


def _create(client: TestClient, title: str = "My Resume", headers=ALICE) -> dict:
    response = client.post("/api/v1/resumes", json={"title": title}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_healthz(client: TestClient) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_returns_defaults_and_completion(client: TestClient) -> None:
    body = _create(client)

    assert body["id"].startswith("res_")
    assert body["ownerId"] == "alice"
    assert body["title"] == "My Resume"
    assert body["thumbnailUrl"] is None
    assert body["profileInfo"]["profileImageUrl"] is None
    assert body["interests"] == [""]
    assert len(body["workExperience"]) == 1
    assert body["completion"] == 0
    assert body["version"] == 1


def test_create_requires_title(client: TestClient) -> None:
    response = client.post("/api/v1/resumes", json={}, headers=ALICE)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_create_ignores_client_supplied_image_urls(client: TestClient) -> None:
    response = client.post(
        "/api/v1/resumes",
        json={"title": "Sneaky", "thumbnailUrl": "http://evil/x.png", "ownerId": "bob"},
        headers=ALICE,
    )

    assert response.status_code == 201
    assert response.json()["thumbnailUrl"] is None
    assert response.json()["ownerId"] == "alice"


def test_malformed_body_uses_error_envelope(client: TestClient) -> None:
    response = client.post("/api/v1/resumes", json={"title": "X", "skills": "not-a-list"}, headers=ALICE)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_list_returns_only_own_resumes_newest_first(client: TestClient) -> None:
    first = _create(client, "First")
    second = _create(client, "Second")
    _create(client, "Bob's", headers=BOB)

    response = client.get("/api/v1/resumes", headers=ALICE)

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [second["id"], first["id"]]


def test_foreign_resume_is_indistinguishable_from_missing(client: TestClient) -> None:
    created = _create(client)

    foreign = client.get(f"/api/v1/resumes/{created['id']}", headers=BOB)
    missing = client.get("/api/v1/resumes/res_doesnotexist", headers=BOB)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json()["error"]["code"] == missing.json()["error"]["code"] == "RESUME_NOT_FOUND"
    assert client.put(f"/api/v1/resumes/{created['id']}", json={"title": "x"}, headers=BOB).status_code == 404
    assert client.delete(f"/api/v1/resumes/{created['id']}", headers=BOB).status_code == 404
    assert client.get(f"/api/v1/resumes/{created['id']}", headers=ALICE).json()["title"] == "My Resume"


def test_update_merges_top_level_fields(client: TestClient) -> None:
    created = _create(client)

    response = client.put(
        f"/api/v1/resumes/{created['id']}",
        json={"skills": [{"name": "Python", "progress": 80}], "profileInfo": {"fullName": "Alice"}},
        headers=ALICE,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "My Resume"
    assert body["skills"] == [{"name": "Python", "progress": 80}]
    assert body["profileInfo"]["fullName"] == "Alice"
    assert body["workExperience"] == created["workExperience"]
    assert body["completion"] > 0
    assert body["version"] == 2


def test_update_cannot_set_image_urls(client: TestClient) -> None:
    created = _create(client)

    response = client.put(
        f"/api/v1/resumes/{created['id']}",
        json={"thumbnailUrl": "http://evil/x.png", "profileInfo": {"profileImageUrl": "http://evil/y.png"}},
        headers=ALICE,
    )

    assert response.status_code == 200
    assert response.json()["thumbnailUrl"] is None
    assert response.json()["profileInfo"]["profileImageUrl"] is None


def test_upload_sets_urls_and_serves_file(client: TestClient, api_env: Path) -> None:
    created = _create(client)

    response = client.put(
        f"/api/v1/resumes/{created['id']}/upload-image",
        files={
            "thumbnail": ("thumb.png", PNG_BYTES, "image/png"),
            "profileImage": ("me.jpg", JPEG_BYTES, "image/jpeg"),
        },
        headers=ALICE,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Resume images uploaded successfully"
    assert body["thumbnailUrl"].startswith("http://testserver/uploads/")
    assert body["thumbnailUrl"].endswith(".png")
    assert body["profileImageUrl"].endswith(".jpg")
    assert len(list(api_env.iterdir())) == 2

    path = body["thumbnailUrl"][len("http://testserver") :]
    served = client.get(path)
    assert served.status_code == 200
    assert served.content == PNG_BYTES

    fetched = client.get(f"/api/v1/resumes/{created['id']}", headers=ALICE).json()
    assert fetched["thumbnailUrl"] == body["thumbnailUrl"]
    assert fetched["profileInfo"]["profileImageUrl"] == body["profileImageUrl"]


def test_reupload_replaces_previous_file(client: TestClient, api_env: Path) -> None:
    created = _create(client)
    url = f"/api/v1/resumes/{created['id']}/upload-image"

    first = client.post(url, files={"thumbnail": ("a.png", PNG_BYTES, "image/png")}, headers=ALICE).json()
    second = client.post(url, files={"thumbnail": ("b.png", PNG_BYTES, "image/png")}, headers=ALICE).json()

    assert first["thumbnailUrl"] != second["thumbnailUrl"]
    assert [p.name for p in api_env.iterdir()] == [second["thumbnailUrl"].rsplit("/", 1)[-1]]


def test_upload_rejects_unsupported_type(client: TestClient, api_env: Path) -> None:
    created = _create(client)

    response = client.put(
        f"/api/v1/resumes/{created['id']}/upload-image",
        files={"thumbnail": ("anim.gif", b"GIF89a", "image/gif")},
        headers=ALICE,
    )

    assert response.status_code == 415
    assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"
    assert not api_env.exists() or list(api_env.iterdir()) == []


def test_upload_without_files_is_rejected(client: TestClient) -> None:
    created = _create(client)

    response = client.put(f"/api/v1/resumes/{created['id']}/upload-image", headers=ALICE)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "No files uploaded"


def test_upload_to_foreign_resume_is_not_found(client: TestClient, api_env: Path) -> None:
    created = _create(client)

    response = client.put(
        f"/api/v1/resumes/{created['id']}/upload-image",
        files={"thumbnail": ("a.png", PNG_BYTES, "image/png")},
        headers=BOB,
    )

    assert response.status_code == 404
    assert list(api_env.iterdir()) == []


def test_upload_over_limit_is_rejected(monkeypatch: pytest.MonkeyPatch, api_env: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_MAX_UPLOAD_BYTES", "16")
    with TestClient(create_app()) as client:
        created = _create(client)
        response = client.put(
            f"/api/v1/resumes/{created['id']}/upload-image",
            files={"thumbnail": ("a.png", PNG_BYTES, "image/png")},
            headers=ALICE,
        )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "UPLOAD_TOO_LARGE"


def test_oversized_unsupported_type_reports_media_type(monkeypatch: pytest.MonkeyPatch, api_env: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_MAX_UPLOAD_BYTES", "16")
    with TestClient(create_app()) as client:
        created = _create(client)
        response = client.put(
            f"/api/v1/resumes/{created['id']}/upload-image",
            files={"thumbnail": ("anim.gif", b"GIF89a" + b"\x00" * 64, "image/gif")},
            headers=ALICE,
        )

    assert response.status_code == 415
    assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"
    assert list(api_env.iterdir()) == []


def test_delete_removes_document_and_images(client: TestClient, api_env: Path) -> None:
    created = _create(client)
    client.put(
        f"/api/v1/resumes/{created['id']}/upload-image",
        files={"thumbnail": ("a.png", PNG_BYTES, "image/png"), "profileImage": ("b.png", PNG_BYTES, "image/png")},
        headers=ALICE,
    )

    response = client.delete(f"/api/v1/resumes/{created['id']}", headers=ALICE)

    assert response.status_code == 200
    assert response.json() == {"message": "Resume deleted successfully"}
    assert list(api_env.iterdir()) == []
    assert client.get(f"/api/v1/resumes/{created['id']}", headers=ALICE).status_code == 404


def test_public_base_url_is_used_for_asset_urls(monkeypatch: pytest.MonkeyPatch, api_env: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_PUBLIC_BASE_URL", "https://cdn.example.com/")
    with TestClient(create_app()) as client:
        created = _create(client)
        body = client.put(
            f"/api/v1/resumes/{created['id']}/upload-image",
            files={"thumbnail": ("a.png", PNG_BYTES, "image/png")},
            headers=ALICE,
        ).json()

    assert body["thumbnailUrl"].startswith("https://cdn.example.com/uploads/")


def test_optimistic_concurrency_via_body_and_if_match(monkeypatch: pytest.MonkeyPatch, api_env: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_OPTIMISTIC_CONCURRENCY", "on")
    with TestClient(create_app()) as client:
        created = _create(client)
        url = f"/api/v1/resumes/{created['id']}"

        first = client.put(url, json={"title": "A", "expectedVersion": 1}, headers=ALICE)
        stale = client.put(url, json={"title": "B", "expectedVersion": 1}, headers=ALICE)
        via_header = client.put(url, json={"title": "C"}, headers={**ALICE, "If-Match": '"2"'})
        missing = client.put(url, json={"title": "D"}, headers=ALICE)
        bad_header = client.put(url, json={"title": "E"}, headers={**ALICE, "If-Match": "abc"})

    assert first.status_code == 200
    assert stale.status_code == 409
    assert stale.json()["error"]["code"] == "STALE_WRITE"
    assert via_header.status_code == 200
    assert via_header.json()["version"] == 3
    assert missing.status_code == 400
    assert bad_header.status_code == 400


def test_sqlite_backend_serves_requests(monkeypatch: pytest.MonkeyPatch, api_env: Path, tmp_path: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_STORE_BACKEND", "sqlite")
    monkeypatch.setenv("RESUME_BUILDER_DB_PATH", str(tmp_path / "api.db"))
    with TestClient(create_app()) as client:
        created = _create(client, "Persisted")

    with TestClient(create_app()) as client:
        fetched = client.get(f"/api/v1/resumes/{created['id']}", headers=ALICE)

    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Persisted"


def test_unknown_store_backend_fails_fast(monkeypatch: pytest.MonkeyPatch, api_env: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_STORE_BACKEND", "mongo")

    with pytest.raises(ValueError):
        create_app()


def test_malformed_numeric_setting_fails_fast(monkeypatch: pytest.MonkeyPatch, api_env: Path) -> None:
    monkeypatch.setenv("RESUME_BUILDER_MAX_UPLOAD_BYTES", "lots")

    with pytest.raises(ValueError):
        create_app()
