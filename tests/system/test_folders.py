"""文件夹创建接口的集成测试。"""

from fastapi.testclient import TestClient

from app.packages.drive.models.file_entry import FileEntry

OWNER = "user_alice"
OTHER = "user_bob"


def _create_folder(client: TestClient, headers: dict, **body):
    return client.post("/api/folders/create", json=body, headers=headers)


def test_create_root_folder(client: TestClient, auth_headers):
    resp = _create_folder(client, auth_headers(OWNER), name="Docs")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["success"] is True
    folder = payload["folder"]
    assert folder["name"] == "Docs"
    assert folder["path"] == "/Docs"
    assert folder["type"] == "folder"
    assert folder["size"] == 0
    assert folder["fileUrl"] == ""
    assert folder["thumbnailUrl"] is None
    assert folder["isFolder"] is True
    assert folder["isStarred"] is False
    assert folder["isTrash"] is False
    assert folder["parentId"] is None
    assert folder["userId"] == OWNER
    assert folder["id"]


def test_duplicate_root_folder_conflicts(client: TestClient, auth_headers, db_session_fixture):
    headers = auth_headers(OWNER)
    assert _create_folder(client, headers, name="Docs").status_code == 200

    resp = _create_folder(client, headers, name="Docs")
    assert resp.status_code == 409
    assert resp.json()["success"] is False
    assert "already exists" in resp.json()["error"]
    assert db_session_fixture.query(FileEntry).filter(FileEntry.name == "Docs").count() == 1


def test_same_name_allowed_for_other_owner_and_other_parent(client: TestClient, auth_headers):
    assert _create_folder(client, auth_headers(OWNER), name="Docs").status_code == 200
    assert _create_folder(client, auth_headers(OTHER), name="Docs").status_code == 200

    parent = _create_folder(client, auth_headers(OWNER), name="Work").json()["folder"]
    nested = _create_folder(client, auth_headers(OWNER), name="Docs", parentId=parent["id"])
    assert nested.status_code == 200
    assert nested.json()["folder"]["path"] == "/Work/Docs"


def test_folder_name_is_trimmed(client: TestClient, auth_headers):
    resp = _create_folder(client, auth_headers(OWNER), name="  Reports  ")
    assert resp.status_code == 200
    assert resp.json()["folder"]["name"] == "Reports"
    assert resp.json()["folder"]["path"] == "/Reports"


def test_nested_folder_path(client: TestClient, auth_headers):
    headers = auth_headers(OWNER)
    a = _create_folder(client, headers, name="A").json()["folder"]
    b = _create_folder(client, headers, name="B", parentId=a["id"])
    assert b.status_code == 200
    assert b.json()["folder"]["path"] == "/A/B"
    assert b.json()["folder"]["parentId"] == a["id"]

    c = _create_folder(client, headers, name="C", parentId=b.json()["folder"]["id"])
    assert c.json()["folder"]["path"] == "/A/B/C"


def test_parent_path_with_trailing_separator(client: TestClient, auth_headers, db_session_fixture):
    parent = FileEntry(
        name="A",
        path="/A/",
        type="folder",
        size=0,
        file_url="",
        user_id=OWNER,
        parent_key="",
        is_folder=True,
    )
    db_session_fixture.add(parent)
    db_session_fixture.commit()

    resp = _create_folder(client, auth_headers(OWNER), name="B", parentId=parent.id)
    assert resp.status_code == 200
    assert resp.json()["folder"]["path"] == "/A/B"


def test_empty_parent_id_means_root(client: TestClient, auth_headers):
    resp = _create_folder(client, auth_headers(OWNER), name="Root", parentId="")
    assert resp.status_code == 200
    assert resp.json()["folder"]["parentId"] is None
    assert resp.json()["folder"]["path"] == "/Root"


def test_requires_authentication(client: TestClient):
    assert client.post("/api/folders/create", json={"name": "Docs"}).status_code == 401
    resp = client.post(
        "/api/folders/create",
        json={"name": "Docs"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"


def test_authentication_checked_before_body(client: TestClient):
    resp = client.post("/api/folders/create", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 401


def test_client_user_id_must_match(client: TestClient, auth_headers, db_session_fixture):
    headers = auth_headers(OWNER)
    resp = _create_folder(client, headers, name="Docs", userId=OTHER)
    assert resp.status_code == 403
    assert db_session_fixture.query(FileEntry).count() == 0

    ok = _create_folder(client, headers, name="Docs", userId=OWNER)
    assert ok.status_code == 200
    assert ok.json()["folder"]["userId"] == OWNER


def test_owner_mismatch_reported_before_field_errors(client: TestClient, auth_headers):
    resp = _create_folder(client, auth_headers(OWNER), userId=OTHER)
    assert resp.status_code == 403


def test_invalid_folder_names(client: TestClient, auth_headers):
    headers = auth_headers(OWNER)
    for body in ({}, {"name": ""}, {"name": "   "}, {"name": 123}, {"name": "a/b"}):
        resp = client.post("/api/folders/create", json=body, headers=headers)
        assert resp.status_code == 400, body
        assert resp.json()["success"] is False

    missing = client.post("/api/folders/create", json={}, headers=headers)
    assert missing.json()["error"] == "Folder name is required"


def test_unknown_fields_rejected(client: TestClient, auth_headers):
    resp = _create_folder(client, auth_headers(OWNER), name="Docs", isStarred=True)
    assert resp.status_code == 400


def test_non_object_body_rejected(client: TestClient, auth_headers):
    resp = client.post("/api/folders/create", json=["Docs"], headers=auth_headers(OWNER))
    assert resp.status_code == 400


def test_missing_parent_returns_404(client: TestClient, auth_headers):
    resp = _create_folder(client, auth_headers(OWNER), name="B", parentId="does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Parent folder not found"


def test_parent_owned_by_other_user_is_forbidden(client: TestClient, auth_headers, db_session_fixture):
    foreign = _create_folder(client, auth_headers(OTHER), name="Private").json()["folder"]

    resp = _create_folder(client, auth_headers(OWNER), name="Sneaky", parentId=foreign["id"])
    assert resp.status_code == 403
    assert db_session_fixture.query(FileEntry).filter(FileEntry.user_id == OWNER).count() == 0


def test_parent_must_be_folder(client: TestClient, auth_headers):
    headers = auth_headers(OWNER)
    file_resp = client.post(
        "/api/upload",
        json={"name": "notes.pdf", "fileUrl": "https://cdn.test/notes.pdf", "size": 10, "type": "application/pdf"},
        headers=headers,
    )
    assert file_resp.status_code == 200

    resp = _create_folder(client, headers, name="Inside", parentId=file_resp.json()["file"]["id"])
    assert resp.status_code == 400
    assert resp.json()["error"] == "Parent is not a folder"


def test_request_id_header_echoed(client: TestClient, auth_headers):
    resp = client.post(
        "/api/folders/create",
        json={"name": "Docs"},
        headers={**auth_headers(OWNER), "X-Request-ID": "req-123"},
    )
    assert resp.headers["x-request-id"] == "req-123"


def test_overlong_folder_name_rejected(client: TestClient, auth_headers, db_session_fixture):
    headers = auth_headers(OWNER)
    resp = _create_folder(client, headers, name="x" * 256)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Folder name must be at most 255 characters"
    assert db_session_fixture.query(FileEntry).count() == 0

    # 首尾空白先裁剪再计长度
    resp = _create_folder(client, headers, name=" " + "x" * 255 + " ")
    assert resp.status_code == 200
    assert resp.json()["folder"]["name"] == "x" * 255
