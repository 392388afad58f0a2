from masjid_portal.config import settings
from masjid_portal.core.exceptions import BackendUnavailable
from masjid_portal.models import CommitteeMember


def _form(**fields):
    return {"name": "Ibrahim", "designation": "Président", **fields}


def _files(png, filename="portrait.png", content_type="image/png"):
    return {"image": (filename, png, content_type)}


def test_list_is_public_and_hides_inactive_members(client, make_member):
    make_member(name="Actif")
    make_member(name="Ancien", is_active=False)

    response = client.get("/api/v1/committee/")

    assert response.status_code == 200
    assert [m["name"] for m in response.json()] == ["Actif"]


def test_create_member_with_photo(client, admin_headers, storage, png):
    response = client.post(
        "/api/v1/committee/",
        data=_form(phone="77 123 45 67"),
        files=_files(png),
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["image_state"] == "committed"
    assert body["phone"] == "771234567"
    assert storage.resolves(body["image_url"])
    assert body["image_url"].rsplit("/", 1)[-1].startswith(f"{body['id']}-")


def test_create_member_without_photo(client, admin_headers, storage):
    response = client.post("/api/v1/committee/", data=_form(), headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["image_url"] is None
    assert storage.calls == []


def test_cashier_cannot_manage_committee(client, cashier_headers, db):
    response = client.post("/api/v1/committee/", data=_form(), headers=cashier_headers)

    assert response.status_code == 403
    assert response.headers["location"] == "/"
    assert db.query(CommitteeMember).count() == 0


def test_anonymous_is_sent_to_login(client, make_member):
    member = make_member()

    response = client.delete(f"/api/v1/committee/{member.id}")

    assert response.status_code == 401
    assert response.json()["redirect_to"] == "/login"


def test_non_image_file_is_rejected_without_storage_call(client, admin_headers, storage, db):
    response = client.post(
        "/api/v1/committee/",
        data=_form(),
        files=_files(b"%PDF-1.4", "statuts.pdf", "application/pdf"),
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert storage.calls == []
    assert db.query(CommitteeMember).count() == 0


def test_oversized_image_is_rejected_without_storage_call(client, admin_headers, storage):
    big = b"\x89PNG" + b"\x00" * settings.MAX_IMAGE_SIZE

    response = client.post(
        "/api/v1/committee/",
        data=_form(),
        files=_files(big),
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "Mo" in response.json()["detail"]
    assert storage.calls == []


def test_blank_name_is_rejected(client, admin_headers):
    response = client.post("/api/v1/committee/", data=_form(name="   "), headers=admin_headers)

    assert response.status_code == 422


def test_storage_outage_is_reported_as_retryable(client, admin_headers, storage, png, db):
    storage.fail("upload", BackendUnavailable("délai dépassé"))

    response = client.post("/api/v1/committee/", data=_form(), files=_files(png), headers=admin_headers)

    assert response.status_code == 503
    assert "réessayer" in response.json()["detail"]
    assert db.query(CommitteeMember).count() == 0


def test_update_member_and_replace_photo(client, admin_headers, storage, png):
    created = client.post(
        "/api/v1/committee/", data=_form(), files=_files(png), headers=admin_headers
    ).json()
    old_key = created["image_url"].rsplit("/", 1)[-1]

    response = client.put(
        f"/api/v1/committee/{created['id']}",
        data={"designation": "Imam"},
        files=_files(png, "nouvelle.jpg", "image/jpeg"),
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["designation"] == "Imam"
    assert body["name"] == "Ibrahim"
    assert body["image_url"] != created["image_url"]
    assert storage.resolves(body["image_url"])
    assert old_key not in storage.blobs


def test_replace_image_endpoint(client, admin_headers, storage, png, make_member):
    member = make_member()

    response = client.put(
        f"/api/v1/committee/{member.id}/image",
        files=_files(png),
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["image_state"] == "committed"
    assert storage.resolves(response.json()["image_url"])


def test_delete_member_even_if_photo_removal_fails(client, admin_headers, storage, png, db):
    created = client.post(
        "/api/v1/committee/", data=_form(), files=_files(png), headers=admin_headers
    ).json()
    storage.fail("remove")

    response = client.delete(f"/api/v1/committee/{created['id']}", headers=admin_headers)

    assert response.status_code == 204
    assert db.query(CommitteeMember).count() == 0


def test_unknown_member_returns_404(client, admin_headers):
    assert client.get("/api/v1/committee/999").status_code == 404
    assert client.delete("/api/v1/committee/999", headers=admin_headers).status_code == 404


def test_reconcile_endpoint(client, admin_headers, storage, png):
    storage.fail("copy")
    created = client.post(
        "/api/v1/committee/", data=_form(), files=_files(png), headers=admin_headers
    ).json()
    assert created["image_state"] == "pending"
    storage.fail_on.clear()

    response = client.post("/api/v1/committee/reconcile", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"pending": 1, "committed": 1, "failed": 0}
    member = client.get(f"/api/v1/committee/{created['id']}").json()
    assert member["image_state"] == "committed"


def test_failed_photo_upload_on_update_keeps_member_unchanged(client, admin_headers, storage, png):
    created = client.post(
        "/api/v1/committee/", data=_form(), files=_files(png), headers=admin_headers
    ).json()
    storage.fail("upload")

    response = client.put(
        f"/api/v1/committee/{created['id']}",
        data={"designation": "Trésorier"},
        files=_files(png),
        headers=admin_headers,
    )

    assert response.status_code == 502
    member = client.get(f"/api/v1/committee/{created['id']}").json()
    assert member["designation"] == "Président"
    assert member["image_url"] == created["image_url"]


def test_admin_list_includes_inactive_members(client, admin_headers, make_member):
    make_member(name="Actif")
    make_member(name="Ancien", is_active=False)

    response = client.get("/api/v1/committee/all", headers=admin_headers)

    assert response.status_code == 200
    assert [m["name"] for m in response.json()] == ["Actif", "Ancien"]


def test_admin_list_is_not_public(client, cashier_headers):
    assert client.get("/api/v1/committee/all").status_code == 401
    assert client.get("/api/v1/committee/all", headers=cashier_headers).status_code == 403
