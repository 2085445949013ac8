"""Tests for the public HTTP endpoints."""

import pytest

from animalert.services import complaint_notification_service, pdf_render_service


@pytest.fixture
def fake_pipeline(monkeypatch):
    monkeypatch.setattr(pdf_render_service, "generate_pdf_from_template", lambda _html: b"%PDF")
    monkeypatch.setattr(
        complaint_notification_service, "send_complaint_notification", lambda **_kwargs: True
    )


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_submit_complaint(client, complaint_payload, fake_pipeline):
    response = await client.post("/complaints", json=complaint_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["public_id"].startswith("07-001-")
    assert body["internal_id"].startswith("PET-PJ [BRC-001-")


@pytest.mark.asyncio
async def test_submit_complaint_pipeline_failure_returns_500(
    client, complaint_payload, monkeypatch
):
    def broken_render(_html):
        raise RuntimeError("chromium gone")

    monkeypatch.setattr(pdf_render_service, "generate_pdf_from_template", broken_render)

    response = await client.post("/complaints", json=complaint_payload)

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to submit complaint"}


@pytest.mark.asyncio
async def test_submit_complaint_unknown_incident_type_returns_500(
    client, complaint_payload, fake_pipeline
):
    complaint_payload["incident_type"] = 4242

    response = await client.post("/complaints", json=complaint_payload)

    assert response.status_code == 500


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field,value",
    [
        ("email", "not-an-email"),
        ("county", "XX"),
        ("phone_number", "123"),
        ("incident_description", "scurt"),
        ("attachments", ["complaints/other.pdf"]),
        ("attachments", ["uploads/../secret"]),
        ("country", "Moldova"),
    ],
)
async def test_submit_complaint_validation_errors(client, complaint_payload, field, value):
    complaint_payload[field] = value

    response = await client.post("/complaints", json=complaint_payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_complaint_templates(client, taxonomy):
    response = await client.get("/complaint-templates")

    assert response.status_code == 200
    assert response.json() == [{"id": taxonomy.template.id, "display_name": "Braconaj"}]


@pytest.mark.asyncio
async def test_get_complaint_template(client, taxonomy):
    response = await client.get(f"/complaint-templates/{taxonomy.template.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["display_name"] == "Braconaj"
    assert body["category_id"] == taxonomy.category.id
    assert "{{ nume_utilizator }}" in body["html"]


@pytest.mark.asyncio
async def test_get_complaint_template_not_found(client, db):
    response = await client.get("/complaint-templates/999")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_presign_upload(client):
    response = await client.post(
        "/uploads/presign",
        json={"file_name": "capcana.jpg", "file_type": "image/jpeg", "file_size": 2048},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["key"].startswith("uploads/")
    assert body["url"] == f"/uploads/local/{body['key']}"


@pytest.mark.asyncio
async def test_presign_upload_rejects_invalid_type(client):
    response = await client.post(
        "/uploads/presign",
        json={"file_name": "virus.exe", "file_type": "application/x-msdownload", "file_size": 10},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_local_upload_then_submit_with_attachment(
    client, complaint_payload, fake_pipeline, local_storage
):
    presign = await client.post(
        "/uploads/presign",
        json={"file_name": "capcana.jpg", "file_type": "image/jpeg", "file_size": 4},
    )
    key = presign.json()["key"]

    upload = await client.put(
        presign.json()["url"], content=b"jpeg", headers={"Content-Type": "image/jpeg"}
    )
    assert upload.status_code == 204
    assert (local_storage / key).read_bytes() == b"jpeg"

    complaint_payload["attachments"] = [key]
    response = await client.post("/complaints", json=complaint_payload)

    assert response.status_code == 201
