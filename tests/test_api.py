"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from meal_lens.api.app import create_app
from tests.conftest import JPEG_BYTES, OTHER_OWNER_ID, OWNER_ID

OWNER_HEADERS = {"X-Owner-Id": OWNER_ID}


def _client(container, **kwargs) -> TestClient:
    return TestClient(create_app(container), **kwargs)


def _upload(client: TestClient, container) -> str:
    response = client.post(
        "/upload-url",
        json={
            "fileName": "lunch.jpg",
            "fileSizeBytes": len(JPEG_BYTES),
            "contentType": "image/jpeg",
        },
        headers=OWNER_HEADERS,
    )
    assert response.status_code == 200
    object_key = response.json()["objectKey"]
    container.object_store.objects[object_key] = JPEG_BYTES
    return object_key


def test_health_sets_request_id(container) -> None:
    client = _client(container)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


def test_request_id_is_echoed(container) -> None:
    client = _client(container)

    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_upload_url_returns_grant(container) -> None:
    client = _client(container)

    response = client.post(
        "/upload-url",
        json={
            "fileName": "lunch.png",
            "fileSizeBytes": 1024,
            "contentType": "image/png",
        },
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["objectKey"].startswith(f"meals/{OWNER_ID}/")
    assert data["objectKey"].endswith(".png")
    assert data["uploadTarget"].startswith("https://storage.test/upload/")
    assert data["expiresIn"] == 600


def test_upload_url_requires_owner(container) -> None:
    client = _client(container)

    response = client.post(
        "/upload-url",
        json={"fileName": "a.jpg", "fileSizeBytes": 1, "contentType": "image/jpeg"},
        headers={"X-Request-ID": "req-401"},
    )

    assert response.status_code == 401
    assert response.json()["requestId"] == "req-401"
    assert response.headers["X-Request-ID"] == "req-401"


def test_upload_url_error_statuses(container) -> None:
    client = _client(container)

    unsupported = client.post(
        "/upload-url",
        json={"fileName": "a.gif", "fileSizeBytes": 1, "contentType": "image/gif"},
        headers=OWNER_HEADERS,
    )
    too_large = client.post(
        "/upload-url",
        json={
            "fileName": "a.jpg",
            "fileSizeBytes": 9 * 1024 * 1024,
            "contentType": "image/jpeg",
        },
        headers=OWNER_HEADERS,
    )
    empty = client.post(
        "/upload-url",
        json={"fileName": "a.jpg", "fileSizeBytes": 0, "contentType": "image/jpeg"},
        headers=OWNER_HEADERS,
    )

    assert unsupported.status_code == 415
    assert unsupported.json()["error"] == "Unsupported Media Type"
    assert too_large.status_code == 413
    assert empty.status_code == 400
    assert empty.json()["fields"] == [
        {"field": "fileSizeBytes", "message": "File size must be positive"}
    ]


def test_malformed_body_is_reported_as_validation_error(container) -> None:
    client = _client(container)

    response = client.post(
        "/upload-url", json={"fileName": "a.jpg"}, headers=OWNER_HEADERS
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation Error"
    fields = {item["field"] for item in data["fields"]}
    assert fields == {"fileSizeBytes", "contentType"}


def test_analyze_then_correct_then_summarize(container) -> None:
    client = _client(container)
    object_key = _upload(client, container)

    analyzed = client.post(
        "/analyze", json={"objectKey": object_key}, headers=OWNER_HEADERS
    )

    assert analyzed.status_code == 200
    record = analyzed.json()
    assert record["ownerId"] == OWNER_ID
    assert record["totalProteinGrams"] == 55.0
    assert record["items"][0]["isUserEdited"] is False

    first_item = record["items"][0]
    corrected = client.patch(
        f"/meals/{record['id']}",
        json={
            "corrections": {
                "items": [
                    {
                        "id": first_item["id"],
                        "name": "Chicken breast",
                        "proteinGrams": 45.0,
                    }
                ],
                "notes": "Bigger portion",
            }
        },
        headers=OWNER_HEADERS,
    )

    assert corrected.status_code == 200
    updated = corrected.json()
    assert updated["totalProteinGrams"] == 70.0
    assert updated["items"][0]["isUserEdited"] is True
    assert updated["items"][0]["confidenceLevel"] == "high"
    assert updated["originalItems"][0]["proteinGrams"] == 30.0

    summary = client.get(
        "/meals/daily-summary", params={"date": "2026-03-14"}, headers=OWNER_HEADERS
    )

    assert summary.status_code == 200
    data = summary.json()
    assert data["date"] == "2026-03-14"
    assert data["mealCount"] == 1
    assert data["macros"] == {"protein": 70.0, "carbs": 45.0, "fat": 16.0}
    assert data["carbWarning"] is False


def test_analyze_foreign_key_is_forbidden(container) -> None:
    client = _client(container)

    response = client.post(
        "/analyze",
        json={"objectKey": f"meals/{OTHER_OWNER_ID}/1-abc.jpg"},
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


def test_analyze_missing_object_is_not_found(container) -> None:
    client = _client(container)

    response = client.post(
        "/analyze",
        json={"objectKey": f"meals/{OWNER_ID}/1-missing.jpg"},
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 404


def test_analyze_engine_failure_is_500(container) -> None:
    client = _client(container)
    object_key = _upload(client, container)
    container.analysis_service.engine.client.error = RuntimeError("quota exceeded")

    response = client.post(
        "/analyze", json={"objectKey": object_key}, headers=OWNER_HEADERS
    )

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Analysis Failed"
    assert data["message"].startswith("AI analysis failed:")


def test_unexpected_error_is_rendered_with_request_id(container) -> None:
    client = _client(container, raise_server_exceptions=False)

    def broken_exists(object_key: str) -> bool:
        raise RuntimeError("storage unavailable")

    container.object_store.exists = broken_exists

    response = client.post(
        "/analyze",
        json={"objectKey": f"meals/{OWNER_ID}/1-abc.jpg"},
        headers={**OWNER_HEADERS, "X-Request-ID": "req-500"},
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred",
        "requestId": "req-500",
    }


def test_correction_validation_error_lists_fields(container) -> None:
    client = _client(container)
    object_key = _upload(client, container)
    record = client.post(
        "/analyze", json={"objectKey": object_key}, headers=OWNER_HEADERS
    ).json()

    blank_name = client.patch(
        f"/meals/{record['id']}",
        json={"corrections": {"items": [{"name": " ", "proteinGrams": 10}]}},
        headers=OWNER_HEADERS,
    )
    missing_protein = client.patch(
        f"/meals/{record['id']}",
        json={"corrections": {"items": [{"name": "Egg"}]}},
        headers=OWNER_HEADERS,
    )

    assert blank_name.status_code == 400
    assert blank_name.json()["fields"][0]["field"] == "items[0].name"
    assert missing_protein.status_code == 400
    assert missing_protein.json()["fields"][0]["field"] == (
        "corrections.items[0].proteinGrams"
    )


def test_daily_summary_rejects_bad_date(container) -> None:
    client = _client(container)

    response = client.get(
        "/meals/daily-summary", params={"date": "14/03/2026"}, headers=OWNER_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["fields"][0]["field"] == "date"


def test_list_get_and_delete_meals(container) -> None:
    client = _client(container)
    object_key = _upload(client, container)
    record = client.post(
        "/analyze", json={"objectKey": object_key}, headers=OWNER_HEADERS
    ).json()

    listed = client.get("/meals", headers=OWNER_HEADERS)
    fetched = client.get(f"/meals/{record['id']}", headers=OWNER_HEADERS)
    foreign = client.get(
        f"/meals/{record['id']}", headers={"X-Owner-Id": OTHER_OWNER_ID}
    )
    deleted = client.delete(f"/meals/{record['id']}", headers=OWNER_HEADERS)
    missing = client.get(f"/meals/{record['id']}", headers=OWNER_HEADERS)

    assert [meal["id"] for meal in listed.json()["meals"]] == [record["id"]]
    assert fetched.json()["objectKey"] == object_key
    assert foreign.status_code == 403
    assert deleted.status_code == 204
    assert missing.status_code == 404
    assert object_key not in container.object_store.objects


def test_unknown_route_uses_error_envelope(container) -> None:
    client = _client(container)

    response = client.get("/no-such-route", headers={"X-Request-ID": "req-404"})

    assert response.status_code == 404
    assert response.json() == {
        "error": "Not Found",
        "message": "Not Found",
        "requestId": "req-404",
    }
