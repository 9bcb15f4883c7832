"""Reservation API integration tests."""

from __future__ import annotations

import uuid
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

DAY = "2025-03-12"


def _payload(context: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    payload = {
        "equipment_id": str(context["equipment_id"]),
        "teacher_id": str(context["teacher_id"]),
        "date": DAY,
        "modules": [3, 4],
    }
    payload.update(overrides)
    return payload


def _series_payload(context: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    values = {
        "modules": [1, 2],
        "frequency": "weekly",
        "series_end_date": "2025-04-02",
    }
    values.update(overrides)
    return _payload(context, **values)


async def test_create_and_fetch_reservation(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    response = await client.post(
        "/api/v1/reservations", json=_payload(app_context, observations="Algebra")
    )
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["status"] == "pending"
    assert created["modules"] == [3, 4]
    assert created["date"] == DAY
    assert created["is_recurring"] is False
    assert created["time_span"] == "2 modules from 09:20 to 10:40"
    assert created["equipment"]["name"] == "Projector 1"
    assert created["teacher"]["first_name"] == "Ana"

    fetched = await client.get(f"/api/v1/reservations/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["observations"] == "Algebra"


async def test_date_with_time_component_is_stored_as_calendar_day(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]

    response = await client.post(
        "/api/v1/reservations",
        json=_payload(app_context, date="2025-03-12T00:00:00.000Z"),
    )

    assert response.status_code == 201, response.text
    assert response.json()["date"] == DAY


async def test_overlapping_modules_are_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    first = await client.post("/api/v1/reservations", json=_payload(app_context))
    assert first.status_code == 201

    response = await client.post(
        "/api/v1/reservations",
        json=_payload(
            app_context,
            teacher_id=str(app_context["other_teacher_id"]),
            modules=[4, 5],
        ),
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["ok"] is False
    assert detail["kind"] == "modules-unavailable"
    assert detail["detail"] == [4]
    assert detail["message"] == "Modules not available: 4"


async def test_invalid_requests_return_structured_errors(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]

    past = await client.post(
        "/api/v1/reservations", json=_payload(app_context, date="2025-03-07")
    )
    assert past.status_code == 400
    assert past.json()["detail"]["kind"] == "invalid-date"

    elapsed = await client.post(
        "/api/v1/reservations",
        json=_payload(app_context, date="2025-03-10", modules=[1, 2]),
    )
    assert elapsed.status_code == 400
    assert elapsed.json()["detail"]["errors"] == ["Modules already elapsed today: 1"]

    empty = await client.post(
        "/api/v1/reservations", json=_payload(app_context, modules=[])
    )
    assert empty.status_code == 400
    assert empty.json()["detail"]["kind"] == "invalid-input"

    out_of_range = await client.post(
        "/api/v1/reservations", json=_payload(app_context, modules=[15, 16])
    )
    assert out_of_range.status_code == 400
    assert "Invalid modules: 16" in out_of_range.json()["detail"]["errors"]


async def test_unknown_or_withdrawn_equipment_is_rejected(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]

    unknown = await client.post(
        "/api/v1/reservations",
        json=_payload(app_context, equipment_id=str(uuid.uuid4())),
    )
    assert unknown.status_code == 400
    assert unknown.json()["detail"] == "Equipment not found"

    withdrawn = await client.post(
        "/api/v1/reservations",
        json=_payload(
            app_context, equipment_id=str(app_context["unavailable_equipment_id"])
        ),
    )
    assert withdrawn.status_code == 400
    assert withdrawn.json()["detail"] == "Equipment is not available for booking"


async def test_availability_endpoint(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    await client.post("/api/v1/reservations", json=_payload(app_context))

    response = await client.get(
        "/api/v1/reservations/availability",
        params={
            "equipment_id": str(app_context["equipment_id"]),
            "date": DAY,
            "modules": [4, 5],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["available"] is False
    assert body["occupied_modules"] == [3, 4]
    assert body["conflicting_modules"] == [4]
    assert body["free_modules"] == [1, 2] + list(range(5, 16))


async def test_series_creation_and_lookup(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    response = await client.post(
        "/api/v1/reservations/series", json=_series_payload(app_context)
    )

    assert response.status_code == 201, response.text
    occurrences = response.json()
    assert [item["date"] for item in occurrences] == [
        "2025-03-12",
        "2025-03-19",
        "2025-03-26",
        "2025-04-02",
    ]
    series_ids = {item["series_id"] for item in occurrences}
    assert len(series_ids) == 1
    assert all(item["frequency"] == "weekly" for item in occurrences)
    assert occurrences[0]["observations"] == "Recurring reservation (weekly)"

    series_id = series_ids.pop()
    lookup = await client.get(f"/api/v1/reservations/series/{series_id}")
    assert lookup.status_code == 200
    assert len(lookup.json()) == 4

    missing = await client.get(f"/api/v1/reservations/series/{uuid.uuid4()}")
    assert missing.status_code == 404


async def test_series_with_conflict_creates_nothing(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]
    blocker = await client.post(
        "/api/v1/reservations",
        json=_payload(app_context, date="2025-03-19", modules=[2]),
    )
    assert blocker.status_code == 201

    response = await client.post(
        "/api/v1/reservations/series", json=_series_payload(app_context)
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["kind"] == "series-conflicts"
    assert detail["detail"] == ["2025-03-19"]
    assert detail["conflict_count"] == 1
    assert detail["message"] == "Conflicts on dates: 19/03/2025"

    listing = await client.get("/api/v1/reservations")
    assert len(listing.json()) == 1


async def test_series_preview(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    await client.post(
        "/api/v1/reservations",
        json=_payload(app_context, date="2025-03-26", modules=[1]),
    )

    response = await client.post(
        "/api/v1/reservations/series/preview",
        json={
            "equipment_id": str(app_context["equipment_id"]),
            "start_date": DAY,
            "frequency": "weekly",
            "series_end_date": "2025-04-02",
            "modules": [1, 2],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["occurrence_count"] == 4
    assert body["conflicting_dates"] == ["2025-03-26"]
    assert body["valid"] is False
    assert body["summary"] == "Conflicts on dates: 26/03/2025"


async def test_cancel_series_frees_modules(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    created = await client.post(
        "/api/v1/reservations/series", json=_series_payload(app_context)
    )
    series_id = created.json()[0]["series_id"]

    response = await client.post(f"/api/v1/reservations/series/{series_id}/cancel")

    assert response.status_code == 200
    assert response.json() == {"series_id": series_id, "updated_count": 4}

    lookup = await client.get(f"/api/v1/reservations/series/{series_id}")
    assert {item["status"] for item in lookup.json()} == {"cancelled"}

    rebook = await client.post(
        "/api/v1/reservations",
        json=_payload(app_context, date="2025-03-19", modules=[1, 2]),
    )
    assert rebook.status_code == 201

    again = await client.post(f"/api/v1/reservations/series/{series_id}/cancel")
    assert again.json()["updated_count"] == 0

    missing = await client.post(f"/api/v1/reservations/series/{uuid.uuid4()}/cancel")
    assert missing.status_code == 404


async def test_status_lifecycle(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    created = await client.post("/api/v1/reservations", json=_payload(app_context))
    reservation_id = created.json()["id"]

    confirmed = await client.patch(
        f"/api/v1/reservations/{reservation_id}", json={"status": "confirmed"}
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    back_to_pending = await client.patch(
        f"/api/v1/reservations/{reservation_id}", json={"status": "pending"}
    )
    assert back_to_pending.status_code == 400

    cancelled = await client.post(f"/api/v1/reservations/{reservation_id}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    edit_cancelled = await client.patch(
        f"/api/v1/reservations/{reservation_id}", json={"modules": [5]}
    )
    assert edit_cancelled.status_code == 400

    filtered = await client.get(
        "/api/v1/reservations", params={"status": "cancelled"}
    )
    assert [item["id"] for item in filtered.json()] == [reservation_id]


async def test_patch_revalidates_module_changes(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    await client.post("/api/v1/reservations", json=_payload(app_context))
    second = await client.post(
        "/api/v1/reservations", json=_payload(app_context, modules=[5, 6])
    )
    second_id = second.json()["id"]

    clash = await client.patch(
        f"/api/v1/reservations/{second_id}", json={"modules": [4, 5]}
    )
    assert clash.status_code == 409
    assert clash.json()["detail"]["detail"] == [4]

    moved = await client.patch(
        f"/api/v1/reservations/{second_id}",
        json={"modules": [7, 8], "observations": "After break"},
    )
    assert moved.status_code == 200
    assert moved.json()["modules"] == [7, 8]
    assert moved.json()["observations"] == "After break"


async def test_grouped_listing(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    single = await client.post(
        "/api/v1/reservations", json=_payload(app_context, modules=[9])
    )
    series = await client.post(
        "/api/v1/reservations/series", json=_series_payload(app_context)
    )
    series_id = series.json()[0]["series_id"]

    response = await client.get("/api/v1/reservations/grouped")

    assert response.status_code == 200
    groups = response.json()
    assert [group["key"] for group in groups] == [
        series_id,
        f"individual-{single.json()['id']}",
    ]
    assert groups[0]["occurrence_count"] == 4
    assert groups[1]["series_id"] is None


async def test_unknown_reservation_returns_404(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    response = await client.get(f"/api/v1/reservations/{uuid.uuid4()}")

    assert response.status_code == 404


async def test_series_preview_is_capped(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    response = await client.post(
        "/api/v1/reservations/series/preview",
        json={
            "equipment_id": str(app_context["equipment_id"]),
            "start_date": "2025-03-10",
            "frequency": "daily",
            "series_end_date": "2300-01-01",
            "modules": [4],
        },
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["kind"] == "invalid-input"
    assert detail["message"] == "Series would create more than 400 reservations"


async def test_series_preview_at_the_end_of_the_calendar(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]

    response = await client.post(
        "/api/v1/reservations/series/preview",
        json={
            "equipment_id": str(app_context["equipment_id"]),
            "start_date": "9999-12-30",
            "frequency": "daily",
            "series_end_date": "9999-12-31",
            "modules": [4],
        },
    )

    assert response.status_code == 200
    assert response.json()["dates"] == ["9999-12-30", "9999-12-31"]
