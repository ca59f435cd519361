"""Vehicle listing and booking API integration tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

pytestmark = pytest.mark.asyncio

BOOKING = {
    "pickup_at": "2025-01-01T10:00:00Z",
    "return_at": "2025-01-11T10:00:00Z",
    "pickup_location": "Kigali Airport",
    "payment_method": "momo",
}


async def _book(ctx: dict[str, Any], headers_key: str = "guest_headers", **overrides: Any):
    payload = {**BOOKING, "vehicle_id": str(ctx["vehicle_id"]), **overrides}
    return await ctx["client"].post(
        "/api/v1/vehicle-bookings", json=payload, headers=ctx[headers_key]
    )


async def test_availability_reports_quote(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    response = await client.get(
        f"/api/v1/vehicles/{app_context['vehicle_id']}/availability",
        params={"start": BOOKING["pickup_at"], "end": BOOKING["return_at"]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["available"] is True
    assert body["quote"]["tier"] == "weekly"
    assert Decimal(body["quote"]["amount"]) == Decimal("90000")

    reversed_span = await client.get(
        f"/api/v1/vehicles/{app_context['vehicle_id']}/availability",
        params={"start": BOOKING["return_at"], "end": BOOKING["pickup_at"]},
    )
    assert reversed_span.status_code == 400
    assert reversed_span.json()["detail"]["reason"] == "invalid_span"


async def test_booking_lifecycle(app_context: dict[str, Any]) -> None:
    client = app_context["client"]

    created = await _book(app_context)
    assert created.status_code == 201, created.text
    booking = created.json()
    assert booking["status"] == "pending"
    assert booking["channel"] == "online"
    assert booking["payment_method"] == "mobile_money"
    assert Decimal(booking["total_amount"]) == Decimal("90000")
    assert Decimal(booking["commission_amount"]) == Decimal("9000")

    conflict = await _book(
        app_context,
        "second_guest_headers",
        pickup_at="2025-01-05T10:00:00Z",
        return_at="2025-01-06T10:00:00Z",
    )
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["reason"] == "conflict"

    touching = await _book(
        app_context,
        "second_guest_headers",
        pickup_at="2025-01-11T10:00:00Z",
        return_at="2025-01-12T10:00:00Z",
    )
    assert touching.status_code == 201

    mine = await client.get(
        "/api/v1/vehicle-bookings/mine", headers=app_context["guest_headers"]
    )
    assert [item["id"] for item in mine.json()] == [booking["id"]]

    owner_view = await client.get(
        "/api/v1/vehicle-bookings/owner", headers=app_context["host_headers"]
    )
    assert len(owner_view.json()) == 2

    peek = await client.get(
        f"/api/v1/vehicle-bookings/{booking['id']}",
        headers=app_context["second_guest_headers"],
    )
    assert peek.status_code == 403

    self_confirm = await client.patch(
        f"/api/v1/vehicle-bookings/{booking['id']}/status",
        json={"status": "confirmed"},
        headers=app_context["guest_headers"],
    )
    assert self_confirm.status_code == 403

    confirmed = await client.patch(
        f"/api/v1/vehicle-bookings/{booking['id']}/status",
        json={"status": "confirmed"},
        headers=app_context["host_headers"],
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    backwards = await client.patch(
        f"/api/v1/vehicle-bookings/{booking['id']}/status",
        json={"status": "pending"},
        headers=app_context["host_headers"],
    )
    assert backwards.status_code == 400
    assert backwards.json()["detail"]["reason"] == "invalid_status_transition"

    mileage = await client.patch(
        f"/api/v1/vehicle-bookings/{booking['id']}/mileage",
        json={"mileage_at_pickup": 1000, "mileage_at_return": 1450},
        headers=app_context["host_headers"],
    )
    assert mileage.status_code == 200
    assert mileage.json()["mileage_at_return"] == 1450

    audit = await client.get(
        f"/api/v1/vehicle-bookings/{booking['id']}/audit",
        headers=app_context["host_headers"],
    )
    assert audit.status_code == 200
    assert audit.json()["matches"] is True


async def test_guest_can_cancel_and_rebook(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    booking = (await _book(app_context)).json()
    cancelled = await client.patch(
        f"/api/v1/vehicle-bookings/{booking['id']}/status",
        json={"status": "cancelled"},
        headers=app_context["guest_headers"],
    )
    assert cancelled.status_code == 200
    again = await _book(app_context, "second_guest_headers")
    assert again.status_code == 201


async def test_direct_booking_requires_ownership(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    payload = {
        "vehicle_id": str(app_context["vehicle_id"]),
        "pickup_at": "2025-02-01T08:00:00Z",
        "return_at": "2025-02-03T08:00:00Z",
        "pickup_location": "Nyarutarama",
        "final_price": "18000",
        "guest_name": "Walk-in Customer",
    }
    forbidden = await client.post(
        "/api/v1/vehicle-bookings/direct",
        json=payload,
        headers=app_context["other_host_headers"],
    )
    assert forbidden.status_code == 403

    invalid = await client.post(
        "/api/v1/vehicle-bookings/direct",
        json={**payload, "final_price": "0"},
        headers=app_context["host_headers"],
    )
    assert invalid.status_code == 422

    created = await client.post(
        "/api/v1/vehicle-bookings/direct",
        json=payload,
        headers=app_context["host_headers"],
    )
    assert created.status_code == 201
    body = created.json()
    assert body["channel"] == "direct"
    assert body["status"] == "confirmed"
    assert Decimal(body["final_agreed_amount"]) == Decimal("18000")
    assert Decimal(body["commission_amount"]) == Decimal("1440")


async def test_listing_management(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    payload = {
        "name": "Honda Fit",
        "vehicle_type": "compact",
        "price_per_day": "7000",
        "price_per_week": "42000",
    }
    guest_attempt = await client.post(
        "/api/v1/vehicles", json=payload, headers=app_context["guest_headers"]
    )
    assert guest_attempt.status_code == 403

    created = await client.post(
        "/api/v1/vehicles", json=payload, headers=app_context["host_headers"]
    )
    assert created.status_code == 201
    vehicle_id = created.json()["id"]

    mine = await client.get("/api/v1/vehicles/mine", headers=app_context["host_headers"])
    assert {item["id"] for item in mine.json()} >= {vehicle_id}

    stranger = await client.patch(
        f"/api/v1/vehicles/{vehicle_id}/activation",
        json={"is_active": False},
        headers=app_context["other_host_headers"],
    )
    assert stranger.status_code == 403

    disabled = await client.patch(
        f"/api/v1/vehicles/{vehicle_id}/activation",
        json={"is_active": False},
        headers=app_context["host_headers"],
    )
    assert disabled.json()["is_active"] is False

    browse = await client.get("/api/v1/vehicles")
    assert vehicle_id not in {item["id"] for item in browse.json()}

    refused = await _book(app_context, vehicle_id=vehicle_id)
    assert refused.status_code == 404
    assert refused.json()["detail"]["reason"] == "not_found"


async def test_booking_requires_authentication(app_context: dict[str, Any]) -> None:
    response = await app_context["client"].post(
        "/api/v1/vehicle-bookings",
        json={**BOOKING, "vehicle_id": str(app_context["vehicle_id"])},
    )
    assert response.status_code == 401
