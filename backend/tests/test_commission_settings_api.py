"""Commission settings and level administration tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from marketplace.models import CommissionScope
from marketplace.services import commission_service

pytestmark = pytest.mark.asyncio


async def test_settings_are_admin_only(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    for role in ("host", "guest"):
        response = await client.get(
            "/api/v1/commission-settings", headers=app_context[f"{role}_headers"]
        )
        assert response.status_code == 403

    current = await client.get(
        "/api/v1/commission-settings", headers=app_context["admin_headers"]
    )
    assert current.status_code == 200
    assert Decimal(current.json()["base_rate"]) == Decimal("8")
    assert Decimal(current.json()["premium_rate"]) == Decimal("10")


async def test_rates_are_clamped(app_context: dict[str, Any]) -> None:
    response = await app_context["client"].put(
        "/api/v1/commission-settings",
        json={"base_rate": "150", "premium_rate": "-3", "enforcement_paused": True},
        headers=app_context["admin_headers"],
    )
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["base_rate"]) == Decimal("100")
    assert Decimal(body["premium_rate"]) == Decimal("0")
    assert body["enforcement_paused"] is True


async def test_zero_premium_rate_falls_back_to_base(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    await client.put(
        "/api/v1/commission-settings",
        json={"base_rate": "6", "premium_rate": "0"},
        headers=app_context["admin_headers"],
    )
    booked = await client.post(
        "/api/v1/vehicle-bookings",
        json={
            "vehicle_id": str(app_context["vehicle_id"]),
            "pickup_at": "2025-01-01T10:00:00Z",
            "return_at": "2025-01-11T10:00:00Z",
            "pickup_location": "Kigali Airport",
        },
        headers=app_context["guest_headers"],
    )
    assert booked.status_code == 201
    assert Decimal(booked.json()["commission_rate"]) == Decimal("6")
    assert Decimal(booked.json()["commission_amount"]) == Decimal("5400")


async def test_levels_are_created_and_listed(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    payload = {
        "name": "Gold",
        "key": "Vehicle-Gold",
        "direct_rate": "6",
        "online_rate": "11",
        "scope": "vehicle",
    }
    created = await client.post(
        "/api/v1/commission-levels", json=payload, headers=app_context["admin_headers"]
    )
    assert created.status_code == 201
    assert created.json()["key"] == "vehicle-gold"

    duplicate = await client.post(
        "/api/v1/commission-levels", json=payload, headers=app_context["admin_headers"]
    )
    assert duplicate.status_code == 400

    denied = await client.post(
        "/api/v1/commission-levels", json=payload, headers=app_context["host_headers"]
    )
    assert denied.status_code == 403

    listed = await client.get(
        "/api/v1/commission-levels",
        params={"scope": "vehicle"},
        headers=app_context["admin_headers"],
    )
    assert [level["key"] for level in listed.json()] == ["vehicle-gold"]


async def test_default_levels_are_installed_once(db_session, seeded) -> None:
    created = await commission_service.ensure_default_levels(
        db_session, scope=CommissionScope.VEHICLE
    )
    assert created == len(commission_service.DEFAULT_LEVELS)
    again = await commission_service.ensure_default_levels(
        db_session, scope=CommissionScope.VEHICLE
    )
    assert again == 0

    levels = await commission_service.list_levels(
        db_session, scope=CommissionScope.VEHICLE
    )
    assert [level.key for level in levels] == [
        "vehicle-standard",
        "vehicle-premium",
        "vehicle-featured",
    ]
