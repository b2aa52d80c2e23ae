"""
Tests for itinerary, safety and ranking API endpoints.

Services are built without any API keys, so generation runs the
category-search path on offline place data and the weather check is
skipped.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import build_services
from src.config import Settings
from src.main import app


@pytest.fixture(autouse=True)
def offline_services():
    """Install services built from key-less settings (the lifespan does not run under ASGITransport)."""
    app.state.services = build_services(
        Settings(
            openrouter_api_key=None,
            anthropic_api_key=None,
            google_maps_api_key=None,
            openweather_api_key=None,
        )
    )
    yield
    del app.state.services


def client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def activity(name: str, category: str = "attraction", start: str = "09:00", end: str = "11:00",
             duration: int = 120, order: int = 1) -> dict:
    return {
        "place_id": name.lower().replace(" ", "-"),
        "place_name": name,
        "category": category,
        "start_time": start,
        "end_time": end,
        "duration": duration,
        "order": order,
    }


# ============== Itinerary generation ==============


@pytest.mark.asyncio
async def test_generate_itinerary():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-12",
        "total_budget": 15000,
        "travel_group": "couple",
        "interests": "history, food",
    }

    async with client() as c:
        response = await c.post("/api/itineraries/generate", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["destination"] == "Jaipur"
    assert len(data["days"]) == 3
    assert [day["date"] for day in data["days"]] == ["2025-11-10", "2025-11-11", "2025-11-12"]
    assert data["days"][0]["activities"][0]["start_time"] == "09:00"
    assert data["total_budget"] == 15000
    assert 0 <= data["safety_score"] <= 100
    assert data["safety_status"] in {"SAFE", "MODERATE", "CAUTION", "UNSAFE"}
    assert data["status"] == "draft"
    assert data["ai_explanation"]


@pytest.mark.asyncio
async def test_generate_with_preferences():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-10",
        "preferences": {
            "budget_level": "budget",
            "interests": {"history": 0.9},
        },
    }

    async with client() as c:
        response = await c.post("/api/itineraries/generate", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert len(data["days"]) == 1
    assert data["ai_explanation"] == (
        "Curated based on your interests in history. Optimized for budget budget."
    )


@pytest.mark.asyncio
async def test_generate_rejects_end_before_start():
    payload = {"destination": "Jaipur", "start_date": "2025-11-12", "end_date": "2025-11-10"}

    async with client() as c:
        response = await c.post("/api/itineraries/generate", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_generate_rejects_blank_destination():
    payload = {"destination": "   ", "start_date": "2025-11-10", "end_date": "2025-11-12"}

    async with client() as c:
        response = await c.post("/api/itineraries/generate", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_generate_rejects_unknown_travel_group():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-12",
        "travel_group": "astronauts",
    }

    async with client() as c:
        response = await c.post("/api/itineraries/generate", json=payload)

    assert response.status_code == 422


# ============== Safety validation ==============


@pytest.mark.asyncio
async def test_validate_child_unsafe_plan():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-10",
        "travel_group": "family-young",
        "days": [
            {
                "day_number": 1,
                "date": "2025-11-10",
                "activities": [
                    activity("Amber Fort", "landmark"),
                    activity("Skyline Club", "nightclub", "11:30", "13:30", order=2),
                ],
            }
        ],
    }

    async with client() as c:
        response = await c.post("/api/safety/validate", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["approved"] is False
    assert data["safety_score"] == 80
    assert data["status"] == "MODERATE"
    assert data["summary"] == "⚡ Safety Score: 80/100 - MODERATE"
    assert [r["type"] for r in data["restrictions"]] == ["CHILD_UNSAFE"]
    assert data["restrictions"][0]["place"] == "Skyline Club"
    assert [f["type"] for f in data["fallbacks"]] == ["FAMILY_FRIENDLY"]
    assert data["context_analysis"]["group_type"] == "family"


@pytest.mark.asyncio
async def test_validate_safe_plan():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-10",
        "days": [
            {
                "day_number": 1,
                "date": "2025-11-10",
                "activities": [activity("Hawa Mahal")],
            }
        ],
    }

    async with client() as c:
        response = await c.post("/api/safety/validate", json=payload)

    data = response.json()
    assert data["approved"] is True
    assert data["safety_score"] == 100
    assert data["status"] == "SAFE"
    assert data["warnings"] == []
    assert data["fallbacks"] == []


@pytest.mark.asyncio
async def test_validate_late_night_activity():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-10",
        "days": [
            {
                "day_number": 1,
                "date": "2025-11-10",
                "activities": [activity("Chokhi Dhani", "restaurant", "21:30", "23:30")],
            }
        ],
    }

    async with client() as c:
        response = await c.post("/api/safety/validate", json=payload)

    data = response.json()
    assert data["safety_score"] == 85
    assert data["approved"] is True
    assert [w["type"] for w in data["warnings"]] == ["LATE_NIGHT"]
    assert [a["action"] for a in data["alternatives"]] == ["RESCHEDULE"]


# ============== Ranking ==============


@pytest.mark.asyncio
async def test_rank_places():
    payload = {
        "preferences": {"interests": {"food": 1.0, "nature": 0.1}},
        "places": [
            {"id": "park", "name": "Central Park", "categories": ["nature"]},
            {"id": "lmb", "name": "LMB", "categories": ["food"]},
        ],
    }

    async with client() as c:
        response = await c.post("/api/places/rank", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["total_candidates"] == 2
    assert [item["place"]["id"] for item in data["ranked"]] == ["lmb", "park"]
    assert data["ranked"][0]["score"]["breakdown"]["interest_match"] == 1.0


@pytest.mark.asyncio
async def test_rank_rejects_out_of_range_interest():
    payload = {
        "preferences": {"interests": {"food": 2.0}},
        "places": [{"id": "lmb", "name": "LMB", "categories": ["food"]}],
    }

    async with client() as c:
        response = await c.post("/api/places/rank", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_validate_zero_budget():
    payload = {
        "destination": "Jaipur",
        "start_date": "2025-11-10",
        "end_date": "2025-11-11",
        "total_budget": 0,
        "days": [
            {
                "day_number": 1,
                "date": "2025-11-10",
                "activities": [activity("Hawa Mahal")],
            }
        ],
    }

    async with client() as c:
        response = await c.post("/api/safety/validate", json=payload)

    assert response.status_code == 200
    analysis = response.json()["context_analysis"]
    assert analysis["budget_category"] == "budget"
    assert analysis["weather_advisories"] == []
