"""
Integration tests for prediction endpoints
"""

import pytest


class TestPredictionsAPI:

    @pytest.mark.asyncio
    async def test_fields(self, client):
        response = await client.get("/predictions/fields")

        assert response.status_code == 200
        fields = response.json()
        assert len(fields) == 12
        assert fields[0] == {"key": "wineBottles", "label": "Flessen wijn", "type": "numeric"}
        assert fields[-1]["type"] == "time"

    @pytest.mark.asyncio
    async def test_submit_and_read_back(self, client, auth_headers):
        response = await client.post(
            "/predictions",
            json={"wineBottles": 20, "firstSleeper": "user-bert", "lastGuestTime": 10},
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "points_awarded": 5}

        mine = (await client.get("/predictions/me", headers=auth_headers)).json()
        assert mine["predictions"]["firstSleeper"] == "user-bert"
        assert mine["score"] is None
        assert mine["max_points"] == 600

    @pytest.mark.asyncio
    async def test_out_of_range_time(self, client, auth_headers):
        response = await client.post("/predictions", json={"lastGuestTime": 23}, headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_locked_after_results(self, client, auth_headers, admin_headers):
        await client.put("/admin/predictions/results", json={"wineBottles": 20}, headers=admin_headers)

        response = await client.post("/predictions", json={"wineBottles": 20}, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "PREDICTIONS_LOCKED"
