"""Tests for HallApiClient.

The remote system is replaced by httpx.MockTransport; no real network calls.
"""
from datetime import date, time

import httpx
import pytest

from examsync.errors import ExternalSourceError
from examsync.hallapi.client import HallApiClient

BASE = "https://halls.example.org/api/external-app"

HALLS = [
    {
        "id": 1,
        "uid": "hall-uid-1",
        "name": "Hall A",
        "address": "1 Main St",
        "placeLimit": 120,
        "regionId": 5,
        "isActive": 1,
        "rooms": [
            {"id": 10, "name": "R1", "capacity": 30, "examHallId": 1, "isActive": 1},
            {"id": 11, "name": "R2", "capacity": 25, "examHallId": 1, "isActive": 0},
        ],
    }
]

PARTICIPANTS = [
    {
        "startTime": "09:00",
        "participants": [
            {"hallId": 1, "hallName": "Hall A", "roomId": 10, "roomName": "R1", "participantCount": 28},
        ],
    },
    {
        "startTime": "14:00:00",
        "participants": [],
    },
]


def make_client(handler, timeout: float = 5.0) -> HallApiClient:
    return HallApiClient(
        base_url=BASE,
        token="secret-token",
        timeout=timeout,
        transport=httpx.MockTransport(handler),
    )


def json_handler(payload, status_code: int = 200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)
    return handler


# ─── Requests ─────────────────────────────────────────────────────────────────

class TestRequests:
    async def test_sends_bearer_token(self):
        seen = []
        client = make_client(json_handler({"data": HALLS}, seen=seen))
        await client.fetch_facilities()
        assert seen[0].headers["Authorization"] == "Bearer secret-token"

    async def test_facilities_path(self):
        seen = []
        client = make_client(json_handler({"data": HALLS}, seen=seen))
        await client.fetch_facilities()
        assert seen[0].method == "GET"
        assert str(seen[0].url) == f"{BASE}/exam-halls"

    async def test_rooms_path(self):
        seen = []
        client = make_client(json_handler({"data": []}, seen=seen))
        await client.fetch_rooms_for_facility(42)
        assert str(seen[0].url) == f"{BASE}/hall-rooms/42"

    async def test_participants_path_uses_iso_date(self):
        seen = []
        client = make_client(json_handler({"data": []}, seen=seen))
        await client.fetch_participants(date(2025, 6, 1))
        assert str(seen[0].url) == f"{BASE}/room-participants/2025-06-01"

    async def test_trailing_slash_in_base_url(self):
        seen = []
        client = HallApiClient(
            base_url=BASE + "/",
            token="t",
            transport=httpx.MockTransport(json_handler({"data": []}, seen=seen)),
        )
        await client.fetch_facilities()
        assert str(seen[0].url) == f"{BASE}/exam-halls"


# ─── Deserialization ──────────────────────────────────────────────────────────

class TestDeserialization:
    async def test_unwraps_data_envelope(self):
        client = make_client(json_handler({"data": HALLS}))
        halls = await client.fetch_facilities()
        assert len(halls) == 1
        assert halls[0].name == "Hall A"

    async def test_accepts_bare_list(self):
        client = make_client(json_handler(HALLS))
        halls = await client.fetch_facilities()
        assert halls[0].id == 1

    async def test_maps_camel_case_fields(self):
        client = make_client(json_handler({"data": HALLS}))
        hall = (await client.fetch_facilities())[0]
        assert hall.uid == "hall-uid-1"
        assert hall.place_limit == 120
        assert hall.region_id == 5
        assert hall.active is True

    async def test_nested_rooms_and_active_flag(self):
        client = make_client(json_handler({"data": HALLS}))
        rooms = (await client.fetch_facilities())[0].rooms
        assert [r.id for r in rooms] == [10, 11]
        assert rooms[0].capacity == 30
        assert rooms[1].active is False

    async def test_participant_start_times_parsed(self):
        client = make_client(json_handler({"data": PARTICIPANTS}))
        slots = await client.fetch_participants(date(2025, 6, 1))
        assert slots[0].start_time == time(9, 0)
        assert slots[1].start_time == time(14, 0)
        assert slots[0].participants[0].participant_count == 28
        assert slots[0].participants[0].hall_id == 1
        assert slots[0].participants[0].room_id == 10


# ─── Failures ─────────────────────────────────────────────────────────────────

class TestFailures:
    async def test_non_2xx_raises(self):
        client = make_client(json_handler({"message": "nope"}, status_code=503))
        with pytest.raises(ExternalSourceError) as exc_info:
            await client.fetch_facilities()
        assert exc_info.value.status_code == 503

    async def test_unauthorized_raises(self):
        client = make_client(json_handler({}, status_code=401))
        with pytest.raises(ExternalSourceError) as exc_info:
            await client.fetch_participants(date(2025, 6, 1))
        assert exc_info.value.status_code == 401

    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        client = make_client(handler)
        with pytest.raises(ExternalSourceError) as exc_info:
            await client.fetch_facilities()
        assert "timed out" in str(exc_info.value)
        assert exc_info.value.status_code == 0

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(ExternalSourceError):
            await client.fetch_rooms_for_facility(1)

    async def test_invalid_json_raises(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ExternalSourceError):
            await client.fetch_facilities()

    async def test_unexpected_shape_raises(self):
        client = make_client(json_handler({"data": [{"uid": "missing-id-and-name"}]}))
        with pytest.raises(ExternalSourceError):
            await client.fetch_facilities()


class TestLifecycle:
    async def test_close_is_idempotent(self):
        client = make_client(json_handler({"data": []}))
        await client.fetch_facilities()
        await client.close()
        await client.close()

    async def test_reopens_after_close(self):
        client = make_client(json_handler({"data": HALLS}))
        await client.close()
        assert len(await client.fetch_facilities()) == 1

    def test_from_settings(self):
        class FakeSettings:
            hall_api_base_url = BASE
            hall_api_token = "tok"
            hall_api_timeout_seconds = 12.5

        client = HallApiClient.from_settings(FakeSettings())
        assert client.base_url == BASE
        assert client.token == "tok"
        assert client.timeout == 12.5
