"""Shared fixtures and helpers for owbot tests."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

BASE_URL = "https://owapi.test/api/v3/"


def competitive(games: int, **overall: Any) -> dict[str, Any]:
    """One region's entry of a stats response with ``games`` played."""
    overall_stats = {
        "comprank": 2500,
        "games": games,
        "level": 42,
        "losses": games // 2,
        "prestige": 1,
        "wins": games - games // 2,
        "win_rate": 50.0,
    }
    overall_stats.update(overall)
    return {
        "stats": {
            "competitive": {
                "overall_stats": overall_stats,
                "game_stats": {
                    "deaths": 120.0,
                    "eliminations": 300.0,
                    "kpd": 2.5,
                    "time_played": 12.0,
                    "medals": 60.0,
                    "medals_gold": 20.0,
                    "medals_silver": 25.0,
                    "medals_bronze": 15.0,
                },
            }
        }
    }


def stats_body(us=None, eu=None, kr=None) -> dict[str, Any]:
    return {"us": us, "eu": eu, "kr": kr, "_request": {"api_ver": 3}}


class StubTransport:
    """Stands in for RateLimitedTransport, recording calls and overlap."""

    def __init__(self, body: Any = None, delay: float = 0.01):
        self.body = body if body is not None else stats_body(us=competitive(10))
        self.bodies: dict[str, Any] = {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get(self, url: str) -> httpx.Response:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        body = self.bodies.get(url, self.body)
        request = httpx.Request("GET", BASE_URL + url)
        if isinstance(body, bytes):
            return httpx.Response(200, content=body, request=request)
        return httpx.Response(200, json=body, request=request)


class FakeTimer:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()
