"""Tests for the SIM traffic generator."""

import httpx
import pytest

from messenger.api import create_fastapi_app
from messenger.app import Application
from sim import Sim


@pytest.fixture
async def application():
    app = Application(db_path=":memory:", delivery_delay=0.01)
    await app.start()
    yield app
    await app.stop()


@pytest.fixture
async def http_client(application):
    transport = httpx.ASGITransport(app=create_fastapi_app(application))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestSimScenario:
    """Tests for the scripted conversation."""

    async def test_runs_full_script(self, application, http_client):
        sim = Sim(
            tracker=application.tracker, min_delay=0, max_delay=0, client=http_client
        )
        await sim.start()
        await sim.task

        assert len(sim.sent) == 4
        history = await application.engine.get_history("sim_alice", "sim_bob")
        assert [m.text for m in history] == [m["text"] for m in sim.sent]

        events = await application.storage.get_trace_events(actor="sim")
        assert {e.event_type for e in events} == {"sim_started", "sim_completed"}
        await sim.stop()

    async def test_stop_before_start(self):
        await Sim(min_delay=0, max_delay=0).stop()
