import asyncio

from aiohttp import test_utils

from digitbot.config import PipelineConfig
from digitbot.dashboard import EventBroadcaster, build_app
from digitbot.runtime.pipeline import PipelineManager


class _FakeSocket:
    def __init__(self, fail: bool = False):
        self.closed = False
        self.fail = fail
        self.sent: list = []

    async def send_json(self, data):
        if self.fail:
            raise ConnectionResetError("peer gone")
        self.sent.append(data)


def test_publish_without_clients_is_noop() -> None:
    broadcaster = EventBroadcaster()
    broadcaster.publish({"type": "tick", "symbol": "1HZ100V", "digit": 3})
    assert broadcaster.published == 1


def test_publish_drops_failing_client() -> None:
    broadcaster = EventBroadcaster()
    good, bad = _FakeSocket(), _FakeSocket(fail=True)

    async def scenario() -> None:
        broadcaster.add(good)
        broadcaster.add(bad)
        broadcaster.publish({"type": "status", "symbol": "1HZ100V"})
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert good.sent == [{"type": "status", "symbol": "1HZ100V"}]
    assert bad not in broadcaster.clients
    assert good in broadcaster.clients


def test_api_serves_pipeline_snapshot() -> None:
    pm = PipelineManager(PipelineConfig(), symbols=["1HZ100V"])
    pm.on_tick("1HZ100V", 812.37, 0.0)

    async def scenario() -> dict:
        async with test_utils.TestClient(test_utils.TestServer(build_app(pm, EventBroadcaster()))) as client:
            resp = await client.get("/api")
            assert resp.status == 200
            return await resp.json()

    data = asyncio.run(scenario())
    row = data["instruments"][0]
    assert row["symbol"] == "1HZ100V"
    assert row["name"] == "Vol 100 (1s)"
    assert row["history"] == 1
    assert row["state"] == "CALIBRATING"


def test_publish_drops_client_on_unexpected_send_error() -> None:
    broadcaster = EventBroadcaster()

    class _BrokenSocket(_FakeSocket):
        async def send_json(self, data):
            raise ValueError("not serializable")

    broken = _BrokenSocket()

    async def scenario() -> None:
        broadcaster.add(broken)
        broadcaster.publish({"type": "tick", "symbol": "1HZ100V", "digit": 1})
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert broken not in broadcaster.clients
