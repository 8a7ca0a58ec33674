import pytest

from foodheaven_mcp.errors import RemoteError
from foodheaven_mcp.sync import BestEffortWriter


async def test_successful_write_is_recorded(notifier):
    writer = BestEffortWriter(notifier)
    written = []

    async def write():
        written.append("users/u-1")

    outcome = await writer.issue("wishlist:u-1", write, "Failed to save wishlist online.")

    assert outcome.ok
    assert written == ["users/u-1"]
    assert list(writer.history) == [outcome]
    assert notifier.peek() == []


@pytest.mark.parametrize(
    "error", [RemoteError("set failed"), TimeoutError("socket timed out"), KeyError("wishlist")]
)
async def test_any_failure_is_an_observable_outcome(notifier, error):
    writer = BestEffortWriter(notifier)
    seen = []
    writer.add_listener(seen.append)

    async def write():
        raise error

    writer.issue("wishlist:u-1", write, "Failed to save wishlist online.")
    outcomes = await writer.drain()

    assert len(outcomes) == 1
    assert not outcomes[0].ok
    assert outcomes[0].error
    assert list(writer.history) == outcomes
    assert seen == outcomes
    assert notifier.peek()[-1].message == "Failed to save wishlist online."
    assert notifier.peek()[-1].kind == "error"
    assert writer.pending == 0


async def test_drain_skips_writes_whose_listener_failed(notifier):
    writer = BestEffortWriter(notifier)

    def broken_listener(outcome):
        raise RuntimeError("listener bug")

    writer.add_listener(broken_listener)

    async def write():
        pass

    writer.issue("wishlist:u-1", write, "Failed to save wishlist online.")
    assert await writer.drain() == []
    assert writer.history[-1].ok


async def test_aclose_releases_resources_when_shutdown_fails(app, monkeypatch):
    closed = []

    async def broken_close_dashboard():
        raise RuntimeError("feed stuck")

    monkeypatch.setattr(app, "close_admin_dashboard", broken_close_dashboard)
    monkeypatch.setattr(app.remote, "close", lambda: closed.append(True))

    with pytest.raises(RuntimeError):
        await app.aclose()

    assert closed == [True]
    await app.auth.sign_up("asha@example.com", "secret1")
    # The session listener is gone, so no wishlist sync ran.
    assert ("get", "users") not in app.remote.calls
