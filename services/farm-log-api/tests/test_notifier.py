import json

import httpx
import pytest
import pytest_asyncio

from farm_log import anthropic, notifier, sms
from farm_log.notifier import FALLBACK_MESSAGE, enqueue_notification, notify_daily_log
from tests.utils import build_mock_transport, make_log


@pytest_asyncio.fixture
async def outbound(monkeypatch):
    """Route both outbound clients to mock transports and capture SMS bodies."""
    sent: list[dict] = []
    state = {"anthropic_status": 200, "close_status": 200}

    def anthropic_handler(request: httpx.Request) -> httpx.Response:
        if state["anthropic_status"] != 200:
            return httpx.Response(state["anthropic_status"], text="upstream error")
        return httpx.Response(
            200, json={"content": [{"type": "text", "text": "✓ Green. Harvest on plan."}]}
        )

    def close_handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(state["close_status"], json={})

    anthropic_client = httpx.AsyncClient(
        transport=build_mock_transport(anthropic_handler), base_url="http://anthropic"
    )
    close_client = httpx.AsyncClient(
        transport=build_mock_transport(close_handler), base_url="http://close"
    )
    monkeypatch.setattr(anthropic, "ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setattr(sms, "CLOSE_API_KEY", "close-key")
    monkeypatch.setattr(notifier, "get_anthropic_client", lambda: anthropic_client)
    monkeypatch.setattr(notifier, "get_close_client", lambda: close_client)
    monkeypatch.setattr(notifier, "NOTIFY_PHONE", "5550100")
    monkeypatch.setattr(notifier, "FARM_NAME", "702Greens")
    yield sent, state
    await anthropic_client.aclose()
    await close_client.aclose()


@pytest.mark.asyncio
async def test_summary_is_texted_with_farm_header(outbound):
    sent, _ = outbound

    delivered = await notify_daily_log(make_log(plan_harvest="50kg"))

    assert delivered is True
    assert sent == [{"to": "5550100", "body": "702Greens Daily Log\n\n✓ Green. Harvest on plan."}]
    stats = notifier.get_stats()
    assert stats["attempts"] == 1
    assert stats["sms_sent"] == 1
    assert stats["last_attempt_at"] is not None


@pytest.mark.asyncio
async def test_summary_failure_sends_fallback(outbound):
    sent, state = outbound
    state["anthropic_status"] = 500

    delivered = await notify_daily_log(make_log())

    assert delivered is True
    assert [message["body"] for message in sent] == [FALLBACK_MESSAGE]
    stats = notifier.get_stats()
    assert stats["summary_fallbacks"] == 1
    assert stats["last_error"].startswith("summary:")


@pytest.mark.asyncio
async def test_summary_exception_still_reaches_sms_step(outbound, monkeypatch):
    sent, _ = outbound

    async def exploding_generate_text(prompt, client):
        raise ValueError("malformed response")

    monkeypatch.setattr(notifier, "generate_text", exploding_generate_text)

    await notify_daily_log(make_log())

    assert [message["body"] for message in sent] == [FALLBACK_MESSAGE]


@pytest.mark.asyncio
async def test_sms_failure_is_contained(outbound):
    sent, state = outbound
    state["close_status"] = 503

    delivered = await notify_daily_log(make_log())

    assert delivered is False
    assert len(sent) == 1
    stats = notifier.get_stats()
    assert stats["sms_failed"] == 1
    assert stats["sms_sent"] == 0
    assert "503" in stats["last_error"]


@pytest.mark.asyncio
async def test_unexpected_sms_error_is_counted(outbound, monkeypatch):
    async def broken_send_sms(phone_number, body, client):
        raise ValueError("unexpected payload")

    monkeypatch.setattr(notifier, "send_sms", broken_send_sms)

    assert await notify_daily_log(make_log()) is False
    stats = notifier.get_stats()
    assert stats["sms_failed"] == 1
    assert stats["last_error"] == "sms: unexpected payload"


@pytest.mark.asyncio
async def test_missing_close_key_is_counted(outbound, monkeypatch):
    sent, _ = outbound
    monkeypatch.setattr(sms, "CLOSE_API_KEY", None)

    assert await notify_daily_log(make_log()) is False
    assert sent == []
    assert notifier.get_stats()["sms_failed"] == 1


@pytest.mark.asyncio
async def test_enqueue_runs_in_background(outbound, monkeypatch):
    sent, _ = outbound
    monkeypatch.setattr(notifier, "NOTIFY_ON_SAVE", True)

    enqueue_notification(make_log())
    assert notifier.pending_notifications() == 1
    await notifier.shutdown_notifier(grace=2)

    assert len(sent) == 1
    assert notifier.pending_notifications() == 0


@pytest.mark.asyncio
async def test_enqueue_disabled(monkeypatch):
    monkeypatch.setattr(notifier, "NOTIFY_ON_SAVE", False)

    enqueue_notification(make_log())

    assert notifier.pending_notifications() == 0
