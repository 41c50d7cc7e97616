"""Unit tests for sender adapters (aiohttp sessions are faked)."""

import base64
import json

import pytest
from unittest.mock import patch

from surveilens.adapters.senders import (
    ChatSender,
    EmailSender,
    FailureNotifier,
    LogSink,
    ScreenshotSender,
    SmsSender,
    VoiceCallSender,
    WebhookSender,
    build_senders,
)
from surveilens.adapters.senders.http import request_json
from surveilens.domain.block_config import (
    ChatConfig,
    EmailConfig,
    LogConfig,
    ScreenshotConfig,
    SmsConfig,
    VoiceCallConfig,
    WebhookConfig,
)
from surveilens.domain.errors import ConfigError, ExternalCallError
from surveilens.domain.models import ExecutionRecord, DetectionEvent
from surveilens.ports.outbound import SenderPort

EVENT = DetectionEvent(
    type="ROBBERY_DETECTED",
    confidence=0.92,
    description="Person grabbing register",
    timestamp=1700000000.0,
    metadata={"zone": "checkout"},
)

BASE_CONFIG = {
    "storage_dir": "memory",
    "email_backend_url": "http://backend.test",
    "slack_webhook_url": "https://hooks.slack.test/T/B/X",
    "twilio_account_sid": "AC123",
    "twilio_auth_token": "secret",
    "twilio_phone_number": "+15550000000",
    "vapi_private_key": "vapi-key",
    "vapi_phone_number_id": "pn_1",
    "vapi_assistant_id": "asst_1",
    "screenshot_dir": "memory/screenshots",
    "failure_alert_webhook_url": "https://alerts.test/hook",
}


def _mock_aiohttp_session(responses):
    """Return a FakeSession class replacing aiohttp.ClientSession.
    responses: list of (status, data) consumed in order; every request is recorded.
    """
    calls = []

    class FakeResponse:
        def __init__(self, status, data):
            self.status = status
            self._data = data

        async def json(self, **kwargs):
            return self._data

        async def text(self):
            return json.dumps(self._data)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *args):
            pass

    class FakeSession:
        def request(self, method, url, **kwargs):
            calls.append({"method": method, "url": url, **kwargs})
            status, data = responses[min(len(calls), len(responses)) - 1]
            return FakeResponse(status, data)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *args):
            pass

    FakeSession.calls = calls
    return FakeSession


@pytest.fixture(autouse=True)
def configured(monkeypatch):
    for module in ("email", "chat", "sms", "voice", "log_sink", "screenshot", "alerts"):
        monkeypatch.setattr(f"surveilens.adapters.senders.{module}.CONFIG", dict(BASE_CONFIG))


class TestRequestJson:
    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        session = _mock_aiohttp_session([(500, {"error": "down"})])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            with pytest.raises(ExternalCallError, match="HTTP 500"):
                await request_json("GET", "http://x.test")

    @pytest.mark.asyncio
    async def test_null_body_is_empty_dict(self):
        session = _mock_aiohttp_session([(200, None)])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            assert await request_json("GET", "http://x.test") == {}


class TestBuildSenders:
    def test_every_sender_satisfies_port(self):
        senders = build_senders()
        assert set(senders) == {"gmail", "slack", "sms", "vapi_call", "webhook", "database_log", "save_screenshot"}
        assert all(isinstance(s, SenderPort) for s in senders.values())


class TestEmailSender:
    @pytest.mark.asyncio
    async def test_authenticated_per_block(self):
        session = _mock_aiohttp_session([(200, {"authenticated": True})])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            assert await EmailSender().is_authenticated("action-7") is True
        assert session.calls[0]["url"] == "http://backend.test/gmail/status/action-7"

    @pytest.mark.asyncio
    async def test_backend_down_raises_external_error(self):
        session = _mock_aiohttp_session([(502, {"error": "bad gateway"})])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            with pytest.raises(ExternalCallError, match="502"):
                await EmailSender().is_authenticated("action-7")

    @pytest.mark.asyncio
    async def test_not_configured(self, monkeypatch):
        monkeypatch.setattr("surveilens.adapters.senders.email.CONFIG", {**BASE_CONFIG, "email_backend_url": ""})
        assert await EmailSender().is_authenticated("a") is False

    @pytest.mark.asyncio
    async def test_send(self):
        session = _mock_aiohttp_session([(200, {"success": True, "message": "Email sent successfully!"})])
        config = EmailConfig(to="ops@example.com", subject="Alert", body="Body")
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await EmailSender().send("action-7", config, EVENT)
        assert result.success is True
        call = session.calls[0]
        assert call["url"] == "http://backend.test/api/send-email"
        assert call["json"] == {"nodeId": "action-7", "to": "ops@example.com", "subject": "Alert", "body": "Body"}

    @pytest.mark.asyncio
    async def test_send_unauthorized(self):
        session = _mock_aiohttp_session([(401, {"error": "Not authenticated"})])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await EmailSender().send("a", EmailConfig(to="x@y.z"), EVENT)
        assert result.success is False
        assert "401" in result.error


class TestChatSender:
    @pytest.mark.asyncio
    async def test_send(self):
        session = _mock_aiohttp_session([(200, None)])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await ChatSender().send("s1", ChatConfig(channel="#sec", message="hello"), EVENT)
        assert result.success is True
        assert session.calls[0]["url"] == BASE_CONFIG["slack_webhook_url"]
        assert session.calls[0]["json"] == {"text": "hello", "channel": "#sec"}

    @pytest.mark.asyncio
    async def test_block_webhook_overrides(self):
        session = _mock_aiohttp_session([(200, None)])
        config = ChatConfig(message="hi", webhook_url="https://hooks.slack.test/other")
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            await ChatSender().send("s1", config, EVENT)
        assert session.calls[0]["url"] == "https://hooks.slack.test/other"

    @pytest.mark.asyncio
    async def test_no_webhook_is_config_error(self, monkeypatch):
        monkeypatch.setattr("surveilens.adapters.senders.chat.CONFIG", {**BASE_CONFIG, "slack_webhook_url": ""})
        with pytest.raises(ConfigError):
            await ChatSender().send("s1", ChatConfig(message="hi"), EVENT)


class TestSmsSender:
    @pytest.mark.asyncio
    async def test_send(self):
        session = _mock_aiohttp_session([(201, {"sid": "SM1"})])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await SmsSender().send("s1", SmsConfig(to="+15551112222", body="Alert"), EVENT)
        assert result.success is True
        assert result.message_id == "SM1"
        call = session.calls[0]
        assert call["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert call["data"] == {"To": "+15551112222", "From": "+15550000000", "Body": "Alert"}
        assert call["auth"].login == "AC123"

    @pytest.mark.asyncio
    async def test_unconfigured_not_authenticated(self, monkeypatch):
        monkeypatch.setattr("surveilens.adapters.senders.sms.CONFIG", {**BASE_CONFIG, "twilio_auth_token": ""})
        assert await SmsSender().is_authenticated("s1") is False


class TestVoiceCallSender:
    @pytest.mark.asyncio
    async def test_send(self):
        session = _mock_aiohttp_session([(201, {"id": "call_1", "status": "queued"})])
        config = VoiceCallConfig(phone_number="+15551112222", message="Robbery at checkout")
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await VoiceCallSender().send("v1", config, EVENT)
        assert result.success is True
        assert result.message_id == "call_1"
        call = session.calls[0]
        assert call["url"] == "https://api.vapi.ai/call"
        assert call["headers"]["Authorization"] == "Bearer vapi-key"
        assert call["json"]["customer"] == {"number": "+15551112222"}
        assert call["json"]["assistantOverrides"] == {"firstMessage": "Robbery at checkout"}

    @pytest.mark.asyncio
    async def test_provider_error(self):
        session = _mock_aiohttp_session([(400, {"message": "bad number"})])
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await VoiceCallSender().send("v1", VoiceCallConfig(phone_number="+1", message="x"), EVENT)
        assert result.success is False


class TestWebhookSender:
    @pytest.mark.asyncio
    async def test_send_put(self):
        session = _mock_aiohttp_session([(204, None)])
        config = WebhookConfig(url="https://hooks.test/x", method="PUT", headers={"X-Key": "k"}, message="m")
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            result = await WebhookSender().send("w1", config, EVENT)
        assert result.success is True
        call = session.calls[0]
        assert call["method"] == "PUT"
        assert call["headers"] == {"X-Key": "k"}
        assert call["json"]["event"]["type"] == "ROBBERY_DETECTED"
        assert call["json"]["message"] == "m"


class TestLogSink:
    @pytest.mark.asyncio
    async def test_appends_json_lines(self, tmp_path):
        sink = LogSink(path=str(tmp_path / "log" / "events.jsonl"))
        await sink.send("l1", LogConfig(message="first"), EVENT)
        await sink.send("l2", LogConfig(message="second", level="warning"), EVENT)
        lines = sink.path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["first", "second"]
        assert json.loads(lines[1])["level"] == "warning"

    def test_default_path_under_storage_dir(self, monkeypatch, tmp_path):
        monkeypatch.setattr("surveilens.adapters.senders.log_sink.CONFIG", {**BASE_CONFIG, "storage_dir": str(tmp_path)})
        assert LogSink().path == tmp_path / "event_log.jsonl"


class TestScreenshotSender:
    @pytest.mark.asyncio
    async def test_writes_frame(self, tmp_path):
        frame = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()
        event = DetectionEvent(type="FIGHT_DETECTED", timestamp=1700000000.0, metadata={"frame": frame})
        result = await ScreenshotSender().send("s1", ScreenshotConfig(directory=str(tmp_path)), event)
        assert result.success is True
        saved = list(tmp_path.glob("*.jpg"))
        assert len(saved) == 1
        assert saved[0].read_bytes() == b"\xff\xd8jpeg"

    @pytest.mark.asyncio
    async def test_missing_frame_is_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            await ScreenshotSender().send("s1", ScreenshotConfig(directory=str(tmp_path)), EVENT)

    @pytest.mark.asyncio
    async def test_invalid_frame(self, tmp_path):
        event = DetectionEvent(type="X", metadata={"frame": "not base64!!"})
        with pytest.raises(ConfigError):
            await ScreenshotSender().send("s1", ScreenshotConfig(directory=str(tmp_path)), event)


class TestFailureNotifier:
    @pytest.mark.asyncio
    async def test_posts_only_failed(self):
        session = _mock_aiohttp_session([(200, None)])
        ok = ExecutionRecord(execution_id="e1", triggered_by="t")
        ok.complete()
        bad = ExecutionRecord(execution_id="e2", triggered_by="t", workflow_id="wf1")
        bad.fail("plan computation failed")
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            await FailureNotifier()(ok.snapshot())
            await FailureNotifier()(bad.snapshot())
        assert len(session.calls) == 1
        assert "Workflow failed in wf1" in session.calls[0]["json"]["text"]

    @pytest.mark.asyncio
    async def test_delivery_failure_swallowed(self):
        session = _mock_aiohttp_session([(500, {"error": "down"})])
        bad = ExecutionRecord(execution_id="e2", triggered_by="t")
        bad.fail("boom")
        with patch("surveilens.adapters.senders.http.aiohttp.ClientSession", session):
            await FailureNotifier()(bad.snapshot())
