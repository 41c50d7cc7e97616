"""Sender adapters — implement SenderPort for each action subtype."""

from typing import Dict

from surveilens.adapters.senders.alerts import FailureNotifier
from surveilens.adapters.senders.chat import ChatSender
from surveilens.adapters.senders.email import EmailSender
from surveilens.adapters.senders.log_sink import LogSink
from surveilens.adapters.senders.screenshot import ScreenshotSender
from surveilens.adapters.senders.sms import SmsSender
from surveilens.adapters.senders.voice import VoiceCallSender
from surveilens.adapters.senders.webhook import WebhookSender
from surveilens.ports.outbound import SenderPort


def build_senders() -> Dict[str, SenderPort]:
    """Action subtype -> sender, as used by the ActionDispatcher."""
    return {
        "gmail": EmailSender(),
        "slack": ChatSender(),
        "sms": SmsSender(),
        "vapi_call": VoiceCallSender(),
        "webhook": WebhookSender(),
        "database_log": LogSink(),
        "save_screenshot": ScreenshotSender(),
    }


__all__ = [
    "ChatSender",
    "EmailSender",
    "FailureNotifier",
    "LogSink",
    "ScreenshotSender",
    "SmsSender",
    "VoiceCallSender",
    "WebhookSender",
    "build_senders",
]
