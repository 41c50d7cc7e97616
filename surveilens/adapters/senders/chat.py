"""Slack incoming-webhook sender."""

from surveilens.adapters.senders.http import request_json
from surveilens.config import CONFIG
from surveilens.domain.errors import ConfigError, ExternalCallError
from surveilens.ports.outbound import SendResult


class ChatSender:
    """Posts ``{text, channel}`` to a Slack incoming webhook.

    A block-level ``webhook_url`` overrides SLACK_WEBHOOK_URL.
    """

    @property
    def is_configured(self) -> bool:
        return bool(CONFIG["slack_webhook_url"])

    async def is_authenticated(self, block_id: str) -> bool:
        # Block-level webhook urls are checked at send time
        return True

    async def send(self, block_id, config, event) -> SendResult:
        url = config.webhook_url or CONFIG["slack_webhook_url"]
        if not url:
            raise ConfigError("no Slack webhook configured")
        payload = {"text": config.message}
        if config.channel:
            payload["channel"] = config.channel
        try:
            await request_json("POST", url, json=payload)
        except ExternalCallError as e:
            return SendResult(success=False, error=str(e))
        return SendResult(success=True, detail=f"posted to {config.channel or 'default channel'}")
