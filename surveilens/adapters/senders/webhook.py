"""Generic JSON webhook sender."""

from surveilens.adapters.senders.http import request_json
from surveilens.domain.errors import ExternalCallError
from surveilens.ports.outbound import SendResult


class WebhookSender:
    async def is_authenticated(self, block_id: str) -> bool:
        return True

    async def send(self, block_id, config, event) -> SendResult:
        payload = {
            "block_id": block_id,
            "message": config.message,
            "event": event.to_dict(),
        }
        try:
            await request_json(config.method, config.url, json=payload, headers=dict(config.headers))
        except ExternalCallError as e:
            return SendResult(success=False, error=str(e))
        return SendResult(success=True, detail=f"{config.method} {config.url}")
