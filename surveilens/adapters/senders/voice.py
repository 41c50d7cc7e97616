"""Outbound voice call sender via VAPI."""

from surveilens.adapters.senders.http import request_json
from surveilens.config import CONFIG
from surveilens.domain.errors import ExternalCallError
from surveilens.ports.outbound import SendResult

VAPI_API_BASE = "https://api.vapi.ai"


class VoiceCallSender:
    """Places a phone call whose assistant opens with the rendered message."""

    @property
    def is_configured(self) -> bool:
        return bool(
            CONFIG["vapi_private_key"]
            and CONFIG["vapi_phone_number_id"]
            and CONFIG["vapi_assistant_id"]
        )

    async def is_authenticated(self, block_id: str) -> bool:
        return self.is_configured

    async def send(self, block_id, config, event) -> SendResult:
        payload = {
            "phoneNumberId": CONFIG["vapi_phone_number_id"],
            "customer": {"number": config.phone_number},
            "assistantId": CONFIG["vapi_assistant_id"],
            "assistantOverrides": {"firstMessage": config.message},
        }
        headers = {"Authorization": f"Bearer {CONFIG['vapi_private_key']}"}
        try:
            data = await request_json("POST", f"{VAPI_API_BASE}/call", json=payload, headers=headers)
        except ExternalCallError as e:
            return SendResult(success=False, error=str(e))
        return SendResult(
            success=True,
            message_id=data.get("id"),
            detail=f"call to {config.phone_number} {data.get('status', 'queued')}",
        )
