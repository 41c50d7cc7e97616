"""SMS sender via the Twilio Messages API."""

import aiohttp

from surveilens.adapters.senders.http import request_json
from surveilens.config import CONFIG
from surveilens.domain.errors import ExternalCallError
from surveilens.ports.outbound import SendResult

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SmsSender:
    @property
    def is_configured(self) -> bool:
        return bool(
            CONFIG["twilio_account_sid"]
            and CONFIG["twilio_auth_token"]
            and CONFIG["twilio_phone_number"]
        )

    async def is_authenticated(self, block_id: str) -> bool:
        return self.is_configured

    async def send(self, block_id, config, event) -> SendResult:
        sid = CONFIG["twilio_account_sid"]
        url = f"{TWILIO_API_BASE}/Accounts/{sid}/Messages.json"
        form = {
            "To": config.to,
            "From": CONFIG["twilio_phone_number"],
            "Body": config.body,
        }
        try:
            data = await request_json(
                "POST",
                url,
                data=form,
                auth=aiohttp.BasicAuth(sid, CONFIG["twilio_auth_token"]),
            )
        except ExternalCallError as e:
            return SendResult(success=False, error=str(e))
        return SendResult(success=True, message_id=data.get("sid"), detail=f"sms sent to {config.to}")
