"""Gmail sender — delegates to the email backend that holds the OAuth tokens."""

from surveilens.adapters.senders.http import request_json
from surveilens.config import CONFIG
from surveilens.domain.errors import ExternalCallError
from surveilens.ports.outbound import SendResult


class EmailSender:
    """Sends email through ``{EMAIL_BACKEND_URL}/api/send-email``.

    Authentication is per block: the backend keeps one Gmail token per node id.
    """

    @property
    def is_configured(self) -> bool:
        return bool(CONFIG["email_backend_url"])

    @property
    def base_url(self) -> str:
        return CONFIG["email_backend_url"].rstrip("/")

    async def is_authenticated(self, block_id: str) -> bool:
        if not self.is_configured:
            return False
        data = await request_json("GET", f"{self.base_url}/gmail/status/{block_id}")
        return bool(data.get("authenticated"))

    async def send(self, block_id, config, event) -> SendResult:
        payload = {
            "nodeId": block_id,
            "to": config.to,
            "subject": config.subject,
            "body": config.body,
        }
        try:
            data = await request_json("POST", f"{self.base_url}/api/send-email", json=payload)
        except ExternalCallError as e:
            return SendResult(success=False, error=str(e))
        if data.get("error"):
            return SendResult(success=False, error=str(data["error"]))
        return SendResult(success=True, detail=f"email sent to {config.to}")
