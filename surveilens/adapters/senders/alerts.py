"""Operator alert when an execution itself fails."""

import sys

from surveilens.adapters.senders.http import request_json
from surveilens.config import CONFIG
from surveilens.domain.errors import ExternalCallError
from surveilens.domain.models import FAILED, ExecutionSnapshot


def _log(msg: str):
    print(msg, file=sys.stderr)


class FailureNotifier:
    """Progress observer that posts a "workflow failed" summary.

    Only coordination failures (record status ``failed``) are reported;
    individual block failures stay in the logs.
    """

    @property
    def is_configured(self) -> bool:
        return bool(CONFIG["failure_alert_webhook_url"])

    @staticmethod
    def summarize(snapshot: ExecutionSnapshot) -> str:
        where = f" in {snapshot.workflow_id}" if snapshot.workflow_id else ""
        return (
            f"Workflow failed{where}: execution {snapshot.execution_id} "
            f"(trigger {snapshot.triggered_by}): {snapshot.error or 'unknown error'}"
        )

    async def __call__(self, snapshot: ExecutionSnapshot) -> None:
        if snapshot.status != FAILED:
            return
        text = self.summarize(snapshot)
        _log(f"[Alerts] {text}")
        if not self.is_configured:
            return
        try:
            await request_json(
                "POST",
                CONFIG["failure_alert_webhook_url"],
                json={"text": text, "execution": snapshot.to_dict()},
            )
        except ExternalCallError as e:
            _log(f"[Alerts] failed to deliver alert: {e}")
