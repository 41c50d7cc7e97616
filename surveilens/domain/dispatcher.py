"""Action dispatch — runs one condition or action block for a fire.

Every failure is turned into a BlockOutcome here; nothing raised by a
sender reaches the coordinator. Missing configuration and missing
authentication are soft failures (warning, no call made).
"""

import asyncio
import sys
from typing import Dict, Mapping, Optional

from surveilens.domain.conditions import CONDITION_SUBTYPES, evaluate_condition
from surveilens.domain.errors import AuthError, ConfigError, ExternalCallError
from surveilens.domain.models import (
    CONDITION,
    FAILED,
    FAILED_SOFT,
    SKIPPED,
    SUCCEEDED,
    Block,
    BlockOutcome,
    DetectionEvent,
)
from surveilens.ports.outbound import SenderPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class ActionDispatcher:
    """Selects the sender for a block subtype, applies templates, and calls it."""

    def __init__(
        self,
        senders: Optional[Mapping[str, SenderPort]] = None,
        timeout_seconds: float = 30.0,
        retries: int = 1,
        retry_backoff_seconds: float = 1.0,
    ):
        self._senders: Dict[str, SenderPort] = dict(senders or {})
        self.timeout_seconds = timeout_seconds
        self.retries = max(0, retries)
        self.retry_backoff_seconds = retry_backoff_seconds

    @property
    def subtypes(self):
        return sorted(self._senders)

    async def dispatch(self, block: Block, event: DetectionEvent) -> BlockOutcome:
        if block.kind == CONDITION:
            return self._evaluate_condition(block, event)

        sender = self._senders.get(block.subtype)
        if sender is None:
            _log(f"[Dispatcher] WARNING no sender for subtype {block.subtype!r} ({block.id}), skipping")
            return BlockOutcome(block.id, SKIPPED, detail=f"unknown subtype {block.subtype}")

        try:
            block.config.validate()
        except ConfigError as e:
            _log(f"[Dispatcher] WARNING {block.subtype} {block.id} not sent: {e}")
            return BlockOutcome(block.id, FAILED_SOFT, error_kind=e.kind, detail=str(e))

        resolved = block.config.resolve(event)
        return await self._send_with_retry(block, sender, resolved, event)

    def _evaluate_condition(self, block: Block, event: DetectionEvent) -> BlockOutcome:
        if block.subtype not in CONDITION_SUBTYPES:
            _log(f"[Dispatcher] WARNING unknown condition {block.subtype!r} ({block.id}), skipping")
            return BlockOutcome(block.id, SKIPPED, detail=f"unknown subtype {block.subtype}")
        try:
            passed, detail = evaluate_condition(block, event)
        except ConfigError as e:
            _log(f"[Dispatcher] WARNING condition {block.id} misconfigured: {e}")
            return BlockOutcome(block.id, FAILED_SOFT, error_kind=e.kind, detail=str(e))
        _log(f"[Dispatcher] condition {block.id} {detail}")
        return BlockOutcome(block.id, SUCCEEDED, detail=detail)

    async def _attempt(self, block: Block, sender: SenderPort, resolved, event):
        # Only a False answer is an AuthError; lookup errors propagate
        if not await sender.is_authenticated(block.id):
            raise AuthError(f"{block.subtype} integration is not authenticated")
        return await sender.send(block.id, resolved, event)

    async def _send_with_retry(self, block, sender, resolved, event) -> BlockOutcome:
        attempts = self.retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                result = await asyncio.wait_for(
                    self._attempt(block, sender, resolved, event),
                    timeout=self.timeout_seconds,
                )
                if not result.success:
                    raise ExternalCallError(result.error or "sender reported failure")
                _log(f"[Dispatcher] {block.subtype} {block.id} sent")
                return BlockOutcome(
                    block.id, SUCCEEDED, detail=result.detail or result.message_id or "sent"
                )
            except asyncio.TimeoutError:
                last_error = ExternalCallError(f"timeout ({self.timeout_seconds:g}s)")
            except (ConfigError, AuthError) as e:
                _log(f"[Dispatcher] WARNING {block.subtype} {block.id} not sent: {e}")
                return BlockOutcome(block.id, FAILED_SOFT, error_kind=e.kind, detail=str(e))
            except ExternalCallError as e:
                last_error = e
            except Exception as e:
                _log(f"[Dispatcher] {block.subtype} {block.id} failed: {e!r}")
                return BlockOutcome(block.id, FAILED, error_kind="error", detail=str(e))

            if attempt < attempts - 1:
                _log(
                    f"[Dispatcher] {block.subtype} {block.id} attempt {attempt + 1}/{attempts} "
                    f"failed ({last_error}), retrying"
                )
                await asyncio.sleep(self.retry_backoff_seconds * (2 ** attempt))

        _log(f"[Dispatcher] {block.subtype} {block.id} failed: {last_error}")
        return BlockOutcome(block.id, FAILED, error_kind=ExternalCallError.kind, detail=str(last_error))
