"""Semantic oracle — yes/no judgment of a free-text trigger condition."""

import asyncio
import sys
from typing import Optional

from surveilens.domain.errors import ExternalCallError
from surveilens.domain.matcher import ORACLE_SYSTEM_PROMPT
from surveilens.infrastructure.usage import UsageTracker
from surveilens.ports.outbound import LLMPort


def _log(msg: str):
    print(msg, file=sys.stderr)


def build_prompt(condition: str, context: str) -> str:
    return (
        f"{context}\n\n"
        f'Trigger Condition: "{condition}"\n\n'
        "Does the current scene/events match this trigger condition?\n"
        'Respond with ONLY "YES" or "NO".'
    )


def parse_answer(answer: str) -> bool:
    """"YES" -> True, "NO" -> False, anything else raises ExternalCallError."""
    normalized = (answer or "").strip().strip('."\'').upper()
    if normalized == "YES":
        return True
    if normalized == "NO":
        return False
    raise ExternalCallError(f"malformed oracle answer: {answer!r}")


class SemanticOracle:
    """Implements OraclePort on top of any LLMPort executor.

    Errors are raised, not swallowed; the TriggerMatcher treats them as no match.
    """

    def __init__(
        self,
        executor: LLMPort,
        timeout_seconds: float = 15.0,
        usage_tracker: Optional[UsageTracker] = None,
    ):
        self._executor = executor
        self.timeout_seconds = timeout_seconds
        self.usage_tracker = usage_tracker or UsageTracker()

    async def judge(self, condition: str, context: str) -> bool:
        self.usage_tracker.check_limits()
        self.usage_tracker.record_call()

        prompt = build_prompt(condition, context)
        try:
            answer = await asyncio.wait_for(
                self._executor.execute(prompt, system_prompt=ORACLE_SYSTEM_PROMPT),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise ExternalCallError(f"oracle timeout ({self.timeout_seconds:g}s)")

        verdict = parse_answer(answer)
        _log(f"[Oracle] {condition!r} -> {'YES' if verdict else 'NO'}")
        return verdict
