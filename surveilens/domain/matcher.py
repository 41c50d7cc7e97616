"""Trigger matching — does a trigger block match the recent event window?

Built-in subtypes use a fixed alias table (pure, deterministic). The
``custom_event`` subtype carries a free-text condition that is judged by
the semantic oracle and fails closed.
"""

import re
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from surveilens.domain.block_config import CustomTriggerConfig
from surveilens.domain.models import Block, DetectionEvent, SceneSummary
from surveilens.ports.outbound import OraclePort


def _log(msg: str):
    print(msg, file=sys.stderr)


_SEPARATORS_RE = re.compile(r"[\s\-]+")


def normalize_event_type(event_type: str) -> str:
    """"fighting-detected " -> "FIGHTING_DETECTED"."""
    return _SEPARATORS_RE.sub("_", (event_type or "").strip()).upper()


@dataclass(frozen=True)
class AliasRule:
    exact: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    any_event: bool = False

    def accepts(self, normalized_type: str) -> bool:
        if self.any_event:
            return True
        if normalized_type in self.exact:
            return True
        return any(kw in normalized_type for kw in self.keywords)


ALIAS_RULES: Dict[str, AliasRule] = {
    "person_detected": AliasRule(exact=("PERSON_DETECTED", "PERSON_ENTERED")),
    "person_entered": AliasRule(exact=("PERSON_ENTERED",), keywords=("PERSON_ENTER",)),
    "person_exited": AliasRule(exact=("PERSON_EXITED",), keywords=("PERSON_EXIT", "PERSON_LEFT")),
    "fight_detected": AliasRule(exact=("FIGHT_DETECTED",), keywords=("FIGHT", "VIOLENCE")),
    "robbery_detected": AliasRule(exact=("ROBBERY_DETECTED",), keywords=("ROBBERY", "BREAK_IN")),
    "suspicious_activity": AliasRule(
        exact=("SUSPICIOUS_ACTIVITY",),
        keywords=("SUSPICIOUS", "LOITERING", "SHOPLIFTING", "VANDALISM", "WEAPON"),
    ),
    "motion_detected": AliasRule(exact=("MOTION_DETECTED",), keywords=("MOTION",)),
    "object_detected": AliasRule(any_event=True),
}

SEMANTIC_SUBTYPES = ("custom_event",)

ORACLE_SYSTEM_PROMPT = "You are a surveillance system evaluating trigger conditions."


def summarize_window(events: Sequence[DetectionEvent], scene: Optional[SceneSummary]) -> str:
    """Textual digest of the event window (and scene) handed to the oracle."""
    lines = []
    if scene is not None:
        lines.append(f"Current Scene: {scene.description}")
        lines.append(f"People in view: {scene.people_count}")
        if scene.activities:
            lines.append(f"Activities: {', '.join(scene.activities)}")
    lines.append("Recent Events:")
    for e in events:
        lines.append(f"- {e.type} ({e.confidence * 100:.0f}%): {e.description}")
    return "\n".join(lines)


class TriggerMatcher:
    """Decides whether a trigger block matches the caller-filtered event window."""

    def __init__(self, oracle: Optional[OraclePort] = None):
        self._oracle = oracle

    async def matches(
        self,
        block: Block,
        events: Sequence[DetectionEvent],
        scene: Optional[SceneSummary] = None,
    ) -> bool:
        if block.subtype in SEMANTIC_SUBTYPES:
            condition = block.config.condition if isinstance(block.config, CustomTriggerConfig) else ""
            return await self.match_semantic(condition, events, scene)
        if block.subtype not in ALIAS_RULES:
            _log(f"[TriggerMatcher] unknown trigger subtype {block.subtype!r} on {block.id}")
            return False
        return self.match_alias(block.subtype, events)

    def match_alias(self, subtype: str, events: Sequence[DetectionEvent]) -> bool:
        """Any event in the window satisfying the subtype's alias rule (OR, not AND)."""
        return self.matching_event(subtype, events) is not None

    def matching_event(self, subtype: str, events: Sequence[DetectionEvent]) -> Optional[DetectionEvent]:
        """Most recent event in the window that satisfies the alias rule, if any."""
        rule = ALIAS_RULES.get(subtype)
        if rule is None:
            return None
        for event in reversed(events):
            if rule.accepts(normalize_event_type(event.type)):
                return event
        return None

    async def match_semantic(
        self,
        condition: str,
        events: Sequence[DetectionEvent],
        scene: Optional[SceneSummary] = None,
    ) -> bool:
        """Oracle-judged match. Empty condition, empty window or oracle failure -> False."""
        if not condition or not condition.strip():
            return False
        if not events:
            return False
        if self._oracle is None:
            _log("[TriggerMatcher] custom trigger without an oracle configured")
            return False

        context = summarize_window(events, scene)
        try:
            return bool(await self._oracle.judge(condition.strip(), context))
        except Exception as e:
            _log(f"[TriggerMatcher] oracle failed, treating as no match: {e}")
            return False
