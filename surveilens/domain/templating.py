"""Template substitution for human-facing action text.

Flat find-and-replace of four literal tokens. No nesting, no
conditionals, no escaping.
"""

from datetime import datetime
from typing import Any

TIMESTAMP_FORMAT = "%x, %X"

TOKENS = ("{{event_type}}", "{{event_description}}", "{{timestamp}}", "{{confidence}}")


def format_timestamp(ts: float) -> str:
    """Render an epoch timestamp in the local display format."""
    return datetime.fromtimestamp(ts).strftime(TIMESTAMP_FORMAT)


def format_confidence(confidence: float) -> str:
    """0.87 -> "87%"."""
    return f"{confidence * 100:.0f}%"


def render_template(template: str, event: Any) -> str:
    """Replace the event tokens in ``template``. ``event`` is a DetectionEvent."""
    if not template:
        return template or ""
    return (
        template.replace("{{event_type}}", event.type)
        .replace("{{event_description}}", event.description)
        .replace("{{timestamp}}", format_timestamp(event.timestamp))
        .replace("{{confidence}}", format_confidence(event.confidence))
    )
