"""Tests for template substitution."""

from surveilens.domain.models import DetectionEvent
from surveilens.domain.templating import format_confidence, format_timestamp, render_template

T = 1700000000.0


def _event(**kwargs):
    defaults = {"type": "FIGHT_DETECTED", "confidence": 0.87, "description": "Two people fighting", "timestamp": T}
    defaults.update(kwargs)
    return DetectionEvent(**defaults)


class TestRenderTemplate:
    def test_type_and_timestamp(self):
        result = render_template("Alert: {{event_type}} at {{timestamp}}", _event())
        assert result == f"Alert: FIGHT_DETECTED at {format_timestamp(T)}"

    def test_all_tokens(self):
        result = render_template(
            "{{event_type}}|{{event_description}}|{{confidence}}", _event()
        )
        assert result == "FIGHT_DETECTED|Two people fighting|87%"

    def test_repeated_tokens(self):
        assert render_template("{{event_type}} {{event_type}}", _event()) == "FIGHT_DETECTED FIGHT_DETECTED"

    def test_unknown_tokens_untouched(self):
        template = "{{camera}} {{ event_type }} {event_type} {{event_type}}"
        assert render_template(template, _event()) == "{{camera}} {{ event_type }} {event_type} FIGHT_DETECTED"

    def test_no_recursive_expansion(self):
        event = _event(description="{{event_type}}")
        assert render_template("{{event_description}}", event) == "{{event_type}}"

    def test_empty_template(self):
        assert render_template("", _event()) == ""
        assert render_template(None, _event()) == ""


class TestFormatting:
    def test_confidence_is_integer_percent(self):
        assert format_confidence(0.87) == "87%"
        assert format_confidence(1.0) == "100%"
        assert format_confidence(0.0) == "0%"

    def test_timestamp_renders_date_and_time(self):
        rendered = format_timestamp(T)
        assert rendered
        assert "{{" not in rendered
