"""Typed block configuration, decoded once per block when a graph loads.

The editor stores a loose key/value bag per block; ``decode_config`` turns
it into the dataclass registered for the block subtype. Unknown subtypes
keep the bag as ``RawConfig``.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple, Type

from surveilens.domain.errors import ConfigError
from surveilens.domain.templating import render_template

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def _str(raw: Mapping[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return str(value)
    return default


def _float(raw: Mapping[str, Any], key: str, default: float) -> float:
    try:
        return float(raw.get(key, default))
    except (TypeError, ValueError):
        return default


def parse_hhmm(value: str) -> Tuple[int, int]:
    """"09:30" -> (9, 30). Raises ConfigError on anything else."""
    m = _HHMM_RE.match(value.strip())
    if not m:
        raise ConfigError(f"invalid time {value!r}, expected HH:MM")
    hour, minute = int(m.group(1)), int(m.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ConfigError(f"invalid time {value!r}")
    return hour, minute


@dataclass(frozen=True)
class BlockConfig:
    """Base configuration. Subclasses list their human-facing fields."""

    TEMPLATED_FIELDS = ()

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "BlockConfig":
        return cls()

    def validate(self) -> None:
        """Raise ConfigError when a required field is missing."""

    def resolve(self, event) -> "BlockConfig":
        """Copy with every templated field rendered against ``event``."""
        if not self.TEMPLATED_FIELDS:
            return self
        changes = {name: render_template(getattr(self, name), event) for name in self.TEMPLATED_FIELDS}
        return dataclasses.replace(self, **changes)

    def _require(self, *names: str) -> None:
        missing = [n for n in names if not getattr(self, n)]
        if missing:
            raise ConfigError(f"missing {', '.join(missing)}")


@dataclass(frozen=True)
class RawConfig(BlockConfig):
    values: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw):
        return cls(values=dict(raw))


# ── Triggers ──────────────────────────────────────


@dataclass(frozen=True)
class CustomTriggerConfig(BlockConfig):
    condition: str = ""

    @classmethod
    def from_raw(cls, raw):
        return cls(condition=_str(raw, "condition").strip())


# ── Conditions ──────────────────────────────────────


@dataclass(frozen=True)
class TimeConditionConfig(BlockConfig):
    start_time: str = "09:00"
    end_time: str = "17:00"
    days_of_week: Tuple[int, ...] = (1, 2, 3, 4, 5)  # 0=Sunday
    enabled: bool = True

    @classmethod
    def from_raw(cls, raw):
        days = raw.get("daysOfWeek", raw.get("days_of_week", (1, 2, 3, 4, 5)))
        return cls(
            start_time=_str(raw, "startTime", "start_time", default="09:00"),
            end_time=_str(raw, "endTime", "end_time", default="17:00"),
            days_of_week=tuple(int(d) for d in days or ()),
            enabled=bool(raw.get("enabled", True)),
        )

    def validate(self):
        parse_hhmm(self.start_time)
        parse_hhmm(self.end_time)


@dataclass(frozen=True)
class LocationConditionConfig(BlockConfig):
    zone_name: str = ""
    location_type: str = "zone"  # "zone" | "gps"
    latitude: float = 0.0
    longitude: float = 0.0
    radius: float = 100.0  # meters
    enabled: bool = True

    @classmethod
    def from_raw(cls, raw):
        return cls(
            zone_name=_str(raw, "zoneName", "zone_name"),
            location_type=_str(raw, "locationType", "location_type", default="zone"),
            latitude=_float(raw, "latitude", 0.0),
            longitude=_float(raw, "longitude", 0.0),
            radius=_float(raw, "radius", 100.0),
            enabled=bool(raw.get("enabled", True)),
        )

    def validate(self):
        if self.location_type == "zone":
            self._require("zone_name")


@dataclass(frozen=True)
class ConfidenceCheckConfig(BlockConfig):
    min_confidence: float = 0.5

    @classmethod
    def from_raw(cls, raw):
        value = raw.get("minConfidence", raw.get("min_confidence", 0.5))
        try:
            value = float(value)
        except (TypeError, ValueError):
            value = 0.5
        # The editor stores percentages
        if value > 1.0:
            value /= 100.0
        return cls(min_confidence=value)


# ── Actions ──────────────────────────────────────


@dataclass(frozen=True)
class EmailConfig(BlockConfig):
    TEMPLATED_FIELDS = ("subject", "body")

    to: str = ""
    subject: str = ""
    body: str = ""

    @classmethod
    def from_raw(cls, raw):
        return cls(to=_str(raw, "to"), subject=_str(raw, "subject"), body=_str(raw, "body"))

    def validate(self):
        self._require("to")


@dataclass(frozen=True)
class ChatConfig(BlockConfig):
    TEMPLATED_FIELDS = ("message",)

    channel: str = ""
    message: str = ""
    webhook_url: str = ""

    @classmethod
    def from_raw(cls, raw):
        return cls(
            channel=_str(raw, "channel"),
            message=_str(raw, "message"),
            webhook_url=_str(raw, "webhookUrl", "webhook_url"),
        )

    def validate(self):
        self._require("message")


@dataclass(frozen=True)
class SmsConfig(BlockConfig):
    TEMPLATED_FIELDS = ("body",)

    to: str = ""
    body: str = ""

    @classmethod
    def from_raw(cls, raw):
        return cls(to=_str(raw, "to"), body=_str(raw, "body", "message"))

    def validate(self):
        self._require("to", "body")


@dataclass(frozen=True)
class VoiceCallConfig(BlockConfig):
    TEMPLATED_FIELDS = ("message",)

    phone_number: str = ""
    message: str = ""
    voice_id: str = "rachel"

    @classmethod
    def from_raw(cls, raw):
        return cls(
            phone_number=_str(raw, "phoneNumber", "phone_number"),
            message=_str(raw, "message"),
            voice_id=_str(raw, "voiceId", "voice_id", default="rachel"),
        )

    def validate(self):
        self._require("phone_number", "message")
        if not self.phone_number.startswith("+"):
            raise ConfigError(f"phone number {self.phone_number!r} must be in E.164 format")


@dataclass(frozen=True)
class WebhookConfig(BlockConfig):
    TEMPLATED_FIELDS = ("message",)

    url: str = ""
    method: str = "POST"
    headers: Mapping[str, str] = field(default_factory=dict)
    message: str = ""

    @classmethod
    def from_raw(cls, raw):
        headers = raw.get("headers") or {}
        return cls(
            url=_str(raw, "url"),
            method=_str(raw, "method", default="POST").upper(),
            headers={str(k): str(v) for k, v in headers.items()} if isinstance(headers, Mapping) else {},
            message=_str(raw, "message", "body"),
        )

    def validate(self):
        self._require("url")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigError(f"webhook url {self.url!r} is not http(s)")
        if self.method not in ("POST", "PUT"):
            raise ConfigError(f"unsupported webhook method {self.method!r}")


@dataclass(frozen=True)
class LogConfig(BlockConfig):
    TEMPLATED_FIELDS = ("message",)

    message: str = "{{event_type}}: {{event_description}}"
    level: str = "info"

    @classmethod
    def from_raw(cls, raw):
        return cls(
            message=_str(raw, "message", default="{{event_type}}: {{event_description}}"),
            level=_str(raw, "level", default="info").lower(),
        )


@dataclass(frozen=True)
class ScreenshotConfig(BlockConfig):
    directory: str = ""  # empty: the configured screenshot dir
    prefix: str = "event"

    @classmethod
    def from_raw(cls, raw):
        return cls(directory=_str(raw, "directory"), prefix=_str(raw, "prefix", default="event"))


CONFIG_TYPES: Dict[str, Type[BlockConfig]] = {
    "custom_event": CustomTriggerConfig,
    "time_condition": TimeConditionConfig,
    "location_condition": LocationConditionConfig,
    "confidence_check": ConfidenceCheckConfig,
    "gmail": EmailConfig,
    "slack": ChatConfig,
    "sms": SmsConfig,
    "vapi_call": VoiceCallConfig,
    "webhook": WebhookConfig,
    "database_log": LogConfig,
    "save_screenshot": ScreenshotConfig,
}


def decode_config(subtype: str, raw: Mapping[str, Any]) -> BlockConfig:
    """Decode the loose config bag for ``subtype`` into its typed record."""
    config_cls = CONFIG_TYPES.get(subtype) or RawConfig
    try:
        return config_cls.from_raw(raw or {})
    except (TypeError, ValueError) as e:
        raise ConfigError(f"malformed {subtype or 'block'} config: {e}")
