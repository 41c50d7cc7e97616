"""Condition block evaluation against the triggering event."""

import math
from datetime import datetime
from typing import Tuple

from surveilens.domain.block_config import (
    ConfidenceCheckConfig,
    LocationConditionConfig,
    TimeConditionConfig,
    parse_hhmm,
)
from surveilens.domain.errors import ConfigError
from surveilens.domain.models import Block, DetectionEvent

_EARTH_RADIUS_M = 6371000.0

CONDITION_SUBTYPES = ("time_condition", "location_condition", "confidence_check")


def _js_weekday(dt: datetime) -> int:
    """Sunday=0 .. Saturday=6, the editor's convention."""
    return (dt.weekday() + 1) % 7


def check_time(config: TimeConditionConfig, event: DetectionEvent) -> bool:
    if not config.enabled:
        return True
    local = datetime.fromtimestamp(event.timestamp)
    if config.days_of_week and _js_weekday(local) not in config.days_of_week:
        return False
    start = parse_hhmm(config.start_time)
    end = parse_hhmm(config.end_time)
    now = (local.hour, local.minute)
    if start <= end:
        return start <= now <= end
    # Overnight window, e.g. 22:00-06:00
    return now >= start or now <= end


def _haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = math.radians(lat2 - lat1)
    dl = math.radians(lon2 - lon1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * _EARTH_RADIUS_M * math.asin(math.sqrt(a))


def check_location(config: LocationConditionConfig, event: DetectionEvent) -> bool:
    if not config.enabled:
        return True
    meta = event.metadata
    if config.location_type == "gps":
        try:
            lat, lon = float(meta["latitude"]), float(meta["longitude"])
        except (KeyError, TypeError, ValueError):
            return False
        return _haversine_m(config.latitude, config.longitude, lat, lon) <= config.radius
    zone = str(meta.get("zone", "") or "")
    return zone.strip().lower() == config.zone_name.strip().lower()


def check_confidence(config: ConfidenceCheckConfig, event: DetectionEvent) -> bool:
    return event.confidence >= config.min_confidence


def evaluate_condition(block: Block, event: DetectionEvent) -> Tuple[bool, str]:
    """Return (passed, detail). Raises ConfigError for unusable configs."""
    config = block.config
    config.validate()
    if isinstance(config, TimeConditionConfig):
        passed = check_time(config, event)
        window = f"{config.start_time}-{config.end_time}"
    elif isinstance(config, LocationConditionConfig):
        passed = check_location(config, event)
        window = config.zone_name or f"{config.latitude},{config.longitude}"
    elif isinstance(config, ConfidenceCheckConfig):
        passed = check_confidence(config, event)
        window = f">= {config.min_confidence:.2f}"
    else:
        raise ConfigError(f"no evaluator for condition subtype {block.subtype!r}")
    return passed, f"{'passed' if passed else 'not met'} ({window})"
