"""Saves the frame attached to the triggering event."""

import asyncio
import base64
import binascii
from datetime import datetime
from pathlib import Path

from surveilens.config import CONFIG
from surveilens.domain.errors import ConfigError
from surveilens.ports.outbound import SendResult

_DATA_URL_PREFIX = "base64,"


def decode_frame(frame: str) -> bytes:
    """Decode a base64 JPEG, with or without a ``data:image/jpeg;base64,`` prefix."""
    if _DATA_URL_PREFIX in frame:
        frame = frame.split(_DATA_URL_PREFIX, 1)[1]
    try:
        return base64.b64decode(frame, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigError(f"frame is not valid base64: {e}")


class ScreenshotSender:
    async def is_authenticated(self, block_id: str) -> bool:
        return True

    async def send(self, block_id, config, event) -> SendResult:
        frame = event.metadata.get("frame")
        if not frame:
            raise ConfigError("event carries no frame to save")
        data = decode_frame(str(frame))

        directory = Path(config.directory or CONFIG["screenshot_dir"])
        stamp = datetime.fromtimestamp(event.timestamp).strftime("%Y%m%d-%H%M%S")
        path = directory / f"{config.prefix}-{event.type.lower()}-{stamp}-{block_id}.jpg"

        def _write():
            directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        return SendResult(success=True, detail=str(path))
