"""Port interfaces (Hexagonal Architecture)."""

from surveilens.ports.inbound import DetectionBatch
from surveilens.ports.outbound import (
    LLMPort,
    OraclePort,
    ProgressObserver,
    SendResult,
    SenderPort,
    StoragePort,
)

__all__ = [
    "DetectionBatch",
    "LLMPort",
    "OraclePort",
    "ProgressObserver",
    "SendResult",
    "SenderPort",
    "StoragePort",
]
