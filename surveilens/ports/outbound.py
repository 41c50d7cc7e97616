"""Outbound ports — interfaces for external system adapters."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from surveilens.domain.block_config import BlockConfig
from surveilens.domain.models import DetectionEvent, ExecutionSnapshot


@dataclass
class SendResult:
    """Unified result type for sender collaborators."""

    success: bool
    message_id: Optional[str] = None
    detail: Optional[str] = None
    error: Optional[str] = None


@runtime_checkable
class SenderPort(Protocol):
    """Interface for action senders (email, chat, SMS, voice, webhook, log, screenshot)."""

    async def is_authenticated(self, block_id: str) -> bool: ...

    async def send(self, block_id: str, config: BlockConfig, event: DetectionEvent) -> SendResult: ...


@runtime_checkable
class LLMPort(Protocol):
    """Interface for LLM execution backends."""

    async def execute(self, message: str, system_prompt: Optional[str] = None) -> str: ...


@runtime_checkable
class OraclePort(Protocol):
    """Yes/no judgment of a natural-language condition against a context summary."""

    async def judge(self, condition: str, context: str) -> bool: ...


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives execution snapshots. May be a plain function or a coroutine function."""

    def __call__(self, snapshot: ExecutionSnapshot) -> Any: ...


@runtime_checkable
class StoragePort(Protocol):
    """Interface for workflow persistence."""

    def load(self, key: str) -> Optional[Dict[str, Any]]: ...
    def save(self, key: str, data: Dict[str, Any]) -> None: ...
    def delete(self, key: str) -> bool: ...
    def keys(self) -> List[str]: ...
