"""Executors that answer oracle prompts (LLMPort)."""

import asyncio
import sys
import uuid
from typing import Optional

import aiohttp

from surveilens.config import AI_PROVIDER, CONFIG
from surveilens.domain.errors import ConfigError, ExternalCallError

OPENAI_API_BASE = "https://api.openai.com/v1"


def _log(msg: str):
    print(msg, file=sys.stderr)


async def _run_subprocess(cmd_args):
    """Run a subprocess command and return process/stdout/stderr."""
    proc = await asyncio.create_subprocess_exec(
        *cmd_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise
    return proc, stdout, stderr


class OpenAIExecutor:
    """Chat completions over aiohttp. Deterministic, very short answers."""

    def __init__(self, model: Optional[str] = None, max_tokens: int = 10):
        self.model = model or CONFIG["oracle_model"]
        self.max_tokens = max_tokens

    @property
    def is_configured(self) -> bool:
        return bool(CONFIG["openai_api_key"])

    async def execute(self, message: str, system_prompt: Optional[str] = None) -> str:
        if not self.is_configured:
            raise ConfigError("OPENAI_API_KEY is not set")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": message})
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": 0,
        }
        headers = {"Authorization": f"Bearer {CONFIG['openai_api_key']}"}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{OPENAI_API_BASE}/chat/completions", json=payload, headers=headers
                ) as resp:
                    data = await resp.json(content_type=None)
                    if resp.status >= 400:
                        error = (data or {}).get("error", {}).get("message", str(data))
                        raise ExternalCallError(f"OpenAI HTTP {resp.status}: {error}")
        except aiohttp.ClientError as e:
            raise ExternalCallError(f"OpenAI request failed: {e}") from e

        try:
            return (data["choices"][0]["message"]["content"] or "").strip()
        except (KeyError, IndexError, TypeError):
            raise ExternalCallError(f"Malformed OpenAI response: {data}")


class ClaudeExecutor:
    """Executes Claude CLI commands."""

    def __init__(self, model: Optional[str] = None, timeout: float = 120.0):
        self.model = model
        self.timeout = timeout

    async def execute(self, message: str, system_prompt: Optional[str] = None) -> str:
        args = [
            "claude",
            "--print",
            "--session-id",
            str(uuid.uuid4()),
            "--output-format",
            "text",
        ]
        if self.model:
            args.extend(["--model", self.model])
        if system_prompt:
            args.extend(["--system-prompt", system_prompt])
        args.append(message)

        _log("[Executor] Executing with Claude CLI")
        try:
            proc, stdout, stderr = await asyncio.wait_for(_run_subprocess(args), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise ExternalCallError(f"Timeout ({self.timeout:g}s)")
        except OSError as e:
            raise ExternalCallError(f"Claude CLI unavailable: {e}") from e

        if proc.returncode != 0:
            raise ExternalCallError(f"Exit code {proc.returncode}: {stderr.decode()}")
        return stdout.decode("utf-8").strip()


def create_executor(provider: Optional[str] = None, model: Optional[str] = None):
    """Create an executor for the selected provider. ``model`` applies to OpenAI only."""
    selected = (provider or AI_PROVIDER).strip().lower()
    if selected == "openai":
        return OpenAIExecutor(model=model)
    if selected == "claude":
        return ClaudeExecutor()
    raise ValueError(f"Unsupported provider: {selected}")
