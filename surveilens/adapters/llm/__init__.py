"""LLM adapters — executors and the semantic oracle built on them."""

from surveilens.adapters.llm.executor import ClaudeExecutor, OpenAIExecutor, create_executor
from surveilens.adapters.llm.oracle import SemanticOracle, build_prompt, parse_answer

__all__ = [
    "ClaudeExecutor",
    "OpenAIExecutor",
    "SemanticOracle",
    "build_prompt",
    "create_executor",
    "parse_answer",
]
