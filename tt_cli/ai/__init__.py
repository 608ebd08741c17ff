"""
The `ai` package provides the AI side of the command-line helper: the LLM client
and the assistants built on top of it.
"""

from .llm import LLMClient, LLMCompletionResponse
from .assistants.ask import ask, CommandSuggestion


__all__ = [
    "LLMClient",
    "LLMCompletionResponse",
    "ask",
    "CommandSuggestion",
]
