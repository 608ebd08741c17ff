import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import aisuite
import openai
from aisuite.provider import LLMError

from ..errors import NetworkFailure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class LLMCompletionResponse:
    """Wraps the full assistant message from the LLM API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


def _network_failure(cause, error: Exception) -> NetworkFailure:
    if isinstance(cause, openai.APIStatusError):
        return NetworkFailure(
            f"The AI provider returned HTTP {cause.status_code}.",
            status_code=cause.status_code,
            body=cause.response.text,
        )
    if isinstance(cause, openai.APIConnectionError):
        # APITimeoutError is a subclass, so an expired timeout lands here too.
        return NetworkFailure(f"Could not reach the AI provider: {cause}")
    return NetworkFailure(f"The AI request failed: {error}")


class LLMClient:
    """
    A wrapper for the LLM client to abstract away the specific provider library.
    This allows for easier swapping of LLM providers in the future.
    """

    def __init__(self, provider_configs: Dict):
        """
        Initializes the LLM client.

        Args:
            provider_configs: A dictionary containing configuration for each LLM provider,
                keyed by provider name (e.g. {"openai": {"api_key": "..."}}).
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def openai_configs(api_key: str, timeout: float = DEFAULT_TIMEOUT) -> Dict:
        # A failed call is reported as is, so the SDK must not retry on its own.
        return {"openai": {"api_key": api_key, "timeout": timeout, "max_retries": 0}}

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    def completion(self, model: str, messages: List[Dict], **kwargs) -> LLMCompletionResponse:
        logger.debug("Requesting completion from %s (%d messages)", model, len(messages))
        try:
            response = self.client.chat.completions.create(
                model=model, messages=messages, **kwargs
            )
        except LLMError as e:
            # aisuite re-raises provider errors as LLMError; the SDK error is its context.
            raise _network_failure(e.__cause__ or e.__context__, e) from e
        except openai.OpenAIError as e:
            raise _network_failure(e, e) from e

        choices = getattr(response, "choices", None)
        if not choices or getattr(choices[0], "message", None) is None:
            logger.debug("Completion response carried no message")
            return LLMCompletionResponse(assistant_message={})

        # The message object from aisuite/openai can be converted to a dict.
        # We exclude unset values to keep the payload clean and compatible.
        message_dict = choices[0].message.model_dump(exclude_unset=True)
        return LLMCompletionResponse(assistant_message=message_dict)
