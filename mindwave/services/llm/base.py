"""
Abstract base class for LLM providers.

Every caller in Mindwave wants one JSON document back, so the base class
owns the call path: it builds a :class:`ChatRequest`, runs it under the
shared bounded retry, and leaves each provider to implement one completion
against its own SDK, including that SDK's native JSON-output switch.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from mindwave.core.retry import transient_retry


@dataclass(frozen=True)
class ChatRequest:
    """One single-turn completion request."""

    prompt: str
    system: str | None = None
    temperature: float = 0.3
    max_tokens: int = 1024
    json_output: bool = False

    def messages(self) -> list[dict[str, str]]:
        """System + user messages for chat-style APIs."""
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": self.prompt})
        return messages


class BaseLLM(ABC):
    """Interface that every LLM provider must implement."""

    model_name: str = ""
    default_temperature: float = 0.3
    default_max_tokens: int = 1024
    max_attempts: int = 1

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_output: bool = False,
    ) -> str:
        """Generate a response, retrying transient failures.

        Args:
            prompt: The user message to send to the model.
            system: Optional system instruction.
            temperature: Sampling temperature (provider default if omitted).
            max_tokens: Response length cap (provider default if omitted).
            json_output: Ask the provider to constrain output to one JSON object.

        Returns:
            The model's raw text response.

        Raises:
            ConnectionError: Transport failure or rate limiting, after retries.
            TimeoutError: The request timed out, after retries.
            RuntimeError: Any other provider failure (not retried).
        """
        request = ChatRequest(
            prompt=prompt,
            system=system,
            temperature=self.default_temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.default_max_tokens,
            json_output=json_output,
        )
        async for attempt in transient_retry(self.max_attempts):
            with attempt:
                return await self._complete(request)

    @abstractmethod
    async def _complete(self, request: ChatRequest) -> str:
        """Run one completion, translating SDK errors to the standard ones."""
