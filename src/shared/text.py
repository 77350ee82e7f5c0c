"""Text generation port for the generative text collaborator.

Used for product copy and support auto-answers. Callers never talk to a
generator directly; they go through ``generate_or_fallback`` so an
unreachable or failing generator degrades to canned text instead of an
error.
"""

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger(__name__)


class TextGenerator(ABC):
    """Abstract interface for text generation adapters."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return generated text for ``prompt``."""
        ...


class FakeTextGenerator(TextGenerator):
    """Generator that replays canned replies and records prompts for test assertions."""

    def __init__(self, replies: list[str] | None = None, default_reply: str = ""):
        self.replies = list(replies or [])
        self.default_reply = default_reply
        self.prompts: list[str] = []
        self.should_succeed = True
        self.failure_reason = "Text generation unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Text generation unavailable"):
        """Configure the fake generator behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        if self.replies:
            return self.replies.pop(0)
        return self.default_reply

    def reset(self):
        self.prompts.clear()
        self.replies.clear()
        self.should_succeed = True


async def generate_or_fallback(
    generator: TextGenerator | None,
    prompt: str,
    fallback: str,
    offline_fallback: str | None = None,
) -> str:
    """Generate text, or return a fallback. Never raises.

    ``offline_fallback`` is used when no generator is configured at all;
    ``fallback`` when the generator fails or returns nothing.
    """
    if generator is None:
        return offline_fallback if offline_fallback is not None else fallback

    try:
        text = await generator.generate(prompt)
    except Exception as exc:
        logger.warning(
            "Text generation failed, using fallback",
            generator=type(generator).__name__,
            error=str(exc),
        )
        return fallback

    text = (text or "").strip()
    return text or fallback
