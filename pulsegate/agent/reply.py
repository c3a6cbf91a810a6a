"""Default reply engine backed by a LangChain chat model."""

import logging
import re
from typing import Any

from langchain.chat_models import init_chat_model
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from pulsegate.core.config import AgentConfig, Config
from pulsegate.model.heartbeat import ReplyContext, ReplyOptions, ReplyPayload

logger = logging.getLogger(__name__)

# Pattern to match thinking tokens like <think>...</think>
THINKING_TAG_PATTERN = re.compile(r"<think>[\s\S]*?</think>\s*", re.IGNORECASE)


def strip_thinking_tokens(text: str) -> str:
    """Remove ``<think>...</think>`` blocks some models emit, and trim."""
    return THINKING_TAG_PATTERN.sub("", text).strip()


def message_text(content: str | list[Any]) -> str:
    """Flatten chat model content (plain string or content blocks) to text."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


class ChatModelReplyGenerator:
    """Generates heartbeat replies with a single chat model call.

    Uses ``init_chat_model`` so any provider string LangChain supports
    (``anthropic:...``, ``openai:...``) works.
    """

    def __init__(self, config: AgentConfig, model: Any | None = None):
        """Initialize the generator.

        Args:
            config: Agent model settings.
            model: Pre-built chat model (skips init_chat_model; used in tests).
        """
        self.config = config
        self._model = model

    def _get_model(self) -> Any:
        if self._model is None:
            model_kwargs: dict[str, Any] = {"temperature": self.config.temperature}
            if self.config.api_key:
                model_kwargs["api_key"] = self.config.api_key
            self._model = init_chat_model(self.config.model, **model_kwargs)
            logger.info(f"Initialized reply model: {self.config.model}")
        return self._model

    def build_messages(self, context: ReplyContext) -> list[BaseMessage]:
        messages: list[BaseMessage] = []
        if self.config.system_prompt:
            messages.append(SystemMessage(content=self.config.system_prompt))
        messages.append(HumanMessage(content=context.body))
        return messages

    async def __call__(self, context: ReplyContext, options: ReplyOptions, config: Config) -> ReplyPayload | None:
        """Generate a reply for a synthetic heartbeat request.

        Returns:
            ReplyPayload with the model's text, or None when the model said nothing.
        """
        response = await self._get_model().ainvoke(self.build_messages(context))
        text = strip_thinking_tokens(message_text(response.content))
        if not text:
            return None
        return ReplyPayload(text=text)
