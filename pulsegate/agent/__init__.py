"""Reply generation for PulseGate."""

from pulsegate.agent.reply import ChatModelReplyGenerator, strip_thinking_tokens

__all__ = ["ChatModelReplyGenerator", "strip_thinking_tokens"]
