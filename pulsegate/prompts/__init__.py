"""Prompt templates for PulseGate."""

from pulsegate.prompts.heartbeat import HEARTBEAT_PROMPT, HEARTBEAT_TOKEN

__all__ = ["HEARTBEAT_PROMPT", "HEARTBEAT_TOKEN"]
