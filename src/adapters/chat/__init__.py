"""Chat assistant adapters."""

from .canned import CannedChatAssistant

__all__ = ["CannedChatAssistant"]
