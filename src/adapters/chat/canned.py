"""
Canned chat assistant adapter - Implements ChatAssistant protocol.

Returns a fixed markdown answer that quotes the prompt. Stands in for a
hosted model until one is wired up.
"""

import logging

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 50


class CannedChatAssistant:
    """Implements ChatAssistant protocol with a deterministic reply."""

    def reply(self, prompt: str) -> str:
        logger.info("Chat prompt received (%d chars)", len(prompt))
        return (
            f"You asked about: {prompt[:_PREVIEW_CHARS]}...\n\n"
            "Here is a *comprehensive* response, structured with markdown "
            "including **bold text** and *italics*.\n\n"
            "*   **Key Point 1:** Detail explanation [1].\n"
            "*   **Key Point 2:** Detail explanation [2]."
        )
