"""Chat proxy service - validates prompts before handing them to the assistant."""

from dataclasses import dataclass

from .exceptions import ValidationError
from .ports import ChatAssistant

MAX_PROMPT_CHARS = 2000


@dataclass
class ChatService:
    assistant: ChatAssistant
    max_prompt_chars: int = MAX_PROMPT_CHARS

    def ask(self, message: str) -> str:
        """
        Forward a user message to the assistant.

        Messages longer than max_prompt_chars are truncated, not rejected.

        Raises:
            ValidationError: If the message is empty
            UpstreamUnavailable: If the assistant backend fails
        """
        if not message.strip():
            raise ValidationError("message", "Message must not be empty")
        return self.assistant.reply(message[: self.max_prompt_chars])
