"""Direct message services."""

from mindbridge.services.messages.direct_message_service import DirectMessageService

__all__ = ["DirectMessageService"]
