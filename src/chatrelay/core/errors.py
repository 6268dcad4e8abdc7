"""Error taxonomy for message handling."""

from typing import Any, Dict, Optional


class ChatRelayError(Exception):
    """Base exception for chatrelay."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class StoreUnavailable(ChatRelayError):
    """Raised when the state store is unreachable or an operation fails."""

    def __init__(self, operation: str, message: str, details: Optional[Dict[str, Any]] = None):
        full_message = f"State store {operation} failed: {message}"
        super().__init__(
            full_message, "STORE_UNAVAILABLE", {"operation": operation, **(details or {})}
        )


class ConversationNotFound(ChatRelayError):
    """Raised when a conversation record does not exist."""

    def __init__(self, conversation_id: int):
        message = f"Conversation with identifier '{conversation_id}' not found"
        super().__init__(
            message, "CONVERSATION_NOT_FOUND", {"conversation_id": conversation_id}
        )


class GenerationError(ChatRelayError):
    """Raised when the language-generation call fails or times out."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Generation failed: {message}", "GENERATION_ERROR", details)


class DispatchError(ChatRelayError):
    """Any other failure while handling one inbound message."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DISPATCH_ERROR", details)
