"""
Character Card Errors
====================

Typed failures raised by the PNG chunk model and the card codec.

The codec never logs or swallows these; callers decide how to present them.
"""


class CardError(Exception):
    """Base exception for character card operations."""

    user_message = "character card error"

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class FormatError(CardError):
    """Malformed PNG structure (bad signature, truncated chunk, missing IHDR/IEND, embedded NUL)."""

    user_message = "invalid image file"


class NotFoundError(CardError):
    """Well-formed PNG that carries no character card metadata.

    Not an application error: callers treat the file as a plain avatar image.
    """

    user_message = "not a character card"


class DecodeError(CardError):
    """The chara field exists but its base64 or JSON payload is corrupt."""

    user_message = "invalid character card"


class ValidationError(CardError):
    """Card payload decoded but uses an unsupported spec or does not fit the schema."""

    user_message = "unsupported card version"
