"""Request authentication dependencies."""

from .auth import (
    get_bearer_token,
    get_current_user,
    get_optional_user,
    get_session_id,
)

__all__ = [
    "get_bearer_token",
    "get_current_user",
    "get_optional_user",
    "get_session_id",
]
