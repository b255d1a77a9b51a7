"""Identity helpers (JWT issuing and verification)."""

from .token_service import TokenService

__all__ = ["TokenService"]
