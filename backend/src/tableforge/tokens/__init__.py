"""Signed capability tokens for table requests."""

from tableforge.tokens.service import TokenService, VerifiedToken

__all__ = ["TokenService", "VerifiedToken"]
