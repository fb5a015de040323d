"""Signed capability tokens binding later requests to one table.

A token is minted with every table resource and accompanies action,
bulk action, export and view requests, so those endpoints learn which
table (and context) they act on without trusting client identifiers.

Token format: ``{base64url(canonical_json)}.{hex_hmac_sha256}`` where the
JSON payload is ``{"table", "context", "issued_at"}`` and the HMAC key is
the configured secret, computed over ``"{salt}.{payload}"``.

Tokens expire purely by age; there is no revocation list and
verification performs no I/O.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from tableforge.errors import ExpiredToken, InvalidToken

logger = logging.getLogger(__name__)


@dataclass
class VerifiedToken:
    """Decoded contents of a valid token."""

    table: str
    context: dict[str, Any] = field(default_factory=dict)
    issued_at: int = 0


class TokenService:
    """Issues and verifies table capability tokens."""

    DEFAULT_SALT = "tableforge_action_v1"
    DEFAULT_MAX_AGE = 24 * 60 * 60  # 1 day

    def __init__(
        self,
        secret_key: str,
        registry: Any = None,
        salt: str = DEFAULT_SALT,
        max_age: int = DEFAULT_MAX_AGE,
    ):
        """Initialize the token service.

        Args:
            secret_key: Secret key for signing tokens
            registry: TableRegistry used to reject tokens for tables that no
                      longer exist (None skips the check)
            salt: Domain-separation salt mixed into every signature
            max_age: Default maximum token age in seconds
        """
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self.registry = registry
        self.salt = salt
        self.max_age = max_age

    def sign(self, table: str, context: dict[str, Any] | None = None) -> str:
        """Mint a token for a table.

        Args:
            table: The table's name
            context: JSON-serializable context bound into the token

        Returns:
            Signed token string
        """
        payload = {
            "table": table,
            "context": context or {},
            "issued_at": int(time.time()),
        }
        encoded = self._encode(payload)
        return f"{encoded}.{self._sign(encoded)}"

    def verify(self, token: str, max_age: int | None = None) -> VerifiedToken:
        """Verify a token and return its contents.

        The signature is checked before any payload field is trusted.

        Args:
            token: The token to verify
            max_age: Maximum age in seconds (defaults to the service's)

        Returns:
            VerifiedToken with the table name and context

        Raises:
            InvalidToken: Token is malformed, its signature does not match,
                          or its table is no longer registered
            ExpiredToken: Token is older than max_age
        """
        if not isinstance(token, str) or token.count(".") != 1:
            raise InvalidToken("malformed")

        encoded, signature = token.split(".")
        if not encoded or not signature:
            raise InvalidToken("malformed")

        expected = self._sign(encoded)
        if not hmac.compare_digest(signature.encode(), expected.encode()):
            logger.debug("Rejected table token with bad signature")
            raise InvalidToken("unknown_table")

        payload = self._decode(encoded)
        table = payload.get("table")
        context = payload.get("context")
        issued_at = payload.get("issued_at")
        if not isinstance(table, str) or not isinstance(context, dict) \
                or not isinstance(issued_at, int):
            raise InvalidToken("malformed")

        limit = self.max_age if max_age is None else max_age
        if time.time() - issued_at > limit:
            raise ExpiredToken()

        if self.registry is not None and self.registry.get(table) is None:
            logger.debug("Rejected token for unknown table %s", table)
            raise InvalidToken("unknown_table")

        return VerifiedToken(table=table, context=context, issued_at=issued_at)

    def resolve(self, token: str, max_age: int | None = None) -> tuple[Any, VerifiedToken]:
        """Verify a token and look up its table definition.

        Returns:
            (TableDefinition, VerifiedToken)

        Raises:
            InvalidToken, ExpiredToken: As for verify()
        """
        if self.registry is None:
            raise RuntimeError("TokenService.resolve() requires a registry")
        verified = self.verify(token, max_age)
        return self.registry.get(verified.table), verified

    def _encode(self, payload: dict[str, Any]) -> str:
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return base64.urlsafe_b64encode(canonical.encode()).decode().rstrip("=")

    def _decode(self, encoded: str) -> dict[str, Any]:
        padded = encoded + "=" * (-len(encoded) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
        except (binascii.Error, ValueError):
            raise InvalidToken("malformed")
        if not isinstance(payload, dict):
            raise InvalidToken("malformed")
        return payload

    def _sign(self, encoded: str) -> str:
        """Create HMAC signature of the encoded payload."""
        return hmac.new(
            self._secret_key.encode(),
            f"{self.salt}.{encoded}".encode(),
            hashlib.sha256,
        ).hexdigest()
