"""
Secret redaction for traced output.

Credentials handed to consumers (passphrases, Authorization headers,
shared keys) must never reach a trace file in cleartext.
"""

from typing import Any, Iterable, Optional, Set

import structlog

from ..config import get_settings

logger = structlog.get_logger(__name__)


class MaskingEngine:
    """
    Replaces secret-bearing values with a fixed placeholder.

    Features:
    - Configurable secret keys
    - Case-insensitive partial key matching
    - Deep object traversal for nested data
    """

    def __init__(
        self,
        secret_keys: Optional[Iterable[str]] = None,
        placeholder: Optional[str] = None,
    ) -> None:
        if secret_keys is None or placeholder is None:
            settings = get_settings().masking
            secret_keys = settings.secret_keys if secret_keys is None else secret_keys
            placeholder = settings.placeholder if placeholder is None else placeholder

        self.secret_keys: Set[str] = {key.lower() for key in secret_keys}
        self.placeholder = placeholder
        logger.debug("Masking engine initialized", secret_keys=len(self.secret_keys))

    def redact(self, obj: Any) -> Any:
        """Return a deep copy of obj with every secret value replaced."""
        if isinstance(obj, dict):
            redacted = {}
            for key, value in obj.items():
                if self.is_secret_key(key):
                    redacted[key] = self.placeholder
                else:
                    redacted[key] = self.redact(value)
            return redacted

        if isinstance(obj, (list, tuple)):
            return [self.redact(item) for item in obj]

        return obj

    def is_secret_key(self, key: Any) -> bool:
        """Case-insensitive, partial match against the configured keys."""
        if not isinstance(key, str):
            return False
        key_lower = key.lower()
        return any(secret in key_lower for secret in self.secret_keys)


# Global masking engine instance
_masking_engine: Optional[MaskingEngine] = None


def get_masking_engine() -> MaskingEngine:
    """Get or create the global masking engine instance."""
    global _masking_engine

    if _masking_engine is None:
        _masking_engine = MaskingEngine()

    return _masking_engine
