"""Domain error hierarchy.

Fatal conditions (``ValidationError``, ``InvariantViolation``) abort an
engine invocation without producing a record. ``OracleError`` is raised by
oracle adapters and is downgraded to an ``indeterminate`` marker by the
oracle session.
"""

from __future__ import annotations

from typing import Final

ORACLE_UNAVAILABLE: Final[str] = "oracle_unavailable"


class DialecticsError(Exception):
    """Base class for reconciliation errors."""


class ValidationError(DialecticsError, ValueError):
    """Raised when engine input or an examination log is malformed."""


class OracleError(DialecticsError, RuntimeError):
    """Raised when the judgment oracle cannot answer a question."""


class InvariantViolation(DialecticsError, RuntimeError):
    """Raised when a derived artifact would break a model invariant."""
