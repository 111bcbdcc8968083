from __future__ import annotations


class LedgerError(Exception):
    """Base class for every typed failure raised by the ledger core."""


class NotFoundError(LedgerError):
    """Raised when a bet key has no readable record."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Bet '{key}' not found")


class InvalidTransitionError(LedgerError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, key: str, current: str, target: str) -> None:
        self.key = key
        self.current = current
        self.target = target
        super().__init__(f"Bet '{key}' cannot move from {current} to {target}")


class MalformedTokenError(LedgerError):
    """Raised when an obscured token cannot be decoded."""

    def __init__(self, token: str, reason: str = "unparseable token") -> None:
        self.token = token
        self.reason = reason
        preview = token if len(token) <= 32 else token[:32] + "..."
        super().__init__(f"Malformed obscured token {preview!r}: {reason}")


class AuthorizationDeclinedError(LedgerError):
    """Raised when a disclosure signature was not obtained or does not verify."""


class ChallengeExpiredError(AuthorizationDeclinedError):
    """Raised when the disclosure challenge window has elapsed."""


class StoreUnavailableError(LedgerError):
    """Raised when the key/value store is down or a read/write failed."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class StaleWriteError(LedgerError):
    """Raised when a versioned write finds a newer record in the store."""

    def __init__(self, key: str, expected_version: int | None, found_version: int | None) -> None:
        self.key = key
        self.expected_version = expected_version
        self.found_version = found_version
        expected = "no record" if expected_version is None else f"version {expected_version}"
        super().__init__(
            f"Stale write for '{key}': expected {expected}, store has version {found_version}"
        )


class NotOwnerError(LedgerError):
    """Raised when a requester acts on a bet placed by another wallet."""

    def __init__(self, key: str, requester: str) -> None:
        self.key = key
        self.requester = requester
        super().__init__(f"Wallet {requester} does not own bet '{key}'")


class InvalidBetError(LedgerError, ValueError):
    """Raised when bet creation input fails validation."""


class UnsupportedStoreOperationError(LedgerError):
    """Raised when the configured store lacks an optional capability."""

    def __init__(self, backend: str, operation: str) -> None:
        self.backend = backend
        self.operation = operation
        super().__init__(f"Store backend '{backend}' does not support {operation}")
