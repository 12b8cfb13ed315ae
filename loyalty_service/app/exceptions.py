from __future__ import annotations


class LoyaltyServiceError(Exception):
    """Base exception for all loyalty-service errors."""


class NotFoundError(LoyaltyServiceError):
    """An expected record is absent (recoverable, a normal negative result)."""


class CodeNotFoundError(NotFoundError):
    """The presented code is unknown, malformed or retired."""

    def __init__(self, code: str) -> None:
        super().__init__(f"no active user code {code!r}")
        self.code = code


class AccountNotFoundError(LoyaltyServiceError):
    """A ledger mutation was requested before the customer enrolled at the merchant."""

    def __init__(self, identity: str, merchant: str) -> None:
        super().__init__(
            f"loyalty account not found (identity={identity}, merchant={merchant})"
        )
        self.identity = identity
        self.merchant = merchant


class WriteConflictError(LoyaltyServiceError):
    """A conditional write lost against a concurrent writer. Retried internally."""


class CodeCollisionError(WriteConflictError):
    """Another active record already holds the candidate code."""


class ActiveCodeExistsError(WriteConflictError):
    """Another active record was issued for the same identity concurrently."""


class TransientError(LoyaltyServiceError):
    """Store contention or unavailability; the caller should try again."""


class RegistryExhaustedError(LoyaltyServiceError):
    """Every value of the code space is held by an active record."""


class DuplicateUserError(WriteConflictError):
    """A user with the same telegram id was inserted concurrently."""


class BalanceOverflowError(LoyaltyServiceError):
    """The resulting balance would not fit the store's 64-bit integer."""

    def __init__(self, identity: str, merchant: str) -> None:
        super().__init__(
            f"loyalty balance overflow (identity={identity}, merchant={merchant})"
        )
        self.identity = identity
        self.merchant = merchant
