class LibraryError(Exception):
    """Base exception for lending engine errors."""


class InvalidArgumentError(LibraryError, ValueError):
    """Input is missing or malformed (empty ISBN, empty name, negative copies)."""


class BookNotFoundError(LibraryError):
    """Requested ISBN does not exist in the catalog."""


class MemberNotFoundError(LibraryError):
    """Requested memberId does not exist."""


class LendingRuleViolationError(LibraryError):
    """borrow/return violates lending rules."""


class BookAlreadyBorrowedError(LendingRuleViolationError):
    """Member already holds an open loan for this ISBN."""


class NoCopiesAvailableError(LendingRuleViolationError):
    """No available copies left for this ISBN."""


class BookNotBorrowedError(LendingRuleViolationError):
    """Return requested but no open loan matches (member, ISBN)."""


class OperationFailedError(LibraryError):
    """
    A store write failed after an earlier write of the same operation succeeded.

    State may be partially applied; the original failure is chained as __cause__.
    """
