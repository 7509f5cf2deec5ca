from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

from exceptions import InvalidArgumentError


IdFactory = Callable[[], str]


def new_id() -> str:
    """
    Default identifier generator for members and transactions.
    """
    return str(uuid.uuid4())


def _require_text(value: Optional[str], name: str) -> None:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{name} cannot be empty")


class TransactionType(Enum):
    """BORROW is the only type the engine creates; a return closes it in place.
    RETURN is kept for records built outside the engine."""

    BORROW = "BORROW"
    RETURN = "RETURN"


# Domain Models
@dataclass(frozen=True)
class Author:
    """
    Author of a book.

    Attributes:
        firstName (str): Given name, non-empty.
        lastName (str): Family name, non-empty.
    """
    firstName: str
    lastName: str

    def __post_init__(self) -> None:
        _require_text(self.firstName, "author first name")
        _require_text(self.lastName, "author last name")

    @property
    def fullName(self) -> str:
        return f"{self.firstName} {self.lastName}"

    def __str__(self) -> str:
        return self.fullName


@dataclass
class Book:
    """
    Catalog entry, keyed by ISBN.

    Attributes:
        isbn (str): Unique identifier for the book.
        title (str): Book title.
        author (Author): Book author.
        genre (str): Free-text genre.
        publicationYear (int): Calendar year of publication.
        availableCopies (int): Copies on the shelf, never negative.
    """
    isbn: str
    title: str
    author: Author
    genre: str = ""
    publicationYear: Optional[int] = None
    availableCopies: int = 0

    def __post_init__(self) -> None:
        _require_text(self.isbn, "isbn")
        _require_text(self.title, "title")
        if not isinstance(self.author, Author):
            raise InvalidArgumentError("author must be an Author")
        if self.publicationYear is not None and (
            isinstance(self.publicationYear, bool) or not isinstance(self.publicationYear, int)
        ):
            raise InvalidArgumentError("publicationYear must be a whole number")
        if isinstance(self.availableCopies, bool) or not isinstance(self.availableCopies, int):
            raise InvalidArgumentError("availableCopies must be a whole number")
        if self.availableCopies < 0:
            raise InvalidArgumentError("availableCopies cannot be negative")
        if self.genre is None:
            self.genre = ""


@dataclass
class Member:
    """
    Library member. memberId is assigned at registration and never changes.

    Attributes:
        memberId (str): Opaque unique identifier.
        name (str): Member name, non-empty.
        contactInfo (Optional[str]): Email, phone or any free text.
    """
    memberId: str
    name: str
    contactInfo: Optional[str] = None

    def __post_init__(self) -> None:
        _require_text(self.name, "member name")

    def rename(self, name: str) -> None:
        _require_text(name, "member name")
        self.name = name


@dataclass
class Transaction:
    """
    One borrow lifecycle. A return closes the record by setting returnedAt;
    no separate RETURN record is written.

    Attributes:
        transactionId (str): Opaque unique identifier.
        bookIsbn (str): ISBN of the borrowed book.
        memberId (str): Borrowing member.
        type (TransactionType): BORROW for every record the engine creates.
        createdAt (datetime): When the borrow happened.
        dueDate (Optional[date]): createdAt's date + loan period.
        returnedAt (Optional[datetime]): Set on return, None while open.
    """
    transactionId: str
    bookIsbn: str
    memberId: str
    type: TransactionType
    createdAt: datetime
    dueDate: Optional[date] = None
    returnedAt: Optional[datetime] = None

    def __post_init__(self) -> None:
        _require_text(self.bookIsbn, "bookIsbn")
        _require_text(self.memberId, "memberId")
        if self.type is TransactionType.BORROW and self.dueDate is None:
            raise InvalidArgumentError("dueDate is required for a BORROW transaction")

    def is_open(self) -> bool:
        """
        Returns True if the book has not yet been returned.
        """
        return self.returnedAt is None

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """
        True while the loan is open and its due date is strictly before today.
        """
        if self.type is not TransactionType.BORROW or not self.is_open():
            return False
        if today is None:
            today = date.today()
        return self.dueDate < today

    def was_returned_late(self) -> bool:
        if self.returnedAt is None or self.dueDate is None:
            return False
        return self.returnedAt.date() > self.dueDate
