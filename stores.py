"""
In-memory stores for books, members and transactions.

Each store owns one insertion-ordered dict guarded by its own ReadWriteLock.
Entities cross the store boundary as copies: save() keeps a copy of what it
was given and every read hands back fresh copies, so a caller can never
change stored state without calling save() (or BookStore.adjustCopies).
"""
from __future__ import annotations

import copy
import logging
from typing import Dict, Generic, List, Optional, Type, TypeVar

from exceptions import BookNotFoundError, InvalidArgumentError, NoCopiesAvailableError
from locks import ReadWriteLock
from models import Book, Member, Transaction, TransactionType


logger = logging.getLogger("library.stores")

T = TypeVar("T")


def _blank(key: Optional[str]) -> bool:
    return key is None or not str(key).strip()


class InMemoryStore(Generic[T]):
    """
    Key-value store with upsert semantics.

    Subclasses set ``entity_type`` and ``key_field``.
    """

    entity_type: Type = object
    key_field: str = ""
    label: str = "entity"

    def __init__(self) -> None:
        self._items: Dict[str, T] = {}
        self._lock = ReadWriteLock()

    def save(self, entity: T) -> T:
        """
        Inserts or overwrites the entry with the entity's key.

        Raises:
            InvalidArgumentError: If entity is None, of the wrong type, or its key is empty.
        """
        if entity is None or not isinstance(entity, self.entity_type):
            logger.error("Rejected save of a missing %s", self.label)
            raise InvalidArgumentError(f"{self.label} cannot be None")
        key = getattr(entity, self.key_field, None)
        if _blank(key):
            logger.error("Rejected save of %s with empty %s", self.label, self.key_field)
            raise InvalidArgumentError(f"{self.label} {self.key_field} cannot be empty")

        stored = copy.copy(entity)
        with self._lock.write():
            self._items[key] = stored
        logger.info("Saved %s | %s=%s", self.label, self.key_field, key)
        return copy.copy(stored)

    def findByKey(self, key: Optional[str]) -> Optional[T]:
        """
        Returns a copy of the entry, or None for an empty or unknown key.
        """
        if _blank(key):
            logger.warning("Lookup of %s with empty key", self.label)
            return None
        with self._lock.read():
            item = self._items.get(key)
        if item is None:
            logger.debug("No %s found | %s=%s", self.label, self.key_field, key)
            return None
        return copy.copy(item)

    def findAll(self) -> List[T]:
        """
        Returns copies of every entry in insertion order.
        """
        with self._lock.read():
            items = list(self._items.values())
        logger.debug("Retrieved all %s entries | count=%d", self.label, len(items))
        return [copy.copy(i) for i in items]

    def deleteByKey(self, key: Optional[str]) -> bool:
        """
        Returns True iff an entry existed and was removed.
        """
        if _blank(key):
            logger.warning("Delete of %s with empty key", self.label)
            return False
        with self._lock.write():
            removed = self._items.pop(key, None)
        if removed is None:
            logger.info("Nothing to delete | %s=%s", self.key_field, key)
            return False
        logger.info("Deleted %s | %s=%s", self.label, self.key_field, key)
        return True

    def count(self) -> int:
        with self._lock.read():
            return len(self._items)

    def __len__(self) -> int:
        return self.count()

    def _select(self, predicate) -> List[T]:
        with self._lock.read():
            items = [i for i in self._items.values() if predicate(i)]
        return [copy.copy(i) for i in items]


class BookStore(InMemoryStore[Book]):
    entity_type = Book
    key_field = "isbn"
    label = "book"

    def findByIsbn(self, isbn: Optional[str]) -> Optional[Book]:
        return self.findByKey(isbn)

    def deleteByIsbn(self, isbn: Optional[str]) -> bool:
        return self.deleteByKey(isbn)

    def adjustCopies(self, isbn: str, delta: int) -> Book:
        """
        Applies delta to availableCopies in a single write.

        Raises:
            BookNotFoundError: If no book has this ISBN.
            NoCopiesAvailableError: If the count would drop below zero.
        """
        with self._lock.write():
            book = self._items.get(isbn)
            if book is None:
                raise BookNotFoundError(f"Book not found: isbn={isbn}")
            if book.availableCopies + delta < 0:
                raise NoCopiesAvailableError(
                    f"No copies available for book: {book.title}"
                )
            book.availableCopies += delta
            result = copy.copy(book)
        logger.info(
            "Adjusted copies | isbn=%s delta=%d available=%d",
            isbn, delta, result.availableCopies,
        )
        return result


class MemberStore(InMemoryStore[Member]):
    entity_type = Member
    key_field = "memberId"
    label = "member"

    def findById(self, memberId: Optional[str]) -> Optional[Member]:
        return self.findByKey(memberId)

    def deleteById(self, memberId: Optional[str]) -> bool:
        return self.deleteByKey(memberId)


class TransactionStore(InMemoryStore[Transaction]):
    entity_type = Transaction
    key_field = "transactionId"
    label = "transaction"

    def findById(self, transactionId: Optional[str]) -> Optional[Transaction]:
        return self.findByKey(transactionId)

    def findByMember(self, memberId: str) -> List[Transaction]:
        """
        All transactions, open or closed, for one member.
        """
        return self._select(lambda t: t.memberId == memberId)

    def findByBook(self, isbn: str) -> List[Transaction]:
        return self._select(lambda t: t.bookIsbn == isbn)

    def findOpenLoan(self, memberId: str, isbn: str) -> Optional[Transaction]:
        """
        The open BORROW for (member, isbn). If several exist the first one
        saved wins.
        """
        with self._lock.read():
            for t in self._items.values():
                if (
                    t.type is TransactionType.BORROW
                    and t.memberId == memberId
                    and t.bookIsbn == isbn
                    and t.is_open()
                ):
                    return copy.copy(t)
        return None

    def findAllOpenLoans(self) -> List[Transaction]:
        return self._select(lambda t: t.type is TransactionType.BORROW and t.is_open())
