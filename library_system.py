from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from config import LendingConfig
from exceptions import (
    BookAlreadyBorrowedError,
    BookNotBorrowedError,
    BookNotFoundError,
    InvalidArgumentError,
    MemberNotFoundError,
    NoCopiesAvailableError,
    OperationFailedError,
)
from locks import KeyedLocks
from models import Author, Book, IdFactory, Member, Transaction, TransactionType, new_id
from search import SearchField, search_books
from stores import BookStore, MemberStore, TransactionStore, _blank


# Logging configuration
logger = logging.getLogger("library")
logger.setLevel(logging.INFO)

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


LateReturnListener = Callable[[Transaction, Book], None]


def log_late_return(transaction: Transaction, book: Book) -> None:
    """
    Default late-return notification.
    """
    logger.warning(
        "Book returned LATE | isbn=%s title=%s memberId=%s due=%s returned=%s",
        book.isbn,
        book.title,
        transaction.memberId,
        transaction.dueDate,
        transaction.returnedAt,
    )


# Lending Core
class LendingService:
    """
    Lending engine over the book, member and transaction stores.

    Rules enforced:
        (1) A member holds at most one open loan per ISBN
        (2) A book can only be borrowed while availableCopies > 0
        (3) Books are due loanPeriodDays (default 14) after the borrow date
        (4) A loan is overdue while open and past its due date

    Borrow, return, add and remove for the same ISBN run one at a time, so the
    copy count and the open loans for a book always agree.
    """

    def __init__(
        self,
        books: BookStore,
        members: MemberStore,
        transactions: TransactionStore,
        config: Optional[LendingConfig] = None,
        id_factory: Optional[IdFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
        late_return_listener: Optional[LateReturnListener] = None,
    ) -> None:
        if books is None or members is None or transactions is None:
            raise InvalidArgumentError("book, member and transaction stores are required")
        self.books = books
        self.members = members
        self.transactions = transactions
        self.config = config or LendingConfig()
        self._new_id = id_factory or new_id
        self._now = clock or datetime.now
        self._on_late_return = late_return_listener or log_late_return
        self._isbn_locks = KeyedLocks()
        self._member_locks = KeyedLocks()

    # Catalog

    def addBook(
        self,
        title: str,
        authorFirstName: str,
        authorLastName: str,
        isbn: str,
        genre: str,
        publicationYear: Optional[int],
        initialCopies: int,
    ) -> Book:
        """
        Adds a book, or replaces the existing entry with the same ISBN.

        Raises:
            InvalidArgumentError: If isbn, title or author names are empty,
                or initialCopies is negative.
        """
        logger.info("addBook called | isbn=%s title=%s", isbn, title)

        if _blank(isbn):
            raise InvalidArgumentError("isbn cannot be empty")

        book = Book(
            isbn=isbn,
            title=title,
            author=Author(authorFirstName, authorLastName),
            genre=genre,
            publicationYear=publicationYear,
            availableCopies=initialCopies,
        )
        with self._isbn_locks.hold(isbn):
            saved = self.books.save(book)
        logger.info("Book added successfully | isbn=%s copies=%d", isbn, saved.availableCopies)
        return saved

    def findBookByIsbn(self, isbn: Optional[str]) -> Optional[Book]:
        if _blank(isbn):
            logger.warning("findBookByIsbn called with empty isbn")
            return None
        return self.books.findByIsbn(isbn)

    def getAllBooks(self) -> List[Book]:
        return self.books.findAll()

    def removeBookByIsbn(self, isbn: Optional[str]) -> bool:
        """
        Returns False when the ISBN is empty or not in the catalog.
        """
        if _blank(isbn):
            logger.warning("removeBookByIsbn called with empty isbn")
            return False
        with self._isbn_locks.hold(isbn):
            removed = self.books.deleteByIsbn(isbn)
        logger.info("removeBookByIsbn | isbn=%s removed=%s", isbn, removed)
        return removed

    # Members

    def registerMember(self, name: str, contactInfo: Optional[str] = None) -> Member:
        """
        Registers a new member under a freshly generated memberId.

        Raises:
            InvalidArgumentError: If name is empty.
        """
        member = Member(memberId=self._new_id(), name=name, contactInfo=contactInfo)
        logger.info("registerMember called | memberId=%s name=%s", member.memberId, name)
        return self.members.save(member)

    def updateMember(
        self,
        memberId: str,
        name: Optional[str] = None,
        contactInfo: Optional[str] = None,
    ) -> Member:
        """
        Changes a member's name and/or contact info. memberId never changes.

        Raises:
            MemberNotFoundError
            InvalidArgumentError: If the new name is empty.
        """
        with self._member_locks.hold(memberId):
            member = self._get_member(memberId)
            if name is not None:
                member.rename(name)
            if contactInfo is not None:
                member.contactInfo = contactInfo
            saved = self.members.save(member)
        logger.info("Member updated | memberId=%s", memberId)
        return saved

    def findMemberById(self, memberId: Optional[str]) -> Optional[Member]:
        if _blank(memberId):
            logger.warning("findMemberById called with empty memberId")
            return None
        return self.members.findById(memberId)

    def getAllMembers(self) -> List[Member]:
        return self.members.findAll()

    # Lending

    def borrowBook(self, memberId: str, isbn: str) -> None:
        """
        Lends one copy of a book to a member.

        Raises:
            MemberNotFoundError
            BookNotFoundError
            BookAlreadyBorrowedError: Member already has this ISBN on loan.
            NoCopiesAvailableError
            OperationFailedError: A store write failed part-way through.
        """
        logger.info("borrowBook called | memberId=%s isbn=%s", memberId, isbn)

        with self._isbn_locks.hold(isbn):
            member = self._get_member(memberId)
            book = self._get_book(isbn)

            if self.transactions.findOpenLoan(memberId, isbn) is not None:
                logger.warning(
                    "Borrow refused, open loan exists | memberId=%s isbn=%s", memberId, isbn
                )
                raise BookAlreadyBorrowedError(
                    f"Member {member.name} has already borrowed book '{book.title}'."
                )

            if book.availableCopies <= 0:
                logger.warning("Borrow refused, no copies | isbn=%s", isbn)
                raise NoCopiesAvailableError(f"No copies available for book: {book.title}")

            now = self._now()
            due_date = now.date() + timedelta(days=self.config.loanPeriodDays)
            decremented = False
            try:
                book = self.books.adjustCopies(isbn, -1)
                decremented = True
                loan = Transaction(
                    transactionId=self._new_id(),
                    bookIsbn=isbn,
                    memberId=memberId,
                    type=TransactionType.BORROW,
                    createdAt=now,
                    dueDate=due_date,
                )
                self.transactions.save(loan)
            except Exception as e:
                logger.exception(
                    "Borrow failed unexpectedly | memberId=%s isbn=%s", memberId, isbn
                )
                if decremented:
                    self._compensate(isbn, +1)
                raise OperationFailedError(
                    f"Failed to complete borrow operation for book {isbn}"
                ) from e

        logger.info(
            "Borrow successful | memberId=%s isbn=%s due=%s remaining=%d",
            memberId, isbn, due_date, book.availableCopies,
        )

    def returnBook(self, memberId: str, isbn: str) -> None:
        """
        Closes the member's open loan for a book and puts the copy back.

        A return after the due date is still accepted; it is reported to the
        late-return listener.

        Raises:
            MemberNotFoundError
            BookNotFoundError: The book is no longer in the catalog.
            BookNotBorrowedError: No open loan for (memberId, isbn).
            OperationFailedError: A store write failed part-way through.
        """
        logger.info("returnBook called | memberId=%s isbn=%s", memberId, isbn)

        with self._isbn_locks.hold(isbn):
            self._get_member(memberId)
            book = self._get_book(isbn)

            loan = self.transactions.findOpenLoan(memberId, isbn)
            if loan is None:
                logger.warning(
                    "Return refused, no open loan | memberId=%s isbn=%s", memberId, isbn
                )
                raise BookNotBorrowedError(
                    f"Book '{book.title}' is not borrowed by member {memberId} or was already returned."
                )

            now = self._now()
            late = loan.is_overdue(now.date())
            incremented = False
            try:
                book = self.books.adjustCopies(isbn, +1)
                incremented = True
                loan.returnedAt = now
                self.transactions.save(loan)
            except Exception as e:
                logger.exception(
                    "Return failed unexpectedly | memberId=%s isbn=%s", memberId, isbn
                )
                if incremented:
                    self._compensate(isbn, -1)
                raise OperationFailedError(
                    f"Failed to complete return operation for book {isbn}"
                ) from e

        logger.info("Return successful | memberId=%s isbn=%s late=%s", memberId, isbn, late)
        if late:
            try:
                self._on_late_return(loan, book)
            except Exception:
                logger.exception(
                    "Late-return notification failed | memberId=%s isbn=%s", memberId, isbn
                )

    def getBorrowedBooksByMember(self, memberId: str) -> List[Transaction]:
        """
        Open loans of one member.

        Raises:
            MemberNotFoundError
        """
        self._get_member(memberId)
        return [
            t for t in self.transactions.findByMember(memberId)
            if t.type is TransactionType.BORROW and t.is_open()
        ]

    def getMemberHistory(self, memberId: str) -> List[Transaction]:
        """
        Every transaction of one member, open and closed, oldest first.
        """
        self._get_member(memberId)
        return self.transactions.findByMember(memberId)

    def getAllOverdueBooks(self) -> List[Transaction]:
        today = self._now().date()
        return [t for t in self.transactions.findAllOpenLoans() if t.is_overdue(today)]

    # Search

    def searchBooksByTitle(self, query: Optional[str]) -> List[Book]:
        return self._search(SearchField.TITLE, query)

    def searchBooksByAuthor(self, query: Optional[str]) -> List[Book]:
        return self._search(SearchField.AUTHOR, query)

    def searchBooksByGenre(self, query: Optional[str]) -> List[Book]:
        return self._search(SearchField.GENRE, query)

    # Internal Helpers

    def _search(self, field: SearchField, query: Optional[str]) -> List[Book]:
        logger.debug("Searching books | field=%s query=%r", field.value, query)
        return search_books(self.books.findAll(), field, query)

    def _get_book(self, isbn: str) -> Book:
        """
        Retrieves a book by ISBN or raises BookNotFoundError.
        """
        book = self.books.findByIsbn(isbn)
        if book is None:
            raise BookNotFoundError(f"Book not found: isbn={isbn}")
        return book

    def _get_member(self, memberId: str) -> Member:
        """
        Retrieves a member by ID or raises MemberNotFoundError.
        """
        member = self.members.findById(memberId)
        if member is None:
            raise MemberNotFoundError(f"Member not found: memberId={memberId}")
        return member

    def _compensate(self, isbn: str, delta: int) -> None:
        if not self.config.compensateFailedWrites:
            logger.error(
                "Copy count left unreconciled | isbn=%s pending_delta=%d", isbn, delta
            )
            return
        try:
            self.books.adjustCopies(isbn, delta)
            logger.warning("Copy count restored | isbn=%s delta=%d", isbn, delta)
        except Exception:
            logger.exception("Copy count restore failed | isbn=%s delta=%d", isbn, delta)
