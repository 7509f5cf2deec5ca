"""
Interactive text menu for the lending engine.

The menu only talks to LendingService and reacts to failures by exception
type. Input and output functions are injectable so the loop can be driven
from tests.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from config import LendingConfig, parse_config
from exceptions import (
    BookAlreadyBorrowedError,
    BookNotBorrowedError,
    BookNotFoundError,
    InvalidArgumentError,
    LibraryError,
    MemberNotFoundError,
    NoCopiesAvailableError,
    OperationFailedError,
)
from library_system import LendingService, logger as library_logger
from models import Book, Member, Transaction
from stores import BookStore, MemberStore, TransactionStore


logger = logging.getLogger("library.cli")

MENU = """
Library Menu:
--- Book Management ---
1. Add Book
2. Find Book by ISBN
3. List All Books
4. Remove Book by ISBN
--- Member Management ---
5. Register Member
6. Find Member by ID
7. List All Members
--- Library Operations ---
8. Borrow Book
9. Return Book
10. List Member's Borrowed Books
11. List Overdue Loans
--- Search ---
12. Search by Title
13. Search by Author
14. Search by Genre
-----------------------
0. Exit"""


def format_book(b: Book) -> str:
    year = b.publicationYear if b.publicationYear is not None else "-"
    return (
        f"{b.isbn} | {b.title} | {b.author.fullName} | {b.genre or '-'} | "
        f"{year} | copies={b.availableCopies}"
    )


def format_member(m: Member) -> str:
    return f"{m.memberId} | {m.name} | {m.contactInfo or '-'}"


def format_loan(t: Transaction) -> str:
    status = "OPEN" if t.is_open() else f"RETURNED {t.returnedAt:%Y-%m-%d}"
    return f"{t.transactionId} | isbn={t.bookIsbn} | member={t.memberId} | due={t.dueDate} | {status}"


class LibraryMenu:
    """Numbered-menu front end over a LendingService."""

    def __init__(
        self,
        service: LendingService,
        input_fn: Optional[Callable[[str], str]] = None,
        output_fn: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.service = service
        self._input = input_fn or input
        self._print = output_fn or print
        self._actions = {
            1: self.add_book,
            2: self.find_book,
            3: self.list_books,
            4: self.remove_book,
            5: self.register_member,
            6: self.find_member,
            7: self.list_members,
            8: self.borrow_book,
            9: self.return_book,
            10: self.list_borrowed,
            11: self.list_overdue,
            12: lambda: self.search(self.service.searchBooksByTitle, "Title"),
            13: lambda: self.search(self.service.searchBooksByAuthor, "Author"),
            14: lambda: self.search(self.service.searchBooksByGenre, "Genre"),
        }

    def run(self) -> None:
        logger.info("Library menu started")
        while True:
            self._print(MENU)
            try:
                raw = self._input("Enter your choice: ")
            except EOFError:
                break
            if not raw.strip():
                self._print("No input provided. Please enter a number.")
                continue
            try:
                choice = int(raw)
            except ValueError:
                self._print("Invalid input. Please enter a number.")
                logger.warning("Invalid menu input | raw=%r", raw)
                continue
            if choice == 0:
                break
            action = self._actions.get(choice)
            if action is None:
                self._print("Invalid choice. Please try again.")
                continue
            self._dispatch(action)
        self._print("Exiting Library Management System. Goodbye!")
        logger.info("Library menu stopped")

    def _dispatch(self, action: Callable[[], None]) -> None:
        try:
            action()
        except InvalidArgumentError as e:
            self._print(f"Invalid input: {e}")
        except (MemberNotFoundError, BookNotFoundError) as e:
            self._print(f"Not found: {e}")
        except (BookAlreadyBorrowedError, NoCopiesAvailableError, BookNotBorrowedError) as e:
            self._print(f"Not allowed: {e}")
        except OperationFailedError as e:
            self._print(f"Operation failed, manual check required: {e}")
        except LibraryError as e:
            self._print(f"Error: {e}")

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _ask_int(self, prompt: str, name: str, optional: bool = False) -> Optional[int]:
        raw = self._ask(prompt)
        if not raw and optional:
            return None
        try:
            return int(raw)
        except ValueError:
            raise InvalidArgumentError(f"{name} must be a whole number (got {raw!r})") from None

    def _show(self, rows: Iterable[str], empty: str) -> None:
        rows = list(rows)
        if not rows:
            self._print(empty)
            return
        for row in rows:
            self._print(f"  {row}")

    # Book actions
    def add_book(self) -> None:
        title = self._ask("Enter title: ")
        first = self._ask("Enter author first name: ")
        last = self._ask("Enter author last name: ")
        isbn = self._ask("Enter ISBN: ")
        genre = self._ask("Enter genre: ")
        year = self._ask_int("Enter publication year (YYYY): ", "publication year", optional=True)
        copies = self._ask_int("Enter number of copies: ", "number of copies")
        book = self.service.addBook(title, first, last, isbn, genre, year, copies)
        self._print(f"Book added successfully: {book.title}")

    def find_book(self) -> None:
        isbn = self._ask("Enter ISBN to find: ")
        book = self.service.findBookByIsbn(isbn)
        if book is None:
            self._print(f"Book with ISBN {isbn} not found.")
        else:
            self._print(f"Book found: {format_book(book)}")

    def list_books(self) -> None:
        self._show(map(format_book, self.service.getAllBooks()), "No books in the library.")

    def remove_book(self) -> None:
        isbn = self._ask("Enter ISBN of the book to remove: ")
        if self.service.removeBookByIsbn(isbn):
            self._print(f"Book with ISBN {isbn} removed successfully.")
        else:
            self._print(f"Could not remove book with ISBN {isbn}. It might not exist.")

    # Member actions
    def register_member(self) -> None:
        name = self._ask("Enter member name: ")
        contact = self._ask("Enter member contact info (e.g., email): ") or None
        member = self.service.registerMember(name, contact)
        self._print(f"Member registered successfully! Name: {member.name}, ID: {member.memberId}")

    def find_member(self) -> None:
        memberId = self._ask("Enter member ID to find: ")
        member = self.service.findMemberById(memberId)
        if member is None:
            self._print(f"Member with ID {memberId} not found.")
        else:
            self._print(f"Member found: {format_member(member)}")

    def list_members(self) -> None:
        self._show(
            map(format_member, self.service.getAllMembers()),
            "No members registered in the library.",
        )

    # Lending actions
    def borrow_book(self) -> None:
        memberId = self._ask("Enter Member ID: ")
        isbn = self._ask("Enter Book ISBN to borrow: ")
        self.service.borrowBook(memberId, isbn)
        self._print(f"Book (ISBN: {isbn}) successfully borrowed by member (ID: {memberId}).")

    def return_book(self) -> None:
        memberId = self._ask("Enter Member ID: ")
        isbn = self._ask("Enter Book ISBN to return: ")
        self.service.returnBook(memberId, isbn)
        self._print(f"Book (ISBN: {isbn}) returned by member (ID: {memberId}).")

    def list_borrowed(self) -> None:
        memberId = self._ask("Enter Member ID: ")
        loans = self.service.getBorrowedBooksByMember(memberId)
        self._show(map(format_loan, loans), "This member has no books on loan.")

    def list_overdue(self) -> None:
        self._show(map(format_loan, self.service.getAllOverdueBooks()), "No overdue loans.")

    def search(self, finder: Callable[[str], List[Book]], label: str) -> None:
        query = self._ask(f"Enter {label.lower()} to search for: ")
        self._show(map(format_book, finder(query)), f"No books match {label.lower()} {query!r}.")


def build_service(config: Optional[LendingConfig] = None) -> LendingService:
    return LendingService(BookStore(), MemberStore(), TransactionStore(), config=config)


# CLI / Main
def main(argv: Optional[Sequence[str]] = None) -> None:
    config = parse_config(argv)
    library_logger.setLevel(config.level)
    logger.info("Starting | loanPeriodDays=%d", config.loanPeriodDays)
    LibraryMenu(build_service(config)).run()


if __name__ == "__main__":
    try:
        main()
    except LibraryError as e:
        library_logger.error("LibraryError bubbled to top-level | %s", e)
        raise
    except Exception as e:
        library_logger.exception("Unhandled fatal error | %s", e)
        raise
