from datetime import date, datetime, timedelta

import pytest

from exceptions import InvalidArgumentError
from models import Author, Book, Member, Transaction, TransactionType, new_id


TODAY = date(2025, 3, 10)


def borrow(due, returned=None):
    return Transaction(
        transactionId="T1",
        bookIsbn="ISBN123",
        memberId="MEMBER001",
        type=TransactionType.BORROW,
        createdAt=datetime(2025, 3, 1, 12, 0),
        dueDate=due,
        returnedAt=returned,
    )


def test_author_full_name():
    a = Author("Frank", "Herbert")
    assert a.fullName == "Frank Herbert"
    assert str(a) == "Frank Herbert"


@pytest.mark.parametrize("first,last", [("", "Herbert"), ("Frank", "  "), (None, "Herbert")])
def test_author_requires_names(first, last):
    with pytest.raises(InvalidArgumentError):
        Author(first, last)


def test_book_defaults():
    b = Book("ISBN-1", "Dune", Author("Frank", "Herbert"))
    assert b.availableCopies == 0
    assert b.genre == ""
    assert b.publicationYear is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"isbn": ""},
        {"title": " "},
        {"availableCopies": -1},
        {"availableCopies": "3"},
        {"publicationYear": "1965"},
        {"author": "Frank Herbert"},
    ],
)
def test_book_validation(kwargs):
    fields = dict(isbn="ISBN-1", title="Dune", author=Author("Frank", "Herbert"),
                  genre="SciFi", publicationYear=1965, availableCopies=1)
    fields.update(kwargs)
    with pytest.raises(InvalidArgumentError):
        Book(**fields)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        Book("", "Dune", Author("Frank", "Herbert"))


def test_member_rename():
    m = Member("M1", "Alice", "a@x.com")
    m.rename("Alice Smith")
    assert m.name == "Alice Smith"
    with pytest.raises(InvalidArgumentError):
        m.rename("")
    assert m.name == "Alice Smith"


def test_member_requires_name():
    with pytest.raises(InvalidArgumentError):
        Member("M1", "")


def test_new_id_is_unique():
    ids = {new_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(ids)


def test_borrow_requires_due_date():
    with pytest.raises(InvalidArgumentError):
        borrow(None)


def test_open_loan_not_overdue_before_or_on_due_date():
    assert borrow(TODAY + timedelta(days=1)).is_overdue(TODAY) is False
    assert borrow(TODAY).is_overdue(TODAY) is False


def test_open_loan_overdue_after_due_date():
    t = borrow(TODAY - timedelta(days=1))
    assert t.is_open()
    assert t.is_overdue(TODAY) is True


def test_overdue_defaults_to_real_today():
    assert borrow(date.today() - timedelta(days=1)).is_overdue() is True
    assert borrow(date.today() + timedelta(days=14)).is_overdue() is False


def test_returned_loan_never_overdue():
    t = borrow(TODAY - timedelta(days=30))
    t.returnedAt = datetime(2025, 3, 10, 9, 0)
    assert t.is_open() is False
    assert t.is_overdue(TODAY) is False
    assert t.was_returned_late() is True


def test_returned_on_time():
    t = borrow(TODAY, returned=datetime(2025, 3, 10, 18, 0))
    assert t.was_returned_late() is False


def test_return_type_is_never_overdue():
    t = Transaction("T9", "ISBN123", "MEMBER001", TransactionType.RETURN,
                    datetime(2025, 3, 1), dueDate=None)
    assert t.is_overdue(TODAY) is False
