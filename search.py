from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional

from models import Book


class SearchField(Enum):
    """
    Which part of a book a query is matched against.
    """
    TITLE = "title"
    AUTHOR = "author"
    GENRE = "genre"

    def text_of(self, book: Book) -> str:
        if self is SearchField.TITLE:
            return book.title
        if self is SearchField.AUTHOR:
            return book.author.fullName
        return book.genre or ""

    def matches(self, book: Book, query: str) -> bool:
        """
        Case-insensitive substring match of query against this field.
        """
        return query.lower() in self.text_of(book).lower()


def search_books(books: Iterable[Book], field: SearchField, query: Optional[str]) -> List[Book]:
    """
    Filters books by field. An empty or blank query returns every book.
    """
    books = list(books)
    if query is None or not query.strip():
        return books
    return [b for b in books if field.matches(b, query)]
