"""
Book model for the Library Circulation MCP Server.

A book is the unit of circulation: exactly one physical copy per ISBN in a
given library. Books are exposed through resources such as:
- library://items/available
- library://items/{item_id}/status

Kinds of book (fiction, reference, ...) are a plain ``category`` field; they
only label the record and do not change how it circulates.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookCategory(str, Enum):
    """Shelf category of a book."""

    FICTION = "fiction"
    NON_FICTION = "non_fiction"
    REFERENCE = "reference"
    GENERAL = "general"


class Book(BaseModel):
    """
    Represents a book in a library catalog.

    The ISBN doubles as the item identifier used by the circulation core,
    so it is treated as an opaque key: any non-blank string is accepted and
    hyphens are kept as given.
    """

    isbn: str = Field(
        ...,
        description="Item identifier, usually an ISBN",
        min_length=1,
        max_length=64,
        examples=["9780134685479", "978-0-06-112008-4"],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["The Great Gatsby", "To Kill a Mockingbird"],
    )

    author: str = Field(
        ...,
        description="Author display name",
        min_length=1,
        max_length=200,
        examples=["F. Scott Fitzgerald", "Harper Lee"],
    )

    publication_year: int | None = Field(
        None,
        description="Year the book was published",
        ge=1450,
        le=datetime.now().year + 1,
        examples=[1925, 1960, 2023],
    )

    category: BookCategory = Field(
        default=BookCategory.GENERAL,
        description="Shelf category used for labeling",
    )

    @field_validator("isbn", "title", "author")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        """Whitespace-only strings are not valid keys or labels."""
        if not v.strip():
            raise ValueError("Value cannot be blank")
        return v

    def __str__(self) -> str:
        return f"{self.title} by {self.author} ({self.isbn})"

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "isbn": "9780743273565",
                "title": "The Great Gatsby",
                "author": "F. Scott Fitzgerald",
                "publication_year": 1925,
                "category": "fiction",
            }
        },
    )
