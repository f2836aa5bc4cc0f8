"""
Member model for the Library Circulation MCP Server.

A member (patron) is anyone entitled to borrow. The circulation core only
needs the identifier; name and email are carried for notifications and
display. Borrowing history lives in the catalog.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Member(BaseModel):
    """Represents a library member who can borrow and reserve books."""

    member_id: str = Field(
        ...,
        description="Unique identifier for the member",
        min_length=1,
        max_length=64,
        examples=["M001", "patron_smith001"],
    )

    name: str = Field(
        ...,
        description="Full name of the member",
        min_length=1,
        max_length=200,
        examples=["John Smith", "Jane Doe"],
    )

    email: EmailStr | None = Field(
        None,
        description="Email address for availability notifications",
        examples=["john.smith@example.com"],
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp when the member was registered",
    )

    @field_validator("member_id", "name")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be blank")
        return v

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "member_id": "M001",
                "name": "John Smith",
                "email": "john.smith@example.com",
            }
        },
    )
