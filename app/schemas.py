from datetime import datetime
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
)
from typing import Annotated, List, Optional

# Surrounding whitespace is stripped before the length check, so a blank
# value fails min_length.
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]


class UserCreate(BaseModel):
    """Payload for registering a new user."""

    first_name: Name
    last_name: Name
    phone: Phone
    email: EmailStr
    password: str = Field(min_length=6)
    emails: List[EmailStr] = Field(default_factory=list)


class UserUpdate(BaseModel):
    """Payload for updating a user (all fields optional).

    Absent fields are left untouched. A field that is sent must carry a
    valid value; ``null`` is rejected. ``emails`` replaces the whole set of
    secondary addresses when present, even as an empty list.
    """

    first_name: Optional[Name] = None
    last_name: Optional[Name] = None
    phone: Optional[Phone] = None
    email: Optional[EmailStr] = None
    emails: Optional[List[EmailStr]] = None

    @field_validator("first_name", "last_name", "phone", "email", "emails", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("The field may not be null")
        return value

    def field_changes(self) -> dict:
        """Return the supplied identity fields, without ``emails``."""
        return self.model_dump(exclude_unset=True, exclude={"emails"})

    @property
    def replaces_emails(self) -> bool:
        """``True`` when the secondary address set should be replaced."""
        return "emails" in self.model_fields_set


class UserEmailOut(BaseModel):
    """Secondary address as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    email: str


class UserOut(BaseModel):
    """Response schema for user data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    display_name: str
    phone: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    emails: List[UserEmailOut] = []


class UserResponse(BaseModel):
    """Success envelope around a single user."""

    success: bool = True
    message: Optional[str] = None
    data: UserOut


class UserListResponse(BaseModel):
    """Success envelope around a list of users."""

    success: bool = True
    data: List[UserOut]


class MessageResponse(BaseModel):
    """Success envelope without payload."""

    success: bool = True
    message: str


class NotificationResponse(MessageResponse):
    """Result of sending welcome emails to every address of a user."""

    emails_sent: int
    emails_failed: int = 0
