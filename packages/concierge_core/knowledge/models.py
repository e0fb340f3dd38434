"""Knowledge-source documents: property fact sheets, FAQ entries and guest context."""

import re
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_FAQ_TEXT_LENGTH = 2000
MAX_FAQ_LABEL_LENGTH = 100

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _clean_optional(v: Any) -> Optional[str]:
    if v is None:
        return None
    text = str(v).strip()
    return text or None


class Listing(BaseModel):
    """Structured fact sheet for a rentable property."""

    id: str = Field(..., description="Listing map ID")
    name: Optional[str] = None
    address: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    wifi_username: Optional[str] = None
    wifi_password: Optional[str] = None
    door_code: Optional[str] = None
    key_pickup: Optional[str] = None
    special_instructions: Optional[str] = None
    house_rules: Optional[str] = None
    amenities: List[str] = Field(default_factory=list)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        """Store listing ids as strings."""
        if v is None or not str(v).strip():
            raise ValueError("Listing id is required")
        return str(v).strip()

    @field_validator(
        "name",
        "address",
        "check_in_time",
        "check_out_time",
        "wifi_username",
        "special_instructions",
        "house_rules",
        "contact_name",
        "contact_phone",
        "key_pickup",
        mode="before",
    )
    @classmethod
    def validate_text(cls, v: Any) -> Optional[str]:
        """Trim text facts; blank values become None."""
        return _clean_optional(v)

    @field_validator("wifi_password", "door_code", mode="before")
    @classmethod
    def validate_secret(cls, v: Any) -> Optional[str]:
        """Keep secrets verbatim, only dropping empty values."""
        if v is None or str(v) == "":
            return None
        return str(v)

    @field_validator("amenities", mode="before")
    @classmethod
    def validate_amenities(cls, v: Any) -> List[str]:
        """Drop blank amenities."""
        if not v:
            return []
        return [str(item).strip() for item in v if item is not None and str(item).strip()]

    @field_validator("contact_email", mode="before")
    @classmethod
    def validate_contact_email(cls, v: Any) -> Optional[str]:
        """Invalid e-mail addresses are dropped rather than rejected."""
        email = _clean_optional(v)
        if email is None or not EMAIL_PATTERN.match(email):
            return None
        return email.lower()


class FAQEntry(BaseModel):
    """Curated question/answer pair not tied to a listing."""

    id: Optional[str] = None
    question: str
    answer: str
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("question", "answer", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> str:
        """Validate required text and cap its length."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("must be a non-empty string")
        return v.strip()[:MAX_FAQ_TEXT_LENGTH]

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> Optional[str]:
        """Trim and cap the category label."""
        text = _clean_optional(v)
        return text[:MAX_FAQ_LABEL_LENGTH] if text else None

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> List[str]:
        """Trim tags and drop blanks."""
        if not v:
            return []
        return [str(tag).strip()[:MAX_FAQ_LABEL_LENGTH] for tag in v if tag and str(tag).strip()]


class GuestContext(BaseModel):
    """Reservation context supplied with an inbound message."""

    guest_name: Optional[str] = None
    listing_name: Optional[str] = None
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    number_of_guests: Optional[int] = None

    def is_empty(self) -> bool:
        """Whether no context field is set."""
        return all(value is None for value in self.model_dump().values())
