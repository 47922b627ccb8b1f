# users_api/models/user.py
from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional
from datetime import datetime, timezone

# MongoDB ObjectId, exposed on the wire as its 24-hex string
PyObjectId = Annotated[str, BeforeValidator(str)]

PHONE_PATTERN = r"^\(\d{3}\) \d{3}[-\s]\d{4}$"


def _check_email_format(value: str) -> str:
    # Format check only; the submitted string is stored and matched as-is
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}") from e
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email_format)]


# Shape every stored user document must have. Bulk rows are checked against
# this before insert, so no email/phone format rules live here.
class UserBase(BaseModel):
    first_name: str = Field(..., min_length=1, description="User's first name")
    last_name: str = Field(..., min_length=1, description="User's last name")
    email: str = Field(..., min_length=1, description="User's email address (unique)")
    phone: str = Field(..., min_length=1, description="User's phone number (unique)")
    marketing_source: Optional[str] = Field(default=None, description="Where the user came from")
    birth_date: datetime = Field(..., description="User's date of birth")
    status: Optional[str] = Field(default=None, description="Free text status")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Properties required on creation
class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailAddress = Field(...)
    phone: str = Field(..., pattern=PHONE_PATTERN, description="Format: (555) 555-5555")
    marketing_source: Optional[str] = Field(default=None, min_length=1)
    status: Optional[str] = Field(default=None, min_length=1)
    birth_date: datetime = Field(..., description="ISO 8601 date, e.g. 1990-01-01")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "firstName": "Daniel",
                "lastName": "Alanis",
                "email": "dalanis@example.com",
                "phone": "(555) 555-5555",
                "marketingSource": "Facebook",
                "status": "Converted",
                "birthDate": "1990-01-01",
            }
        },
    )


# Partial update: only fields that were sent are applied
class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailAddress] = None
    phone: Optional[str] = Field(default=None, min_length=1)
    marketing_source: Optional[str] = Field(default=None, min_length=1)
    status: Optional[str] = Field(default=None, min_length=1)
    birth_date: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Omitting a required field leaves it alone; sending null for it is an error
    @field_validator("first_name", "last_name", "email", "phone", "birth_date", mode="before")
    @classmethod
    def reject_null_for_required(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


# Storage schema: what the store adapter accepts for insert
class UserDocument(UserBase):
    # Legacy documents have no isDeleted field; they count as not deleted
    is_deleted: bool = Field(default=False, description="Soft delete flag")


# User as read from the DB and returned by the API
class User(UserDocument):
    id: PyObjectId = Field(..., alias="_id", description="Store-assigned identifier")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UploadUsersResponse(BaseModel):
    success_count: int
    failed_count: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
