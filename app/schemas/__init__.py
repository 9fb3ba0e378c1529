from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Type, TypeVar
from datetime import datetime, timezone
from enum import Enum
from app.core.exceptions import ValidationError
from app.db.models.user import RoleEnum

ModelT = TypeVar("ModelT", bound=BaseModel)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an instant to UTC; naive values are taken to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path", "header")), "message": err["msg"]}
        for err in exc.errors()
    ]


def parse_schema(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """
    Validate raw boundary input against a schema.

    Keys that are None are dropped so schema defaults apply.

    Raises:
        ValidationError: With one entry per failing field
    """
    try:
        return model.model_validate({k: v for k, v in data.items() if v is not None})
    except PydanticValidationError as e:
        raise ValidationError("Validation failed", errors=format_errors(e))


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class EventSortField(str, Enum):
    title = "title"
    start_date = "startDate"
    end_date = "endDate"
    total_guests = "totalGuests"
    category = "category"
    created_at = "createdAt"


class SortOrder(str, Enum):
    asc = "ASC"
    desc = "DESC"


# Auth / users

class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(min_length=1)


class LoginRequest(CamelModel):
    """Either the username or the email goes in the username slot."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserSummary(CamelModel):
    id: int
    username: str
    email: str


class AuthResponse(CamelModel):
    access_token: str
    user: UserSummary


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: RoleEnum = RoleEnum.user
    is_active: bool = False


class UserUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class MessageResponse(CamelModel):
    message: str


# Events

class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    total_guests: int = Field(ge=1)
    category: str = Field(min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    images: List[str] = Field(default_factory=list)

    @field_validator("title", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("start_date", "end_date")
    @classmethod
    def normalise_dates(cls, v: datetime) -> datetime:
        return to_utc(v)


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_guests: Optional[int] = Field(None, ge=1)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalise_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)


class EventOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    total_guests: int
    category: str
    location: Optional[str] = None
    price: Optional[float] = None
    images: List[str] = Field(default_factory=list)
    user_id: int
    user: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def attach_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)


class EventFilter(CamelModel):
    search: Optional[str] = None
    category: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_guests: Optional[int] = Field(None, ge=1)
    max_guests: Optional[int] = Field(None, ge=1)
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: EventSortField = EventSortField.start_date
    sort_order: SortOrder = SortOrder.asc

    @field_validator("sort_order", mode="before")
    @classmethod
    def upper_sort_order(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("start_date", "end_date")
    @classmethod
    def normalise_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)


class EventListResponse(CamelModel):
    events: List[EventOut]
    total: int
    page: int
    limit: int


# Uploads

class UploadedFileOut(CamelModel):
    filename: str
    url: str


class UploadResponse(CamelModel):
    files: List[UploadedFileOut]
    message: str = "Files uploaded successfully"
