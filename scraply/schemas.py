from datetime import date, datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field
from pydantic.alias_generators import to_camel

Role = Literal["user", "admin"]
BookingStatus = Literal["pending", "in-progress", "completed"]
PageTag = Literal["home", "recycle", "facilities", "education", "all"]

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for every payload: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ----- Envelopes -----
class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class MessageOut(BaseModel):
    success: bool = True
    message: str


# ----- Users -----
class UserBase(CamelModel):
    username: str = Field(min_length=1)
    full_name: str
    phone_number: str
    email: EmailStr
    photo: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(min_length=1)


class AdminUserCreate(UserCreate):
    role: Role = "user"


class UserUpdate(CamelModel):
    username: Optional[str] = Field(default=None, min_length=1)
    full_name: Optional[str] = Field(default=None, min_length=1)
    phone_number: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    photo: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=1)
    role: Optional[Role] = None


class UserOut(UserBase):
    id: int
    role: Role
    created_at: datetime
    updated_at: datetime

    # older clients read the lower-case spelling
    @computed_field
    @property
    def fullname(self) -> str:
        return self.full_name or ""


# ----- Auth -----
class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class LoginOut(UserOut):
    token: str


class TokenData(BaseModel):
    user_id: Optional[int] = None
    role: Optional[str] = None


# ----- Bookings -----
class BookingCreate(CamelModel):
    user_email: Optional[str] = None
    recycle_item: str
    recycle_item_price: float = Field(ge=0)
    facility: Optional[str] = None
    pickup_date: date
    pickup_time: str
    full_name: str
    address: str
    phone: str


class BookingStatusUpdate(CamelModel):
    book_status: BookingStatus


class BookingOut(BookingCreate):
    id: int
    user_id: Optional[int] = None
    book_status: BookingStatus
    book_status_at: Optional[datetime] = None
    book_status_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ----- Facilities -----
class FacilityCreate(CamelModel):
    name: str
    capacity: str
    lon: float = Field(ge=-180, le=180)
    lat: float = Field(ge=-90, le=90)
    contact: str
    time: str


class FacilityOut(FacilityCreate):
    id: int
    verified: bool


# ----- Blogs -----
class CommentCreate(CamelModel):
    comment: str = Field(min_length=1)


class CommentOut(CamelModel):
    username: str
    comment: str
    created_at: datetime


class BlogCreate(CamelModel):
    title: str
    content: str
    author: str
    photo: Optional[str] = None
    featured: bool = False


class BlogOut(BlogCreate):
    id: int
    comments: List[CommentOut] = []
    created_at: datetime
    updated_at: datetime


# ----- Popups -----
class PopupBase(CamelModel):
    title: str = Field(min_length=1)
    content: str
    detail_content: str = ""
    is_active: bool = True
    frequency: int = Field(default=24, ge=1, le=168)
    priority: int = Field(default=1, ge=1, le=10)
    target_pages: List[PageTag] = Field(default_factory=lambda: ["all"], min_length=1)


class PopupCreate(PopupBase):
    pass


class PopupUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    detail_content: Optional[str] = None
    is_active: Optional[bool] = None
    frequency: Optional[int] = Field(default=None, ge=1, le=168)
    priority: Optional[int] = Field(default=None, ge=1, le=10)
    target_pages: Optional[List[PageTag]] = Field(default=None, min_length=1)


class PopupOut(PopupBase):
    id: int
    view_count: int
    click_count: int
    created_at: datetime
    updated_at: datetime


# ----- Chat assistant -----
class ChatRequest(CamelModel):
    message: Optional[str] = None


class ChatReply(CamelModel):
    reply: str


# ----- Price prediction -----
class PredictionRequest(CamelModel):
    category: str
    brand: str
    condition: str
    body_type: str
    original_price: float = Field(gt=0)
    recycle_possible: bool = True
    reuse_possible: bool = False
    age_years: float = Field(default=0, ge=0)
    running: bool = True


class PredictionOut(CamelModel):
    predicted_price: int


class ServiceStatus(CamelModel):
    status: Literal["online", "offline"]
