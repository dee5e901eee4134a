"""
Request/response shapes exchanged with the backend, as Pydantic models.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ExpenseCategory = Literal["seva", "naamdaan"]


class ApiModel(BaseModel):
    """Base for backend shapes; unknown fields are kept as-is."""

    model_config = ConfigDict(extra="allow")


# Authentication


class LoginInitRequest(BaseModel):
    username: str  # email
    password: str


class LoginInitResponse(ApiModel):
    msg: str = ""


class VerifyOtpRequest(BaseModel):
    email: str
    code: str


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"


class User(ApiModel):
    email: str
    name: str = ""


class MessageResponse(ApiModel):
    msg: str = ""


class Constants(ApiModel):
    """Dynamic option lists served by /general/constants."""

    coordinator_name: str = ""
    driver_name: str = ""
    status: list[str] = Field(default_factory=list)
    assigned_bhagat: list[str] = Field(default_factory=list)


# Book Seva


class BookSeva(ApiModel):
    """Book distribution record."""

    id: str
    date: str
    seva_place: str
    sevadar_name: str
    book_name: str
    book_type: str
    quantity: int
    coordinator_name: str
    driver_name: str
    date_from: str | None = None
    date_to: str | None = None


class BookSevaCreate(BaseModel):
    id: str
    date: str
    seva_place: str
    sevadar_name: str
    book_name: str
    book_type: str
    quantity: int
    coordinator_name: str
    driver_name: str


class BookSevaUpdate(BaseModel):
    date: str | None = None
    seva_place: str | None = None
    sevadar_name: str | None = None
    book_name: str | None = None
    book_type: str | None = None
    quantity: int | None = None
    coordinator_name: str | None = None
    driver_name: str | None = None


# Calling Seva


class CallingSeva(ApiModel):
    """Outreach phone call record."""

    id: str
    date: str
    address: str
    mobile_no: str
    status: str
    assigned_bhagat_name: str
    remarks: str | None = None
    wa_message: str | None = None


class CallingSevaCreate(BaseModel):
    id: str
    date: str
    address: str
    mobile_no: str
    status: str
    assigned_bhagat_name: str
    remarks: str | None = None
    wa_message: str | None = None


class CallingSevaUpdate(BaseModel):
    date: str | None = None
    address: str | None = None
    mobile_no: str | None = None
    status: str | None = None
    assigned_bhagat_name: str | None = None
    remarks: str | None = None
    wa_message: str | None = None


# Expenses


class Expense(ApiModel):
    """Expense line item."""

    id: str
    date: str
    item_name: str
    item_price: float
    quantity: int
    total_amount: float
    category: str


class ExpenseCreate(BaseModel):
    id: str
    date: str
    item_name: str
    item_price: float
    quantity: int
    total_amount: float
    category: ExpenseCategory


class ExpenseUpdate(BaseModel):
    date: str | None = None
    item_name: str | None = None
    item_price: float | None = None
    quantity: int | None = None
    total_amount: float | None = None
    category: ExpenseCategory | None = None
