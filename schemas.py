"""
Schemas for the Event Hub dashboard API

Each record model below corresponds to an in-memory collection.
Collection name is the lowercase of the class name (e.g., Event -> "event").

Python attributes are snake_case; JSON on the wire is camelCase. Records
that are listed newest-first carry an `epoch` (seconds since the Unix
epoch) next to their display date, and ordering always uses it.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Records

class User(CamelModel):
    id: str
    username: str = Field(..., description="Unique login name")
    email: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar: Optional[str] = None
    role: str = Field("user", description="user | admin")


class Event(CamelModel):
    id: str
    title: str = Field(..., description="Event name")
    description: Optional[str] = None
    category: str = Field(..., description="music | sports | tech | art | food")
    date: str = Field(..., description="Display date of the event")
    location: Optional[str] = None
    price: int = Field(0, ge=0)
    capacity: int = Field(100, ge=0)
    status: str = Field("active", description="active | upcoming")
    image: Optional[str] = None


class Order(CamelModel):
    id: str
    user_id: str
    event_id: str
    user_name: str
    event_title: str
    amount: int = Field(..., ge=0)
    payment_status: str = Field("pending", description="paid | pending | failed | cancelled")
    event_date: str
    created_at: str
    epoch: float = 0


class Conversation(CamelModel):
    id: str
    participant_name: str
    participant_avatar: Optional[str] = None
    last_message: Optional[str] = None
    last_message_time: Optional[str] = None
    unread: bool = False
    starred: bool = False


class Message(CamelModel):
    id: str
    conversation_id: str
    content: str
    sender_id: str
    timestamp: str
    is_own: bool = False


class Transaction(CamelModel):
    id: str
    user_id: str
    type: str = Field(..., description="credit | debit")
    amount: int = Field(..., ge=0)
    status: str = "completed"
    description: Optional[str] = None
    date: str
    epoch: float = 0


class Ticket(CamelModel):
    id: str
    user_id: str
    subject: str
    message: str
    status: str = Field("open", description="open | in_progress | closed")
    created_at: str
    epoch: float = 0


class Ticketresponse(CamelModel):
    id: str
    ticket_id: str
    message: str
    is_admin: bool = False
    created_at: str
    epoch: float = 0


class Loan(CamelModel):
    id: str
    user_id: str
    amount: int = Field(..., gt=0)
    duration: int = Field(..., gt=0, description="Months")
    purpose: str
    status: str = Field("pending", description="pending | approved | rejected")
    emi: Optional[int] = Field(None, description="Monthly installment computed at creation")
    created_at: str
    epoch: float = 0


class Subscription(CamelModel):
    id: str
    user_id: str
    plan: str = Field(..., description="basic | pro | enterprise")
    price: int = Field(..., ge=0)
    status: str = Field("active", description="active | inactive")
    start_date: str
    end_date: Optional[str] = None
    epoch: float = 0


class Activity(CamelModel):
    id: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_avatar: Optional[str] = None
    action: str
    description: str
    timestamp: str
    epoch: float = 0


# Derived views

class MonthlyRevenue(CamelModel):
    month: str
    revenue: int


class CategoryCount(CamelModel):
    category: str
    count: int
    fill: str


class DashboardStats(CamelModel):
    total_events: int
    active_events: int
    registered_users: int
    total_revenue: int
    monthly_revenue: List[MonthlyRevenue]
    category_breakdown: List[CategoryCount]


class Wallet(CamelModel):
    balance: int
    transactions: List[Transaction]


class EmiQuote(CamelModel):
    amount: float
    duration: int
    interest_rate: float
    emi: int
    total_payment: int
    total_interest: float


class SubscriptionPlan(CamelModel):
    id: str
    name: str
    price: int
    features: List[str]
    recommended: bool = False


# Request bodies

class EventIn(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: str = Field(..., min_length=1)
    date: str
    location: Optional[str] = None
    price: int = Field(0, ge=0)
    capacity: int = Field(100, ge=0)
    status: str = "active"
    image: Optional[str] = None


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1)
    date: Optional[str] = None
    location: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=0)
    status: Optional[str] = None
    image: Optional[str] = None


class ConversationUpdate(CamelModel):
    unread: Optional[bool] = None
    starred: Optional[bool] = None


class MessageIn(CamelModel):
    conversation_id: str
    content: str = Field(..., min_length=1)
    sender_id: str
    timestamp: str
    is_own: bool = False


class TransactionIn(CamelModel):
    user_id: str
    type: Literal["credit", "debit"]
    amount: int = Field(..., gt=0)
    status: str = "completed"
    description: Optional[str] = None
    date: str


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar: Optional[str] = None


class PasswordChange(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.new_password:
            raise ValueError("Passwords do not match")
        return self


class TicketIn(CamelModel):
    subject: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=10, max_length=1000)


class TicketUpdate(CamelModel):
    status: Optional[Literal["open", "in_progress", "closed"]] = None


class TicketResponseIn(CamelModel):
    message: str = Field(..., min_length=1, max_length=1000)


# 50 years; longer terms overflow the installment formula
MAX_LOAN_DURATION = 600


class LoanIn(CamelModel):
    amount: int = Field(..., gt=0)
    duration: int = Field(..., gt=0, le=MAX_LOAN_DURATION, description="Months")
    purpose: str = Field(..., min_length=10)


class SubscriptionIn(CamelModel):
    plan: str
    price: Optional[int] = Field(None, ge=0, description="Defaults to the catalog price")
