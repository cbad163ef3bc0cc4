import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import calculations
from config import settings
from database import InMemoryDatabase, Viewer, SUBSCRIPTION_PLANS, display_date, display_datetime, get_plan, utcnow
from schemas import (
    Activity,
    Conversation,
    ConversationUpdate,
    DashboardStats,
    EmiQuote,
    Event,
    EventIn,
    EventUpdate,
    MAX_LOAN_DURATION,
    LoanIn,
    Loan,
    Message,
    MessageIn,
    Order,
    PasswordChange,
    ProfileUpdate,
    Subscription,
    SubscriptionIn,
    SubscriptionPlan,
    Ticket,
    TicketIn,
    Ticketresponse,
    TicketResponseIn,
    TicketUpdate,
    Transaction,
    TransactionIn,
    User,
    Wallet,
)
from seed import seed_database

logging.basicConfig(
    level=logging.DEBUG if settings.APP_DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_database(seed: bool = True) -> InMemoryDatabase:
    db = InMemoryDatabase()
    if seed:
        seed_database(db, admin_username=settings.ADMIN_USERNAME)
    return db


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} ({settings.APP_ENV})...")
    app.state.db = build_database(seed=settings.SEED_DATA)
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix="/api")


# Errors render as {"error": "..."}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} validation error(s)")
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request data", "details": details})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Dependencies
def get_db(request: Request) -> InMemoryDatabase:
    return request.app.state.db


def get_admin_user(db: InMemoryDatabase = Depends(get_db)) -> dict:
    user = db.get_user_by_username(settings.ADMIN_USERNAME)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def get_viewer(user: dict = Depends(get_admin_user)) -> Viewer:
    return Viewer(user_id=user["id"], name=user.get("name"), is_admin=user.get("role") == "admin")


def record_activity(db: InMemoryDatabase, viewer: Viewer, action: str, description: str):
    db.create_activity({
        "user_id": viewer.user_id,
        "user_name": viewer.name,
        "user_avatar": None,
        "action": action,
        "description": description,
        "timestamp": "Just now",
        "epoch": utcnow().timestamp(),
    })


@app.get("/")
def read_root():
    return {"message": "Event Hub Dashboard Backend Running"}


@app.get("/test")
def test_database(db: InMemoryDatabase = Depends(get_db)):
    response = {
        "backend": "✅ Running",
        "database": "✅ In-memory",
        "database_name": db.name,
        "connection_status": "Connected",
        "collections": {},
    }
    for name in db.list_collection_names():
        response["collections"][name] = db.count(name)
    return response


# Dashboard
@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(db: InMemoryDatabase = Depends(get_db)):
    return calculations.build_dashboard_stats(
        db.get_events(),
        db.get_orders(),
        db.count("user"),
    )


@router.get("/activities", response_model=List[Activity])
def list_activities(db: InMemoryDatabase = Depends(get_db)):
    return db.get_activities()


# Events
@router.get("/events", response_model=List[Event])
def list_events(db: InMemoryDatabase = Depends(get_db)):
    return db.get_events()


@router.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str, db: InMemoryDatabase = Depends(get_db)):
    event = db.get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("/events", response_model=Event)
def create_event(payload: EventIn, db: InMemoryDatabase = Depends(get_db)):
    event = db.create_event(payload.model_dump())
    logger.info(f"Created event {event['id']}: {event['title']}")
    return event


@router.patch("/events/{event_id}", response_model=Event)
def update_event(event_id: str, payload: EventUpdate, db: InMemoryDatabase = Depends(get_db)):
    event = db.update_event(event_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


# Orders
@router.get("/orders", response_model=List[Order])
def list_orders(
    status: Optional[str] = None,
    search: Optional[str] = None,
    db: InMemoryDatabase = Depends(get_db),
):
    return db.get_orders(status=status, search=search)


@router.get("/orders/{order_id}", response_model=Order)
def get_order(order_id: str, db: InMemoryDatabase = Depends(get_db)):
    order = db.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# Conversations & messages
@router.get("/conversations", response_model=List[Conversation])
def list_conversations(
    filter_by: str = Query("all", alias="filter", pattern="^(all|unread|starred)$"),
    db: InMemoryDatabase = Depends(get_db),
):
    return db.get_conversations(filter_by=filter_by)


@router.patch("/conversations/{conversation_id}", response_model=Conversation)
def update_conversation(conversation_id: str, payload: ConversationUpdate, db: InMemoryDatabase = Depends(get_db)):
    conversation = db.update_conversation(conversation_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("/messages/{conversation_id}", response_model=List[Message])
def list_messages(conversation_id: str, db: InMemoryDatabase = Depends(get_db)):
    return db.get_messages(conversation_id)


@router.post("/messages", response_model=Message)
def send_message(payload: MessageIn, db: InMemoryDatabase = Depends(get_db)):
    return db.create_message(payload.model_dump())


# Wallet
@router.get("/wallet", response_model=Wallet)
def get_wallet(viewer: Viewer = Depends(get_viewer), db: InMemoryDatabase = Depends(get_db)):
    transactions = db.get_transactions(viewer)
    balance = calculations.wallet_balance(transactions)
    return {"balance": balance, "transactions": transactions}


@router.post("/wallet/transactions", response_model=Transaction)
def create_transaction(
    payload: TransactionIn,
    viewer: Viewer = Depends(get_viewer),
    db: InMemoryDatabase = Depends(get_db),
):
    data = payload.model_dump()
    data["epoch"] = utcnow().timestamp()
    transaction = db.create_transaction(data)
    logger.info(f"Recorded {transaction['type']} of {transaction['amount']} ({transaction['id']})")
    record_activity(db, viewer, "Wallet", f"recorded a {transaction['type']} of ${transaction['amount']}")
    return transaction


# Profile
@router.get("/user/profile", response_model=User)
def get_profile(user: dict = Depends(get_admin_user)):
    return user


@router.patch("/user/profile", response_model=User)
def update_profile(
    payload: ProfileUpdate,
    user: dict = Depends(get_admin_user),
    db: InMemoryDatabase = Depends(get_db),
):
    updated = db.update_user(user["id"], payload.model_dump(exclude_unset=True, exclude_none=True))
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return updated


@router.post("/user/password")
def change_password(
    payload: PasswordChange,
    user: dict = Depends(get_admin_user),
    db: InMemoryDatabase = Depends(get_db),
):
    if user.get("password") != payload.old_password:
        raise HTTPException(status_code=400, detail="Invalid old password")
    db.update_user(user["id"], {"password": payload.new_password})
    logger.info(f"Password changed for {user['username']}")
    return {"success": True}


# Support tickets
@router.get("/tickets", response_model=List[Ticket])
def list_tickets(viewer: Viewer = Depends(get_viewer), db: InMemoryDatabase = Depends(get_db)):
    return db.get_tickets(viewer)


@router.post("/tickets", response_model=Ticket)
def create_ticket(
    payload: TicketIn,
    viewer: Viewer = Depends(get_viewer),
    db: InMemoryDatabase = Depends(get_db),
):
    now = utcnow()
    ticket = db.create_ticket({
        "user_id": viewer.user_id,
        "subject": payload.subject,
        "message": payload.message,
        "status": "open",
        "created_at": display_datetime(now),
        "epoch": now.timestamp(),
    })
    logger.info(f"Opened ticket {ticket['id']}: {ticket['subject']}")
    record_activity(db, viewer, "Support", f"opened support ticket: {ticket['subject']}")
    return ticket


@router.get("/tickets/{ticket_id}", response_model=Ticket)
def get_ticket(ticket_id: str, viewer: Viewer = Depends(get_viewer), db: InMemoryDatabase = Depends(get_db)):
    ticket = db.get_ticket(ticket_id)
    if not ticket or not viewer.can_see(ticket.get("user_id")):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.patch("/tickets/{ticket_id}", response_model=Ticket)
def update_ticket(
    ticket_id: str,
    payload: TicketUpdate,
    viewer: Viewer = Depends(get_viewer),
    db: InMemoryDatabase = Depends(get_db),
):
    ticket = db.get_ticket(ticket_id)
    if not ticket or not viewer.can_see(ticket.get("user_id")):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return db.update_ticket(ticket_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.get("/tickets/{ticket_id}/responses", response_model=List[Ticketresponse])
def list_ticket_responses(ticket_id: str, db: InMemoryDatabase = Depends(get_db)):
    return db.get_ticket_responses(ticket_id)


@router.post("/tickets/{ticket_id}/responses", response_model=Ticketresponse)
def reply_to_ticket(
    ticket_id: str,
    payload: TicketResponseIn,
    viewer: Viewer = Depends(get_viewer),
    db: InMemoryDatabase = Depends(get_db),
):
    # verify ticket
    if not db.get_ticket(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")

    now = utcnow()
    return db.create_ticket_response({
        "ticket_id": ticket_id,
        "message": payload.message,
        "is_admin": viewer.is_admin,
        "created_at": display_datetime(now),
        "epoch": now.timestamp(),
    })


# Loans
@router.get("/loans", response_model=List[Loan])
def list_loans(viewer: Viewer = Depends(get_viewer), db: InMemoryDatabase = Depends(get_db)):
    return db.get_loans(viewer)


@router.get("/loans/emi", response_model=EmiQuote)
def preview_emi(
    amount: float = Query(..., gt=0),
    duration: int = Query(..., gt=0, le=MAX_LOAN_DURATION),
):
    try:
        return calculations.quote_emi(amount, duration)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/loans", response_model=Loan)
def apply_for_loan(
    payload: LoanIn,
    viewer: Viewer = Depends(get_viewer),
    db: InMemoryDatabase = Depends(get_db),
):
    try:
        emi = calculations.calculate_emi(payload.amount, payload.duration)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    now = utcnow()
    loan = db.create_loan({
        "user_id": viewer.user_id,
        "amount": payload.amount,
        "duration": payload.duration,
        "purpose": payload.purpose,
        "status": "pending",
        "emi": emi,
        "created_at": display_date(now),
        "epoch": now.timestamp(),
    })
    logger.info(f"Loan application {loan['id']}: {loan['amount']} over {loan['duration']} months, emi {emi}")
    record_activity(db, viewer, "Loan", f"applied for a loan of ${loan['amount']}")
    return loan


# Subscriptions
@router.get("/subscriptions", response_model=List[Subscription])
def list_subscriptions(viewer: Viewer = Depends(get_viewer), db: InMemoryDatabase = Depends(get_db)):
    return db.get_subscriptions(viewer)


@router.get("/subscriptions/plans", response_model=List[SubscriptionPlan])
def list_plans():
    return SUBSCRIPTION_PLANS


@router.post("/subscriptions", response_model=Subscription)
def subscribe(
    payload: SubscriptionIn,
    viewer: Viewer = Depends(get_viewer),
    db: InMemoryDatabase = Depends(get_db),
):
    plan = get_plan(payload.plan)
    if not plan:
        raise HTTPException(status_code=400, detail=f"Unknown plan: {payload.plan}")

    now = utcnow()
    subscription = db.create_subscription(viewer, {
        "user_id": viewer.user_id,
        "plan": plan["id"],
        "price": payload.price if payload.price is not None else plan["price"],
        "status": "active",
        "start_date": display_date(now),
        "end_date": None,
        "epoch": now.timestamp(),
    })
    logger.info(f"Subscribed {viewer.user_id} to {plan['id']} ({subscription['id']})")
    record_activity(db, viewer, "Subscription", f"subscribed to the {plan['name']} plan")
    return subscription


app.include_router(router)


# Expose schemas for admin viewer
@app.get("/schema")
def get_schema_definitions():
    return {
        "user": User.model_json_schema(by_alias=True),
        "event": Event.model_json_schema(by_alias=True),
        "order": Order.model_json_schema(by_alias=True),
        "conversation": Conversation.model_json_schema(by_alias=True),
        "message": Message.model_json_schema(by_alias=True),
        "transaction": Transaction.model_json_schema(by_alias=True),
        "ticket": Ticket.model_json_schema(by_alias=True),
        "ticketresponse": Ticketresponse.model_json_schema(by_alias=True),
        "loan": Loan.model_json_schema(by_alias=True),
        "subscription": Subscription.model_json_schema(by_alias=True),
        "activity": Activity.model_json_schema(by_alias=True),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
