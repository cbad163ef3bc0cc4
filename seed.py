"""
Deterministic sample data loaded into a fresh InMemoryDatabase at startup.

Record contents are fixed; dates are laid out relative to `now` so the
dashboard always looks current.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from database import InMemoryDatabase, display_date, display_datetime, utcnow

logger = logging.getLogger(__name__)

EVENT_CATEGORIES = ["music", "sports", "tech", "art", "food"]
EVENT_TITLES = [
    "Summer Music Festival 2024",
    "Tech Conference 2024",
    "Art Exhibition Opening",
    "Food & Wine Festival",
    "Basketball Championship",
    "Jazz Night Live",
    "Startup Pitch Day",
    "Photography Workshop",
]
EVENT_PRICES = [50, 100, 150, 200, 75]

ORDER_USER_NAMES = ["John Doe", "Jane Smith", "Mike Johnson", "Sarah Williams", "Alex Brown", "Emily Davis"]
ORDER_STATUSES = ["paid", "pending", "paid", "paid", "failed", "paid"]
ORDER_COUNT = 25

PARTICIPANTS = [
    {"name": "Sarah Johnson", "last_message": "Thanks for the quick response!", "unread": True},
    {"name": "Mike Chen", "last_message": "When does the event start?", "unread": True},
    {"name": "Emily Brown", "last_message": "I'll be there!", "unread": False},
    {"name": "David Wilson", "last_message": "Can I get a refund?", "unread": False, "starred": True},
    {"name": "Lisa Anderson", "last_message": "Great event last week!", "unread": False},
]

TRANSACTIONS = [
    ("credit", 500, "Wallet top-up"),
    ("debit", 150, "Event booking"),
    ("credit", 1000, "Refund received"),
    ("credit", 250, "Prize money"),
    ("debit", 75, "Service fee"),
]

TICKET_SUBJECTS = [
    ("Payment not received", "open"),
    ("Event cancellation request", "in_progress"),
    ("Technical issue with app", "closed"),
]

ACTIVITIES = [
    ("Booking", "booked tickets for Summer Music Festival", "John Doe"),
    ("Payment", "completed payment of $150", "Sarah Williams"),
    ("Event", "created new event: Tech Conference 2024", "Admin User"),
    ("Refund", "requested refund for cancelled event", "Mike Johnson"),
    ("Review", "left a 5-star review for Jazz Night", "Emily Brown"),
    ("Signup", "created a new account", "Alex Turner"),
]


def seed_database(db: InMemoryDatabase, admin_username: str = "admin", now: Optional[datetime] = None) -> str:
    """Populate every collection. Returns the admin user's id."""
    now = now or utcnow()

    admin = db.create_user({
        "username": admin_username,
        "password": "admin123",
        "email": "admin@eventhub.com",
        "name": "Admin User",
        "phone": "+1 (555) 123-4567",
        "address": "123 Event Street, San Francisco, CA 94102",
        "avatar": None,
        "role": "admin",
    })
    admin_id = admin["id"]

    # Events
    events = []
    for i, title in enumerate(EVENT_TITLES):
        events.append(db.create_event({
            "title": title,
            "description": f"Amazing {title.lower()} event",
            "category": EVENT_CATEGORIES[i % len(EVENT_CATEGORIES)],
            "date": display_date(now + timedelta(weeks=i + 1)),
            "location": "San Francisco, CA",
            "price": EVENT_PRICES[i % len(EVENT_PRICES)],
            "capacity": 100 + i * 50,
            "status": "active" if i < 5 else "upcoming",
            "image": None,
        }))

    # Orders
    for i in range(ORDER_COUNT):
        event = events[i % len(events)]
        created = now - timedelta(days=i)
        db.create_order({
            "user_id": db.new_id(),
            "event_id": event["id"],
            "user_name": ORDER_USER_NAMES[i % len(ORDER_USER_NAMES)],
            "event_title": event["title"],
            "amount": event["price"] or 100,
            "payment_status": ORDER_STATUSES[i % len(ORDER_STATUSES)],
            "event_date": event["date"],
            "created_at": display_date(created),
            "epoch": created.timestamp(),
        })

    # Conversations and their messages
    for i, p in enumerate(PARTICIPANTS):
        if i == 0:
            last_time = "Just now"
        elif i == 1:
            last_time = "2m ago"
        else:
            last_time = f"{i}h ago"
        conversation = db.create_conversation({
            "participant_name": p["name"],
            "participant_avatar": None,
            "last_message": p["last_message"],
            "last_message_time": last_time,
            "unread": p["unread"],
            "starred": p.get("starred", False),
        })

        texts = [
            "Hi, I have a question about the upcoming event.",
            "Of course! How can I help you?",
            "What time does the venue open?",
            "The doors open at 6 PM, and the event starts at 7 PM.",
            p["last_message"],
        ]
        for j, content in enumerate(texts):
            db.create_document("message", {
                "conversation_id": conversation["id"],
                "content": content,
                "sender_id": "user" if j % 2 == 0 else "admin",
                "timestamp": f"{10 + j}:{j * 5:02d} AM",
                "is_own": j % 2 != 0,
            })

    # Wallet
    for i, (kind, amount, description) in enumerate(TRANSACTIONS):
        when = now - timedelta(days=i * 2)
        db.create_transaction({
            "user_id": admin_id,
            "type": kind,
            "amount": amount,
            "status": "completed",
            "description": description,
            "date": display_date(when),
            "epoch": when.timestamp(),
        })

    # Support tickets, with a staff reply on all but the newest
    for i, (subject, status) in enumerate(TICKET_SUBJECTS):
        opened = now - timedelta(days=i * 3)
        ticket = db.create_ticket({
            "user_id": admin_id,
            "subject": subject,
            "message": f"I'm experiencing an issue with {subject.lower()}. Please help.",
            "status": status,
            "created_at": display_datetime(opened),
            "epoch": opened.timestamp(),
        })
        if i > 0:
            replied = now - timedelta(days=i * 2)
            db.create_ticket_response({
                "ticket_id": ticket["id"],
                "message": "Thank you for reaching out. We're looking into this issue and will get back to you shortly.",
                "is_admin": True,
                "created_at": display_datetime(replied),
                "epoch": replied.timestamp(),
            })

    # Loans
    applied = now - timedelta(days=30)
    db.create_loan({
        "user_id": admin_id,
        "amount": 5000,
        "duration": 12,
        "purpose": "Event expansion and marketing",
        "status": "approved",
        "emi": 438,
        "created_at": display_date(applied),
        "epoch": applied.timestamp(),
    })

    # Subscriptions
    started = now - timedelta(days=60)
    db.create_document("subscription", {
        "user_id": admin_id,
        "plan": "pro",
        "price": 29,
        "status": "active",
        "start_date": display_date(started),
        "end_date": None,
        "epoch": started.timestamp(),
    })

    # Activity feed
    for i, (action, description, user_name) in enumerate(ACTIVITIES):
        if i == 0:
            label, when = "Just now", now
        elif i == 1:
            label, when = "5 minutes ago", now - timedelta(minutes=5)
        else:
            label, when = f"{i} hours ago", now - timedelta(hours=i)
        db.create_activity({
            "user_id": db.new_id(),
            "user_name": user_name,
            "user_avatar": None,
            "action": action,
            "description": description,
            "timestamp": label,
            "epoch": when.timestamp(),
        })

    logger.info(
        f"Seeded {db.count('event')} events, {db.count('order')} orders, "
        f"{db.count('conversation')} conversations, {db.count('transaction')} transactions"
    )
    return admin_id
