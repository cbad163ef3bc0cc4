"""
In-memory document store backing the dashboard API.

Collections are plain dicts of ObjectId -> document, one per record type,
mirroring the shape of a Mongo database so handlers read the same way.
Foreign keys (user_id, event_id, ...) are opaque strings and are never
checked against the referenced collection.

One InMemoryDatabase is built per application and handed to request
handlers through a FastAPI dependency.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "user",
    "event",
    "order",
    "conversation",
    "message",
    "transaction",
    "ticket",
    "ticketresponse",
    "loan",
    "subscription",
    "activity",
)

SUBSCRIPTION_PLANS = [
    {
        "id": "basic",
        "name": "Basic",
        "price": 9,
        "features": [
            "Up to 5 events/month",
            "Basic analytics",
            "Email support",
            "Standard templates",
            "1 team member",
        ],
    },
    {
        "id": "pro",
        "name": "Pro",
        "price": 29,
        "recommended": True,
        "features": [
            "Up to 50 events/month",
            "Advanced analytics",
            "Priority support",
            "Custom templates",
            "5 team members",
            "API access",
            "Custom branding",
        ],
    },
    {
        "id": "enterprise",
        "name": "Enterprise",
        "price": 99,
        "features": [
            "Unlimited events",
            "Enterprise analytics",
            "24/7 dedicated support",
            "White-label solution",
            "Unlimited team members",
            "Full API access",
            "Custom integrations",
            "SLA guarantee",
        ],
    },
]


# Helpers
def oid_str(oid):
    return str(oid) if isinstance(oid, ObjectId) else oid


def display_date(dt: datetime) -> str:
    """'Oct 8, 2026'"""
    return f"{dt:%b} {dt.day}, {dt.year}"


def display_datetime(dt: datetime) -> str:
    """'Oct 8, 2026, 02:30 PM'"""
    return f"{display_date(dt)}, {dt:%I:%M %p}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_plan(plan_id: str) -> Optional[Dict]:
    for plan in SUBSCRIPTION_PLANS:
        if plan["id"] == plan_id:
            return plan
    return None


@dataclass(frozen=True)
class Viewer:
    """The identity a request acts as. Administrators see every user's records."""
    user_id: str
    name: Optional[str] = None
    is_admin: bool = False

    def can_see(self, owner_id: Optional[str]) -> bool:
        return self.is_admin or owner_id == self.user_id


def _newest_first(docs: List[Dict]) -> List[Dict]:
    return sorted(docs, key=lambda d: d.get("epoch", 0), reverse=True)


class InMemoryDatabase:
    name = "memory"

    def __init__(self):
        self._collections: Dict[str, Dict[ObjectId, Dict[str, Any]]] = {
            name: {} for name in COLLECTIONS
        }
        # handlers run on FastAPI's thread pool
        self._lock = threading.RLock()

    # Generic document access

    @staticmethod
    def new_id() -> str:
        return str(ObjectId())

    def list_collection_names(self) -> List[str]:
        return list(self._collections)

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections[collection])

    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        oid = ObjectId()
        doc = dict(data)
        doc["_id"] = oid
        with self._lock:
            self._collections[collection][oid] = doc
        logger.debug(f"Inserted {collection} {oid}")
        return str(oid)

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        if not ObjectId.is_valid(doc_id):
            return None
        with self._lock:
            doc = self._collections[collection].get(ObjectId(doc_id))
            return self._public(doc) if doc else None

    def get_documents(self, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        filt = filter_dict or {}
        with self._lock:
            return [
                self._public(doc)
                for doc in self._collections[collection].values()
                if all(doc.get(k) == v for k, v in filt.items())
            ]

    def update_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Shallow-merge data onto a stored document. Unknown ids return None."""
        if not ObjectId.is_valid(doc_id):
            return None
        oid = ObjectId(doc_id)
        changes = {k: v for k, v in data.items() if k not in ("_id", "id")}
        with self._lock:
            doc = self._collections[collection].get(oid)
            if doc is None:
                return None
            merged = {**doc, **changes}
            self._collections[collection][oid] = merged
            return self._public(merged)

    @staticmethod
    def _public(doc: Dict[str, Any]) -> Dict[str, Any]:
        d = dict(doc)
        d["id"] = oid_str(d.pop("_id", None))
        return d

    # Users

    def get_user(self, user_id: str) -> Optional[Dict]:
        return self.get_document("user", user_id)

    def get_user_by_username(self, username: str) -> Optional[Dict]:
        users = self.get_documents("user", {"username": username})
        return users[0] if users else None

    def create_user(self, data: Dict) -> Dict:
        with self._lock:
            if self.get_user_by_username(data["username"]):
                raise ValueError(f"Username already taken: {data['username']}")
            user_id = self.create_document("user", {"role": "user", **data})
            return self.get_user(user_id)

    def update_user(self, user_id: str, data: Dict) -> Optional[Dict]:
        return self.update_document("user", user_id, data)

    # Events

    def get_events(self) -> List[Dict]:
        return self.get_documents("event")

    def get_event(self, event_id: str) -> Optional[Dict]:
        return self.get_document("event", event_id)

    def create_event(self, data: Dict) -> Dict:
        return self.get_event(self.create_document("event", data))

    def update_event(self, event_id: str, data: Dict) -> Optional[Dict]:
        return self.update_document("event", event_id, data)

    # Orders

    def get_orders(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Dict]:
        orders = self.get_documents("order")
        if status and status.lower() != "all":
            orders = [o for o in orders if (o.get("payment_status") or "").lower() == status.lower()]
        if search:
            needle = search.lower()
            orders = [
                o for o in orders
                if needle in o.get("user_name", "").lower()
                or needle in o.get("event_title", "").lower()
                or needle in o["id"].lower()
            ]
        return _newest_first(orders)

    def get_order(self, order_id: str) -> Optional[Dict]:
        return self.get_document("order", order_id)

    def create_order(self, data: Dict) -> Dict:
        return self.get_order(self.create_document("order", data))

    def update_order(self, order_id: str, data: Dict) -> Optional[Dict]:
        return self.update_document("order", order_id, data)

    # Conversations & messages

    def get_conversations(self, filter_by: str = "all") -> List[Dict]:
        conversations = self.get_documents("conversation")
        if filter_by == "unread":
            return [c for c in conversations if c.get("unread")]
        if filter_by == "starred":
            return [c for c in conversations if c.get("starred")]
        return conversations

    def get_conversation(self, conversation_id: str) -> Optional[Dict]:
        return self.get_document("conversation", conversation_id)

    def create_conversation(self, data: Dict) -> Dict:
        return self.get_conversation(self.create_document("conversation", data))

    def update_conversation(self, conversation_id: str, data: Dict) -> Optional[Dict]:
        return self.update_document("conversation", conversation_id, data)

    def get_messages(self, conversation_id: str) -> List[Dict]:
        return self.get_documents("message", {"conversation_id": conversation_id})

    def create_message(self, data: Dict) -> Dict:
        with self._lock:
            message_id = self.create_document("message", data)
            # keep the conversation preview current
            self.update_conversation(data["conversation_id"], {
                "last_message": data["content"],
                "last_message_time": "Just now",
            })
            return self.get_document("message", message_id)

    # Wallet

    def get_transactions(self, viewer: Viewer) -> List[Dict]:
        return _newest_first([
            t for t in self.get_documents("transaction") if viewer.can_see(t.get("user_id"))
        ])

    def create_transaction(self, data: Dict) -> Dict:
        return self.get_document("transaction", self.create_document("transaction", data))

    # Tickets

    def get_tickets(self, viewer: Viewer) -> List[Dict]:
        return _newest_first([
            t for t in self.get_documents("ticket") if viewer.can_see(t.get("user_id"))
        ])

    def get_ticket(self, ticket_id: str) -> Optional[Dict]:
        return self.get_document("ticket", ticket_id)

    def create_ticket(self, data: Dict) -> Dict:
        return self.get_ticket(self.create_document("ticket", data))

    def update_ticket(self, ticket_id: str, data: Dict) -> Optional[Dict]:
        return self.update_document("ticket", ticket_id, data)

    def get_ticket_responses(self, ticket_id: str) -> List[Dict]:
        responses = self.get_documents("ticketresponse", {"ticket_id": ticket_id})
        return sorted(responses, key=lambda r: r.get("epoch", 0))

    def create_ticket_response(self, data: Dict) -> Dict:
        return self.get_document("ticketresponse", self.create_document("ticketresponse", data))

    # Loans

    def get_loans(self, viewer: Viewer) -> List[Dict]:
        return _newest_first([
            loan for loan in self.get_documents("loan") if viewer.can_see(loan.get("user_id"))
        ])

    def get_loan(self, loan_id: str) -> Optional[Dict]:
        return self.get_document("loan", loan_id)

    def create_loan(self, data: Dict) -> Dict:
        return self.get_loan(self.create_document("loan", {"emi": None, **data}))

    # Subscriptions

    def get_subscriptions(self, viewer: Viewer) -> List[Dict]:
        return _newest_first([
            s for s in self.get_documents("subscription") if viewer.can_see(s.get("user_id"))
        ])

    def get_active_subscription(self, viewer: Viewer) -> Optional[Dict]:
        for subscription in self.get_subscriptions(viewer):
            if subscription.get("status") == "active":
                return subscription
        return None

    def create_subscription(self, viewer: Viewer, data: Dict) -> Dict:
        """Insert a subscription, deactivating the viewer's current active one."""
        with self._lock:
            active = self.get_active_subscription(viewer)
            if active:
                self.update_document("subscription", active["id"], {
                    "status": "inactive",
                    "end_date": utcnow().isoformat(),
                })
                logger.info(f"Deactivated subscription {active['id']} ({active.get('plan')})")
            return self.get_document("subscription", self.create_document("subscription", data))

    # Activities

    def get_activities(self) -> List[Dict]:
        return _newest_first(self.get_documents("activity"))

    def create_activity(self, data: Dict) -> Dict:
        return self.get_document("activity", self.create_document("activity", data))
