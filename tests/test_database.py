from concurrent.futures import ThreadPoolExecutor

import pytest

from database import InMemoryDatabase, Viewer, display_date, display_datetime

from conftest import SEED_NOW


def admin_viewer(db):
    admin = db.get_user_by_username("admin")
    return Viewer(user_id=admin["id"], name=admin["name"], is_admin=True)


def test_seed_counts(db):
    assert db.count("user") == 1
    assert db.count("event") == 8
    assert db.count("order") == 25
    assert db.count("conversation") == 5
    assert db.count("message") == 25
    assert db.count("transaction") == 5
    assert db.count("ticket") == 3
    assert db.count("ticketresponse") == 2
    assert db.count("loan") == 1
    assert db.count("subscription") == 1
    assert db.count("activity") == 6


def test_ids_are_opaque_strings(db):
    event = db.get_events()[0]
    assert isinstance(event["id"], str)
    assert "_id" not in event
    assert db.get_event(event["id"])["title"] == event["title"]


def test_unknown_and_malformed_ids_are_not_found(db):
    assert db.get_event("does-not-exist") is None
    assert db.get_event(db.new_id()) is None
    assert db.update_event("does-not-exist", {"title": "x"}) is None
    assert db.update_ticket(db.new_id(), {"status": "closed"}) is None
    assert db.update_user(db.new_id(), {"name": "x"}) is None


def test_update_is_shallow_merge(db):
    event = db.get_events()[0]
    updated = db.update_event(event["id"], {"status": "upcoming"})
    assert updated["status"] == "upcoming"
    assert updated["title"] == event["title"]
    assert updated["id"] == event["id"]
    assert db.get_event(event["id"])["status"] == "upcoming"


def test_update_cannot_change_id(db):
    event = db.get_events()[0]
    updated = db.update_event(event["id"], {"id": "other", "title": "Renamed"})
    assert updated["id"] == event["id"]
    assert updated["title"] == "Renamed"


def test_returned_documents_are_copies(db):
    event = db.get_events()[0]
    event["title"] = "Mutated"
    assert db.get_event(event["id"])["title"] != "Mutated"


def test_orders_newest_first(db):
    orders = db.get_orders()
    epochs = [o["epoch"] for o in orders]
    assert epochs == sorted(epochs, reverse=True)
    assert orders[0]["created_at"] == display_date(SEED_NOW)


def test_orders_filter_by_status_and_search(db):
    paid = db.get_orders(status="PAID")
    assert paid and all(o["payment_status"] == "paid" for o in paid)
    assert len(db.get_orders(status="all")) == 25

    jane = db.get_orders(search="jane")
    assert jane and all(o["user_name"] == "Jane Smith" for o in jane)

    festival = db.get_orders(search="festival")
    assert all("festival" in o["event_title"].lower() for o in festival)


def test_conversation_filters(db):
    assert len(db.get_conversations()) == 5
    assert [c["participant_name"] for c in db.get_conversations("unread")] == ["Sarah Johnson", "Mike Chen"]
    assert [c["participant_name"] for c in db.get_conversations("starred")] == ["David Wilson"]


def test_create_message_updates_conversation_preview(db):
    conversation = db.get_conversations()[2]
    db.create_message({
        "conversation_id": conversation["id"],
        "content": "See you at the gate",
        "sender_id": "admin",
        "timestamp": "3:15 PM",
        "is_own": True,
    })
    messages = db.get_messages(conversation["id"])
    assert messages[-1]["content"] == "See you at the gate"
    refreshed = db.get_conversation(conversation["id"])
    assert refreshed["last_message"] == "See you at the gate"
    assert refreshed["last_message_time"] == "Just now"


def test_viewer_scoping(db):
    admin = admin_viewer(db)
    db.create_transaction({
        "user_id": "someone-else", "type": "credit", "amount": 10,
        "status": "completed", "description": "x", "date": "Jan 1, 2026", "epoch": 0,
    })
    assert len(db.get_transactions(admin)) == 6

    outsider = Viewer(user_id="someone-else")
    assert [t["amount"] for t in db.get_transactions(outsider)] == [10]
    assert db.get_tickets(outsider) == []
    assert db.get_loans(outsider) == []


def test_admin_string_is_not_a_wildcard(db):
    # a real user literally named "admin" gets no elevated view
    plain = Viewer(user_id="admin", is_admin=False)
    assert db.get_transactions(plain) == []


def test_ticket_responses_oldest_first(db):
    ticket = [t for t in db.get_tickets(admin_viewer(db)) if t["status"] == "in_progress"][0]
    db.create_ticket_response({
        "ticket_id": ticket["id"], "message": "Resolved now", "is_admin": True,
        "created_at": display_datetime(SEED_NOW), "epoch": SEED_NOW.timestamp(),
    })
    responses = db.get_ticket_responses(ticket["id"])
    assert [r["message"] for r in responses][-1] == "Resolved now"
    assert len(responses) == 2


def test_new_subscription_deactivates_previous(db):
    viewer = admin_viewer(db)
    previous = db.get_active_subscription(viewer)
    assert previous["plan"] == "pro"

    created = db.create_subscription(viewer, {
        "user_id": viewer.user_id, "plan": "enterprise", "price": 99, "status": "active",
        "start_date": display_date(SEED_NOW), "end_date": None, "epoch": SEED_NOW.timestamp(),
    })

    subscriptions = db.get_subscriptions(viewer)
    active = [s for s in subscriptions if s["status"] == "active"]
    assert [s["id"] for s in active] == [created["id"]]
    old = db.get_document("subscription", previous["id"])
    assert old["status"] == "inactive"
    assert old["end_date"] is not None


def test_create_user_rejects_duplicate_username(empty_db):
    empty_db.create_user({"username": "vendor", "password": "pw", "email": "v@x.io", "name": "V"})
    with pytest.raises(ValueError):
        empty_db.create_user({"username": "vendor", "password": "pw", "email": "v@x.io", "name": "V"})
    assert empty_db.get_user_by_username("vendor")["role"] == "user"


def test_empty_database_lists(empty_db):
    viewer = Viewer(user_id="nobody", is_admin=True)
    assert empty_db.get_events() == []
    assert empty_db.get_orders() == []
    assert empty_db.get_active_subscription(viewer) is None
    assert InMemoryDatabase().list_collection_names() == empty_db.list_collection_names()


def test_concurrent_subscriptions_leave_one_active(db):
    viewer = admin_viewer(db)
    before = db.count("subscription")

    def subscribe(i):
        return db.create_subscription(viewer, {
            "user_id": viewer.user_id, "plan": "basic", "price": 9, "status": "active",
            "start_date": display_date(SEED_NOW), "end_date": None, "epoch": SEED_NOW.timestamp() + i,
        })

    with ThreadPoolExecutor(max_workers=8) as pool:
        created = list(pool.map(subscribe, range(64)))

    subscriptions = db.get_subscriptions(viewer)
    active = [s for s in subscriptions if s["status"] == "active"]
    assert len(subscriptions) == before + 64
    assert len(active) == 1
    assert active[0]["id"] in {s["id"] for s in created}


def test_concurrent_messages_keep_preview_consistent(db):
    conversation = db.get_conversations()[0]
    before = len(db.get_messages(conversation["id"]))
    contents = [f"Message {i}" for i in range(64)]

    def send(content):
        return db.create_message({
            "conversation_id": conversation["id"],
            "content": content,
            "sender_id": "admin",
            "timestamp": "3:15 PM",
            "is_own": True,
        })

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(send, contents))

    assert len(db.get_messages(conversation["id"])) == before + 64
    refreshed = db.get_conversation(conversation["id"])
    assert refreshed["last_message"] in contents
    assert refreshed["last_message_time"] == "Just now"
