from datetime import timedelta

from loanease.core.session import SessionStore
from loanease.models.domain_models import ConversationStep, LoanApplication, utc_now


def make_application(customer_id="CUST001"):
    return LoanApplication(
        customer_id=customer_id,
        customer_name="Test",
        requested_amount=100000,
        tenure=12,
        interest_rate=11.5,
        emi=8862,
    )


def test_get_or_create_is_idempotent(store):
    first = store.get_or_create("s-1")
    first.customer_id = "CUST001"
    second = store.get_or_create("s-1")
    assert second is first
    assert second.customer_id == "CUST001"
    assert len(store) == 1


def test_new_session_starts_at_greeting(store):
    session = store.get_or_create("fresh")
    assert session.current_step == ConversationStep.GREETING
    assert session.messages == []
    assert session.application is None


def test_unknown_session_and_application_are_absent(store):
    assert store.get("missing") is None
    assert store.get_application("APP-MISSING") is None


def test_put_registers_application(store):
    session = store.get_or_create("s-2")
    session.application = make_application()
    store.put(session)
    assert store.get_application(session.application.id) is session.application


def test_capacity_evicts_least_recently_active_with_its_applications():
    store = SessionStore(max_entries=2, idle_ttl_minutes=60)
    old = store.get_or_create("old")
    old.application = make_application()
    store.put(old)
    store.put(store.get_or_create("mid"))
    store.put(store.get_or_create("new"))

    assert "old" not in store
    assert store.get_application(old.application.id) is None
    assert "mid" in store and "new" in store


def test_activity_refreshes_eviction_order():
    store = SessionStore(max_entries=2, idle_ttl_minutes=60)
    a = store.get_or_create("a")
    store.put(store.get_or_create("b"))
    store.put(a)  # a becomes most recent
    store.put(store.get_or_create("c"))

    assert "b" not in store
    assert "a" in store and "c" in store


def test_idle_sessions_expire_on_access():
    store = SessionStore(max_entries=10, idle_ttl_minutes=30)
    stale = store.get_or_create("stale")
    stale.application = make_application()
    store.put(stale)
    stale.last_activity_at = utc_now() - timedelta(minutes=31)

    assert store.get("stale") is None
    assert store.get_application(stale.application.id) is None


def test_locks_are_per_session(store):
    with store.lock("a"):
        with store.lock("b"):
            store.get_or_create("b")
    assert "b" in store


def test_lock_for_id_that_never_became_a_session_is_released(store):
    for i in range(50):
        with store.lock(f"ghost-{i}"):
            pass
    assert len(store) == 0
    assert store._locks == {}


def test_stored_session_keeps_its_lock(store):
    store.put(store.get_or_create("kept"))
    with store.lock("kept"):
        held = store._locks["kept"]
    assert store._locks["kept"] is held


def test_expiring_a_session_never_replaces_a_held_lock():
    store = SessionStore(max_entries=10, idle_ttl_minutes=30)
    stale = store.get_or_create("stale")
    store.put(stale)
    stale.last_activity_at = utc_now() - timedelta(minutes=31)

    with store.lock("stale"):
        held = store._locks["stale"]
        assert store.get("stale") is None  # expired and dropped mid-turn
        assert store._locks["stale"] is held
        assert held.locked()
        # a second turn for the same id must wait on the same lock
        assert held.acquire(blocking=False) is False

    assert "stale" not in store._locks


def test_timestamps_are_timezone_aware(store):
    session = store.get_or_create("tz")
    store.put(session)
    assert session.started_at.tzinfo is not None
    assert session.last_activity_at.tzinfo is not None
    application = make_application()
    application.touch()
    assert application.updated_at.tzinfo is not None
