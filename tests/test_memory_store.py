import asyncio

import pytest

from chatrelay.core.errors import ConversationNotFound
from chatrelay.core.state import Exchange


async def test_get_or_create_starts_fresh(store):
    state = await store.get_or_create(42)

    assert state.conversation_id == 42
    assert state.step == 0
    assert state.history == []
    assert state.is_fresh


async def test_concurrent_get_or_create_creates_one_record(store):
    states = await asyncio.gather(*(store.get_or_create(42) for _ in range(50)))

    assert all(state.step == 0 and state.history == [] for state in states)
    assert list(store._states) == [42]


async def test_get_or_create_returns_existing_record(store):
    await store.get_or_create(42)
    await store.advance_step(42)
    await store.append_exchange(42, Exchange("yes", "Great"))

    state = await store.get_or_create(42)

    assert state.step == 1
    assert state.history == [Exchange("yes", "Great")]


async def test_advance_step_increments_by_one(store):
    await store.get_or_create(42)

    await store.advance_step(42)
    await store.advance_step(42)

    assert (await store.get(42)).step == 2


async def test_advance_step_on_missing_record_is_reported_not_raised(store, failure_sink):
    await store.advance_step(99)

    assert await store.get(99) is None
    [(error, context)] = failure_sink.reports
    assert isinstance(error, ConversationNotFound)
    assert context == {"conversation_id": 99, "operation": "advance_step"}


async def test_append_exchange_keeps_invocation_order(store):
    await store.get_or_create(42)

    for i in range(5):
        await store.append_exchange(42, Exchange(f"q{i}", f"a{i}"))

    history = (await store.get(42)).history
    assert [exchange.user_text for exchange in history] == ["q0", "q1", "q2", "q3", "q4"]


async def test_append_exchange_on_missing_record_raises(store):
    with pytest.raises(ConversationNotFound):
        await store.append_exchange(7, Exchange("hi", "hello"))


async def test_returned_state_is_a_copy(store):
    state = await store.get_or_create(42)
    state.step = 10
    state.history.append(Exchange("x", "y"))

    stored = await store.get(42)
    assert stored.step == 0
    assert stored.history == []


async def test_get_unknown_conversation_returns_none(store):
    assert await store.get(1234) is None
