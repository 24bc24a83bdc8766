"""Tests for saving and restoring game progress."""
import asyncio
import json
import random
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from spelldrill.models.base import SessionLocal, init_db
from spelldrill.models.cursor import Cursor
from spelldrill.models.game_models import (
    AnswerCorrect,
    AnswerFailed,
    GameFinishedFailed,
    InputLetterEvent,
    LetterError,
    LetterMatched,
    ProgressState,
    ReadyForInput,
    StatusType,
)
from spelldrill.services.game_service import GameSession, expected_letter, new_game_state
from spelldrill.services.persistence_service import (
    CURRENT_STATE_SLOT,
    LAST_INPUT_SLOT,
    PREVIOUS_STATE_SLOT,
    PersistenceService,
    SavedGame,
    SnapshotError,
    decode_input,
    decode_snapshot,
    encode_input,
    encode_snapshot,
    rebuild_session,
)
from spelldrill.services.scheduler_service import TaskQueue
from spelldrill.services.storage_service import SlotStore


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session with empty slots for each test."""
    init_db()
    db = SessionLocal()
    try:
        SlotStore(db).clear()
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db: Session) -> SlotStore:
    return SlotStore(db)


@pytest.fixture
def persistence(store: SlotStore) -> PersistenceService:
    return PersistenceService(store)


def snapshot_dict(**overrides) -> dict:
    """A valid snapshot document with selected fields replaced."""
    data = {
        "version": 1,
        "status": {"type": "letter_matched", "letter_index": 1},
        "words": ["apple", "river"],
        "position": 0,
        "max_wrong_attempts": 3,
        "remaining_letters": ["l", "p", "p", "e"],
        "wrong_attempts": {"apple": 1},
    }
    data.update(overrides)
    return data


def play_until(session: GameSession, status_type: StatusType) -> None:
    """Type expected letters until the given status is reached."""
    while session.state.status.type != status_type:
        assert session.handle_input(InputLetterEvent(expected_letter(session.state)))


def test_snapshot_round_trip(rng: random.Random) -> None:
    """Test that encoding then decoding keeps every field."""
    state = new_game_state(["apple", "river", "stone"], rng=rng)
    states = [
        state,
        ProgressState(
            status=LetterError(0),
            cursor=Cursor.at(state.words, 1),
            remaining_letters=("e", "r", "v", "i"),
            max_wrong_attempts=4,
            wrong_attempts={"apple": 2, "river": 1},
        ),
        ProgressState(
            status=GameFinishedFailed(),
            cursor=Cursor.at(state.words, 2),
            remaining_letters=(),
            max_wrong_attempts=3,
            wrong_attempts={"stone": 3},
        ),
    ]

    for original in states:
        decoded = decode_snapshot(encode_snapshot(original))
        assert decoded == original
        assert decoded.cursor == original.cursor
        assert decoded.status == original.status


def test_decode_valid_document() -> None:
    """Test decoding a hand-written snapshot."""
    state = decode_snapshot(json.dumps(snapshot_dict()))

    assert state.status == LetterMatched(1)
    assert state.word == "apple"
    assert state.revealed_prefix == "a"
    assert state.wrong_attempts == {"apple": 1}


@pytest.mark.parametrize("overrides", [
    {"version": 2},
    {"status": {"type": "unknown"}},
    {"status": {"type": "letter_matched"}},
    {"status": {"type": "letter_matched", "letter_index": "1"}},
    {"status": {"type": "letter_error", "letter_index": 4}},
    {"status": {"type": "ready_for_input", "letter_index": 0}},
    {"status": {"type": "answer_correct"}},
    {"words": []},
    {"words": ["apple", "apple"]},
    {"words": ["apple", "aa"]},
    {"words": "apple"},
    {"position": 2},
    {"position": -1},
    {"position": 0.5},
    {"max_wrong_attempts": 0},
    {"remaining_letters": ["x", "p", "p", "e"]},
    {"remaining_letters": ["lp", "p", "e"]},
    {"wrong_attempts": {"apple": 4}},
    {"wrong_attempts": {"apple": 3}},
    {"status": {"type": "ready_for_input"}, "wrong_attempts": {"apple": 3}},
    {"wrong_attempts": {"apple": -1}},
    {"wrong_attempts": {"melon": 1}},
    {"extra": True},
])
def test_decode_rejects_malformed_snapshot(overrides: dict) -> None:
    """Test that any structural or range problem is rejected."""
    with pytest.raises(SnapshotError):
        decode_snapshot(json.dumps(snapshot_dict(**overrides)))


@pytest.mark.parametrize("raw", ["", "not json", "[]", "null", '{"version": 1}'])
def test_decode_rejects_garbage(raw: str) -> None:
    """Test that unparsable documents are rejected."""
    with pytest.raises(SnapshotError):
        decode_snapshot(raw)


def test_input_round_trip() -> None:
    """Test encoding and decoding input events."""
    for event in (InputLetterEvent("a"), InputLetterEvent("p", position_hint=3)):
        assert decode_input(encode_input(event)) == event


@pytest.mark.parametrize("raw", [
    '{"letter": ""}',
    '{"letter": "ab"}',
    '{"letter": 1}',
    '{"letter": "a", "position_hint": -1}',
    '{"letter": "a", "position_hint": "1"}',
    '{"letter": "a", "other": 1}',
    "{",
])
def test_decode_rejects_malformed_input(raw: str) -> None:
    """Test that malformed input events are rejected."""
    with pytest.raises(SnapshotError):
        decode_input(raw)


def test_rebuild_from_current_only(loop: asyncio.AbstractEventLoop, rng: random.Random) -> None:
    """Test restoring a snapshot without an input to replay."""
    state = new_game_state(["apple", "river"], rng=rng)

    session = rebuild_session(SavedGame(current=state), loop=loop)

    assert session.state is state
    assert session.is_settled


def test_rebuild_rejects_pending_state_without_input(loop: asyncio.AbstractEventLoop) -> None:
    """Test that a state waiting for the next question needs its input."""
    state = ProgressState(
        status=AnswerCorrect(),
        cursor=Cursor.create(["apple", "river"]),
        remaining_letters=(),
    )

    with pytest.raises(SnapshotError):
        rebuild_session(SavedGame(current=state), loop=loop)


def test_rebuild_replays_scheduled_question(loop: asyncio.AbstractEventLoop) -> None:
    """Test that replaying the last input recreates and runs the pending advance."""
    live = GameSession(new_game_state(["cat", "dog"], rng=random.Random(3)), TaskQueue(loop), rng=random.Random(9))
    recorded = []
    live.on_input = lambda previous, event, current: recorded.append((previous, event, current))
    play_until(live, StatusType.ANSWER_CORRECT)
    previous, event, current = recorded[-1]
    live.scheduler.run_all_now()

    restored = rebuild_session(
        SavedGame(current=current, previous=previous, last_input=event),
        rng=random.Random(9),
        loop=loop,
    )

    assert restored.is_settled
    assert restored.state == live.state
    assert restored.state.status == ReadyForInput()
    assert restored.state.word == "dog"


@pytest.mark.parametrize("seed", range(12))
def test_replay_reproduces_settled_state(loop: asyncio.AbstractEventLoop, seed: int) -> None:
    """Test that any recorded input replays to the state the live game settled in."""
    rnd = random.Random(seed)
    words = ["cat", "dog", "sun", "apple"]
    live = GameSession(new_game_state(words, max_wrong_attempts=2, rng=rnd), TaskQueue(loop), rng=random.Random(seed))
    recorded = []
    live.on_input = lambda previous, event, current: recorded.append((previous, event, current))

    while not live.is_finished:
        state = live.state
        if rnd.random() < 0.3:
            event = InputLetterEvent(rnd.choice("abcdefghijklmnopqrstuvwxyz"))
        elif rnd.random() < 0.5 and state.remaining_letters:
            index = rnd.randrange(len(state.remaining_letters))
            event = InputLetterEvent(state.remaining_letters[index], position_hint=index)
        else:
            event = InputLetterEvent(expected_letter(state))
        if not live.handle_input(event):
            continue

        previous, recorded_event, current = recorded[-1]
        # Snapshot the random source the advance will use
        rng_state = live.rng.getstate()
        live.scheduler.run_all_now()

        replay_rng = random.Random()
        replay_rng.setstate(rng_state)
        restored = rebuild_session(
            SavedGame(
                current=decode_snapshot(encode_snapshot(current)),
                previous=decode_snapshot(encode_snapshot(previous)),
                last_input=decode_input(encode_input(recorded_event)),
            ),
            rng=replay_rng,
            loop=loop,
        )
        assert restored.is_settled
        assert restored.state == live.state


def test_record_start_and_restore(persistence: PersistenceService, store: SlotStore,
                                 loop: asyncio.AbstractEventLoop, rng: random.Random) -> None:
    """Test restoring a game saved before any input."""
    state = new_game_state(["apple", "river"], rng=rng)
    store.put_many({LAST_INPUT_SLOT: encode_input(InputLetterEvent("x"))})

    persistence.record_start(state)
    session = persistence.restore(loop=loop)

    assert store.get(LAST_INPUT_SLOT) is None
    assert store.get(PREVIOUS_STATE_SLOT) is None
    assert session is not None
    assert session.state == state


def test_restore_without_saved_game(persistence: PersistenceService) -> None:
    """Test that an empty store restores nothing."""
    assert persistence.load() is None
    assert persistence.restore() is None


def test_restore_discards_malformed_slot(persistence: PersistenceService, store: SlotStore, rng: random.Random) -> None:
    """Test that one malformed slot discards the whole saved game."""
    state = new_game_state(["apple", "river"], rng=rng)
    persistence.record_input(state, InputLetterEvent("a"), state)
    store.put_many({LAST_INPUT_SLOT: '{"letter": 5}'})

    with pytest.raises(SnapshotError):
        persistence.load()
    assert persistence.restore() is None


def test_restore_after_answer_fast_forwards(persistence: PersistenceService, loop: asyncio.AbstractEventLoop) -> None:
    """Test a reload right after a failed answer starts on the next word."""
    session = GameSession(
        new_game_state(["cat", "dog"], max_wrong_attempts=1, rng=random.Random(1)),
        TaskQueue(loop),
        on_input=persistence.record_input,
    )
    assert session.handle_input(InputLetterEvent("z"))
    assert session.state.status == AnswerFailed()

    restored = persistence.restore(loop=loop)

    assert restored is not None
    assert restored.is_settled
    assert restored.state.status == ReadyForInput()
    assert restored.state.word == "dog"
    assert restored.state.wrong_attempts == {"cat": 1}


def test_fast_forwarded_restore_is_saved(persistence: PersistenceService, store: SlotStore,
                                         loop: asyncio.AbstractEventLoop) -> None:
    """Test that reloading twice after an answer shows the same tiles."""
    session = GameSession(
        new_game_state(["cat", "planet"], max_wrong_attempts=1, rng=random.Random(1)),
        TaskQueue(loop),
        on_input=persistence.record_input,
    )
    assert session.handle_input(InputLetterEvent("z"))

    first = persistence.restore(rng=random.Random(10), loop=loop)

    assert store.get(PREVIOUS_STATE_SLOT) is None
    assert store.get(LAST_INPUT_SLOT) is None
    assert decode_snapshot(store.get(CURRENT_STATE_SLOT)) == first.state

    second = persistence.restore(rng=random.Random(20), loop=loop)

    assert second.state == first.state
    assert second.state.remaining_letters == first.state.remaining_letters


def test_restore_rejects_word_without_attempts_left(persistence: PersistenceService, store: SlotStore,
                                                    loop: asyncio.AbstractEventLoop) -> None:
    """Test that a saved game still awaiting letters for an exhausted word is discarded."""
    raw = json.dumps({
        "version": 1,
        "status": {"type": "ready_for_input"},
        "words": ["cat", "dog"],
        "position": 0,
        "max_wrong_attempts": 3,
        "remaining_letters": ["t", "a", "c"],
        "wrong_attempts": {"cat": 3},
    })
    store.put_many({CURRENT_STATE_SLOT: raw})

    with pytest.raises(SnapshotError):
        decode_snapshot(raw)
    assert persistence.restore(loop=loop) is None


def test_restore_mid_word(persistence: PersistenceService, loop: asyncio.AbstractEventLoop) -> None:
    """Test a reload between letters keeps the latest state."""
    session = GameSession(
        new_game_state(["apple", "dog"], rng=random.Random(2)),
        TaskQueue(loop),
        on_input=persistence.record_input,
    )
    persistence.record_start(session.state)
    play_until(session, StatusType.LETTER_MATCHED)
    assert session.handle_input(InputLetterEvent(expected_letter(session.state)))

    restored = persistence.restore(loop=loop)

    assert restored is not None
    assert restored.state == session.state
    assert restored.state.revealed_prefix == "ap"


def test_restore_with_only_previous_state_slot(persistence: PersistenceService, store: SlotStore,
                                              loop: asyncio.AbstractEventLoop, rng: random.Random) -> None:
    """Test that an incomplete replay pair falls back to the current state."""
    state = new_game_state(["apple", "river"], rng=rng)
    store.put_many({CURRENT_STATE_SLOT: encode_snapshot(state), PREVIOUS_STATE_SLOT: encode_snapshot(state)})

    restored = persistence.restore(loop=loop)

    assert restored is not None
    assert restored.state == state


def test_clear(persistence: PersistenceService, store: SlotStore, rng: random.Random) -> None:
    """Test clearing all saved progress."""
    state = new_game_state(["apple", "river"], rng=rng)
    persistence.record_input(state, InputLetterEvent("a"), state)

    persistence.clear()

    assert store.get_many([CURRENT_STATE_SLOT, PREVIOUS_STATE_SLOT, LAST_INPUT_SLOT]) == {
        CURRENT_STATE_SLOT: None,
        PREVIOUS_STATE_SLOT: None,
        LAST_INPUT_SLOT: None,
    }
