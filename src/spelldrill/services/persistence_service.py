"""Saving game progress and rebuilding a live session from it.

Pending tasks cannot be stored, so every accepted input is saved together
with the settled state it was applied to. On restore the input is replayed
against that state with a fresh task queue, which recreates the pending
tasks; the queue is then paired with the latest saved state and fast-forwarded.
"""
import asyncio
import logging
import random
from dataclasses import asdict, dataclass
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, model_validator

from spelldrill.models.cursor import Cursor
from spelldrill.models.game_models import (
    AWAITING_LETTER_TYPES,
    PENDING_ADVANCE_TYPES,
    AnswerCorrect,
    AnswerFailed,
    GameFinishedCorrect,
    GameFinishedFailed,
    InputLetterEvent,
    LetterError,
    LetterMatched,
    ProgressState,
    ReadyForInput,
    StatusType,
)
from spelldrill.services.game_service import GameSession
from spelldrill.services.scheduler_service import TaskQueue
from spelldrill.services.storage_service import SlotStore
from spelldrill.services.word_service import validate_words

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

CURRENT_STATE_SLOT = "current_state"
PREVIOUS_STATE_SLOT = "previous_state"
LAST_INPUT_SLOT = "last_input"
ALL_SLOTS = (CURRENT_STATE_SLOT, PREVIOUS_STATE_SLOT, LAST_INPUT_SLOT)

NonNegativeInt = Annotated[StrictInt, Field(ge=0)]
Letter = Annotated[StrictStr, Field(min_length=1, max_length=1)]


class SnapshotError(ValueError):
    """Raised when saved data cannot be trusted."""


class _StatusSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ReadyForInputSchema(_StatusSchema):
    type: Literal["ready_for_input"]


class LetterMatchedSchema(_StatusSchema):
    type: Literal["letter_matched"]
    letter_index: NonNegativeInt


class LetterErrorSchema(_StatusSchema):
    type: Literal["letter_error"]
    letter_index: NonNegativeInt


class AnswerCorrectSchema(_StatusSchema):
    type: Literal["answer_correct"]


class AnswerFailedSchema(_StatusSchema):
    type: Literal["answer_failed"]


class GameFinishedCorrectSchema(_StatusSchema):
    type: Literal["game_finished_correct"]


class GameFinishedFailedSchema(_StatusSchema):
    type: Literal["game_finished_failed"]


StatusSchema = Annotated[
    Union[
        ReadyForInputSchema,
        LetterMatchedSchema,
        LetterErrorSchema,
        AnswerCorrectSchema,
        AnswerFailedSchema,
        GameFinishedCorrectSchema,
        GameFinishedFailedSchema,
    ],
    Field(discriminator="type"),
]

STATUS_CLASSES = {
    StatusType.READY_FOR_INPUT: ReadyForInput,
    StatusType.LETTER_MATCHED: LetterMatched,
    StatusType.LETTER_ERROR: LetterError,
    StatusType.ANSWER_CORRECT: AnswerCorrect,
    StatusType.ANSWER_FAILED: AnswerFailed,
    StatusType.GAME_FINISHED_CORRECT: GameFinishedCorrect,
    StatusType.GAME_FINISHED_FAILED: GameFinishedFailed,
}


class SnapshotSchema(BaseModel):
    """Stored shape of a ProgressState."""
    model_config = ConfigDict(extra="forbid")

    version: Literal[1]
    status: StatusSchema
    words: List[StrictStr] = Field(min_length=1)
    position: NonNegativeInt
    max_wrong_attempts: Annotated[StrictInt, Field(ge=1)]
    remaining_letters: List[Letter]
    wrong_attempts: Dict[StrictStr, NonNegativeInt]

    @model_validator(mode="after")
    def check_consistency(self) -> "SnapshotSchema":
        validate_words(self.words)

        if self.position >= len(self.words):
            raise ValueError(f"position {self.position} is out of range for {len(self.words)} words")

        for word, count in self.wrong_attempts.items():
            if word not in self.words:
                raise ValueError(f"wrong attempts recorded for unknown word {word!r}")
            if count > self.max_wrong_attempts:
                raise ValueError(f"wrong attempts for {word!r} exceed {self.max_wrong_attempts}")

        word = self.words[self.position]
        remaining = self.remaining_letters
        if len(remaining) > len(word) or sorted(remaining) != sorted(word[len(word) - len(remaining):]):
            raise ValueError("remaining letters are not the unrevealed part of the current word")

        status_type = StatusType(self.status.type)
        if status_type in AWAITING_LETTER_TYPES and not remaining:
            raise ValueError(f"status {status_type.value} requires remaining letters")
        if status_type not in AWAITING_LETTER_TYPES and remaining:
            raise ValueError(f"status {status_type.value} cannot have remaining letters")
        if status_type in AWAITING_LETTER_TYPES and self.wrong_attempts.get(word, 0) >= self.max_wrong_attempts:
            raise ValueError(f"status {status_type.value} requires attempts left for {word!r}")
        if status_type == StatusType.LETTER_MATCHED and self.status.letter_index > len(remaining):
            raise ValueError("letter_index is out of range")
        if status_type == StatusType.LETTER_ERROR and self.status.letter_index >= len(remaining):
            raise ValueError("letter_index is out of range")
        return self

    @classmethod
    def from_state(cls, state: ProgressState) -> "SnapshotSchema":
        return cls.model_validate({
            "version": SNAPSHOT_VERSION,
            "status": {"type": state.status.type.value, **asdict(state.status)},
            "words": list(state.words),
            "position": state.position,
            "max_wrong_attempts": state.max_wrong_attempts,
            "remaining_letters": list(state.remaining_letters),
            "wrong_attempts": dict(state.wrong_attempts),
        })

    def to_state(self) -> ProgressState:
        status_class = STATUS_CLASSES[StatusType(self.status.type)]
        return ProgressState(
            status=status_class(**self.status.model_dump(exclude={"type"})),
            cursor=Cursor.at(self.words, self.position),
            remaining_letters=tuple(self.remaining_letters),
            max_wrong_attempts=self.max_wrong_attempts,
            wrong_attempts=dict(self.wrong_attempts),
        )


class InputSchema(BaseModel):
    """Stored shape of an InputLetterEvent."""
    model_config = ConfigDict(extra="forbid")

    letter: Letter
    position_hint: Optional[NonNegativeInt] = None

    @classmethod
    def from_event(cls, event: InputLetterEvent) -> "InputSchema":
        return cls(letter=event.letter, position_hint=event.position_hint)

    def to_event(self) -> InputLetterEvent:
        return InputLetterEvent(letter=self.letter, position_hint=self.position_hint)


def encode_snapshot(state: ProgressState) -> str:
    return SnapshotSchema.from_state(state).model_dump_json()


def decode_snapshot(raw: str) -> ProgressState:
    """Parse and validate a stored snapshot, raising SnapshotError on any problem."""
    try:
        return SnapshotSchema.model_validate_json(raw).to_state()
    except (ValidationError, ValueError) as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e


def encode_input(event: InputLetterEvent) -> str:
    return InputSchema.from_event(event).model_dump_json()


def decode_input(raw: str) -> InputLetterEvent:
    """Parse and validate a stored input event, raising SnapshotError on any problem."""
    try:
        return InputSchema.model_validate_json(raw).to_event()
    except ValidationError as e:
        raise SnapshotError(f"Invalid input event: {e}") from e


@dataclass(frozen=True)
class SavedGame:
    """Decoded contents of the storage slots."""
    current: ProgressState
    previous: Optional[ProgressState] = None
    last_input: Optional[InputLetterEvent] = None

    @property
    def has_replay(self) -> bool:
        return self.previous is not None and self.last_input is not None


def rebuild_session(
    saved: SavedGame,
    settle_delay: Optional[float] = None,
    rng: Optional[random.Random] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> GameSession:
    """Create a settled session from saved progress, replaying the last input if present."""
    scheduler = TaskQueue(loop)

    if not saved.has_replay:
        if saved.current.status.type in PENDING_ADVANCE_TYPES:
            raise SnapshotError("Saved state awaits a next question but has no input to replay")
        return GameSession(saved.current, scheduler, settle_delay=settle_delay, rng=rng)

    session = GameSession(saved.previous, scheduler, settle_delay=settle_delay, rng=rng)
    session.handle_input(saved.last_input)
    if session.state != saved.current:
        logger.warning("Replayed input does not reproduce the saved state, keeping the saved state")
    if saved.current.status.type in PENDING_ADVANCE_TYPES and not scheduler:
        raise SnapshotError("Replayed input did not schedule the pending next question")

    session.state = saved.current
    if scheduler:
        executed = scheduler.run_all_now()
        logger.debug("Fast-forwarded %d replayed task(s)", executed)
    return session


class PersistenceService:
    """Service for saving game progress into the storage slots."""

    def __init__(self, store: SlotStore):
        """Initialize the service with a slot store."""
        self.store = store

    def record_start(self, state: ProgressState) -> None:
        """Save the initial state of a new game, dropping anything older."""
        self.record_settled(state)
        logger.debug("Saved new game with %d words", state.word_count)

    def record_settled(self, state: ProgressState) -> None:
        """Save a settled state on its own, dropping the replay pair."""
        self.store.put_many(
            {CURRENT_STATE_SLOT: encode_snapshot(state)},
            delete=[PREVIOUS_STATE_SLOT, LAST_INPUT_SLOT],
        )

    def record_input(self, previous: ProgressState, event: InputLetterEvent, current: ProgressState) -> None:
        """Save an accepted input with the states before and after it."""
        self.store.put_many({
            PREVIOUS_STATE_SLOT: encode_snapshot(previous),
            LAST_INPUT_SLOT: encode_input(event),
            CURRENT_STATE_SLOT: encode_snapshot(current),
        })

    def clear(self) -> None:
        self.store.put_many({}, delete=ALL_SLOTS)

    def load(self) -> Optional[SavedGame]:
        """Decode the stored slots; None when nothing is saved.

        Raises SnapshotError if any stored slot is malformed.
        """
        raw = self.store.get_many(ALL_SLOTS)
        if raw[CURRENT_STATE_SLOT] is None:
            return None

        current = decode_snapshot(raw[CURRENT_STATE_SLOT])
        previous = decode_snapshot(raw[PREVIOUS_STATE_SLOT]) if raw[PREVIOUS_STATE_SLOT] is not None else None
        last_input = decode_input(raw[LAST_INPUT_SLOT]) if raw[LAST_INPUT_SLOT] is not None else None
        return SavedGame(current=current, previous=previous, last_input=last_input)

    def restore(
        self,
        settle_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> Optional[GameSession]:
        """Rebuild the saved session, or None when there is nothing usable to restore."""
        try:
            saved = self.load()
            if saved is None:
                logger.info("No saved game to restore")
                return None
            session = rebuild_session(saved, settle_delay=settle_delay, rng=rng, loop=loop)
        except SnapshotError as e:
            logger.warning("Discarding saved game: %s", e)
            return None

        if session.state is not saved.current:
            # The replayed advance reshuffled the next word
            self.record_settled(session.state)

        logger.info(
            "Restored game at word %d of %d (%s)",
            session.state.position + 1,
            session.state.word_count,
            session.state.status.type.value,
        )
        return session
