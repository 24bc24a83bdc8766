"""Models for game-related data structures."""
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Mapping, Optional, Tuple, Union

from spelldrill.config import DEFAULT_MAX_WRONG_ATTEMPTS
from spelldrill.models.cursor import Cursor


class StatusType(Enum):
    """Tags of the game status variants."""
    READY_FOR_INPUT = "ready_for_input"  # Waiting for the first/next letter
    LETTER_MATCHED = "letter_matched"  # Last input was the expected letter
    LETTER_ERROR = "letter_error"  # Last input was a wrong, visible letter
    ANSWER_CORRECT = "answer_correct"  # Word assembled, next question pending
    ANSWER_FAILED = "answer_failed"  # Out of attempts, next question pending
    GAME_FINISHED_CORRECT = "game_finished_correct"
    GAME_FINISHED_FAILED = "game_finished_failed"


@dataclass(frozen=True)
class ReadyForInput:
    type: ClassVar[StatusType] = StatusType.READY_FOR_INPUT


@dataclass(frozen=True)
class LetterMatched:
    """The letter at ``letter_index`` of the remaining letters was placed."""
    letter_index: int
    type: ClassVar[StatusType] = StatusType.LETTER_MATCHED


@dataclass(frozen=True)
class LetterError:
    """The letter at ``letter_index`` of the remaining letters was a wrong pick."""
    letter_index: int
    type: ClassVar[StatusType] = StatusType.LETTER_ERROR


@dataclass(frozen=True)
class AnswerCorrect:
    type: ClassVar[StatusType] = StatusType.ANSWER_CORRECT


@dataclass(frozen=True)
class AnswerFailed:
    type: ClassVar[StatusType] = StatusType.ANSWER_FAILED


@dataclass(frozen=True)
class GameFinishedCorrect:
    type: ClassVar[StatusType] = StatusType.GAME_FINISHED_CORRECT


@dataclass(frozen=True)
class GameFinishedFailed:
    type: ClassVar[StatusType] = StatusType.GAME_FINISHED_FAILED


Status = Union[
    ReadyForInput,
    LetterMatched,
    LetterError,
    AnswerCorrect,
    AnswerFailed,
    GameFinishedCorrect,
    GameFinishedFailed,
]

AWAITING_LETTER_TYPES = frozenset({
    StatusType.READY_FOR_INPUT,
    StatusType.LETTER_MATCHED,
    StatusType.LETTER_ERROR,
})
PENDING_ADVANCE_TYPES = frozenset({
    StatusType.ANSWER_CORRECT,
    StatusType.ANSWER_FAILED,
})
FINISHED_TYPES = frozenset({
    StatusType.GAME_FINISHED_CORRECT,
    StatusType.GAME_FINISHED_FAILED,
})


@dataclass(frozen=True)
class InputLetterEvent:
    """A logical letter input.

    ``position_hint`` points into the remaining letters when the input came
    from a specific tile rather than a keystroke; it decides which of two
    equal letters is meant.
    """
    letter: str
    position_hint: Optional[int] = None


@dataclass(frozen=True)
class Stats:
    """Summary of a finished game."""
    perfect_word_count: int
    total_wrong_attempts: int
    worst_word: Optional[str] = None


@dataclass(frozen=True)
class ProgressState:
    """Complete game progress.

    Instances are never modified; every transition builds a new one.
    """
    status: Status
    cursor: Cursor[str]
    remaining_letters: Tuple[str, ...]
    max_wrong_attempts: int = DEFAULT_MAX_WRONG_ATTEMPTS
    wrong_attempts: Mapping[str, int] = field(default_factory=dict)

    @property
    def word(self) -> str:
        return self.cursor.current

    @property
    def words(self) -> Tuple[str, ...]:
        return tuple(self.cursor)

    @property
    def position(self) -> int:
        return len(self.cursor.before)

    @property
    def word_count(self) -> int:
        return len(self.cursor)

    @property
    def revealed_prefix(self) -> str:
        """Letters of the current word already assembled."""
        return self.word[:len(self.word) - len(self.remaining_letters)]

    def wrong_attempts_for(self, word: Optional[str] = None) -> int:
        return self.wrong_attempts.get(word if word is not None else self.word, 0)

    def with_wrong_attempt(self) -> Dict[str, int]:
        """Copy of the counters with the current word incremented."""
        counts = dict(self.wrong_attempts)
        counts[self.word] = counts.get(self.word, 0) + 1
        return counts
