"""Game state transitions and the live game session."""
import logging
import random
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from spelldrill.config import settings
from spelldrill.models.cursor import Cursor, advance, is_last
from spelldrill.models.game_models import (
    AWAITING_LETTER_TYPES,
    FINISHED_TYPES,
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
    Stats,
    StatusType,
)
from spelldrill.services.scheduler_service import TaskQueue
from spelldrill.services.word_service import validate_words


logger = logging.getLogger(__name__)

InputRecorder = Callable[[ProgressState, InputLetterEvent, ProgressState], None]


@dataclass(frozen=True)
class Transition:
    """Result of applying an input: the new state and whether to schedule the next question."""
    state: ProgressState
    schedule_advance: bool = False


def shuffle_letters(word: str, rng: Optional[random.Random] = None) -> Tuple[str, ...]:
    """Shuffle the letters of ``word`` into an order different from the word itself.

    The word must have at least two distinct letters, otherwise no such order
    exists and the loop would never end.
    """
    rng = rng or random.Random()
    letters = list(word)
    while True:
        rng.shuffle(letters)
        if "".join(letters) != word:
            return tuple(letters)


def new_game_state(
    words: Sequence[str],
    max_wrong_attempts: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> ProgressState:
    """Create the initial state for a game over ``words``."""
    words = list(words)
    validate_words(words)
    if max_wrong_attempts is None:
        max_wrong_attempts = settings.game.max_wrong_attempts
    if max_wrong_attempts < 1:
        raise ValueError("max_wrong_attempts must be positive")

    cursor = Cursor.create(words)
    return ProgressState(
        status=ReadyForInput(),
        cursor=cursor,
        remaining_letters=shuffle_letters(cursor.current, rng),
        max_wrong_attempts=max_wrong_attempts,
        wrong_attempts={},
    )


def is_in_progress(state: ProgressState) -> bool:
    """True while words remain after the current one, or the current one is still open."""
    return (
        not is_last(state.cursor)
        or (
            len(state.remaining_letters) > 0
            and state.wrong_attempts_for() < state.max_wrong_attempts
        )
    )


def expected_letter(state: ProgressState) -> Optional[str]:
    """The next letter of the current word, or None once it is assembled."""
    word = state.word
    index = len(word) - len(state.remaining_letters)
    if index >= len(word):
        return None
    return word[index]


def normalize_letter(letter: str) -> Optional[str]:
    if len(letter) != 1 or not letter.isalpha():
        return None
    return letter.lower()


def find_letter(remaining: Sequence[str], letter: str, hint: Optional[int] = None) -> Optional[int]:
    """Index of ``letter`` among the remaining letters, preferring ``hint`` when it matches."""
    if hint is not None and 0 <= hint < len(remaining) and remaining[hint] == letter:
        return hint
    try:
        return remaining.index(letter)
    except ValueError:
        return None


def apply_input(state: ProgressState, event: InputLetterEvent) -> Transition:
    """Apply a letter input. Inputs that do not apply return the same state object."""
    if state.status.type not in AWAITING_LETTER_TYPES:
        return Transition(state)

    letter = normalize_letter(event.letter)
    expected = expected_letter(state)
    if letter is None or expected is None:
        logger.debug("Absorbed input %r", event.letter)
        return Transition(state)

    remaining = state.remaining_letters
    if letter == expected:
        index = find_letter(remaining, letter, event.position_hint)
        remaining = remaining[:index] + remaining[index + 1:]
        if remaining:
            return Transition(replace(state, status=LetterMatched(index), remaining_letters=remaining))
        logger.debug("Word %r assembled", state.word)
        return Transition(replace(state, status=AnswerCorrect(), remaining_letters=()), schedule_advance=True)

    counts = state.with_wrong_attempt()
    if counts[state.word] >= state.max_wrong_attempts:
        logger.debug("Word %r failed after %d wrong attempts", state.word, counts[state.word])
        return Transition(
            replace(state, status=AnswerFailed(), remaining_letters=(), wrong_attempts=counts),
            schedule_advance=True,
        )

    index = find_letter(remaining, letter, event.position_hint)
    status = LetterError(index) if index is not None else state.status
    return Transition(replace(state, status=status, wrong_attempts=counts))


def next_question(state: ProgressState, rng: Optional[random.Random] = None) -> ProgressState:
    """Move on after an answered question, or finish the game after the last one."""
    if state.status.type not in PENDING_ADVANCE_TYPES:
        return state

    if is_in_progress(state):
        cursor = advance(state.cursor)
        return replace(
            state,
            status=ReadyForInput(),
            cursor=cursor,
            remaining_letters=shuffle_letters(cursor.current, rng),
        )

    if state.status.type == StatusType.ANSWER_CORRECT:
        return replace(state, status=GameFinishedCorrect())
    return replace(state, status=GameFinishedFailed())


def calc_stats(state: ProgressState) -> Stats:
    """Summarize wrong attempts over all words of the game."""
    perfect_word_count = 0
    total_wrong_attempts = 0
    worst_word = None
    worst_count = 0
    for word in state.cursor:
        count = state.wrong_attempts_for(word)
        total_wrong_attempts += count
        if count == 0:
            perfect_word_count += 1
        elif count > worst_count:
            worst_word = word
            worst_count = count
    return Stats(
        perfect_word_count=perfect_word_count,
        total_wrong_attempts=total_wrong_attempts,
        worst_word=worst_word,
    )


class GameSession:
    """Owns the live progress state and the task queue that advances it.

    While the queue holds a task, inputs are refused: the pending task is the
    only writer of ``state`` until it fires.
    """

    def __init__(
        self,
        state: ProgressState,
        scheduler: Optional[TaskQueue] = None,
        settle_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
        on_input: Optional[InputRecorder] = None,
    ):
        self.state = state
        self.scheduler = scheduler if scheduler is not None else TaskQueue()
        self.settle_delay = settings.game.settle_delay if settle_delay is None else settle_delay
        self.rng = rng or random.Random()
        self.on_input = on_input

    @property
    def is_settled(self) -> bool:
        return not self.scheduler

    @property
    def is_finished(self) -> bool:
        return self.state.status.type in FINISHED_TYPES

    def handle_input(self, event: InputLetterEvent) -> bool:
        """Apply an input; returns True when it changed the state."""
        if self.scheduler:
            logger.debug("Ignoring input %r while %d task(s) pending", event.letter, len(self.scheduler))
            return False

        previous = self.state
        transition = apply_input(previous, event)
        if transition.state is previous:
            return False

        self.state = transition.state
        if transition.schedule_advance:
            self.scheduler.push(self._advance, self.settle_delay)
        if self.on_input is not None:
            self.on_input(previous, event, self.state)
        return True

    def handle_inputs(self, events: List[InputLetterEvent]) -> int:
        """Apply several inputs in order; returns how many were accepted."""
        return sum(1 for event in events if self.handle_input(event))

    def stats(self) -> Stats:
        return calc_stats(self.state)

    def _advance(self) -> None:
        self.state = next_question(self.state, self.rng)
        logger.debug("Advanced to status %s at word %d", self.state.status.type.value, self.state.position)
