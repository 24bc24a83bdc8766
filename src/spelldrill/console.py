"""Console input parsing and rendering for the spelling drill."""
import logging
import sys
from typing import List, Optional, TextIO

from spelldrill.models.game_models import InputLetterEvent, ProgressState, Stats, Status, StatusType

logger = logging.getLogger(__name__)

TILE_PREFIX = "#"

STATUS_MESSAGES = {
    StatusType.READY_FOR_INPUT: "Spell the word by picking letters.",
    StatusType.LETTER_MATCHED: "Good!",
    StatusType.LETTER_ERROR: "Not this one.",
    StatusType.ANSWER_CORRECT: "Correct!",
    StatusType.ANSWER_FAILED: "Out of attempts.",
    StatusType.GAME_FINISHED_CORRECT: "Game over. Well done!",
    StatusType.GAME_FINISHED_FAILED: "Game over.",
}


def parse_token(token: str, state: ProgressState) -> List[InputLetterEvent]:
    """Turn one console token into letter events.

    ``#N`` picks tile N (1-based) of the remaining letters; any other token is
    read as keystrokes, one event per letter. Everything else is dropped.
    """
    if token.startswith(TILE_PREFIX):
        number = token[len(TILE_PREFIX):]
        if not number.isdigit():
            logger.debug("Dropped token %r", token)
            return []
        index = int(number) - 1
        if index < 0 or index >= len(state.remaining_letters):
            logger.debug("No tile %s", number)
            return []
        return [InputLetterEvent(letter=state.remaining_letters[index], position_hint=index)]

    return [InputLetterEvent(letter=char) for char in token if char.isalpha()]


class ConsoleRenderer:
    """Prints the game whenever its status changes."""

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self._last_status: Optional[Status] = None

    def reset(self) -> None:
        self._last_status = None

    def refresh(self, state: ProgressState) -> bool:
        """Render ``state`` if its status is a different object than last time."""
        if state.status is self._last_status:
            return False
        self._last_status = state.status
        self.render(state)
        return True

    def render(self, state: ProgressState) -> None:
        status_type = state.status.type
        self._print(STATUS_MESSAGES[status_type])

        if status_type == StatusType.ANSWER_FAILED:
            self._print(f"The word was: {state.word}")
            return
        if status_type in (StatusType.ANSWER_CORRECT, StatusType.GAME_FINISHED_CORRECT,
                           StatusType.GAME_FINISHED_FAILED):
            return

        answer = state.revealed_prefix + "_" * len(state.remaining_letters)
        tiles = "  ".join(f"{i}:{letter}" for i, letter in enumerate(state.remaining_letters, start=1))
        self._print(
            f"Word {state.position + 1}/{state.word_count}  [{answer}]  "
            f"wrong: {state.wrong_attempts_for()}/{state.max_wrong_attempts}"
        )
        self._print(f"Letters: {tiles}")

    def render_stats(self, stats: Stats) -> None:
        self._print(f"Perfect words: {stats.perfect_word_count}")
        self._print(f"Total wrong inputs: {stats.total_wrong_attempts}")
        if stats.worst_word:
            self._print(f"Hardest word: {stats.worst_word}")

    def render_hint(self, text: str) -> None:
        self._print(text)

    def _print(self, text: str) -> None:
        print(text, file=self.out)
