"""Main application entry point."""
import asyncio
import logging
import random
from typing import Callable, Optional

from sqlalchemy.orm import Session

from spelldrill import monitoring
from spelldrill.config import settings
from spelldrill.console import ConsoleRenderer, parse_token
from spelldrill.models.base import SessionLocal, init_db
from spelldrill.models.game_models import InputLetterEvent, ProgressState, StatusType
from spelldrill.services.game_service import GameSession, new_game_state
from spelldrill.services.persistence_service import PersistenceService
from spelldrill.services.scheduler_service import TaskQueue
from spelldrill.services.storage_service import SlotStore
from spelldrill.services.word_service import choose_words, get_word_pool

PROMPT = "> "
NEW_GAME_COMMAND = ":new"
QUIT_COMMAND = ":quit"

ReadLine = Callable[[str], str]


class SpellDrillApp:
    """Console application wiring storage, the game session and the renderer."""

    def __init__(
        self,
        renderer: Optional[ConsoleRenderer] = None,
        read_line: ReadLine = input,
        rng: Optional[random.Random] = None,
        db: Optional[Session] = None,
    ):
        """Initialize the application."""
        self.renderer = renderer or ConsoleRenderer()
        self.read_line = read_line
        self.rng = rng or random.Random()
        self.db = db
        self.persistence: Optional[PersistenceService] = None
        self.session: Optional[GameSession] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Start the application and restore or create a game."""
        if self.running:
            return

        try:
            if self.db is None:
                init_db()
                self.db = SessionLocal()
                self.logger.info("Database initialized")
            self.persistence = PersistenceService(SlotStore(self.db))

            restored = self.persistence.restore(rng=self.rng)
            if restored is None:
                monitoring.restores.labels(result="none").inc()
                self.new_game()
            elif await self._confirm("Resume previous game? [Y/n] "):
                monitoring.restores.labels(result="resumed").inc()
                monitoring.games_started.labels(origin="restored").inc()
                self._attach(restored)
            else:
                monitoring.restores.labels(result="discarded").inc()
                self.new_game()

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if self.session is not None:
            self.session.scheduler.clear()
            self.session = None

        if self.db is not None:
            self.db.close()
            self.db = None
            self.logger.info("Database session closed")

        self.running = False

    def new_game(self) -> None:
        """Start a fresh game and save its initial state."""
        words = choose_words(get_word_pool(), settings.game.words_per_game, self.rng)
        state = new_game_state(words, settings.game.max_wrong_attempts, self.rng)
        self._attach(GameSession(state, TaskQueue(), rng=self.rng))
        self.persistence.record_start(state)
        monitoring.games_started.labels(origin="fresh").inc()
        self.logger.info("New game with %d words", state.word_count)

    def handle_line(self, line: str) -> bool:
        """Process one console line; returns False when the player quits."""
        line = line.strip()
        if line == QUIT_COMMAND:
            return False
        if line == NEW_GAME_COMMAND:
            self.new_game()
            return True

        for token in line.split():
            self.session.handle_inputs(parse_token(token, self.session.state))
        self.renderer.refresh(self.session.state)
        return True

    async def run(self) -> None:
        """Run the input loop until the player quits or input ends."""
        await self.start()
        loop = asyncio.get_running_loop()
        while self.running:
            try:
                line = await loop.run_in_executor(None, self.read_line, PROMPT)
            except EOFError:
                break
            if not self.handle_line(line):
                break
        await self.stop()

    def _attach(self, session: GameSession) -> None:
        if self.session is not None:
            self.session.scheduler.clear()
            self.session.scheduler.remove_listener(self._on_task_done)
        self.session = session
        session.on_input = self._on_input
        session.scheduler.add_listener(self._on_task_done)
        self.renderer.reset()
        self._refresh()

    def _on_input(self, previous: ProgressState, event: InputLetterEvent, current: ProgressState) -> None:
        self.persistence.record_input(previous, event, current)

        if current.wrong_attempts_for(previous.word) > previous.wrong_attempts_for(previous.word):
            monitoring.wrong_attempts.inc()
        if current.status.type == StatusType.ANSWER_CORRECT:
            monitoring.answers.labels(outcome="correct").inc()
        elif current.status.type == StatusType.ANSWER_FAILED:
            monitoring.answers.labels(outcome="failed").inc()

    def _on_task_done(self, task_id: int) -> None:
        if self.session is None:
            return
        if self._refresh() and self.session.is_finished:
            outcome = "correct" if self.session.state.status.type == StatusType.GAME_FINISHED_CORRECT else "failed"
            monitoring.games_finished.labels(outcome=outcome).inc()
            self.logger.info("Game finished (%s)", outcome)

    def _refresh(self) -> bool:
        state = self.session.state
        changed = self.renderer.refresh(state)
        if changed and self.session.is_finished:
            self.renderer.render_stats(self.session.stats())
            self.renderer.render_hint(f"Type {NEW_GAME_COMMAND} to play again or {QUIT_COMMAND} to leave.")
        return changed

    async def _confirm(self, question: str) -> bool:
        loop = asyncio.get_running_loop()
        try:
            answer = await loop.run_in_executor(None, self.read_line, question)
        except EOFError:
            return False
        return answer.strip().lower() in ("", "y", "yes")

