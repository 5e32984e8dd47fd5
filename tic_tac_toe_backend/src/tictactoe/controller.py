"""
Game session controller.

Owns the board, turn, mode, outcome and score of one session. The frontend
reads immutable snapshots and issues commands; nothing else mutates a session.
"""

import asyncio
import logging
import random
from enum import Enum
from typing import Callable, Dict, List, Optional

from .core import (
    BOARD_SIZE,
    IN_PROGRESS,
    Board,
    GameMode,
    Outcome,
    OutcomeKind,
    Player,
    choose_move,
    evaluate,
)
from .models import GameSnapshot
from .remote import RemoteMoveStrategy

logger = logging.getLogger(__name__)

HUMAN_PLAYER = Player.X
AUTOMATED_PLAYER = Player.O

Listener = Callable[[GameSnapshot], None]


class Phase(str, Enum):
    MODE_SELECT = "mode_select"
    IN_PROGRESS = "in_progress"
    GAME_OVER = "game_over"


class GameController:
    """
    Turn sequencing, scoring and automated play for a single session.

    Every accepted move and every reset bumps `token`. A scheduled automated
    decision remembers the token it was made for and is dropped if the token
    has moved on by the time it is ready.
    """

    def __init__(
        self,
        remote: Optional[RemoteMoveStrategy] = None,
        move_delay: float = 0.55,
        rng: Optional[random.Random] = None,
    ):
        self.remote = remote
        self.move_delay = move_delay
        self._rng = rng or random.Random()
        self._listeners: List[Listener] = []
        self._pending: Optional["asyncio.Task[None]"] = None
        self._pending_token: Optional[int] = None
        self._token = 0
        self._mode = GameMode.UNSELECTED
        self._score: Dict[Player, int] = {Player.X: 0, Player.O: 0}
        self._clear_board()

    def _clear_board(self) -> None:
        self._board = Board()
        self._turn = Player.X
        self._outcome: Outcome = IN_PROGRESS
        self._token += 1

    @property
    def board(self) -> Board:
        return self._board

    @property
    def turn(self) -> Player:
        return self._turn

    @property
    def mode(self) -> GameMode:
        return self._mode

    @property
    def outcome(self) -> Outcome:
        return self._outcome

    @property
    def score(self) -> Dict[Player, int]:
        return dict(self._score)

    @property
    def token(self) -> int:
        return self._token

    @property
    def phase(self) -> Phase:
        if self._mode is GameMode.UNSELECTED:
            return Phase.MODE_SELECT
        if self._outcome.is_over:
            return Phase.GAME_OVER
        return Phase.IN_PROGRESS

    def _automated_turn(self) -> bool:
        return (
            self._mode is GameMode.AI
            and self.phase is Phase.IN_PROGRESS
            and self._turn is AUTOMATED_PLAYER
        )

    def can_play(self, index: int) -> bool:
        """True if a human move at `index` would be accepted right now."""
        return (
            self.phase is Phase.IN_PROGRESS
            and isinstance(index, int)
            and not isinstance(index, bool)
            and self._board.is_empty(index)
            and not self._automated_turn()
        )

    # PUBLIC_INTERFACE
    def select_mode(self, mode) -> bool:
        """Start a fresh session in `mode`; scores are reset."""
        mode = GameMode(mode)
        if mode is GameMode.UNSELECTED:
            logger.debug("Ignoring selection of the unselected mode")
            return False
        self._mode = mode
        self._score = {Player.X: 0, Player.O: 0}
        self._clear_board()
        logger.info("Mode selected: %s", mode.value)
        self._changed()
        return True

    # PUBLIC_INTERFACE
    def play_at(self, index: int) -> bool:
        """Place the current player's mark. Returns False if the move is ignored."""
        if not self.can_play(index):
            logger.debug("Ignoring move at %r (phase=%s, turn=%s)", index, self.phase.value, self._turn.value)
            return False
        self._apply(index)
        return True

    # PUBLIC_INTERFACE
    def restart(self) -> bool:
        """Clear the board but keep mode and score."""
        if self.phase is Phase.MODE_SELECT:
            logger.debug("Ignoring restart before a mode is selected")
            return False
        self._clear_board()
        logger.info("Game restarted (score X=%d O=%d)", self._score[Player.X], self._score[Player.O])
        self._changed()
        return True

    # PUBLIC_INTERFACE
    def new_game(self) -> bool:
        """Return to mode selection, dropping mode and score."""
        self._mode = GameMode.UNSELECTED
        self._score = {Player.X: 0, Player.O: 0}
        self._clear_board()
        logger.info("New game, back to mode selection")
        self._changed()
        return True

    def _apply(self, index: int) -> None:
        player = self._turn
        self._board = self._board.place(index, player)
        self._turn = player.opponent
        self._outcome = evaluate(self._board)
        self._token += 1
        if self._outcome.kind is OutcomeKind.WIN:
            self._score[self._outcome.winner] += 1
            logger.info("Game over: %s wins", self._outcome.winner.value)
        elif self._outcome.kind is OutcomeKind.DRAW:
            logger.info("Game over: draw")
        self._changed()

    # PUBLIC_INTERFACE
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")
        self._schedule_automated_move()

    def _schedule_automated_move(self) -> None:
        if not self._automated_turn():
            return
        token = self._token
        if self._pending_token == token and self._pending is not None and not self._pending.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: play the heuristic move straight away.
            self._apply(choose_move(self._board, AUTOMATED_PLAYER, self._rng))
            return
        self._pending_token = token
        self._pending = loop.create_task(self._play_automated(token))
        self._pending.add_done_callback(self._report_failure)

    def _is_current(self, token: int) -> bool:
        return token == self._token and self._automated_turn()

    async def _play_automated(self, token: int) -> None:
        await asyncio.sleep(self.move_delay)
        if not self._is_current(token):
            logger.debug("Discarding stale automated move for token %d", token)
            return

        move = None
        source = "heuristic"
        if self.remote is not None:
            try:
                move = await self.remote.suggest_move(self._board)
            except Exception:
                logger.warning("Remote move strategy failed, using heuristic", exc_info=True)
                move = None
            if not self._is_current(token):
                logger.debug("Discarding remote suggestion for stale token %d", token)
                return
            if move is not None and self._board.is_empty(move):
                source = "remote"
            else:
                move = None
        if move is None:
            move = choose_move(self._board, AUTOMATED_PLAYER, self._rng)

        logger.info("Automated player %s plays %d (%s)", AUTOMATED_PLAYER.value, move, source)
        self._apply(move)

    @staticmethod
    def _report_failure(task: "asyncio.Task[None]") -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Automated move failed", exc_info=task.exception())

    # PUBLIC_INTERFACE
    async def settle(self) -> None:
        """Wait until no automated move is pending."""
        while self._pending is not None and not self._pending.done():
            await self._pending

    def _status(self) -> str:
        if self.phase is Phase.MODE_SELECT:
            return ""
        if self._outcome.kind is OutcomeKind.WIN:
            return f"Winner: {self._outcome.winner.value}"
        if self._outcome.kind is OutcomeKind.DRAW:
            return "It's a draw!"
        return f"{self._turn.value}'s turn"

    # PUBLIC_INTERFACE
    def snapshot(self) -> GameSnapshot:
        winner = self._outcome.winner
        return GameSnapshot(
            cells=self._board.to_list(),
            turn=self._turn.value,
            mode=self._mode.value,
            phase=self.phase.value,
            outcome=self._outcome.kind.value,
            winner=winner.value if winner is not None else None,
            score={player.value: wins for player, wins in self._score.items()},
            status=self._status(),
            playable=[self.can_play(i) for i in range(BOARD_SIZE)],
            automated_player=AUTOMATED_PLAYER.value if self._mode is GameMode.AI else None,
        )
