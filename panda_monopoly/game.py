"""
Core game state and the turn/movement engine.

GameState is the single shared record for one game: seats, the per-space
ownership table, the bank, active trades and the event log. The turn engine
lives here as methods; the property, building, card, bankruptcy, trade and
timeout engines are modules of functions that operate on a GameState.

Every operation validates all of its preconditions before mutating anything,
so a raised MonopolyError leaves the record exactly as it was.
"""

import random
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from panda_monopoly.board import BOARD, Board
from panda_monopoly.config import BOARD_SIZE, JAIL_POSITION, MAX_DOUBLES, GameConfig
from panda_monopoly.exceptions import (
    GameErrorCode,
    InsufficientFundsError,
    InvalidActionError,
    InvalidPositionError,
)
from panda_monopoly.money import Bank, EventLog, EventType, checked_add, checked_sub
from panda_monopoly.player import (
    AwaitingBankruptcy,
    AwaitingCardDraw,
    AwaitingPayment,
    AwaitingPropertyDecision,
    AwaitingRoll,
    Closed,
    PlayerState,
    PropertyState,
    Resolved,
)
from panda_monopoly.rent import compute_rent
from panda_monopoly.spaces import (
    ChanceSpace,
    CommunityChestSpace,
    GoToJailSpace,
    OwnableSpace,
    TaxSpace,
)
from panda_monopoly.trade import TradeManager


class GameStatus(Enum):
    """Lifecycle status of a game."""

    WAITING_FOR_PLAYERS = "waiting_for_players"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class GameEndReason(Enum):
    BANKRUPTCY_VICTORY = "bankruptcy_victory"
    TIME_LIMIT = "time_limit"


class GameState:
    """
    Complete state of one game instance.

    Seats are stable: a bankrupt player keeps their seat index and record,
    and the `alive` bitset says which seats still take turns.
    """

    def __init__(
        self,
        creator: str,
        config: Optional[GameConfig] = None,
        clock: Callable[[], float] = time.time,
        board: Board = BOARD,
    ):
        self.creator = creator
        self.config = config or GameConfig()
        self.clock = clock
        self.board = board
        self.rng = random.Random(self.config.seed)
        self.event_log = EventLog()

        self.bank = Bank(
            self.config.initial_bank_balance,
            house_limit=self.config.house_limit,
            hotel_limit=self.config.hotel_limit,
        )
        self.properties: List[PropertyState] = [PropertyState() for _ in range(BOARD_SIZE)]
        self.players: List[PlayerState] = []
        self.alive = 0

        self.status = GameStatus.WAITING_FOR_PLAYERS
        self.current_turn = 0
        self.turn_number = 0
        self.created_at = self.now()
        self.started_at: Optional[int] = None
        self.turn_started_at = self.created_at

        self.trade_manager = TradeManager(
            self.event_log,
            max_active_trades=self.config.max_active_trades,
            expiry_seconds=self.config.trade_expiry_seconds,
        )

        self.entry_fee = self.config.entry_fee
        self.total_prize_pool = 0
        self.prize_claimed = False
        self.winner: Optional[str] = None
        self.end_reason: Optional[GameEndReason] = None

        self.event_log.log(EventType.GAME_CREATED, player_id=creator)

    # ------------------------------------------------------------------
    # Record accessors
    # ------------------------------------------------------------------

    def now(self) -> int:
        return int(self.clock())

    @property
    def bank_balance(self) -> int:
        return self.bank.balance

    @property
    def houses_remaining(self) -> int:
        return self.bank.houses_available

    @property
    def hotels_remaining(self) -> int:
        return self.bank.hotels_available

    @property
    def active_trades(self):
        return self.trade_manager.active_trades

    @property
    def current_players(self) -> int:
        """Number of seats still in the game."""
        return bin(self.alive).count("1")

    @property
    def game_over(self) -> bool:
        return self.status == GameStatus.FINISHED

    def is_alive(self, seat: int) -> bool:
        return bool((self.alive >> seat) & 1)

    def active_players(self) -> List[PlayerState]:
        return [p for p in self.players if self.is_alive(p.seat)]

    def find_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def get_player(self, player_id: str) -> PlayerState:
        """Get a live player's record, raising PlayerNotFound otherwise."""
        player = self.find_player(player_id)
        if player is None or not self.is_alive(player.seat):
            raise InvalidActionError(GameErrorCode.PLAYER_NOT_FOUND, f"Player {player_id} not in game")
        return player

    def get_current_player(self) -> PlayerState:
        return self.players[self.current_turn]

    # ------------------------------------------------------------------
    # Precondition helpers
    # ------------------------------------------------------------------

    def require_in_progress(self) -> None:
        if self.status != GameStatus.IN_PROGRESS:
            raise InvalidActionError(GameErrorCode.GAME_NOT_IN_PROGRESS, f"Game is {self.status.value}")

    def require_turn(self, player_id: str) -> PlayerState:
        """Return the acting player's record if it is their turn."""
        self.require_in_progress()
        player = self.get_player(player_id)
        if player.seat != self.current_turn:
            raise InvalidActionError(GameErrorCode.NOT_PLAYER_TURN, f"Not {player_id}'s turn")
        return player

    @staticmethod
    def require_not_bankrupting(player: PlayerState) -> None:
        if isinstance(player.phase, AwaitingBankruptcy):
            raise InvalidActionError(
                GameErrorCode.MUST_DECLARE_BANKRUPTCY,
                f"{player.player_id} must resolve bankruptcy first",
            )

    def touch(self, player: PlayerState) -> None:
        """Record that the player just acted."""
        player.last_action_timestamp = self.now()

    # ------------------------------------------------------------------
    # Money movement
    # ------------------------------------------------------------------

    def pay_bank(self, player: PlayerState, amount: int) -> None:
        """Move cash from a player to the bank. Raises if the player is short."""
        if player.cash_balance < amount:
            raise InsufficientFundsError(amount, player.cash_balance)
        cash = checked_sub(player.cash_balance, amount)
        net_worth = checked_sub(player.net_worth, amount)
        self.bank.collect(amount)
        player.cash_balance = cash
        player.net_worth = net_worth

    def require_bank_can_pay(self, amount: int) -> None:
        """Raise before anything changes if the bank cannot cover a payout."""
        checked_sub(self.bank.balance, amount)

    def receive_from_bank(self, player: PlayerState, amount: int) -> None:
        cash = checked_add(player.cash_balance, amount)
        net_worth = checked_add(player.net_worth, amount)
        self.bank.pay(amount)
        player.cash_balance = cash
        player.net_worth = net_worth

    def transfer(self, payer: PlayerState, payee: PlayerState, amount: int) -> None:
        """Move cash between two players."""
        if payer.cash_balance < amount:
            raise InsufficientFundsError(amount, payer.cash_balance)
        payer_cash = checked_sub(payer.cash_balance, amount)
        payer_worth = checked_sub(payer.net_worth, amount)
        payee_cash = checked_add(payee.cash_balance, amount)
        payee_worth = checked_add(payee.net_worth, amount)
        payer.cash_balance, payer.net_worth = payer_cash, payer_worth
        payee.cash_balance, payee.net_worth = payee_cash, payee_worth
        self.event_log.log(
            EventType.TRANSFER,
            player_id=payer.player_id,
            to=payee.player_id,
            amount=amount,
        )

    def defer_to_bankruptcy(self, player: PlayerState, amount: int, creditor: Optional[str] = None) -> None:
        """Soft-fail an unaffordable obligation into the bankruptcy phase."""
        player.phase = AwaitingBankruptcy(amount=amount, creditor=creditor)
        self.event_log.log(
            EventType.PAYMENT_DEFERRED,
            player_id=player.player_id,
            amount=amount,
            creditor=creditor,
            cash=player.cash_balance,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def join_game(self, player_id: str) -> PlayerState:
        """Add a participant while the game is waiting for players."""
        if self.status != GameStatus.WAITING_FOR_PLAYERS:
            raise InvalidActionError(GameErrorCode.GAME_ALREADY_STARTED, "Game has already started")
        if len(self.players) >= self.config.max_players:
            raise InvalidActionError(GameErrorCode.MAX_PLAYERS_REACHED, "Game is full")
        if self.find_player(player_id) is not None:
            raise InvalidActionError(GameErrorCode.PLAYER_ALREADY_EXISTS, f"{player_id} already joined")

        prize_pool = checked_add(self.total_prize_pool, self.entry_fee)
        player = PlayerState(player_id, len(self.players), self.config.starting_money)
        player.last_action_timestamp = self.now()
        self.players.append(player)
        self.alive |= 1 << player.seat
        self.total_prize_pool = prize_pool

        self.event_log.log(EventType.PLAYER_JOINED, player_id=player_id, seat=player.seat)
        return player

    def leave_game(self, player_id: str) -> None:
        """Withdraw before the game starts. The creator cannot leave."""
        if self.status != GameStatus.WAITING_FOR_PLAYERS:
            raise InvalidActionError(GameErrorCode.GAME_ALREADY_STARTED, "Game has already started")
        if player_id == self.creator:
            raise InvalidActionError(GameErrorCode.CREATOR_CANNOT_LEAVE_GAME, "Creator cannot leave")
        if self.find_player(player_id) is None:
            raise InvalidActionError(GameErrorCode.PLAYER_NOT_FOUND, f"{player_id} not in game")

        prize_pool = checked_sub(self.total_prize_pool, self.entry_fee)
        remaining = [p for p in self.players if p.player_id != player_id]
        for seat, player in enumerate(remaining):
            player.seat = seat
        self.players = remaining
        self.alive = (1 << len(remaining)) - 1
        self.total_prize_pool = prize_pool

        self.event_log.log(EventType.PLAYER_LEFT, player_id=player_id)

    def start_game(self, caller: str) -> None:
        """Begin play. Only the creator may start, and only with enough players."""
        if caller != self.creator:
            raise InvalidActionError(GameErrorCode.UNAUTHORIZED, "Only the creator can start the game")
        if self.status != GameStatus.WAITING_FOR_PLAYERS:
            raise InvalidActionError(GameErrorCode.GAME_ALREADY_STARTED, "Game has already started")
        if len(self.players) < self.config.min_players:
            raise InvalidActionError(
                GameErrorCode.MIN_PLAYERS_NOT_MET,
                f"Need {self.config.min_players} players, have {len(self.players)}",
            )

        self.status = GameStatus.IN_PROGRESS
        self.started_at = self.now()
        self.event_log.log(
            EventType.GAME_START,
            player_id=caller,
            players=[p.player_id for p in self.players],
        )
        self._begin_turn(0)

    def check_end_condition(self) -> bool:
        """Finish the game if at most one player remains. Returns True if finished."""
        if self.status != GameStatus.IN_PROGRESS:
            return self.status == GameStatus.FINISHED
        survivors = self.active_players()
        if len(survivors) > 1:
            return False
        winner = survivors[0].player_id if survivors else None
        self._finish(winner, GameEndReason.BANKRUPTCY_VICTORY)
        return True

    def end_game(self) -> Optional[str]:
        """
        Close the game if it can end: a single survivor, or the optional time
        limit has run out (highest net worth wins, earliest seat on ties).
        """
        self.require_in_progress()
        if self.check_end_condition():
            return self.winner

        limit = self.config.time_limit_seconds
        if limit is None or self.started_at is None or self.now() - self.started_at < limit:
            raise InvalidActionError(GameErrorCode.GAME_CANNOT_END, "Game cannot end yet")

        leader = max(self.active_players(), key=lambda p: (p.net_worth, -p.seat))
        self._finish(leader.player_id, GameEndReason.TIME_LIMIT)
        return self.winner

    def claim_reward(self, player_id: str) -> int:
        """Mark the prize pool as claimed by the winner and return its amount."""
        if self.status != GameStatus.FINISHED:
            raise InvalidActionError(GameErrorCode.GAME_NOT_FINISHED, "Game is not finished")
        if self.prize_claimed:
            raise InvalidActionError(GameErrorCode.PRIZE_ALREADY_CLAIMED, "Prize already claimed")
        if self.winner != player_id:
            raise InvalidActionError(GameErrorCode.NOT_WINNER, f"{player_id} is not the winner")
        if self.entry_fee == 0 or self.total_prize_pool == 0:
            raise InvalidActionError(GameErrorCode.NO_PRIZE_TO_CLAIM, "No prize to claim")

        amount = self.total_prize_pool
        self.prize_claimed = True
        self.total_prize_pool = 0
        self.event_log.log(EventType.REWARD_CLAIMED, player_id=player_id, amount=amount)
        return amount

    def _finish(self, winner: Optional[str], reason: GameEndReason) -> None:
        self.status = GameStatus.FINISHED
        self.winner = winner
        self.end_reason = reason
        for player in self.players:
            player.phase = Closed()
        self.event_log.log(EventType.GAME_END, player_id=winner, reason=reason.value)

    # ------------------------------------------------------------------
    # Turn order
    # ------------------------------------------------------------------

    def next_active_seat(self, seat: int) -> int:
        """First live seat after `seat` in round-robin order."""
        count = len(self.players)
        for offset in range(1, count + 1):
            candidate = (seat + offset) % count
            if self.is_alive(candidate):
                return candidate
        raise InvalidActionError(GameErrorCode.PLAYER_NOT_FOUND, "No active players remaining")

    def _begin_turn(self, seat: int) -> None:
        self.current_turn = seat
        self.turn_number += 1
        self.turn_started_at = self.now()
        player = self.players[seat]
        player.reset_turn_state()
        if not isinstance(player.phase, AwaitingBankruptcy):
            player.phase = AwaitingRoll()
        self.event_log.log(EventType.TURN_START, player_id=player.player_id, turn=self.turn_number)

    def advance_turn(self) -> None:
        """Close the current turn and hand play to the next live seat."""
        player = self.get_current_player()
        player.reset_turn_state()
        if not isinstance(player.phase, AwaitingBankruptcy):
            player.phase = Closed()
        self._begin_turn(self.next_active_seat(self.current_turn))

    def eliminate_player(self, player: PlayerState) -> None:
        """Clear a player's seat from the live set and keep the turn on a live seat."""
        was_current = player.seat == self.current_turn
        self.alive &= ~(1 << player.seat)
        player.is_bankrupt = True
        player.phase = Closed()
        player.reset_turn_state()
        if self.check_end_condition():
            return
        if was_current:
            self._begin_turn(self.next_active_seat(player.seat))

    @staticmethod
    def clear_obligation(player: PlayerState) -> None:
        """After an obligation is met, return to rolling (doubles) or allow the turn to close."""
        player.phase = Resolved() if player.has_rolled_dice else AwaitingRoll()

    # ------------------------------------------------------------------
    # Dice and movement
    # ------------------------------------------------------------------

    def roll_dice(self, player_id: str, dice: Optional[Tuple[int, int]] = None) -> Tuple[int, int]:
        """
        Roll (or accept an externally produced roll) and move.

        Doubles grant another roll this turn; the third consecutive doubles
        sends the player straight to jail and closes the turn. A jailed
        player's roll is an escape attempt instead.
        """
        player = self.require_turn(player_id)
        self.require_not_bankrupting(player)
        if player.has_rolled_dice:
            raise InvalidActionError(GameErrorCode.ALREADY_ROLLED_DICE, "Already rolled this turn")
        if player.phase.is_pending:
            raise InvalidActionError(
                GameErrorCode.MUST_HANDLE_SPECIAL_SPACE,
                f"Resolve {player.phase.kind} before rolling again",
            )

        if dice is None:
            dice = (self.rng.randint(1, 6), self.rng.randint(1, 6))
        die1, die2 = dice
        if not (1 <= die1 <= 6 and 1 <= die2 <= 6):
            raise InvalidPositionError(GameErrorCode.INVALID_DICE_ROLL, f"Invalid dice {dice}")
        is_doubles = die1 == die2
        sent_to_jail = not player.in_jail and is_doubles and player.doubles_count + 1 >= MAX_DOUBLES
        if not sent_to_jail and self.passes_go(player, die1 + die2):
            self.require_bank_can_pay(self.config.go_salary)

        self.touch(player)
        player.last_dice_roll = (die1, die2)
        self.event_log.log(
            EventType.DICE_ROLL,
            player_id=player_id,
            die1=die1,
            die2=die2,
            total=die1 + die2,
            doubles=is_doubles,
        )

        if player.in_jail:
            self._attempt_jail_escape(player, die1, die2)
            return player.last_dice_roll

        if is_doubles:
            player.doubles_count += 1
            if player.doubles_count >= MAX_DOUBLES:
                self.send_to_jail(player, reason="three_doubles")
                self.advance_turn()
                return (die1, die2)
        else:
            player.doubles_count = 0
            player.has_rolled_dice = True

        self.move_player(player, die1 + die2)
        return (die1, die2)

    def move_player(self, player: PlayerState, spaces: int) -> None:
        """Move forward (or back, for negative counts) and resolve the landing."""
        new_position = (player.position + spaces) % BOARD_SIZE
        self._relocate(player, new_position, passed_go=self.passes_go(player, spaces))

    def passes_go(self, player: PlayerState, spaces: int) -> bool:
        return spaces > 0 and (player.position + spaces) % BOARD_SIZE < player.position

    def move_to(self, player: PlayerState, target: int) -> None:
        """Advance to a specific space, collecting salary when GO is passed."""
        self.board.get_space(target)
        self._relocate(player, target, passed_go=target < player.position)

    def _relocate(self, player: PlayerState, new_position: int, passed_go: bool) -> None:
        if passed_go:
            self.receive_from_bank(player, self.config.go_salary)
            self.event_log.log(EventType.PASS_GO, player_id=player.player_id, amount=self.config.go_salary)

        old_position = player.position
        player.position = new_position
        self.event_log.log(
            EventType.MOVE,
            player_id=player.player_id,
            from_pos=old_position,
            to_pos=new_position,
        )
        self._resolve_landing(player)

    def _resolve_landing(self, player: PlayerState) -> None:
        space = self.board.get_space(player.position)
        self.event_log.log(
            EventType.LAND,
            player_id=player.player_id,
            position=space.position,
            space=space.name,
        )
        self.clear_obligation(player)

        if isinstance(space, OwnableSpace):
            state = self.properties[space.position]
            if state.owner is None:
                player.phase = AwaitingPropertyDecision(space.position)
            elif state.owner != player.player_id:
                dice_total = sum(player.last_dice_roll) if player.last_dice_roll else 0
                rent = compute_rent(self.properties, space.position, dice_total, self.board)
                if rent > 0:
                    player.phase = AwaitingPayment(amount=rent, payee=state.owner, position=space.position)
        elif isinstance(space, TaxSpace):
            player.phase = AwaitingPayment(amount=space.amount, payee=None, position=space.position)
        elif isinstance(space, (ChanceSpace, CommunityChestSpace)):
            player.phase = AwaitingCardDraw(space.deck)
        elif isinstance(space, GoToJailSpace):
            self.send_to_jail(player, reason="go_to_jail_space")
            self.advance_turn()

    # ------------------------------------------------------------------
    # Turn close
    # ------------------------------------------------------------------

    def end_turn(self, player_id: str) -> None:
        """Close the acting player's turn and pass play to the next live seat."""
        player = self.require_turn(player_id)
        if not player.has_rolled_dice:
            raise InvalidActionError(GameErrorCode.HAS_NOT_ROLLED_DICE, "Roll before ending the turn")
        self.require_not_bankrupting(player)
        if player.phase.is_pending:
            raise InvalidActionError(
                GameErrorCode.MUST_HANDLE_SPECIAL_SPACE,
                f"Resolve {player.phase.kind} before ending the turn",
            )

        self.touch(player)
        self.event_log.log(EventType.TURN_END, player_id=player_id, turn=self.turn_number)
        self.advance_turn()

    # ------------------------------------------------------------------
    # Jail
    # ------------------------------------------------------------------

    def send_to_jail(self, player: PlayerState, reason: str = "") -> None:
        """Send a player directly to jail without passing GO."""
        player.position = JAIL_POSITION
        player.in_jail = True
        player.jail_turns = 0
        player.doubles_count = 0
        self.event_log.log(EventType.GO_TO_JAIL, player_id=player.player_id, reason=reason)

    def _release_from_jail(self, player: PlayerState, method: str) -> None:
        player.in_jail = False
        player.jail_turns = 0
        self.event_log.log(EventType.JAIL_RELEASE, player_id=player.player_id, method=method)

    def _attempt_jail_escape(self, player: PlayerState, die1: int, die2: int) -> None:
        """
        Jailed roll: doubles escape and move; otherwise count a failed attempt.

        On the final failed attempt the fine is paid if affordable and the
        player moves; if not, the player is left facing bankruptcy. Any other
        failed attempt ends the turn with the player still in jail.
        """
        if die1 == die2:
            self.event_log.log(EventType.JAIL_ATTEMPT, player_id=player.player_id, success=True)
            self._release_from_jail(player, "doubles")
            player.doubles_count = 0
            player.has_rolled_dice = True
            self.move_player(player, die1 + die2)
            return

        player.jail_turns += 1
        self.event_log.log(
            EventType.JAIL_ATTEMPT,
            player_id=player.player_id,
            success=False,
            attempt=player.jail_turns,
        )
        if player.jail_turns < self.config.max_jail_turns:
            self.advance_turn()
            return

        fine = self.config.jail_fine
        if player.cash_balance >= fine:
            self.pay_bank(player, fine)
            self._release_from_jail(player, "fine")
            player.has_rolled_dice = True
            self.move_player(player, die1 + die2)
        else:
            self.defer_to_bankruptcy(player, fine)
            self.advance_turn()

    def _require_jailed_before_roll(self, player_id: str) -> PlayerState:
        player = self.require_turn(player_id)
        self.require_not_bankrupting(player)
        if not player.in_jail:
            raise InvalidActionError(GameErrorCode.PLAYER_NOT_IN_JAIL, f"{player_id} is not in jail")
        if player.has_rolled_dice or player.last_dice_roll is not None:
            raise InvalidActionError(GameErrorCode.ALREADY_ROLLED_DICE, "Already rolled this turn")
        return player

    def pay_jail_fine(self, player_id: str) -> bool:
        """
        Pay the fine to leave jail before rolling.

        Returns False (and moves the player into bankruptcy resolution) when
        the fine cannot be covered.
        """
        player = self._require_jailed_before_roll(player_id)
        self.touch(player)
        fine = self.config.jail_fine
        if player.cash_balance < fine:
            self.defer_to_bankruptcy(player, fine)
            return False
        self.pay_bank(player, fine)
        self._release_from_jail(player, "fine")
        return True

    def use_get_out_of_jail_card(self, player_id: str) -> None:
        """Spend a Get Out of Jail Free card before rolling."""
        player = self._require_jailed_before_roll(player_id)
        if player.get_out_of_jail_cards <= 0:
            raise InvalidActionError(GameErrorCode.NO_GET_OUT_OF_JAIL_CARDS, "No jail cards held")
        self.touch(player)
        player.get_out_of_jail_cards -= 1
        self._release_from_jail(player, "card")


def initialize_game(
    creator: str,
    config: Optional[GameConfig] = None,
    clock: Callable[[], float] = time.time,
) -> GameState:
    """Create a new game waiting for players."""
    return GameState(creator, config=config, clock=clock)
