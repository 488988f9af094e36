"""
Permissionless timeout enforcement.

Any caller other than the stalled player may force progress once the turn
has run past its timeout. Forced turn ends accumulate penalties; a player
who reaches the penalty limit can be forced into bankruptcy.
"""

from panda_monopoly.bankruptcy import LiquidationResult, remove_bankrupt_player
from panda_monopoly.exceptions import GameErrorCode, InvalidActionError, TimeoutEnforcementError
from panda_monopoly.game import GameState
from panda_monopoly.money import EventType
from panda_monopoly.player import AwaitingBankruptcy, PlayerState


def _require_enforcement(game: GameState, enforcer_id: str, target: PlayerState) -> None:
    if not game.config.timeout_enforcement_enabled:
        raise TimeoutEnforcementError(
            GameErrorCode.TIMEOUT_ENFORCEMENT_DISABLED,
            "Timeout enforcement is disabled for this game",
        )
    if enforcer_id == target.player_id:
        raise InvalidActionError(GameErrorCode.UNAUTHORIZED, "A player cannot enforce a timeout on themselves")


def check_turn_timed_out(game: GameState, player: PlayerState) -> None:
    """
    Raise unless the current turn is stale enough to force.

    The turn must have run for at least the grace period and the timeout,
    and the player's own last action must be at least a grace period old.
    """
    now = game.now()
    elapsed = now - game.turn_started_at
    grace = game.config.turn_grace_period_seconds
    if elapsed < grace:
        raise TimeoutEnforcementError(
            GameErrorCode.GRACE_PERIOD_NOT_EXPIRED,
            f"Turn running {elapsed}s, grace period is {grace}s",
        )
    if elapsed < game.config.turn_timeout_seconds:
        raise TimeoutEnforcementError(
            GameErrorCode.TIMEOUT_NOT_REACHED,
            f"Turn running {elapsed}s, timeout is {game.config.turn_timeout_seconds}s",
        )
    idle = now - player.last_action_timestamp
    if idle < grace:
        raise TimeoutEnforcementError(
            GameErrorCode.PLAYER_HAS_RECENT_ACTIVITY,
            f"{player.player_id} acted {idle}s ago",
        )


def force_end_turn(game: GameState, enforcer_id: str) -> PlayerState:
    """
    End the current player's turn on their behalf and record a penalty.

    Any pending decision or payment is dropped as if the player did
    nothing. A player facing bankruptcy cannot be skipped; use
    force_bankruptcy_for_timeout instead. Returns the penalized player.
    """
    game.require_in_progress()
    player = game.get_current_player()
    _require_enforcement(game, enforcer_id, player)
    check_turn_timed_out(game, player)
    if isinstance(player.phase, AwaitingBankruptcy):
        raise InvalidActionError(
            GameErrorCode.MUST_DECLARE_BANKRUPTCY,
            f"{player.player_id} must go through bankruptcy",
        )

    player.timeout_penalty_count += 1
    player.total_timeout_penalties += 1
    game.event_log.log(
        EventType.TURN_TIMEOUT,
        player_id=player.player_id,
        enforcer=enforcer_id,
        penalty_count=player.timeout_penalty_count,
        phase=player.phase.kind,
    )
    game.advance_turn()
    return player


def force_bankruptcy_for_timeout(game: GameState, enforcer_id: str, player_id: str) -> LiquidationResult:
    """
    Bankrupt a player who has run out of timeout penalties.

    A current player stuck facing bankruptcy past the timeout can also be
    forced, since force_end_turn refuses to skip them.
    """
    game.require_in_progress()
    player = game.get_player(player_id)
    _require_enforcement(game, enforcer_id, player)

    if player.timeout_penalty_count < game.config.max_timeout_penalties:
        stalled_in_bankruptcy = (
            isinstance(player.phase, AwaitingBankruptcy) and player.seat == game.current_turn
        )
        if not stalled_in_bankruptcy:
            raise TimeoutEnforcementError(
                GameErrorCode.INSUFFICIENT_TIMEOUT_PENALTIES,
                f"{player_id} has {player.timeout_penalty_count} of "
                f"{game.config.max_timeout_penalties} penalties",
            )
        check_turn_timed_out(game, player)

    result = remove_bankrupt_player(game, player)
    game.event_log.log(
        EventType.TIMEOUT_BANKRUPTCY,
        player_id=player_id,
        enforcer=enforcer_id,
        penalties=player.timeout_penalty_count,
    )
    return result
