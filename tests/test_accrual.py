from __future__ import annotations

from timestake.ledger.accrual import advance, reward_rate
from timestake.ledger.constants import SCALE
from timestake.ledger.state import initial_state

T0 = 1_000


def _mk_state(*, total_reward: int = 1_000, window: int = 1_000, stake: int = 0, first_stake: int | None = T0) -> dict:
    st = initial_state(
        pool_id="accrual",
        stake_assets=[("A", 18), ("B", 18), ("C", 18)],
        reward_asset=("R", 18),
    )
    pool = st["pool"]
    pool["total_reward_amount"] = total_reward
    pool["start_time"] = T0
    pool["end_time"] = T0 + window
    pool["first_stake_time"] = first_stake
    pool["total_stake_by_asset"] = [stake, 0, 0]
    return st


def test_first_advance_anchors_last_accrual_to_first_stake() -> None:
    st = _mk_state(stake=0)
    assert advance(st, T0 + 10) == 0
    assert st["pool"]["last_accrual_time"] == T0
    assert st["pool"]["global_reward_index"] == 0


def test_no_accrual_while_pool_holds_no_stake() -> None:
    st = _mk_state(stake=0)
    advance(st, T0 + 500)
    assert st["pool"]["global_reward_index"] == 0
    # last_accrual_time stays at the anchor: the next staker is credited for the empty interval
    assert st["pool"]["last_accrual_time"] == T0


def test_index_grows_linearly_with_elapsed_time() -> None:
    st = _mk_state(stake=10**14)
    advance(st, T0 + 250)
    first = st["pool"]["global_reward_index"]
    advance(st, T0 + 500)
    second = st["pool"]["global_reward_index"]

    # rate 1/s, 250 units over 1e14 normalized stake
    assert first == 250 * SCALE // 10**14 == 2_500_000
    assert second == 2 * first
    assert st["pool"]["last_accrual_time"] == T0 + 500


def test_accrual_is_clamped_at_end_time() -> None:
    on_time = _mk_state(stake=10**14)
    late = _mk_state(stake=10**14)

    advance(on_time, T0 + 1_000)
    advance(late, T0 + 5_000)

    assert late["pool"]["global_reward_index"] == on_time["pool"]["global_reward_index"]

    # Once past the end nothing moves, no matter how late the call.
    idx = late["pool"]["global_reward_index"]
    advance(late, T0 + 9_000)
    assert late["pool"]["global_reward_index"] == idx


def test_rate_uses_realized_window_and_truncates() -> None:
    st = _mk_state(total_reward=1_000, window=1_000, first_stake=T0 + 1)
    # 1000 // 999 == 1; the remainder is never distributed.
    assert reward_rate(st["pool"]) == 1


def test_index_never_decreases() -> None:
    st = _mk_state(total_reward=10**21, stake=3 * 10**18)
    seen = [0]
    for t in range(T0, T0 + 1_500, 37):
        seen.append(advance(st, t))
    assert seen == sorted(seen)
