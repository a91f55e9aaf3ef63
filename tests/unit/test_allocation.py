import logging

import pytest

from vaultrisk.allocation import (
    MAX_REDISTRIBUTION_ROUNDS,
    max_allocation_ratio,
    should_harvest,
    target_allocation,
)
from vaultrisk.errors import InvalidData
from vaultrisk.fixed import WAD, to_float

SCORE_EXPONENT = 186 * WAD // 100


def test_proportional_split_below_cap():
    result = target_allocation([30, 60, 90], 1_000, 8 * WAD // 10, SCORE_EXPONENT)
    assert result.amounts == [81, 294, 625]
    assert result.unallocated == 0
    assert result.capped == ()
    assert result.rounds == 1


def test_total_is_conserved_and_cap_respected():
    cap = 3 * WAD // 10
    result = target_allocation([100, 90, 80, 10], 1_000, cap, WAD)
    assert result.allocated + result.unallocated == 1_000
    assert result.unallocated == 0
    assert all(value <= 300 for value in result.amounts)
    assert result.amounts[0] == result.amounts[1] == 300
    assert result.amounts[2] == 300
    assert result.capped == (0, 1, 2)
    assert result.rounds <= MAX_REDISTRIBUTION_ROUNDS


def test_round_bound_surfaces_remainder(caplog):
    caplog.set_level(logging.WARNING, logger="vaultrisk.allocation")
    result = target_allocation([100, 90, 80, 10], 1_000, 3 * WAD // 10, WAD, max_rounds=1)
    assert result.rounds == 1
    assert result.unallocated > 0
    assert result.allocated + result.unallocated == 1_000
    assert result.underfilled
    assert any("allocation_underfilled" in record.message for record in caplog.records)


def test_capacity_exhausted_leaves_unallocated(caplog):
    caplog.set_level(logging.WARNING, logger="vaultrisk.allocation")
    result = target_allocation([50, 50], 1_000, 3 * WAD // 10, SCORE_EXPONENT)
    assert result.amounts == [300, 300]
    assert result.unallocated == 400
    assert result.capped == (0, 1)
    assert any("unallocated=400" in record.message for record in caplog.records)


def test_zero_scores_receive_nothing():
    result = target_allocation([0, 40, 0], 500, WAD, SCORE_EXPONENT)
    assert result.amounts == [0, 500, 0]

    result = target_allocation([0, 0], 500, WAD, SCORE_EXPONENT)
    assert result.amounts == [0, 0]
    assert result.unallocated == 500
    assert result.rounds == 0


def test_zero_amount_allocates_nothing():
    result = target_allocation([10, 20], 0, WAD, SCORE_EXPONENT)
    assert result.amounts == [0, 0]
    assert result.unallocated == 0


def test_min_ratio_drops_small_weights():
    result = target_allocation([90, 10], 100, WAD, WAD, min_ratio=WAD // 5)
    assert result.amounts == [100, 0]


def test_higher_score_never_gets_less():
    result = target_allocation([20, 45, 70, 95], 10_007, WAD, SCORE_EXPONENT)
    assert result.amounts == sorted(result.amounts)
    assert sum(result.amounts) == 10_007


@pytest.mark.parametrize(
    "kwargs",
    [
        {"amount": -1},
        {"max_ratio": WAD + 1},
        {"max_ratio": -1},
        {"score_exponent": -1},
        {"max_rounds": 0},
        {"scores": [101, 10]},
        {"scores": [-5, 10]},
    ],
)
def test_invalid_inputs_raise(kwargs):
    call = {
        "scores": [10, 20],
        "amount": 100,
        "max_ratio": WAD,
        "score_exponent": WAD,
    }
    call.update(kwargs)
    with pytest.raises(InvalidData):
        target_allocation(**call)


def test_max_allocation_ratio_shrinks_with_count():
    assert max_allocation_ratio(0, WAD // 4, 3 * WAD // 10) == WAD
    assert to_float(max_allocation_ratio(2, WAD // 4, 3 * WAD // 10)) == pytest.approx(
        0.798812, rel=1e-6
    )
    assert to_float(max_allocation_ratio(3, WAD // 4, 3 * WAD // 10)) == pytest.approx(
        0.656570, rel=1e-5
    )
    assert to_float(max_allocation_ratio(50, WAD // 4, 3 * WAD // 10)) == pytest.approx(
        0.25, abs=1e-6
    )
    with pytest.raises(InvalidData):
        max_allocation_ratio(-1, WAD // 4, WAD)


def test_should_harvest_compares_reward_to_scaled_cost():
    assert should_harvest(100, 100, 5 * WAD, WAD, 0)
    assert not should_harvest(99, 100, 5 * WAD, WAD, 0)
    # factor 1, sqrt(4) = 2
    assert should_harvest(200, 100, 4 * WAD, WAD, WAD // 2)
    assert not should_harvest(199, 100, 4 * WAD, WAD, WAD // 2)
    assert should_harvest(0, 0, 0, WAD, WAD // 2)
    with pytest.raises(InvalidData):
        should_harvest(-1, 1, WAD, WAD, 0)
