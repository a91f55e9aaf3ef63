import itertools

import pytest

from vaultrisk.errors import InvalidData, NotImplementedMethod
from vaultrisk.scoring import AverageMethod, composite_score

SAMPLE = (80, 30, 90, 40)
IMPLEMENTED = (AverageMethod.ARITHMETIC, AverageMethod.GEOMETRIC, AverageMethod.HARMONIC)


def test_reference_vector_under_each_method():
    assert composite_score(SAMPLE, AverageMethod.GEOMETRIC) == 54
    assert composite_score(SAMPLE, AverageMethod.ARITHMETIC) == 60
    assert composite_score(SAMPLE, AverageMethod.HARMONIC) == 48


def test_method_accepts_names():
    assert composite_score(SAMPLE, "arithmetic") == 60
    assert composite_score(SAMPLE, "GEOMETRIC") == 54
    assert AverageMethod.parse("Harmonic") is AverageMethod.HARMONIC
    with pytest.raises(InvalidData):
        AverageMethod.parse("median")


@pytest.mark.parametrize("method", IMPLEMENTED)
@pytest.mark.parametrize("value", [0, 1, 37, 54, 99, 100])
def test_equal_sub_scores_return_that_score(method, value):
    assert composite_score([value] * 4, method) == value


@pytest.mark.parametrize("method", IMPLEMENTED)
def test_composite_stays_within_bounds(method):
    for vector in itertools.product((0, 17, 55, 100), repeat=4):
        score = composite_score(vector, method)
        assert 0 <= score <= 100
        assert min(vector) <= score <= max(vector)


def test_zero_sub_score_collapses_geometric_and_harmonic():
    assert composite_score((0, 90, 90, 90), AverageMethod.GEOMETRIC) == 0
    assert composite_score((0, 90, 90, 90), AverageMethod.HARMONIC) == 0
    assert composite_score((0, 90, 90, 90), AverageMethod.ARITHMETIC) == 67


def test_boundary_limits_participating_scores():
    assert composite_score(SAMPLE, AverageMethod.ARITHMETIC, boundary=2) == 55
    assert composite_score(SAMPLE, AverageMethod.GEOMETRIC, boundary=1) == 80
    for bad in (0, 5):
        with pytest.raises(InvalidData):
            composite_score(SAMPLE, AverageMethod.ARITHMETIC, boundary=bad)


@pytest.mark.parametrize("scores", [(), (101, 0, 0, 0), (-1, 10, 10, 10), (True, 1, 1, 1), (1.5, 2, 3, 4)])
def test_invalid_scores_raise(scores):
    with pytest.raises(InvalidData):
        composite_score(scores, AverageMethod.ARITHMETIC)


@pytest.mark.parametrize("method", [AverageMethod.QUADRATIC, AverageMethod.EXPONENTIAL])
def test_declared_methods_without_formula_fail(method):
    with pytest.raises(NotImplementedMethod):
        composite_score(SAMPLE, method)
    with pytest.raises(NotImplementedError):
        composite_score(SAMPLE, method)


def test_scoring_is_deterministic():
    results = {composite_score(SAMPLE, AverageMethod.GEOMETRIC) for _ in range(20)}
    assert results == {54}
