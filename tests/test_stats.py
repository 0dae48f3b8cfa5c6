import sys
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from annealing.errors import InvalidParameter
from annealing.stats import (
    MAD_NORMAL_CONSISTENCY,
    iqr_sorted,
    median_absolute_deviation,
    median_sorted,
    quantile_sorted,
)


def test_median_odd_and_even_lengths():
    assert median_sorted([1.0, 2.0, 7.0]) == 2.0
    assert median_sorted([1.0, 2.0, 3.0, 10.0]) == 2.5
    assert median_sorted([4.0]) == 4.0


def test_median_and_mad_of_one_to_ten():
    values = [float(v) for v in range(1, 11)]

    median = median_sorted(values)
    mad = median_absolute_deviation(values, median)

    assert median == 5.5
    assert mad == 2.5
    assert MAD_NORMAL_CONSISTENCY * mad == pytest.approx(3.7065)


def test_mad_computes_median_when_not_given():
    assert median_absolute_deviation([1.0, 1.0, 2.0, 2.0, 4.0, 6.0, 9.0]) == 1.0


def test_flat_sample_has_zero_mad_and_iqr():
    values = [5.0] * 12
    assert median_absolute_deviation(values) == 0.0
    assert iqr_sorted(values) == 0.0


def test_quantile_interpolates_between_neighbors():
    values = [0.0, 10.0, 20.0, 30.0, 40.0]
    assert quantile_sorted(values, 0.0) == 0.0
    assert quantile_sorted(values, 1.0) == 40.0
    assert quantile_sorted(values, 0.5) == 20.0
    # position 0.3 * 4 = 1.2 -> 10 + 0.2 * 10
    assert quantile_sorted(values, 0.3) == pytest.approx(12.0)


def test_iqr_uses_linear_interpolation():
    values = [0.0] * 6 + [1.0, 2.0, 3.0, 4.0]
    # q75 at position 6.75 -> 1.75, q25 at position 2.25 -> 0
    assert iqr_sorted(values) == pytest.approx(1.75)
    assert median_absolute_deviation(values) == 0.0


@pytest.mark.parametrize("q", [-0.1, 1.5])
def test_quantile_outside_unit_interval_is_rejected(q):
    with pytest.raises(InvalidParameter):
        quantile_sorted([1.0, 2.0], q)


def test_empty_sample_is_rejected():
    with pytest.raises(InvalidParameter):
        median_sorted([])
