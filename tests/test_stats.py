import math

import pytest

from scanbench.runner.stats import aggregate


@pytest.mark.parametrize("sample", [
    [0.5],
    [1.0, 2.0, 3.0, 4.0],
    [0.013, 0.011, 0.012, 0.5, 0.0125],
    [2.0, 2.0, 2.0],
])
def test_ordering_properties(sample):
    st = aggregate(sample)
    assert st.min <= st.median <= st.max
    assert st.min <= st.mean <= st.max
    assert st.stddev >= 0


def test_single_element():
    st = aggregate([0.25])
    assert st.min == st.max == st.mean == st.median == 0.25
    assert st.stddev == 0


def test_even_count_uses_lower_median():
    assert aggregate([4.0, 1.0, 3.0, 2.0]).median == 2.0


def test_odd_count_median_is_middle():
    assert aggregate([9.0, 1.0, 5.0]).median == 5.0


def test_population_stddev():
    # mean 5, squared deviations sum to 32, n = 8
    st = aggregate([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
    assert st.mean == pytest.approx(5.0)
    assert st.stddev == pytest.approx(2.0)


def test_stddev_is_not_squared_sum_of_deviations():
    # centered deviations sum to zero, so the broken formula would give 0
    st = aggregate([1.0, 3.0])
    assert st.stddev == pytest.approx(1.0)
    assert not math.isclose(st.stddev, 0.0)


def test_empty_sample_rejected():
    with pytest.raises(ValueError):
        aggregate([])
