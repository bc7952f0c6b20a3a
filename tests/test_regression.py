from __future__ import annotations

import pytest

from processing.regression import linear_regression, trendline_slope


def test_exact_line_has_unit_r_squared() -> None:
    slope, r_squared = linear_regression([(0, 0), (1, 2), (2, 4)])
    assert slope == pytest.approx(2.0)
    assert r_squared == pytest.approx(1.0)


def test_matches_closed_form_on_noisy_points() -> None:
    points = [(1.0, 2.1), (2.0, 3.9), (3.0, 6.2), (4.0, 7.8)]
    n = len(points)
    mean_x = sum(p[0] for p in points) / n
    mean_y = sum(p[1] for p in points) / n
    sxy = sum((x - mean_x) * (y - mean_y) for x, y in points)
    sxx = sum((x - mean_x) ** 2 for x, _ in points)
    syy = sum((y - mean_y) ** 2 for _, y in points)

    slope, r_squared = linear_regression(points)

    assert slope == pytest.approx(sxy / sxx)
    assert r_squared == pytest.approx(sxy * sxy / (sxx * syy))
    assert 0.0 < r_squared < 1.0


def test_fewer_than_two_points_is_identity() -> None:
    assert linear_regression([]) == (1.0, 0.0)
    assert linear_regression([(3.0, 7.0)]) == (1.0, 0.0)


def test_no_variance_in_x_is_identity() -> None:
    assert linear_regression([(5, 1), (5, 3)]) == (1.0, 0.0)


def test_no_variance_in_y_is_perfect_fit() -> None:
    slope, r_squared = linear_regression([(0, 4), (1, 4), (2, 4)])
    assert slope == pytest.approx(0.0)
    assert r_squared == 1.0


def test_accepts_generators() -> None:
    slope, _ = linear_regression((i, 3 * i + 1) for i in range(5))
    assert slope == pytest.approx(3.0)


def test_trendline_slope() -> None:
    assert trendline_slope([]) == 0.0
    assert trendline_slope([4.2]) == 0.0
    assert trendline_slope([1.0, 1.5, 2.0, 2.5]) == pytest.approx(0.5)
    assert trendline_slope([3.0, 3.0, 3.0]) == pytest.approx(0.0)


@pytest.mark.parametrize("x", [0.1, 0.7, 3.3, 12.34, 100.1])
@pytest.mark.parametrize("count", [3, 4, 5, 6, 7])
def test_repeated_non_integer_x_is_identity(x: float, count: int) -> None:
    assert linear_regression([(x, i) for i in range(count)]) == (1.0, 0.0)


def test_constant_non_integer_y_is_flat_perfect_fit() -> None:
    assert linear_regression([(i, 0.7) for i in range(5)]) == (0.0, 1.0)
