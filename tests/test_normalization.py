import logging

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from fisher_aggregation import l2_normalize, power_normalize


def test_power_normalize():
    v = np.array([4.0, -9.0, 0.0, 0.25])
    assert_allclose(power_normalize(v), [2.0, -3.0, 0.0, 0.5])


def test_power_normalize_preserves_sign():
    v = np.random.RandomState(0).randn(100)
    assert_array_equal(np.sign(power_normalize(v)), np.sign(v))


def test_power_normalize_does_not_mutate():
    v = np.array([4.0, -9.0])
    power_normalize(v)
    assert_array_equal(v, [4.0, -9.0])


def test_l2_normalize():
    v = np.array([3.0, -4.0])
    assert_allclose(l2_normalize(v), [0.6, -0.8])
    assert_array_equal(v, [3.0, -4.0])


def test_l2_normalize_rows():
    V = np.random.RandomState(0).randn(5, 7)
    assert_allclose(np.linalg.norm(l2_normalize(V), axis=1), np.ones(5))


def test_l2_normalize_zero_vector(caplog):
    with caplog.at_level(logging.WARNING):
        v = l2_normalize(np.zeros(4))
    assert_array_equal(v, np.zeros(4))
    assert np.all(np.isfinite(v))
    assert "zero norm" in caplog.text


def test_l2_normalize_zero_row():
    V = np.array([[0.0, 0.0], [3.0, 4.0]])
    assert_allclose(l2_normalize(V), [[0.0, 0.0], [0.6, 0.8]])
