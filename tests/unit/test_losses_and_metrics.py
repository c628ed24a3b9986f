import numpy as np
import pytest

from nnclassify.training.losses import one_hot, quadratic
from nnclassify.training.metrics import accuracy, predictions


def test_one_hot_rows_and_scalar():
    encoded = one_hot(np.array([0, 2, 1]), 3)
    np.testing.assert_array_equal(encoded, [[1, 0, 0], [0, 0, 1], [0, 1, 0]])
    np.testing.assert_array_equal(one_hot(4, 5), [0, 0, 0, 0, 1])


def test_one_hot_single_unit_uses_label_as_target():
    np.testing.assert_array_equal(one_hot(np.array([0, 1, 1]), 1), [[0.0], [1.0], [1.0]])
    np.testing.assert_array_equal(one_hot(1, 1), [1.0])


def test_quadratic_loss_vector_and_matrix():
    loss, diff = quadratic(np.array([0.5, 0.5]), np.array([1.0, 0.0]))
    assert loss == pytest.approx(0.25)
    np.testing.assert_allclose(diff, [-0.5, 0.5])

    batch_loss, _ = quadratic(np.array([[1.0, 0.0], [0.0, 0.0]]), np.array([[1.0, 0.0], [1.0, 1.0]]))
    assert batch_loss == pytest.approx(0.5)


def test_predictions_ties_go_to_lowest_index():
    outputs = np.array([[0.2, 0.7, 0.7], [0.9, 0.1, 0.0]])
    np.testing.assert_array_equal(predictions(outputs), [1, 0])


def test_accuracy_bounds():
    outputs = np.array([[0.9, 0.1], [0.2, 0.8], [0.6, 0.4]])
    assert accuracy(np.array([0, 1, 0]), outputs) == 1.0
    assert accuracy(np.array([1, 0, 1]), outputs) == 0.0
    assert accuracy(np.array([0, 0, 0]), outputs) == pytest.approx(2 / 3)
    with pytest.raises(ValueError):
        accuracy(np.array([]), np.empty((0, 2)))


def test_single_unit_accuracy_thresholds_at_half():
    outputs = np.array([[0.1], [0.5], [0.9]])
    assert accuracy(np.array([0, 1, 1]), outputs) == 1.0
