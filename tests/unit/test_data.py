import io

import numpy as np
import pytest
from PIL import Image

from nnclassify.data import (
    features_from_image,
    load_dataset,
    normalize_pixels,
    render_image,
    scale_features,
    standardize,
)


def test_load_labeled_csv(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("5,0,255,128\n0,10,20,30\n")
    dataset = load_dataset(path)
    assert dataset.rows == 2
    assert dataset.width == 3
    np.testing.assert_array_equal(dataset.labels, [5, 0])
    assert dataset.labels.dtype == np.int64
    np.testing.assert_array_equal(dataset.features[0], [0, 255, 128])


def test_load_unlabeled_csv(tmp_path):
    path = tmp_path / "plain.csv"
    path.write_text("1,2\n3,4\n")
    dataset = load_dataset(path, labeled=False)
    assert dataset.labels is None
    assert dataset.features.shape == (2, 2)
    with pytest.raises(ValueError, match="labels"):
        dataset.require_labels()


def test_load_dataset_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "missing.csv")

    text = tmp_path / "text.csv"
    text.write_text("1,a,2\n")
    with pytest.raises(ValueError):
        load_dataset(text)

    fractional = tmp_path / "fractional.csv"
    fractional.write_text("1.5,0,1\n")
    with pytest.raises(ValueError):
        load_dataset(fractional)


def test_sample_returns_row_and_label(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("3,1,2\n7,4,5\n")
    row, label = load_dataset(path).sample(1)
    np.testing.assert_array_equal(row, [4, 5])
    assert label == 7


def test_scale_features_is_a_new_standardized_copy():
    features = np.array([[1.0, 5.0], [3.0, 5.0], [5.0, 5.0]])
    scaled = scale_features(features)
    np.testing.assert_allclose(scaled.mean(axis=0), [0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(scaled[:, 0].std(), 1.0)
    # constant columns are centred, not divided by zero
    np.testing.assert_array_equal(scaled[:, 1], [0.0, 0.0, 0.0])
    np.testing.assert_array_equal(features[:, 0], [1.0, 3.0, 5.0])


def test_standardize_reuses_supplied_statistics():
    train = np.array([[0.0], [2.0]])
    _, mean, std = standardize(train)
    applied, _, _ = standardize(np.array([[4.0]]), mean=mean, std=std)
    np.testing.assert_allclose(applied, [[3.0]])


def test_normalize_pixels_extremes():
    np.testing.assert_allclose(normalize_pixels(np.array([0, 255])), [1.0, 0.001])
    assert normalize_pixels(np.array([127.5]))[0] == pytest.approx(0.5005)


def test_features_from_png(tmp_path):
    pixels = np.zeros((28, 28), dtype=np.uint8)
    pixels[:, 14:] = 255
    path = tmp_path / "digit.png"
    Image.fromarray(pixels).save(path)

    features = features_from_image(path)
    assert features.shape == (784,)
    assert features[0] == pytest.approx(1.0)
    assert features[27] == pytest.approx(0.001)


def test_features_from_rgb_png_are_grayscale(tmp_path):
    path = tmp_path / "rgb.png"
    Image.new("RGB", (4, 2), color=(255, 255, 255)).save(path)
    features = features_from_image(path)
    np.testing.assert_allclose(features, np.full(8, 0.001))


def test_features_from_missing_image(tmp_path):
    with pytest.raises(FileNotFoundError):
        features_from_image(tmp_path / "nope.png")


def test_render_image_writes_inline_escape(tmp_path):
    path = tmp_path / "digit.png"
    Image.new("L", (2, 2)).save(path)
    stream = io.StringIO()
    render_image(path, stream)
    text = stream.getvalue()
    assert text.startswith("\x1b]1337;File=inline=1:")
    assert text.endswith("\a\n")


@pytest.mark.parametrize("index", [2, 50, -1])
def test_sample_index_outside_rows_rejected(tmp_path, index):
    path = tmp_path / "train.csv"
    path.write_text("3,1,2\n7,4,5\n")
    with pytest.raises(ValueError, match="2 rows"):
        load_dataset(path).sample(index)
