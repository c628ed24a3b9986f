"""Data set, scaling and image ingestion helpers."""

from .csv_dataset import load_dataset
from .image import features_from_image, normalize_pixels, render_image
from .utils import scale_features, standardize

__all__ = [
    "features_from_image",
    "load_dataset",
    "normalize_pixels",
    "render_image",
    "scale_features",
    "standardize",
]
