"""Backpropagation, the epoch loop and the run pipeline."""

from .trainer import Trainer, resume_or_create, train_one_epoch, validate

__all__ = ["Trainer", "resume_or_create", "train_one_epoch", "validate"]
