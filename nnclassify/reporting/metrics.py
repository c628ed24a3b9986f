"""Per-epoch metrics sinks.

Each sink truncates its file when constructed, so a run directory only ever
describes the most recent invocation.
"""

from __future__ import annotations

import csv
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping

FIELDS = ("epoch", "split", "loss", "accuracy")


class _EpochSink(ABC):
    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.context = dict(context or {})

    def _record(self, epoch: int, metrics: Mapping[str, float]) -> dict[str, Any]:
        record: dict[str, Any] = {"epoch": int(epoch), "split": self.split}
        record.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        return record

    def __call__(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.on_epoch(epoch, metrics)

    @abstractmethod
    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        """Write one record for ``epoch``."""


class JsonlSink(_EpochSink):
    """One JSON object per epoch, with the run context merged into each."""

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record = {**self.context, **self._record(epoch, metrics)}
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink(_EpochSink):
    """Fixed-column CSV; ``accuracy`` is blank for epochs without validation."""

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = {k: v for k, v in self._record(epoch, metrics).items() if k in FIELDS}
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(FIELDS), restval="")
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)


__all__ = ["CsvSink", "FIELDS", "JsonlSink"]
