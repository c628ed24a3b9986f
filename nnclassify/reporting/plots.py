"""Training curve figure written at the end of a run."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional, Tuple

PLOT_NAME = "training.png"


class PlotAdapter:
    """Collect loss and accuracy per epoch and draw them on twin axes.

    Nothing is recorded, and matplotlib is never imported, unless
    ``enable_plots`` is set.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._epochs: List[int] = []
        self._losses: List[float] = []
        self._accuracy: List[Tuple[int, float]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._epochs.append(int(epoch))
        self._losses.append(float(metrics.get("loss", 0.0)))
        if "accuracy" in metrics:
            self._accuracy.append((int(epoch), float(metrics["accuracy"])))

    def close(self) -> Optional[Path]:
        if not self.enable_plots or not self._epochs:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        self.run_dir.mkdir(parents=True, exist_ok=True)
        fig, loss_ax = plt.subplots()
        loss_ax.plot(self._epochs, self._losses, color="tab:blue", marker="o")
        loss_ax.set_xlabel("Epoch")
        loss_ax.set_ylabel("Mean quadratic loss", color="tab:blue")
        if self._accuracy:
            acc_ax = loss_ax.twinx()
            epochs, values = zip(*self._accuracy)
            acc_ax.plot(epochs, values, color="tab:orange", marker="s")
            acc_ax.set_ylabel("Validation accuracy", color="tab:orange")
            acc_ax.set_ylim(0.0, 1.0)
        loss_ax.set_title("Training Curve")
        plot_path = self.run_dir / PLOT_NAME
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch
