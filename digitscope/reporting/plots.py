"""Headless loss and accuracy curves."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Sequence, Tuple


def _pyplot():
    import matplotlib

    matplotlib.use("Agg", force=True)
    import matplotlib.pyplot as plt  # imported lazily for headless safety

    return plt


class PlotAdapter:
    """Collect per-epoch metrics and render them on :meth:`close`.

    Disabled adapters accept callbacks and write nothing.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False, *, filename: str = "training.png"):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.filename = filename
        self._history: List[Tuple[int, float, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._history.append((int(epoch), float(metrics.get("loss", 0.0)), float(metrics.get("accuracy", 0.0))))

    def close(self) -> Path | None:
        """Write the figure and return its path, or ``None`` when nothing was drawn."""

        if not self.enable_plots or not self._history:
            return None
        epochs, losses, accuracies = zip(*self._history)
        return plot_history(losses, accuracies, self.run_dir / self.filename, epochs=epochs)

    __call__ = on_epoch


def plot_history(
    loss_history: Sequence[float],
    accuracy_history: Sequence[float],
    path: str | Path,
    *,
    epochs: Sequence[int] | None = None,
    title: str = "Training Curve",
) -> Path:
    """Plot loss (left axis) and accuracy (right axis) against epoch."""

    plt = _pyplot()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    x = list(epochs) if epochs is not None else list(range(1, len(loss_history) + 1))
    fig, ax = plt.subplots()
    ax.plot(x, list(loss_history), color="tab:red", label="loss")
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Loss")
    acc_ax = ax.twinx()
    acc_ax.plot(x, list(accuracy_history), color="tab:blue", label="accuracy")
    acc_ax.set_ylabel("Accuracy")
    acc_ax.set_ylim(0.0, 1.0)
    ax.set_title(title)
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_race(accuracy_a: Sequence[float], accuracy_b: Sequence[float], path: str | Path) -> Path:
    """Overlay two racers' accuracy curves."""

    plt = _pyplot()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots()
    ax.plot(range(1, len(accuracy_a) + 1), list(accuracy_a), label="A")
    ax.plot(range(1, len(accuracy_b) + 1), list(accuracy_b), label="B")
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Accuracy")
    ax.set_ylim(0.0, 1.0)
    ax.legend()
    fig.savefig(path)
    plt.close(fig)
    return path


__all__ = ["PlotAdapter", "plot_history", "plot_race"]
