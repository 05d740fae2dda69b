"""Per-epoch metric sinks usable as :class:`~digitscope.training.Trainer` callbacks."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, List, Mapping, Sequence


def _numeric(metrics: Mapping[str, object]) -> Dict[str, float]:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class JsonlSink:
    """Write one JSON object per epoch. The file is truncated on creation."""

    def __init__(self, path: str | Path, *, run: str = "", seed: int | None = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.run = run
        self.seed = seed

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record: Dict[str, object] = {"epoch": int(epoch), "run": self.run, "seed": self.seed}
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Append epochs to a CSV file with a fixed column order."""

    def __init__(
        self,
        path: str | Path,
        *,
        run: str = "",
        fields: Sequence[str] = ("loss", "accuracy"),
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.run = run
        self.fieldnames = ["epoch", "run", *fields]

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row: Dict[str, object] = {"epoch": int(epoch), "run": self.run}
        row.update({k: v for k, v in _numeric(metrics).items() if k in self.fieldnames})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.fieldnames)
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch


def read_jsonl(path: str | Path) -> List[Mapping[str, object]]:
    """Load the records written by :class:`JsonlSink`; a missing file gives ``[]``."""

    path = Path(path)
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


__all__ = ["CsvSink", "JsonlSink", "read_jsonl"]
