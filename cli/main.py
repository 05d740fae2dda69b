"""Command line entry point for digitscope training runs and races."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable

from digitscope.core.network import NeuralNetwork
from digitscope.core.types import INPUT_SIZE
from digitscope.data import TrainingDataCache
from digitscope.introspection import GradientFlowHistory
from digitscope.reporting import CsvSink, JsonlSink, PlotAdapter, plot_race, write_summary
from digitscope.training import (
    DEFAULT_CONFIG,
    DEFAULT_SAMPLES_PER_DIGIT,
    RACE_PRESETS,
    Trainer,
    TrainingRace,
    load_config,
    load_race_file,
)

logger = logging.getLogger(__name__)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    train = sub.add_parser("train", help="Train one network and write metrics")
    train.add_argument("--config", type=Path, help="JSON/YAML network config (default: 64-32 relu)")
    train.add_argument("--epochs", type=int, default=50)
    train.add_argument("--samples-per-digit", type=int, default=DEFAULT_SAMPLES_PER_DIGIT)
    train.add_argument("--seed", type=int, help="Seed for data, weights and shuffling")
    train.add_argument("--run-dir", type=Path, default=Path("runs/train"))
    train.add_argument("--enable-plots", action="store_true", help="Write a loss/accuracy plot")
    train.add_argument("--early-stopping-patience", type=int)

    race = sub.add_parser("race", help="Train two configurations head to head")
    race.add_argument("--preset", choices=sorted(RACE_PRESETS), default="deep-vs-shallow")
    race.add_argument("--config", type=Path, help="JSON/YAML race file with label, a and b")
    race.add_argument("--epochs", type=int, default=30)
    race.add_argument("--samples-per-digit", type=int, default=DEFAULT_SAMPLES_PER_DIGIT)
    race.add_argument("--seed", type=int)
    race.add_argument("--run-dir", type=Path, default=Path("runs/race"))
    race.add_argument("--enable-plots", action="store_true")

    sub.add_parser("list-presets", help="List built-in race presets and exit")
    return parser.parse_args(argv)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _train(args: argparse.Namespace) -> dict:
    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    run_dir = Path(args.run_dir)
    inputs, labels = TrainingDataCache(args.seed).get(args.samples_per_digit)
    network = NeuralNetwork(INPUT_SIZE, config, seed=args.seed)
    plots = PlotAdapter(run_dir, enable_plots=args.enable_plots)
    metrics_path = run_dir / "metrics.jsonl"
    trainer = Trainer(
        network,
        callbacks=[
            JsonlSink(metrics_path, seed=args.seed),
            CsvSink(run_dir / "metrics.csv"),
            plots,
        ],
        gradient_history=GradientFlowHistory(),
    )
    result = trainer.run(inputs, labels, args.epochs, early_stopping_patience=args.early_stopping_patience)
    plot_path = plots.close()
    summary_path = write_summary(
        {"loss": network.loss_history, "accuracy": network.accuracy_history},
        run_dir / "summary.json",
    )
    latest_flow = trainer.gradient_history.get_latest() if trainer.gradient_history else None
    payload = {
        "epochs": result.epochs,
        "final_loss": result.final_loss,
        "final_accuracy": result.final_accuracy,
        "gradient_health": latest_flow.health if latest_flow else None,
        "metrics": str(metrics_path),
        "summary": summary_path,
    }
    if plot_path is not None:
        payload["plot"] = str(plot_path)
    return payload


def _race(args: argparse.Namespace) -> dict:
    preset = load_race_file(args.config) if args.config else RACE_PRESETS[args.preset]
    race = TrainingRace.from_preset(preset, samples_per_digit=args.samples_per_digit, seed=args.seed)
    winner = race.run(args.epochs)
    payload = {
        "label": preset.label,
        "epochs": len(race.laps),
        "accuracy_a": race.laps[-1].accuracy_a if race.laps else None,
        "accuracy_b": race.laps[-1].accuracy_b if race.laps else None,
        "winner": winner,
    }
    if args.enable_plots and race.laps:
        path = plot_race(
            [lap.accuracy_a for lap in race.laps],
            [lap.accuracy_b for lap in race.laps],
            Path(args.run_dir) / "race.png",
        )
        payload["plot"] = str(path)
    return payload


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "list-presets":
        for name in sorted(RACE_PRESETS):
            print(f"{name}: {RACE_PRESETS[name].label}")
        raise SystemExit(0)

    if args.command == "train":
        payload = _train(args)
    else:
        payload = _race(args)
    print(json.dumps(payload, sort_keys=True))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
