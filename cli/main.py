"""Command line entry point for nnclassify."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable

from nnclassify.checkpoint.store import DEFAULT_MANIFEST_PATH
from nnclassify.core.errors import NNClassifyError
from nnclassify.training.pipelines import RunRequest, RunSummary, run

WELCOME = """
This neural network recognizes handwritten numbers from the MNIST data set
(after being properly trained).

The general functionality is the following:
 1. Initialize the network, or resume it from a checkpoint.
 2. Read the "training" data set and train the network.
 3. Read the "testing" data set and test the network.
 4. Print the accuracy of the network.
 5. Use the network for samples outside of the "training" or "testing" data sets.
"""


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--train", action="store_true", help="Train the network")
    parser.add_argument(
        "--test", action="store_true", help="Report accuracy on the testing data set"
    )
    parser.add_argument(
        "--predict", type=Path, metavar="IMAGE", help="Classify a PNG image"
    )
    parser.add_argument(
        "--config", type=Path, help="Network architecture and training config (YAML/JSON)"
    )
    parser.add_argument("--traindata", type=Path, help="Path to training data set")
    parser.add_argument("--testdata", type=Path, help="Path to test data set")
    parser.add_argument(
        "--labeled",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Whether the first CSV column holds labels",
    )
    parser.add_argument("--scale", action="store_true", help="Standardize feature columns")
    parser.add_argument(
        "--manifest",
        type=Path,
        default=DEFAULT_MANIFEST_PATH,
        help="Checkpoint manifest path",
    )
    parser.add_argument("--run-dir", type=Path, help="Directory for per-epoch metrics files")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a training curve to --run-dir"
    )
    parser.add_argument(
        "--show-image", action="store_true", help="Render the --predict image inline"
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="INDEX",
        help="Classify one row of the testing data set and print its prediction vector",
    )
    parser.add_argument(
        "--reload-each-epoch",
        action="store_true",
        help="When resuming, re-read the checkpoint from disk between epochs",
    )
    parser.add_argument("--quiet", action="store_true", help="Skip the welcome banner")
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> RunRequest:
    return RunRequest(
        train=args.train,
        test=args.test,
        predict_image=args.predict,
        config_path=args.config,
        train_data=args.traindata,
        test_data=args.testdata,
        labeled=args.labeled,
        scale=args.scale,
        manifest_path=args.manifest,
        run_dir=args.run_dir,
        enable_plots=args.enable_plots,
        show_image=args.show_image,
        sample_index=args.sample,
        reload_each_epoch=args.reload_each_epoch,
    )


def run_cli(argv: Iterable[str] | None = None) -> RunSummary:
    """Parse ``argv``, run the requested modes and return their summary."""

    args = parse_args(argv)
    if not args.quiet:
        print(WELCOME)

    try:
        request = build_request(args)
    except ValueError as exc:
        print(f"Error parsing cli flags: {exc}", file=sys.stderr)
        raise SystemExit(1) from None

    try:
        return run(request)
    except (NNClassifyError, OSError, ValueError, KeyError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from None


def main(argv: Iterable[str] | None = None) -> None:
    run_cli(argv)


if __name__ == "__main__":
    main()
