"""CLI entry point for ui-label-synth.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the appropriate submodules or runs specific tasks.
"""

import argparse
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

from src.annotation import OffCanvasPolicy
from src.catalog import DEFAULT_CATALOG, UnknownClassError
from src.config import EnvVar, get_canvas_size, get_environment, get_output_dir
from src.core import get_logger, setup_logging
from src.layout import LayoutConfig
from src.orchestrator import create_orchestrator
from src.render import RenderConfig
from src.schedule import SampleScheduler

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


# =============================================================================
# Generate Command
# =============================================================================


def cmd_generate(args: argparse.Namespace) -> int:
    """Handle the generate command."""
    try:
        width, height = get_canvas_size(args.width, args.height)
        layout_config = LayoutConfig(
            max_attempts=get_environment(
                EnvVar.MAX_ATTEMPTS, override=args.max_attempts
            ),
            fallback_margin=get_environment(EnvVar.FALLBACK_MARGIN),
        )
        orchestrator = create_orchestrator(
            get_output_dir(args.output),
            seed=get_environment(EnvVar.SEED, override=args.seed),
            layout_config=layout_config,
            render_config=RenderConfig(width=width, height=height),
            policy=get_environment(
                EnvVar.OFF_CANVAS_POLICY, override=args.off_canvas
            ),
        )
        interval = get_environment(EnvVar.INTERVAL, override=args.interval)
        scheduler = SampleScheduler(orchestrator, interval=interval)
    except UnknownClassError as e:
        logger.error(f"Catalog does not match renderer: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info(f"Writing dataset to {orchestrator.dataset.root}")
    if args.count is None:
        logger.info("Press Ctrl-C to stop")

    stats = scheduler.run(max_samples=args.count)

    logger.info(
        f"Stats: {stats.produced} sample(s) written, {stats.failed} failed, "
        f"{stats.dropped} tick(s) dropped"
    )
    if stats.failed and not stats.produced:
        return 1
    return 0


def handle_generate_command(argv: list[str]) -> int:
    """Handle generate-specific arguments."""
    parser = argparse.ArgumentParser(
        prog="python . generate",
        description="Generate labeled synthetic UI screenshots",
    )
    parser.add_argument(
        "--count",
        "-n",
        type=int,
        default=None,
        help="Number of samples to generate (runs until Ctrl-C if omitted)",
    )
    parser.add_argument(
        "--interval",
        "-i",
        type=float,
        default=None,
        help="Seconds between samples (default: 2.0)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Dataset root (default: current directory)",
    )
    parser.add_argument(
        "--seed",
        "-s",
        type=int,
        default=None,
        help="Random seed for reproducible datasets",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Canvas width in pixels (default: 800)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Canvas height in pixels (default: 600)",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Placement attempts per element before fallback (default: 1000)",
    )
    parser.add_argument(
        "--off-canvas",
        type=str,
        default=None,
        choices=[policy.value for policy in OffCanvasPolicy],
        help="Handling of boxes outside the canvas (default: clip)",
    )

    args = parser.parse_args(argv)
    return cmd_generate(args)


# =============================================================================
# Catalog Command
# =============================================================================


def cmd_catalog(_argv: list[str]) -> int:
    """List catalog controls and their label classes."""
    logger.info("Control catalog:")
    for entry in DEFAULT_CATALOG:
        logger.info(f"  {entry.name:<12} -> class {entry.class_index}")
    logger.info(f"\n{DEFAULT_CATALOG.class_count} label classes:")
    for index, name in enumerate(DEFAULT_CATALOG.class_names()):
        logger.info(f"  {index}: {name}")
    return 0


# =============================================================================
# Test Command
# =============================================================================


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . test                # Run all tests
        python . test --unit         # Run only unit tests (fast, no I/O)
        python . test --integration  # Run integration tests (files, Pillow)
        python . test --all          # Run all tests explicitly
        python . test -v             # Run with verbose output
        python . test -k "layout"    # Run tests matching pattern

    Test Tiers:
        unit        - Fast tests with no I/O
        integration - Tests writing images and labels to disk
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration"],
        "--all": [],  # No filter, run everything
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []

    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


# =============================================================================
# Main
# =============================================================================


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python . {command} [args]")
    print("\nCommands:")
    print("  generate   Generate labeled screenshots on a timer")
    print("  catalog    List controls and label classes")
    print("  test       Run the test suite")
    print("\nExamples:")
    print("  python . generate                     # Run until Ctrl-C")
    print("  python . generate -n 100 -i 0.1       # 100 samples, fast")
    print("  python . generate -o data --seed 42   # Reproducible dataset")
    print("  python . catalog")
    print("  python . test --unit")
    print("\nEnvironment variables (LABELSYNTH_*) may also be set in .env")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    commands = {
        "generate": lambda: handle_generate_command(rest_args),
        "catalog": lambda: cmd_catalog(rest_args),
        "test": lambda: cmd_test(rest_args),
    }

    if command in commands:
        setup_logging(get_environment(EnvVar.LOG_LEVEL))
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
