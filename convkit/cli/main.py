# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for convkit.

Every operation is a subcommand of ``convkit``. The global options
(--config, --log-level, --dry-run, --seed) are accepted before or after the
subcommand name through argparse's parent parser mechanism.

Usage:
    convkit build --preset resnet50 --num-classes 10
    convkit build --config configs/mobilenet_v3.yaml --seed 123
    convkit --seed 5 --dry-run build --preset efficientnet_b0
    convkit list
    convkit info
"""

import argparse
import sys

from convkit.cli.commands import handle_build, handle_info, handle_list
from convkit.cli.exit_codes import USER_ERROR


def _build_global_parser(suppress_defaults: bool = False) -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    The root parser owns the real defaults. Each subcommand gets a copy built
    with ``suppress_defaults=True``, so an option is only written to the
    namespace when it appears after the subcommand name and never resets a
    value given before it (``convkit --seed 5 build`` and
    ``convkit build --seed 5`` are equivalent).

    ``add_help=False`` keeps its help text from colliding with the
    subcommand parsers that inherit it.
    """

    def default(value: object) -> object:
        return argparse.SUPPRESS if suppress_defaults else value

    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=default(None),
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=default("INFO"),
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=default(False),
        dest="dry_run",
        help="Validate the request without building a model.",
    )
    parent.add_argument(
        "--seed",
        type=int,
        default=default(None),
        help="Override the random seed (takes precedence over config).",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    commands = [
        ("build", "Build a model and run a dummy forward pass.", handle_build),
        ("list", "List presets and registered layer types.", handle_list),
        ("info", "Display environment and config info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    build_parser = subparsers.choices["build"]
    build_parser.add_argument(
        "--preset",
        type=str,
        default=None,
        help="Preset architecture name (see 'convkit list'); overrides the config's model.",
    )
    build_parser.add_argument(
        "--num-classes",
        type=int,
        default=1000,
        dest="num_classes",
        help="Classifier output width when building from --preset.",
    )
    build_parser.add_argument(
        "--in-channels",
        type=int,
        default=3,
        dest="in_channels",
        help="Input image channels when building from --preset.",
    )
    build_parser.add_argument(
        "--input-size",
        type=int,
        default=None,
        dest="input_size",
        help="Spatial size of the dummy input (default: config value or 224).",
    )
    build_parser.add_argument(
        "--batch-size",
        type=int,
        default=1,
        dest="batch_size",
        help="Batch size of the dummy input.",
    )


def main() -> None:
    """
    Main CLI entrypoint, referenced by ``[project.scripts]`` in pyproject.toml.

    If no subcommand is given, shows help and exits with USER_ERROR.
    """
    root_parser = argparse.ArgumentParser(
        prog="convkit",
        description="convkit: configurable CNN architectures for PyTorch.",
        parents=[_build_global_parser()],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, _build_global_parser(suppress_defaults=True))

    args = root_parser.parse_args()

    if getattr(args, "func", None) is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
