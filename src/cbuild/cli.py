"""
Command-line interface for cbuild.

This module provides the `cbuild` CLI tool: it loads a build script, hands it
the build API and reports the outcome.
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cbuild import __version__, output
from cbuild.build.errors import BuildError
from cbuild.config.build_script import Action, BuildOptions, BuildScriptAPI, load_build_script
from cbuild.paths import DEFAULT_BUILD_SCRIPT, DEFAULT_DATABASE_FILE


@dataclass
class CommandArgs:
    """Arguments shared by every command."""

    action: Action
    build_script: Path = DEFAULT_BUILD_SCRIPT
    full_rebuild: bool = False
    release: bool = False
    jobs: Optional[int] = None
    verbose: bool = False
    progress: bool = True
    database_path: Path = DEFAULT_DATABASE_FILE

    def to_options(self) -> BuildOptions:
        return BuildOptions(
            action=self.action,
            full_rebuild=self.full_rebuild,
            release=self.release,
            jobs=self.jobs,
            progress=self.progress and sys.stdout.isatty(),
            database_path=self.database_path,
        )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def run_command(args: CommandArgs) -> None:
    """Run the build script for one action and exit.

    Examples:
        cbuild build                  # Build everything build.py declares
        cbuild -i ci.py build -r      # Release build from another script
        cbuild run                    # Build, then run what the script runs
        cbuild gen-database           # Write compile_commands.json
        cbuild build -B               # Full rebuild
        cbuild -B build               # Same; options may precede the command
    """
    output.init_timer()
    output.set_verbose(args.verbose)
    api = BuildScriptAPI(args.to_options())

    try:
        configure = load_build_script(args.build_script)
        output.log(f"Running {args.build_script} ({args.action})", verbose_only=True)

        start_time = time.time()
        try:
            configure(api)
        finally:
            api.shutdown()

        if args.action == Action.GEN_DATABASE and not api.database_written:
            api.generate_database()
        elapsed = time.time() - start_time

        if api.failures:
            print()
            print(f"\033[1;31m✗ {len(api.failures)} target(s) failed\033[0m")
            sys.exit(1)

        print()
        print(f"\033[1;32m✓ {args.action} finished in {elapsed:.2f}s\033[0m")
        sys.exit(0)

    except BuildError as e:
        print()
        print("\033[1;31m✗ Build failed!\033[0m")
        print()
        print(str(e))
        if args.verbose:
            import traceback

            print()
            print("Traceback:")
            print(traceback.format_exc())
        sys.exit(1)

    except KeyboardInterrupt:
        print()
        print("\033[1;33m✗ Build interrupted\033[0m")
        sys.exit(130)  # Standard exit code for SIGINT

    except Exception as e:
        print()
        print("\033[1;31m✗ Unexpected error\033[0m")
        print()
        print(f"{type(e).__name__}: {e}")

        if args.verbose:
            import traceback

            print()
            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _add_build_options(parser: argparse.ArgumentParser, suppress_defaults: bool = False) -> None:
    """Add the options every command accepts.

    They are accepted before and after the subcommand. Subparsers suppress
    their defaults so an option given before the subcommand is not reset.
    """

    def default(value):
        return argparse.SUPPRESS if suppress_defaults else value

    parser.add_argument(
        "-B",
        "--full-rebuild",
        action="store_true",
        default=default(False),
        help="Rebuild all files, ignoring timestamps",
    )
    parser.add_argument(
        "-r",
        "--release",
        action="store_true",
        default=default(False),
        help="Use Release as the default optimization level",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        default=default(None),
        help="Maximum concurrent compile jobs per target (default: one per file)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default(False),
        help="Show verbose build output",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        default=default(False),
        help="Disable the live compile display",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cbuild",
        description="cbuild - build driver for C and C++ projects",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cbuild {__version__}",
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=DEFAULT_BUILD_SCRIPT,
        help=f"Build script to run (default: {DEFAULT_BUILD_SCRIPT})",
    )
    _add_build_options(parser)

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser("build", help="Build the declared binaries")
    _add_build_options(build_parser, suppress_defaults=True)

    run_parser = subparsers.add_parser("run", help="Build, then run the binaries the script runs")
    _add_build_options(run_parser, suppress_defaults=True)

    database_parser = subparsers.add_parser("gen-database", help="Write a compilation database")
    _add_build_options(database_parser, suppress_defaults=True)
    database_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=DEFAULT_DATABASE_FILE,
        help=f"Database file to write (default: {DEFAULT_DATABASE_FILE})",
    )
    return parser


def main() -> None:
    """cbuild - build driver for C and C++ projects."""
    parser = create_parser()
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    configure_logging(parsed_args.verbose)
    args = CommandArgs(
        action=Action(parsed_args.command),
        build_script=parsed_args.input,
        full_rebuild=parsed_args.full_rebuild,
        release=parsed_args.release,
        jobs=parsed_args.jobs,
        verbose=parsed_args.verbose,
        progress=not parsed_args.no_progress,
        database_path=getattr(parsed_args, "output", DEFAULT_DATABASE_FILE),
    )
    run_command(args)


if __name__ == "__main__":
    main()
