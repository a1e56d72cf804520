"""Runtime configuration built from the command line and the environment."""
import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7777

ENV_HOST = "LC3_DEBUG_HOST"
ENV_PORT = "LC3_DEBUG_PORT"
ENV_LOG_LEVEL = "LC3_LOG_LEVEL"

COMMANDS = ("run", "gui")


@dataclass
class Config:
    command: str = "run"
    program: Optional[Path] = None
    debug: bool = False
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "WARNING"
    raw_terminal: bool = False

    @classmethod
    def from_args(cls, argv: List[str]) -> "Config":
        """Parse argv (without the program name); exits with status 2 on usage errors."""
        if argv and argv[0] not in COMMANDS + ("-h", "--help"):
            argv = ["run"] + list(argv)
        args = build_parser().parse_args(argv)
        if args.command is None:
            build_parser().error("a command is required (run PROGRAM or gui)")

        verbosity = getattr(args, "verbose", 0)
        if verbosity >= 2:
            level = "DEBUG"
        elif verbosity == 1:
            level = "INFO"
        else:
            level = os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()

        return cls(
            command=args.command,
            program=getattr(args, "program", None),
            debug=getattr(args, "debug", False),
            host=args.host,
            port=args.port,
            log_level=level,
            raw_terminal=(not getattr(args, "no_raw", True)) and sys.stdin.isatty(),
        )


def env_port() -> int:
    value = os.environ.get(ENV_PORT)
    if not value:
        return DEFAULT_PORT
    try:
        return int(value)
    except ValueError:
        raise SystemExit(f"{ENV_PORT} must be an integer, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lc3", description="LC-3 virtual machine")
    sub = parser.add_subparsers(dest="command")

    def add_endpoint(p):
        p.add_argument("--host", default=os.environ.get(ENV_HOST, DEFAULT_HOST),
                       help="Debug listener host")
        p.add_argument("--port", type=int, default=env_port(),
                       help="Debug listener port")

    run = sub.add_parser("run", help="Run an object image")
    run.add_argument("program", type=Path, help="The program to run (.obj)")
    run.add_argument("-d", "--debug", action="store_true",
                     help="Start paused and serve the debug protocol")
    run.add_argument("-v", "--verbose", action="count", default=0,
                     help="More logging (-v info, -vv debug)")
    run.add_argument("--no-raw", action="store_true",
                     help="Leave the terminal in line-buffered mode")
    add_endpoint(run)

    gui = sub.add_parser("gui", help="Attach the GUI debugger to a running VM")
    add_endpoint(gui)
    return parser
