"""Delve CLI entry point.

Provides subcommands for running the HTTP exploration server and for walking
a dungeon from the terminal. Accepts configuration via flags and environment
variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()

# Disable colors if output is not a real terminal (e.g., during pytest capture)
_COLOR_ENABLED = sys.stdout.isatty()


def _load_version() -> str:
    try:
        with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "VERSION"), "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Delve Dungeon Server

    Serve the incremental dungeon exploration API, or explore a dungeon
    directly in the terminal. Configuration can be provided via CLI flags or
    environment variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST             Bind address for the web server (default: 0.0.0.0)
          PORT             Port for the web server (default: 5000)
          DELVE_GRID_SIZE  Dungeon grid side length (default: 30)
          DELVE_SEED       Fixed seed for the entrance template draw
          DELVE_LOG_LEVEL  debug|info|warn|error (default: info)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Run the server on a custom port
          python run.py server --port 8080

          # Load variables from .env then run the server
          python run.py --env-file .env server

          # Open ten doors in a seeded 40x40 dungeon and print the map
          python run.py explore --grid-size 40 --seed 7 --steps 10
        """
    )

    parser = argparse.ArgumentParser(
        prog="Delve",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Delve Dungeon Server {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # server subcommand
    server_parser = subparsers.add_parser(
        "server",
        help="Run the exploration HTTP server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask exploration API server",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    # explore subcommand
    explore_parser = subparsers.add_parser(
        "explore",
        help="Open doors in a fresh dungeon and print the result",
        formatter_class=argparse.RawTextHelpFormatter,
        description=dedent(
            """
            Generate an entrance, then repeatedly open the oldest unexplored
            door. Prints an ASCII map and a short summary when done.
            """
        ),
    )
    explore_parser.add_argument("--grid-size", dest="grid_size", type=int, default=None, help="Grid side length")
    explore_parser.add_argument("--seed", type=int, default=None, help="Seed for the entrance template draw")
    explore_parser.add_argument("--steps", type=int, default=10, help="Number of doors to open (default: 10)")
    explore_parser.add_argument("--no-render", dest="no_render", action="store_true", help="Skip the ASCII map")
    explore_parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        choices=["debug", "info", "warn", "error"],
        help="Structured log level for this run",
    )
    explore_parser.set_defaults(command="explore")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    args = parser.parse_args(argv)
    return args


def _next_unexplored(generator, tried):
    """Oldest unexplored door not attempted yet, as ``(element, index, point)``."""
    for target in generator.exploration_state.unexplored_connection_points:
        if (target.position, target.direction) in tried:
            continue
        for element in generator.rooms + generator.corridors:
            for index, cp in enumerate(element.connection_points):
                if cp.position == target.position and cp.direction == target.direction:
                    return element, index, cp
    return None


def run_explore(args: argparse.Namespace) -> int:
    from delve.dungeon import GenerationSettings, IncrementalDungeonGenerator
    from delve.dungeon.generator import element_door_id
    from delve.dungeon.render import render_ascii, summarize
    from delve.logging_utils import configure

    if getattr(args, "log_level", None):
        configure(level=args.log_level)

    try:
        settings = GenerationSettings()
        if args.grid_size is not None:
            settings.grid_size = args.grid_size
        if args.seed is not None:
            settings.seed = args.seed
        settings.validate()
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return 2

    generator = IncrementalDungeonGenerator(settings)
    generator.generate_initial_dungeon()

    opened = 0
    tried = set()
    for _ in range(max(0, args.steps)):
        found = _next_unexplored(generator, tried)
        if found is None:
            break
        element, index, cp = found
        tried.add((cp.position, cp.direction))
        generator.open_door(element_door_id(element.id, index), cp, element.id)
        opened += 1

    dungeon = generator.current_map()
    if not args.no_render:
        print(render_ascii(dungeon, generator.exploration_state))
        print()
    summary = summarize(dungeon, generator.exploration_state)
    summary["doors_tried"] = opened
    print(" ".join(f"{k}={v}" for k, v in summary.items()))
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "explore":
        return run_explore(args)

    host = getattr(args, "host", None) or os.getenv("HOST", "0.0.0.0")
    port = int(getattr(args, "port", None) or os.getenv("PORT", "5000"))

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoint only after environment is ready
    from delve.logging_utils import log
    from delve.server import start_server

    title = (
        f"{Fore.CYAN}{Style.BRIGHT}Delve Dungeon Server{Style.RESET_ALL}" if _COLOR_ENABLED else "Delve Dungeon Server"
    )

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val: str | int) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Mode:'):12} {value(mode.upper())}",
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Grid:'):12} {value(os.getenv('DELVE_GRID_SIZE', '30'))}",
        f"  {label('Version:'):12} {value(__version__)}",
        divider,
        "",
    ]
    print("\n".join(lines))
    log.info(event="startup", mode=mode, host=host, port=port)

    debug = bool(getattr(args, "debug", False)) or os.getenv("FLASK_DEBUG", "0").lower() in ("1", "true", "yes", "on")
    start_server(host=host, port=port, debug=debug)
    return 0


def cli() -> None:  # pragma: no cover (console script shim)
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
