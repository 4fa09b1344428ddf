#!/usr/bin/env python3
"""
remorch-connect - AI CLI remote access

Starts an AI CLI (claude, gemini, codex, ...) in a tmux session and shows the
connection info the RemOrch app needs to SSH in and attach to it.
"""

import argparse
import getpass
import sys
import time
from pathlib import Path
from typing import Optional

import yaml

from remorch.config import Config, load_config
from remorch.console import Console, pick_theme
from remorch.descriptor import build_descriptor, build_links, encode_descriptor
from remorch.errors import RemorchError, SessionCreationError
from remorch.network import NetworkAddressProvider, select_primary_address
from remorch.presenter import show_connection_info
from remorch.shell_setup import setup_aliases
from remorch.tmux_manager import SessionStatus, TmuxManager, session_name_from_command


BANNER = [
    "┌─────────────────────────────────────────┐",
    "│         RemOrch Connect                 │",
    "│         AI CLI Remote Access            │",
    "└─────────────────────────────────────────┘",
]


class RemorchConnect:
    """Main application class for remorch-connect."""

    def __init__(
        self,
        config: Config,
        console: Optional[Console] = None,
        address_provider=None,
        tmux: Optional[TmuxManager] = None,
        user: Optional[str] = None,
        qr_directory: Optional[Path] = None,
    ):
        self.config = config
        self.console = console or Console()
        self.address_provider = address_provider or NetworkAddressProvider(
            overlay_cli=config.network.overlay_cli,
            overlay_patterns=config.network.overlay_patterns,
            timeout=config.network.timeout,
        )
        self.tmux = tmux or TmuxManager(socket_name=config.tmux.socket_name)
        self.user = user or getpass.getuser()
        self.qr_directory = qr_directory

    def banner(self) -> None:
        self.console.blank()
        for line in BANNER:
            self.console.header(line)
        self.console.blank()

    def show_info(self, session_name: Optional[str] = None) -> int:
        """Select an address, encode the descriptor and print it.

        Raises:
            NoInterfaceError: If no address can be advertised
        """
        selection = select_primary_address(self.address_provider)
        descriptor = build_descriptor(
            selection.address,
            self.user,
            session=session_name,
            port=self.config.connection.port,
        )
        encoded = encode_descriptor(descriptor)
        links = build_links(
            encoded.payload,
            scheme=self.config.connection.scheme,
            web_base=self.config.connection.web_base,
        )
        sessions = [s.name for s in self.tmux.list_sessions()]

        show_connection_info(
            self.console,
            selection,
            user=self.user,
            port=descriptor.port,
            encoded=encoded,
            links=links,
            qr_config=self.config.qr,
            session=session_name,
            sessions=sessions,
            attach_hint=self.tmux.attach_hint(session_name) if session_name else None,
            qr_directory=self.qr_directory,
        )
        return 0

    def start(self, command: str, attach: bool = True) -> int:
        """Start command in its session, show connection info, then attach.

        Args:
            command: Command line to run, e.g. "claude --resume"
            attach: Whether to attach to the session afterwards

        Returns:
            Exit code (0 for success)
        """
        t = self.console.theme
        session_name = session_name_from_command(command)

        self.console.info(f"{self.console.style('Starting:', t.bright)} {command}")
        self.console.info(f"{self.console.style('Session:', t.bright)}  {session_name}")
        self.console.blank()

        result = self.tmux.ensure_session(session_name, command)

        if result.status is SessionStatus.CREATED:
            self.console.success(f'✓ Created tmux session "{session_name}"')
            self.console.success(f'✓ Started "{command}"')
        elif result.status is SessionStatus.ALREADY_EXISTED:
            self.console.warn(f'→ Using existing session "{session_name}"')
        else:
            raise SessionCreationError(
                f"Failed to create session: {result.error or 'unknown error'}"
            )
        self.console.blank()

        self.show_info(session_name)

        hint = self.tmux.attach_hint(session_name)
        if not attach:
            self.console.dim("Session running in background.")
            self.console.dim(f"Attach later with: {hint}")
            return 0

        self.console.info(self.console.style("Attaching to session...", t.bright))
        self.console.dim("(Press Ctrl+B, then D to detach)")
        self.console.blank()
        time.sleep(0.5)  # Give the CLI a moment to draw before attaching
        returncode = self.tmux.attach_session(session_name)

        self.console.blank()
        if returncode != 0:
            self.console.error(
                f'Error: Could not attach to session "{session_name}" (tmux exit code {returncode})'
            )
            self.console.dim("Session continues running in background.")
            self.console.dim(f"Attach manually with: {hint}")
            return 1

        self.console.dim(f'Detached from session "{session_name}"')
        self.console.dim("Session continues running in background.")
        self.console.dim(f"Reattach with: {hint}")
        return 0

    def setup(self) -> int:
        return setup_aliases(
            self.console,
            launcher=self.config.shell.launcher,
            tools=self.config.shell.tools,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remorch-connect",
        description="RemOrch Connect - AI CLI remote access",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  remorch-connect                      Show connection info
  remorch-connect claude               Start Claude Code in tmux + show info
  remorch-connect gemini               Start Gemini CLI
  remorch-connect "claude --help"      With arguments
  remorch-connect --no-attach codex    Start in background
  remorch-connect --setup              Add shell aliases (claude, gemini, codex)
        """,
    )
    parser.add_argument(
        "--no-attach", action="store_true",
        help="Don't attach to session after starting"
    )
    parser.add_argument(
        "--setup", action="store_true",
        help="Add shell aliases for the configured AI CLIs and exit"
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Path to config file (default: ~/.config/remorch-connect/config.yaml)"
    )
    parser.add_argument(
        "--no-color", action="store_true",
        help="Disable colored output"
    )
    parser.add_argument(
        "command", nargs=argparse.REMAINDER,
        help="AI CLI command to start in a tmux session"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Accept `remorch-connect claude --no-attach` as well
    command_tokens = [a for a in args.command if a != "--no-attach"]
    no_attach = args.no_attach or len(command_tokens) != len(args.command)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: Could not load config: {e}")
        return 1

    console = Console(pick_theme(config.output.color and not args.no_color))

    try:
        app = RemorchConnect(config, console=console)
        if args.setup:
            return app.setup()
        app.banner()
        if command_tokens:
            return app.start(" ".join(command_tokens), attach=not no_attach)
        return app.show_info()
    except RemorchError as e:
        console.error(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        console.blank()
        return 130
    except Exception as e:
        console.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
