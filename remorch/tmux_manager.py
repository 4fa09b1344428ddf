"""Tmux session management for remorch-connect."""

import enum
import re
import subprocess
from dataclasses import dataclass
from typing import Optional

from .errors import SessionCreationError


@dataclass
class TmuxSession:
    """Represents a tmux session."""

    name: str
    created: str
    attached: bool
    windows: int


class SessionStatus(enum.Enum):
    CREATED = "created"
    ALREADY_EXISTED = "already_existed"
    FAILED = "failed"


@dataclass
class SessionResult:
    """Outcome of ensure_session."""

    status: SessionStatus
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not SessionStatus.FAILED


def session_name_from_command(command: str) -> str:
    """Derive a session name from the first word of a command.

    Everything but ASCII letters and digits is dropped, so the name can't
    carry tmux target syntax (``:``, ``.``) or shell metacharacters.

    Raises:
        SessionCreationError: If nothing usable is left
    """
    tokens = command.split()
    name = re.sub(r"[^a-zA-Z0-9]", "", tokens[0]) if tokens else ""
    if not name:
        raise SessionCreationError(
            f"Cannot derive a session name from command: {command!r}"
        )
    return name


class TmuxManager:
    """Manages the tmux sessions that host the AI CLIs."""

    def __init__(self, socket_name: Optional[str] = None):
        self.socket_name = socket_name

    def _base_cmd(self) -> list[str]:
        cmd = ["tmux"]
        if self.socket_name:
            cmd += ["-L", self.socket_name]
        return cmd

    def _run_tmux(
        self, args: list[str], check: bool = True, capture: bool = True
    ) -> subprocess.CompletedProcess:
        """Run a tmux command with the configured socket."""
        return subprocess.run(
            self._base_cmd() + args,
            check=check,
            capture_output=capture,
            text=True,
        )

    def session_exists(self, session_name: str) -> bool:
        """Check if a tmux session with exactly this name exists."""
        try:
            result = self._run_tmux(
                ["has-session", "-t", f"={session_name}"], check=False
            )
        except OSError:
            return False
        return result.returncode == 0

    def ensure_session(self, session_name: str, command: str) -> SessionResult:
        """Make sure a detached session runs the command.

        An existing session is left untouched. Otherwise a new detached
        session is created and the command is typed into it.

        Args:
            session_name: Name of the session
            command: Command line to type into the session's shell

        Returns:
            SessionResult describing what happened
        """
        if self.session_exists(session_name):
            return SessionResult(SessionStatus.ALREADY_EXISTED)

        try:
            result = self._run_tmux(
                ["new-session", "-d", "-s", session_name], check=False
            )
            if result.returncode != 0:
                return SessionResult(
                    SessionStatus.FAILED,
                    error=_error_text(result, "tmux new-session failed"),
                )

            if not self.send_keys(session_name, command, enter=True):
                return SessionResult(
                    SessionStatus.FAILED,
                    error=f"Could not send command to session {session_name}",
                )
        except OSError as e:
            return SessionResult(SessionStatus.FAILED, error=str(e))

        return SessionResult(SessionStatus.CREATED)

    def send_keys(self, session_name: str, keys: str, enter: bool = True) -> bool:
        """Type text into a tmux session.

        The text is sent with ``-l`` so tmux never reads words in it as key
        names; Enter goes in a second call.

        Args:
            session_name: Target session
            keys: Literal text to type
            enter: Whether to press Enter after

        Returns:
            True if keys were sent successfully
        """
        result = self._run_tmux(
            ["send-keys", "-t", session_name, "-l", keys], check=False
        )
        if result.returncode != 0:
            return False

        if enter:
            result = self._run_tmux(
                ["send-keys", "-t", session_name, "Enter"], check=False
            )
        return result.returncode == 0

    def list_sessions(self) -> list[TmuxSession]:
        """List all tmux sessions on the server.

        Returns:
            List of TmuxSession objects, empty if tmux is unavailable
        """
        try:
            result = self._run_tmux(
                [
                    "list-sessions",
                    "-F",
                    "#{session_name}|#{session_created}|#{session_attached}|#{session_windows}",
                ],
                check=False,
            )
        except OSError:
            return []

        if result.returncode != 0:
            return []

        sessions = []
        for line in result.stdout.strip().split("\n"):
            if not line:
                continue
            parts = line.split("|")
            if len(parts) >= 4:
                sessions.append(
                    TmuxSession(
                        name=parts[0],
                        created=parts[1],
                        attached=parts[2] not in ("", "0"),
                        windows=int(parts[3]) if parts[3].isdigit() else 0,
                    )
                )

        return sessions

    def attach_session(self, session_name: str) -> int:
        """Attach to a session in the foreground.

        Blocks until the user detaches.

        Returns:
            tmux's exit code
        """
        result = self._run_tmux(
            ["attach-session", "-t", session_name], check=False, capture=False
        )
        return result.returncode

    def attach_hint(self, session_name: str) -> str:
        """Command a user can type to reattach later."""
        return " ".join(self._base_cmd() + ["attach", "-t", session_name])


def _error_text(result: subprocess.CompletedProcess, default: str) -> str:
    text = (result.stderr or "").strip()
    return text or default
