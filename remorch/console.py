"""Colored terminal output for remorch-connect."""

import os
import sys
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass(frozen=True)
class Theme:
    """ANSI escape codes used when printing."""

    reset: str = ""
    bright: str = ""
    cyan: str = ""
    green: str = ""
    yellow: str = ""
    red: str = ""
    dim: str = ""

    @classmethod
    def ansi(cls) -> "Theme":
        return cls(
            reset="\x1b[0m",
            bright="\x1b[1m",
            cyan="\x1b[36m",
            green="\x1b[32m",
            yellow="\x1b[33m",
            red="\x1b[31m",
            dim="\x1b[2m",
        )

    @classmethod
    def plain(cls) -> "Theme":
        return cls()


def pick_theme(color: bool = True, stream: Optional[TextIO] = None) -> Theme:
    """Choose a theme for the given stream.

    Colors are used only when enabled in config, NO_COLOR is unset and the
    stream is a terminal.
    """
    stream = stream if stream is not None else sys.stdout
    if not color or os.environ.get("NO_COLOR"):
        return Theme.plain()
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return Theme.plain()
    return Theme.ansi()


class Console:
    """Prints styled lines to a stream."""

    def __init__(self, theme: Optional[Theme] = None, stream: Optional[TextIO] = None):
        self.theme = theme if theme is not None else Theme.plain()
        self.stream = stream if stream is not None else sys.stdout

    def _print(self, msg: str = "") -> None:
        print(msg, file=self.stream, flush=True)

    def style(self, text: str, *codes: str) -> str:
        """Wrap text in the given codes, resetting afterwards."""
        prefix = "".join(codes)
        if not prefix:
            return text
        return f"{prefix}{text}{self.theme.reset}"

    def blank(self) -> None:
        self._print()

    def info(self, msg: str = "") -> None:
        self._print(msg)

    def header(self, msg: str) -> None:
        self._print(self.style(msg, self.theme.cyan, self.theme.bright))

    def success(self, msg: str) -> None:
        self._print(self.style(msg, self.theme.green))

    def warn(self, msg: str) -> None:
        self._print(self.style(msg, self.theme.yellow))

    def dim(self, msg: str) -> None:
        self._print(self.style(msg, self.theme.dim))

    def error(self, msg: str) -> None:
        self._print(self.style(msg, self.theme.red))
