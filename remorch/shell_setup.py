"""Shell alias installation for remorch-connect."""

import enum
import os
import platform
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from .console import Console
from .errors import FileWriteError, ShellDetectionError


MARKER = "remorch-connect"


@dataclass
class ShellEnv:
    """The user's platform and shell configuration file."""

    platform: str
    platform_name: str
    shell: str = "unknown"
    config_file: Optional[Path] = None
    is_wsl: bool = False


class InstallResult(enum.Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"


def detect_shell_env(
    shell: Optional[str] = None,
    home: Optional[Path] = None,
    platform_id: Optional[str] = None,
    kernel_release: Optional[str] = None,
) -> ShellEnv:
    """Work out which shell config file aliases belong in.

    Arguments default to the running process's $SHELL, home directory,
    ``sys.platform`` and kernel release.
    """
    shell = shell if shell is not None else os.environ.get("SHELL", "")
    home = home if home is not None else Path.home()
    platform_id = platform_id or sys.platform

    is_wsl = False
    if platform_id.startswith("linux"):
        release = (kernel_release if kernel_release is not None else platform.release()).lower()
        is_wsl = "microsoft" in release or "wsl" in release

    if platform_id == "darwin":
        platform_name = "macOS"
    elif is_wsl:
        platform_name = "WSL"
    elif platform_id.startswith("linux"):
        platform_name = "Linux"
    else:
        platform_name = platform_id

    env = ShellEnv(platform=platform_id, platform_name=platform_name, is_wsl=is_wsl)

    if "zsh" in shell:
        env.shell = "zsh"
        env.config_file = home / ".zshrc"
    elif "bash" in shell:
        env.shell = "bash"
        # macOS login shells read .bash_profile, not .bashrc
        if platform_id == "darwin":
            env.config_file = home / ".bash_profile"
        else:
            env.config_file = home / ".bashrc"
    elif "fish" in shell:
        env.shell = "fish"
        env.config_file = home / ".config" / "fish" / "config.fish"

    return env


def alias_lines(shell: str, launcher: str, tools: Sequence[str]) -> list[str]:
    """One alias definition per tool."""
    if shell == "fish":
        return [f"function {tool}; {launcher} {tool} $argv; end" for tool in tools]
    return [f"alias {tool}='{launcher} {tool}'" for tool in tools]


def alias_block(
    shell: str,
    launcher: str,
    tools: Sequence[str],
    today: Optional[date] = None,
) -> str:
    """Text appended to the shell config, including the marker comment."""
    today = today or date.today()
    lines = [f"# RemOrch Connect aliases (added {today.isoformat()}, {MARKER})"]
    lines += alias_lines(shell, launcher, tools)
    if shell == "fish":
        lines.append(f"function remorch; {launcher} $argv; end")
    else:
        lines.append(f"alias remorch='{launcher}'")
    return "\n" + "\n".join(lines) + "\n"


def install_aliases(
    env: ShellEnv,
    launcher: str = "remorch-connect",
    tools: Sequence[str] = ("claude", "gemini", "codex"),
) -> InstallResult:
    """Append the alias block to the shell config unless already there.

    Raises:
        ShellDetectionError: If no config file is known for the shell
        FileWriteError: If the config file can't be written
    """
    if env.config_file is None:
        raise ShellDetectionError("Could not detect shell configuration file.")

    try:
        existing = env.config_file.read_text()
    except FileNotFoundError:
        existing = ""
    except OSError as e:
        raise FileWriteError(f"Failed to read {env.config_file}: {e}") from e

    if MARKER in existing:
        return InstallResult.ALREADY_PRESENT

    try:
        env.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(env.config_file, "a") as f:
            f.write("\n" + alias_block(env.shell, launcher, tools))
    except OSError as e:
        raise FileWriteError(f"Failed to write to {env.config_file}: {e}") from e

    return InstallResult.ADDED


def show_alias_snippet(
    console: Console, shell: str, launcher: str, tools: Sequence[str]
) -> None:
    for line in alias_lines(shell, launcher, tools):
        console.dim(f"  {line}")


def setup_aliases(
    console: Console,
    launcher: str = "remorch-connect",
    tools: Sequence[str] = ("claude", "gemini", "codex"),
    env: Optional[ShellEnv] = None,
) -> int:
    """Interactive ``--setup`` flow.

    Failures fall back to printing the aliases for manual installation.

    Returns:
        Exit code (always 0)
    """
    env = env or detect_shell_env()
    t = console.theme

    console.blank()
    console.header("RemOrch Connect - Shell Setup")
    console.blank()
    console.info(f"Detected: {console.style(env.platform_name, t.cyan)} ({env.shell})")

    if env.config_file is not None:
        console.info(f"Config:   {console.style(str(env.config_file), t.dim)}")
    console.blank()

    try:
        result = install_aliases(env, launcher=launcher, tools=tools)
    except ShellDetectionError as e:
        console.error(str(e))
        console.blank()
        console.info("Please manually add these lines to your shell config:")
        console.blank()
        show_alias_snippet(console, env.shell, launcher, tools)
        return 0
    except FileWriteError as e:
        console.error(str(e))
        console.blank()
        console.info("Please manually add these lines:")
        console.blank()
        show_alias_snippet(console, env.shell, launcher, tools)
        return 0

    if result is InstallResult.ALREADY_PRESENT:
        console.warn(f"! RemOrch aliases already exist in {env.config_file}")
        console.blank()
        console.info("Current aliases:")
        show_alias_snippet(console, env.shell, launcher, tools)
        return 0

    console.success(f"✓ Added aliases to {env.config_file}")
    console.blank()
    console.info("Added:")
    show_alias_snippet(console, env.shell, launcher, tools)
    console.blank()
    console.header("To activate now, run:")
    console.info(f"  source {env.config_file}")
    console.blank()
    console.dim("Or restart your terminal.")
    return 0
