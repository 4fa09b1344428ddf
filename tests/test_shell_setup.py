#!/usr/bin/env python3
"""
Unit tests for shell alias installation.

Run with: python3 -m pytest tests/test_shell_setup.py -v
"""

import io
import re
import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from remorch.console import Console
from remorch.errors import FileWriteError, ShellDetectionError
from remorch.shell_setup import (
    MARKER,
    InstallResult,
    ShellEnv,
    alias_block,
    detect_shell_env,
    install_aliases,
    setup_aliases,
)


class TestDetectShellEnv:
    @pytest.mark.parametrize("shell,platform_id,expected", [
        ("/bin/zsh", "darwin", ".zshrc"),
        ("/usr/bin/zsh", "linux", ".zshrc"),
        ("/bin/bash", "darwin", ".bash_profile"),
        ("/bin/bash", "linux", ".bashrc"),
        ("/usr/local/bin/fish", "linux", ".config/fish/config.fish"),
    ])
    def test_config_file(self, tmp_path, shell, platform_id, expected):
        env = detect_shell_env(shell=shell, home=tmp_path, platform_id=platform_id, kernel_release="6.1.0")
        assert env.config_file == tmp_path / expected

    def test_unknown_shell(self, tmp_path):
        env = detect_shell_env(shell="/bin/tcsh", home=tmp_path, platform_id="linux", kernel_release="6.1.0")
        assert env.shell == "unknown"
        assert env.config_file is None

    @pytest.mark.parametrize("release,is_wsl", [
        ("5.15.90.1-microsoft-standard-WSL2", True),
        ("4.4.0-19041-Microsoft", True),
        ("6.5.0-14-generic", False),
    ])
    def test_wsl_detection(self, tmp_path, release, is_wsl):
        env = detect_shell_env(shell="/bin/bash", home=tmp_path, platform_id="linux", kernel_release=release)
        assert env.is_wsl is is_wsl
        assert env.platform_name == ("WSL" if is_wsl else "Linux")

    def test_macos_name(self, tmp_path):
        env = detect_shell_env(shell="/bin/zsh", home=tmp_path, platform_id="darwin")
        assert env.platform_name == "macOS"
        assert not env.is_wsl


class TestAliasBlock:
    def test_posix_aliases(self):
        block = alias_block("zsh", "remorch-connect", ["claude", "gemini"], today=date(2026, 1, 2))
        assert MARKER in block
        assert "2026-01-02" in block
        assert "alias claude='remorch-connect claude'" in block
        assert "alias gemini='remorch-connect gemini'" in block
        assert "alias remorch='remorch-connect'" in block

    def test_fish_functions(self):
        block = alias_block("fish", "remorch-connect", ["codex"])
        assert "function codex; remorch-connect codex $argv; end" in block
        assert "function remorch; remorch-connect $argv; end" in block
        assert not re.search(r"^alias ", block, re.M)


class TestInstallAliases:
    def _env(self, path, shell="bash"):
        return ShellEnv(platform="linux", platform_name="Linux", shell=shell, config_file=path)

    def test_idempotent(self, tmp_path):
        rc = tmp_path / ".bashrc"
        rc.write_text("export PATH=$PATH:~/bin\n")
        env = self._env(rc)

        assert install_aliases(env) is InstallResult.ADDED
        assert install_aliases(env) is InstallResult.ALREADY_PRESENT

        content = rc.read_text()
        assert content.startswith("export PATH=$PATH:~/bin\n")
        assert content.count("# RemOrch Connect aliases") == 1

    def test_creates_missing_fish_config(self, tmp_path):
        config = tmp_path / ".config" / "fish" / "config.fish"
        assert install_aliases(self._env(config, shell="fish")) is InstallResult.ADDED
        assert "function claude;" in config.read_text()

    def test_no_config_file(self):
        with pytest.raises(ShellDetectionError):
            install_aliases(ShellEnv(platform="linux", platform_name="Linux"))

    def test_write_failure(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        with pytest.raises(FileWriteError):
            install_aliases(self._env(blocker / ".bashrc"))


class TestSetupAliases:
    def test_reports_added_then_existing(self, tmp_path):
        out = io.StringIO()
        env = ShellEnv(platform="linux", platform_name="Linux", shell="zsh", config_file=tmp_path / ".zshrc")

        assert setup_aliases(Console(stream=out), env=env) == 0
        assert "Added aliases" in out.getvalue()

        out.truncate(0)
        out.seek(0)
        assert setup_aliases(Console(stream=out), env=env) == 0
        assert "already exist" in out.getvalue()

    def test_manual_instructions_when_undetected(self):
        out = io.StringIO()
        env = ShellEnv(platform="linux", platform_name="Linux", shell="unknown")

        assert setup_aliases(Console(stream=out), env=env) == 0
        text = out.getvalue()
        assert "Could not detect" in text
        assert "alias claude='remorch-connect claude'" in text
