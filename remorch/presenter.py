"""Connection info output: text summary and QR code."""

import io
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Optional

import qrcode

from .config import QrConfig
from .console import Console
from .descriptor import ConnectionLinks, EncodedDescriptor
from .network import AddressSelection


RULE = "─" * 41


def qr_image_path(session: Optional[str], directory: Optional[Path] = None) -> Path:
    directory = directory or Path(tempfile.gettempdir())
    filename = f"remorch-qr-{session}.png" if session else "remorch-qr.png"
    return directory / filename


def _make_qr(data: str, box_size: int = 10, border: int = 2) -> qrcode.QRCode:
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def generate_qr_image(
    data: str,
    session: Optional[str] = None,
    directory: Optional[Path] = None,
    box_size: int = 10,
    border: int = 2,
) -> Path:
    """Write a PNG QR code for data and return its path."""
    path = qr_image_path(session, directory)
    img = _make_qr(data, box_size=box_size, border=border).make_image(
        fill_color="black", back_color="white"
    )
    img.save(str(path))
    return path


def render_terminal_qr(data: str) -> str:
    """Render a QR code with block characters for the terminal."""
    out = io.StringIO()
    _make_qr(data, border=1).print_ascii(out=out, invert=True)
    return out.getvalue()


def open_image(path: Path) -> bool:
    """Open a file with the platform's default viewer.

    Returns:
        True if a viewer was launched
    """
    try:
        if sys.platform == "darwin":
            cmd = ["open", str(path)]
        elif sys.platform == "win32":
            os.startfile(str(path))  # type: ignore[attr-defined]
            return True
        else:
            if not shutil.which("xdg-open"):
                return False
            cmd = ["xdg-open", str(path)]

        result = subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
        return result.returncode == 0
    except OSError:
        return False


def show_qr(
    console: Console,
    data: str,
    session: Optional[str],
    qr_config: QrConfig,
    directory: Optional[Path] = None,
) -> Optional[Path]:
    """Show the QR code as an opened image, or in the terminal.

    Returns:
        Path of the opened image, or None if the terminal fallback was used
    """
    path = None
    try:
        path = generate_qr_image(
            data,
            session,
            directory=directory,
            box_size=qr_config.box_size,
            border=qr_config.border,
        )
    except (OSError, ValueError) as e:
        console.error(f"Failed to generate QR image: {e}")

    if path is not None and qr_config.open_image and open_image(path):
        console.success(f"  ✓ QR code opened: {path}")
        return path

    console.info(render_terminal_qr(data))
    if path is not None:
        console.dim(f"  QR image saved to: {path}")
    return None


def show_connection_info(
    console: Console,
    selection: AddressSelection,
    user: str,
    port: int,
    encoded: EncodedDescriptor,
    links: ConnectionLinks,
    qr_config: QrConfig,
    session: Optional[str] = None,
    sessions: Optional[list[str]] = None,
    attach_hint: Optional[str] = None,
    qr_directory: Optional[Path] = None,
) -> None:
    """Print everything needed to connect from the app or by hand."""
    t = console.theme

    console.info(console.style("Connection Info:", t.bright))
    console.info(f"  Host:     {console.style(selection.address, t.cyan)}")
    console.info(f"  Port:     {port}")
    console.info(f"  User:     {user}")
    if session:
        console.info(f"  Session:  {console.style(session, t.green)}")
    console.blank()

    if selection.from_overlay:
        console.success(f"  ✓ Tailscale detected: {selection.address}")
    if sessions:
        console.success(f"  ✓ tmux sessions: {', '.join(sessions)}")
    console.blank()

    console.header("Scan with RemOrch app:")
    console.blank()
    show_qr(console, links.app_url, session, qr_config, directory=qr_directory)

    console.blank()
    console.info(f"Or enter code: {console.style(encoded.short_code, t.bright, t.cyan)}")
    console.blank()

    console.dim("Or open on your phone:")
    console.info(f"  {console.style(links.web_url, t.cyan)}")
    console.blank()

    console.dim(RULE)
    console.dim("Manual connection:")
    console.dim(f"  ssh {user}@{selection.address}")
    if session:
        console.dim(f"  {attach_hint or f'tmux attach -t {session}'}")
    console.dim(RULE)
    console.blank()
