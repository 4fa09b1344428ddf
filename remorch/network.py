"""Local address discovery for remorch-connect.

The advertised host is chosen in this order:

1. the address reported by the overlay network CLI (``tailscale ip -4``),
2. the first interface address that looks like an overlay network,
3. the first non-loopback IPv4 address of any interface.
"""

import ipaddress
import socket
import subprocess
from dataclasses import dataclass
from typing import Iterable, Optional

import psutil

from .errors import NoInterfaceError


# Carrier-grade NAT block, used by Tailscale for node addresses
CGNAT_NETWORK = ipaddress.IPv4Network("100.64.0.0/10")

DEFAULT_OVERLAY_PATTERNS = ("tailscale", "utun")

SOURCE_OVERLAY_CLI = "overlay-cli"
SOURCE_PREFERRED = "preferred"
SOURCE_INTERFACE = "interface"


@dataclass(frozen=True)
class NetworkAddress:
    """An IPv4 address bound to a local interface."""

    interface: str
    address: str
    is_preferred: bool = False


@dataclass(frozen=True)
class AddressSelection:
    """The address to advertise and how it was found."""

    address: str
    source: str

    @property
    def from_overlay(self) -> bool:
        return self.source == SOURCE_OVERLAY_CLI


def parse_ipv4(value: str) -> Optional[str]:
    """Return value if it is a valid IPv4 address, else None."""
    try:
        return str(ipaddress.IPv4Address(value.strip()))
    except (ipaddress.AddressValueError, ValueError):
        return None


def is_overlay(interface: str, address: str, patterns: Iterable[str]) -> bool:
    """Check whether an interface address looks like an overlay network."""
    name = interface.lower()
    if any(pattern.lower() in name for pattern in patterns):
        return True
    try:
        return ipaddress.IPv4Address(address) in CGNAT_NETWORK
    except ipaddress.AddressValueError:
        return False


class NetworkAddressProvider:
    """Reads addresses from the overlay network CLI and local interfaces."""

    def __init__(
        self,
        overlay_cli: str = "tailscale",
        overlay_patterns: Iterable[str] = DEFAULT_OVERLAY_PATTERNS,
        timeout: float = 5.0,
    ):
        self.overlay_cli = overlay_cli
        self.overlay_patterns = tuple(overlay_patterns)
        self.timeout = timeout

    def overlay_address(self) -> Optional[str]:
        """Ask the overlay network CLI for this node's IPv4 address.

        Returns:
            The address, or None if the CLI is missing, fails or prints
            something that is not an IPv4 address.
        """
        if not self.overlay_cli:
            return None
        try:
            result = subprocess.run(
                [self.overlay_cli, "ip", "-4"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None

        if result.returncode != 0:
            return None

        lines = result.stdout.strip().splitlines()
        if not lines:
            return None
        return parse_ipv4(lines[0])

    def interface_addresses(self) -> list[NetworkAddress]:
        """List non-loopback IPv4 addresses of all local interfaces."""
        addresses = []
        for name, entries in psutil.net_if_addrs().items():
            for entry in entries:
                if entry.family != socket.AF_INET:
                    continue
                address = parse_ipv4(entry.address)
                if address is None or ipaddress.IPv4Address(address).is_loopback:
                    continue
                addresses.append(
                    NetworkAddress(
                        interface=name,
                        address=address,
                        is_preferred=is_overlay(name, address, self.overlay_patterns),
                    )
                )
        return addresses


def select_primary_address(provider) -> AddressSelection:
    """Pick the single best address to advertise.

    Args:
        provider: Object with ``overlay_address()`` and
            ``interface_addresses()`` methods

    Raises:
        NoInterfaceError: If no address exists at all
    """
    overlay = provider.overlay_address()
    if overlay:
        return AddressSelection(address=overlay, source=SOURCE_OVERLAY_CLI)

    addresses = provider.interface_addresses()
    for addr in addresses:
        if addr.is_preferred:
            return AddressSelection(address=addr.address, source=SOURCE_PREFERRED)

    if addresses:
        return AddressSelection(address=addresses[0].address, source=SOURCE_INTERFACE)

    raise NoInterfaceError()
