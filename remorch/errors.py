"""Error types for remorch-connect."""


class RemorchError(Exception):
    """Base class for errors reported to the user."""


class NoInterfaceError(RemorchError):
    """No usable IPv4 address could be found on this machine."""

    def __init__(self, message: str = "No network interface found"):
        super().__init__(message)


class InvalidDescriptorError(RemorchError, ValueError):
    """A connection descriptor was built or decoded from bad data."""


class SessionCreationError(RemorchError):
    """A tmux session could not be named or created."""


class ShellDetectionError(RemorchError):
    """The user's shell configuration file could not be determined."""


class FileWriteError(RemorchError):
    """Writing to the shell configuration file failed."""
