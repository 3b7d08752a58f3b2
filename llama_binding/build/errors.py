"""Errors raised while planning or running a native build.

Every error is fatal: the CLI prints the message and exits with status 1.
"""


class BuildError(Exception):
    """Base class for all build failures."""


class ConfigurationError(BuildError):
    """Invalid backend selection or unsupported operating system."""


class PatchInvariantViolation(BuildError):
    """The expected expression was not found in a source file that needs patching."""

    def __init__(self, path, expected):
        self.path = path
        self.expected = expected
        super().__init__(
            f"{path} does not contain the expression to be replaced:\n"
            f"    {expected}\n"
            "The upstream source has changed and the patching logic needs to be reinvestigated "
            "by a maintainer before this backend can be built."
        )


class ToolchainError(BuildError):
    """A compiler, archiver or linker failed."""

    def __init__(self, cmd, returncode=None, output=""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            message = f"Could not run: {' '.join(self.cmd)}"
        else:
            message = f"Command failed with exit code {returncode}: {' '.join(self.cmd)}"
        if output:
            message += f"\nCommand output was:\n{output}"
        super().__init__(message)


class FilesystemError(BuildError):
    """A required source file could not be read, or an output could not be written."""
