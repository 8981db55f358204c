"""Exception classes raised by assetpipe."""


class AssetpipeError(Exception):
    """Base class for all assetpipe errors."""
    pass


class ConfigError(AssetpipeError):
    """Error parsing or validating the settings file."""
    pass


class CommandError(AssetpipeError):
    """An external command exited with a non-zero status.

    Attributes:
        command: The formatted command line
        returncode: Exit status of the process
        stderr: Captured standard error output
    """

    def __init__(self, command: str, returncode: int, stderr: str = ''):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed with exit code {returncode}: {command}"
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)
