from typing import Optional, Sequence


class ApkExtError(Exception):
    """Base class for every failure reported by the unpack/pack pipelines."""


class ValidationError(ApkExtError):
    """Bad input detected before any side effect (extension, missing input, existing output)."""


class ConfigError(ApkExtError):
    pass


class AssetError(ApkExtError):
    """The working directory could not be created, populated or removed."""


class ToolExecutionError(ApkExtError):
    """
    An external helper tool could not be launched or exited with a non-zero status.

    Attributes:
        tool: Logical tool name (e.g. "apktool").
        arguments: Caller-supplied arguments.
        returncode: Exit status, or None when the process never started.
    """

    def __init__(self, tool: str, args: Sequence[str], returncode: Optional[int] = None, reason: str = ""):
        self.tool = tool
        self.arguments = list(args)
        self.returncode = returncode
        if returncode is None:
            detail = f"failed to launch: {reason}" if reason else "failed to launch"
        else:
            detail = f"exited with status {returncode}"
        super().__init__(f"{tool} {detail} (args: {' '.join(self.arguments)})")


class StageError(ApkExtError):
    """A pipeline stage failed; `stage` names it and `__cause__` holds the underlying error."""

    def __init__(self, stage, message: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class ArchiveError(ApkExtError):
    """A ZIP member could not be read: corrupt data, unsupported compression or encryption."""
