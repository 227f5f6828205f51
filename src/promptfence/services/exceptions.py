"""Custom exceptions for promptfence services."""


class PromptFenceError(Exception):
    """Base class for errors raised by promptfence services."""


class FileModifiedError(PromptFenceError):
    """Raised when a state file changed on disk since it was loaded.

    Writing anyway would discard whatever the other writer saved.

    Attributes:
        path: Path to the file that was modified
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str = "File was modified externally"):
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class StateFileError(PromptFenceError):
    """Raised when a state file cannot be read or parsed.

    Attributes:
        path: Path to the state file
        reason: What went wrong
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load state file {path}: {reason}")


class PresetNotFoundError(PromptFenceError):
    """Raised when a preset file does not exist.

    Attributes:
        name: Preset name or path that was requested
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Preset not found: {name}")


class PresetReadError(PromptFenceError):
    """Raised when a preset file exists but cannot be read as UTF-8 text.

    Attributes:
        path: Path to the preset file
        reason: What went wrong
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read preset {path}: {reason}")
