"""Exception types shared across the package."""


class DunaSwapError(Exception):
    """Base class for errors surfaced to the command layer."""
    pass


class InstallationNotFoundError(DunaSwapError):
    """Raised when no Steam installation or userdata folder can be located."""
    pass


class InvalidIdentifierError(DunaSwapError, ValueError):
    """Raised when a profile or game id is not a numeric string."""
    pass


class CatalogDecodeError(DunaSwapError):
    """Raised by the appinfo decoder in strict mode on malformed input."""
    pass


class SwapRequestError(DunaSwapError):
    """A swap request rejected before any filesystem change."""
    pass


class NoGamesSelectedError(SwapRequestError):
    def __init__(self):
        super().__init__("No games selected")


class SourceNotFoundError(SwapRequestError):
    def __init__(self, source_id: str):
        super().__init__("Source profile not found")
        self.source_id = source_id


class NoValidTargetsError(SwapRequestError):
    def __init__(self):
        super().__init__("No valid target profiles found")


class CopyError(DunaSwapError):
    """Raised when a recursive directory copy fails."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CopyCycleError(CopyError):
    """Raised when a copy revisits a directory or exceeds the depth bound."""
    pass
