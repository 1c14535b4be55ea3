class DotpicError(Exception):
    """Base class for every error raised by dotpic."""


class InvalidDimension(DotpicError, ValueError):
    """A grid, bitmap or target size is zero, negative or too large."""

    def __init__(self, width: int, height: int, reason: str = "invalid dimensions"):
        self.width = width
        self.height = height
        super().__init__(f"{reason}: {width}x{height}")


class OutOfBounds(DotpicError, IndexError):
    """A query addressed a dot or cell outside the grid."""

    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        super().__init__(f"({x}, {y}) is outside a {width}x{height} area")


class SourceUnavailable(DotpicError, OSError):
    """The image source could not be opened or decoded."""


class UnsupportedConfiguration(DotpicError, ValueError):
    """A configuration value is outside what the pipeline supports."""
