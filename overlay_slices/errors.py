"""
Exception types raised by the capture pipeline.
"""


class MissingToolError(RuntimeError):
    """An external executable (mrview, convert, magick) is not on the PATH."""

    def __init__(self, tool):
        self.tool = tool
        super().__init__(f"This script requires the '{tool}' command, but it is not installed. Aborting.")


class InvalidAxisError(ValueError):
    """Axis index outside 0 (sagittal), 1 (coronal), 2 (axial)."""

    def __init__(self, axis):
        self.axis = axis
        super().__init__(f"Invalid axis '{axis}': use 0 for sagittal, 1 for coronal and 2 for axial.")


class EmptyMontageError(RuntimeError):
    """A merged image was requested but no slice captures were found."""


class CaptureNotFoundError(FileNotFoundError):
    """mrview exited without writing the expected capture file."""
