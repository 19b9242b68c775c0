"""Error types raised by subsplice."""


class SubspliceError(Exception):
    """Base class for subsplice errors."""


class EmptyResultError(SubspliceError, ValueError):
    """An audio edit would produce a zero-length buffer."""


class OperationCancelled(SubspliceError):
    """A synthesis or transcription call was cancelled by the caller."""


class SynthesisError(SubspliceError, RuntimeError):
    """The speech backend failed or returned no usable payload."""


class ReconstructionNotAllowed(SubspliceError):
    """The session refused to reconstruct audio from the current edits."""
