"""Exception taxonomy for the shade builder."""


class ShadeBuilderError(Exception):
    """Base class for every error raised by the kernel."""


class InvalidParameter(ShadeBuilderError, ValueError):
    """A numeric field is out of range; nothing is generated."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        self.message = message
        super().__init__(f"{parameter}: {message}")


class OutOfRange(InvalidParameter):
    """A height fraction outside [0, 1] was handed to the silhouette evaluator."""


class UnsupportedFamilyCombination(ShadeBuilderError):
    """Two requested features cannot be combined (e.g. lattice + fitter)."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        self.message = message
        super().__init__(f"{parameter}: {message}")


class MeshAssemblyFailure(ShadeBuilderError, AssertionError):
    """Index / vertex buffers disagree after merging. Indicates a bug."""


class CodecError(ShadeBuilderError, ValueError):
    """A design code could not be decoded."""
