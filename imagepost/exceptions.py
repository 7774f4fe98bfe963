"""Exception classes for filter pipeline runs."""


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    pass


class EmptyInputError(PipelineError):
    """Raised when a run is requested without a source image."""

    def __init__(self, message: str = "No input image supplied"):
        super().__init__(message)


class FilterError(PipelineError):
    """Raised when a single stage could not process its input.

    :param stage: Name of the failing stage, e.g. ``'Bloom'``
    :param reason: Human readable cause
    """

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage}: {reason}")


class RasterizationError(PipelineError):
    """Raised when the final crop or render failed."""

    pass


class StageTimeoutError(RasterizationError):
    """Raised when a stage exceeded its time budget."""

    def __init__(self, stage: str, timeout: float):
        self.stage = stage
        self.timeout = timeout
        super().__init__(f"{stage} exceeded its time budget of {timeout:g}s")
