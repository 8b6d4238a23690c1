"""
Errors raised by the RigSim force pipeline.
"""


class RigSimError(Exception):
    """Base class for all RigSim errors."""


class ConfigurationError(RigSimError):
    """A vehicle or simulator tunable holds an unusable value."""


class SetupError(RigSimError):
    """An entity is wired incorrectly (tire without vehicle, vehicle without tires)."""

    def __init__(self, message: str, entity_id: int | None = None):
        super().__init__(message)
        self.entity_id = entity_id


class PipelineError(RigSimError):
    """The per-tick ordering contract was violated."""


class PipelineOrderError(PipelineError):
    """A tick phase ran before the phases it depends on."""


class StaleContributionError(PipelineError):
    """A force contribution arrived for the wrong tick or after aggregation."""
