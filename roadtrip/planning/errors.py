"""Planning error taxonomy.

Per-segment RouteError is recovered by the segmenter; everything else is
fatal and reaches the orchestrator, which wraps it in PlanningAborted.
"""


class PlanningError(Exception):
    """Base class for trip-planning failures."""

    pass


class CatalogUnavailable(PlanningError):
    """Every city catalog source failed."""

    pass


class GeocodeError(PlanningError):
    """An address could not be resolved to coordinates."""

    pass


class NoCitiesError(PlanningError):
    """Day allocation was asked to allocate over an empty route."""

    pass


class InsufficientCitiesError(PlanningError):
    """Segmentation needs at least two cities."""

    pass


class RouteError(PlanningError):
    """The routing provider could not produce a driving route."""

    pass


class PlacesError(PlanningError):
    """The places provider rejected a search."""

    pass


class PlanningAborted(PlanningError):
    """A pipeline stage failed; no plan was produced."""

    outcome = "aborted"

    def __init__(self, stage: str, cause: BaseException | None = None) -> None:
        self.stage = stage
        self.cause = cause
        detail = f": {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(f"trip planning {self.outcome} during {stage}{detail}")


class PlanningCancelled(PlanningAborted):
    """The caller cancelled the run."""

    outcome = "cancelled"

    def __init__(self, stage: str) -> None:
        super().__init__(stage)
