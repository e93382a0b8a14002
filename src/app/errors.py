"""Exception taxonomy shared by the routing core, the stores and the API layer."""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for every failure raised while serving a dispatch."""

    reason = "internal_error"


class InvalidRequest(DispatchError):
    """Unknown location code or unrecognized vehicle type supplied by the caller."""

    reason = "invalid_request"


class UnknownLocation(DispatchError):
    """A location referenced by a query or an edge does not exist in the graph."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        super().__init__(message or f"Unknown location '{code}'.")


class InvalidWeight(DispatchError):
    """An edge carries a negative (or non-numeric) distance."""

    def __init__(self, source: str, target: str, weight: float) -> None:
        self.source = source
        self.target = target
        self.weight = weight
        super().__init__(f"Edge {source} <-> {target} has invalid weight {weight!r}.")


class StoreUnavailable(DispatchError):
    """Graph or inventory store could not be reached, after retries when applicable."""

    reason = "store_unavailable"

    def __init__(self, message: str, *, attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(message)


class StoreRejected(DispatchError):
    """The store refused a call in a way retrying cannot fix, such as a missing
    function, a missing table or denied permissions."""


class DispatchCancelled(DispatchError):
    """The caller abandoned the request before any inventory was committed."""

    reason = "cancelled"
