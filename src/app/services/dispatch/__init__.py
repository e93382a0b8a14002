"""Dispatch coordination services."""

from .coordinator import DispatchCoordinator
from .models import DispatchOutcome, DispatchState
from .retry import call_with_retry

__all__ = ["DispatchCoordinator", "DispatchOutcome", "DispatchState", "call_with_retry"]
