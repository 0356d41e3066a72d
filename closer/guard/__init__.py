"""Response Guard: bounds and cleans generated replies."""

from closer.guard.response_guard import GuardResult, guard_response

__all__ = ["GuardResult", "guard_response"]
