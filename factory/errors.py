"""Failures raised when a production model cannot be optimized."""


class SolveError(Exception):
    """Base class for every solve failure. status holds the backend status text."""

    def __init__(self, message: str, status: str = "Undefined"):
        super().__init__(message)
        self.status = status


class InfeasibleError(SolveError):
    """No machine assignment satisfies the balance and target constraints."""


class UnboundedError(SolveError):
    """The backend reported an unbounded objective."""


class BackendError(SolveError):
    """The backend failed for any other reason (not solved, numerical trouble, crash)."""
