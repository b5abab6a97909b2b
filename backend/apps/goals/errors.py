class GoalError(Exception):
    """Base class for failures inside the goal service layer."""


class ValidationError(GoalError):
    """An argument was rejected before any database work happened."""


class NotFoundError(GoalError):
    pass


class PersistenceError(GoalError):
    """The database rejected a read or write."""


class PartialCascadeFailure(PersistenceError):
    """A cascading delete stopped partway; earlier steps stay applied."""

    def __init__(self, message: str, *, completed_steps: list[str]):
        super().__init__(message)
        self.completed_steps = completed_steps
