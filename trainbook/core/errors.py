class TrainBookError(Exception):
    """Base class for every domain error raised by the write path and reports."""


class ValidationError(TrainBookError):
    """A constraint on a record or a report parameter was violated."""


class NotFoundError(TrainBookError):
    """The referenced record does not exist."""


class IntegrityViolation(TrainBookError):
    """Unique or reference conflict between records."""
