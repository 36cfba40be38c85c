class JoinError(ValueError):
    """A join request that was refused without touching any room state."""


class ValidationError(JoinError):
    pass


class CapacityError(JoinError):
    pass
