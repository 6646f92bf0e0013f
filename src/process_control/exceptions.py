"""Exceptions raised by the process control package."""


class InsufficientHistoryError(ValueError):
    """A controller was asked to act on fewer measurements than it needs.

    Derivative and edge-triggered controllers compare the current sample to
    the previous one, so the simulation loops seed two history entries
    before the first control step.
    """

    def __init__(self, controller: str, required: int, available: int):
        self.controller = controller
        self.required = required
        self.available = available
        super().__init__(
            f"{controller} needs at least {required} measurements, got {available}"
        )
