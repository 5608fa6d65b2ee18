from __future__ import annotations


class FatalError(Exception):
    """A condition that makes it unsafe to continue setup.

    Raised by steps at guard checkpoints; the pipeline halts on the first one.
    """

    def __init__(self, message: str, *, step_id: str | None = None):
        self.step_id = step_id
        super().__init__(message)
