"""Exception types raised and recognised by the SDK."""

import traceback


class FaultlineError(Exception):
    """An expected, terminal outcome for a single captured item.

    Raised inside the event pipeline when an event is disabled, sampled out,
    vetoed or otherwise not delivered. Capture calls log it and never let it
    reach the caller.
    """


class SyntheticException(Exception):
    """Marks a call site when no real exception is available.

    The Python call stack is recorded at construction time so the decoder
    can attribute an event to the code that asked for it.
    """

    def __init__(self, message: str = "faultline syntheticException"):
        super().__init__(message)
        # Drop this constructor frame, keep everything above it.
        self.call_stack = traceback.extract_stack()[:-1]
