"""Pipeline exceptions."""


class PipelineError(Exception):
    """Base class for call pipeline errors."""


class CallNotFoundError(PipelineError):
    """No call with the given id (or not visible to the owner)."""

    def __init__(self, call_id: str):
        super().__init__(f"Call not found: {call_id}")
        self.call_id = call_id


class InvalidTransitionError(PipelineError):
    """A status transition was requested from a state that does not allow it."""

    def __init__(self, call_id: str, current: str, target: str):
        super().__init__(f"Call {call_id} cannot move from {current} to {target}")
        self.call_id = call_id
        self.current = current
        self.target = target


class TranscriptionError(PipelineError):
    """The transcription provider failed for a recording."""


class AdmissionRejectedError(PipelineError):
    """The work queue refused a new job."""

    def __init__(self, call_id: str, queue_depth: int):
        super().__init__(f"Pipeline queue is full ({queue_depth} pending), call {call_id} not scheduled")
        self.call_id = call_id
        self.queue_depth = queue_depth
