class LabError(Exception):
    """Base class for every error raised by the execution engine."""


class GraphError(LabError):
    """Invalid graph command: unknown ids, self-loops, stale snapshots, bad snapshot data."""


class InputError(LabError):
    """A node is missing a required input or was configured with an invalid value."""


class ProviderError(LabError):
    """An external service returned an unusable response."""


class OperationFailed(LabError):
    """An asynchronous operation reached a failure status.

    The message is the provider's failure reason, surfaced verbatim on the node.
    """

    def __init__(self, reason: str, task_id: str = None):
        super().__init__(reason)
        self.reason = reason
        self.task_id = task_id
