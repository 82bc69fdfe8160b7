class BackendFailure(RuntimeError):
    """A backend call failed or timed out at the transport layer."""
