"""Engine adapters: turn connection descriptors and raw queries into backend requests."""

from adapters.factory import get_adapter

__all__ = ["get_adapter"]
