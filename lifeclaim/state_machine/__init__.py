from .machine import PolicyLifecycle

__all__ = ["PolicyLifecycle"]
