from .session import SESSION_DEFAULTS, init_state

__all__ = ["SESSION_DEFAULTS", "init_state"]
