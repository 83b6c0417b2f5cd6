
class InvalidStateError(RuntimeError):
    """
    Raised when a lifecycle operation is called outside its legal window
    (executing a closed Command, freeing an unknown lock key, ...).
    These are programmer errors; callers are expected to respect the state
    machine rather than recover from them.
    """
    pass


class StackLockedError(InvalidStateError):
    """Raised when a Command is pushed to a CommandStack whose Lock is engaged."""
    pass
