class MachineError(Exception):
    """Base class for every fault the machine engine surfaces."""


class TapeBoundsError(MachineError):
    """The read/write head was moved left of the first cell.

    The tape resets its head to position 0 before this is raised, so the
    caller may catch it and carry on.
    """

    def __init__(self, message: str = 'The r/w head was moved off the left end of the tape.'):
        super().__init__(message)


class UndefinedTransitionError(MachineError):
    """A step was attempted without a transition that can be applied."""


class NoStartStateError(MachineError):
    """The machine has no start state to begin a computation from."""

    def __init__(self, message: str = 'Machine has no start state.'):
        super().__init__(message)


class NondeterministicError(MachineError):
    """Raised by validation when a machine is not fit to be executed deterministically."""


class DuplicateStateError(MachineError, ValueError):
    """A state label is already used by another state in the same machine."""


class MachineFormatError(MachineError, ValueError):
    """A persisted machine or tape could not be read back."""
