import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from .alphabet import BLANK_SYMBOL, CONTROL_SYMBOLS, normalise_symbol
from .exceptions import TapeBoundsError

logger = logging.getLogger(__name__)

# Blank cells allocated beyond the initial content of an ArrayTape
TAPE_PADDING = 100

TapeListener = Callable[['Tape'], None]


def tape_symbol(symbol: str) -> str:
    """Canonical form of a symbol stored in a cell. Control symbols never appear on a tape."""
    symbol = normalise_symbol(symbol)
    if symbol in CONTROL_SYMBOLS:
        raise ValueError(f"{symbol!r} is a control symbol and cannot be written to a tape")
    return symbol


class Tape(ABC):
    """
    A tape that is infinite to the right, with a single read/write head.

    Cell 0 is the leftmost cell. Every cell that has never been written reads
    as the blank symbol. Subclasses decide how the cells are stored; this class
    handles the head and change notification.
    """

    def __init__(self, initial: str = ''):
        self._listeners: List[TapeListener] = []
        self._head = 0
        self._cells: List[str] = []
        self._set_contents(initial)

    @abstractmethod
    def _set_contents(self, text: str):
        """Replace the backing storage with the given symbols."""
        pass

    @abstractmethod
    def _grow(self):
        """Make room for the cell under the head, which has moved past the end."""
        pass

    # Observation

    def subscribe(self, listener: TapeListener):
        """Call `listener(tape)` after every change to the tape."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: TapeListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    # Head and cells

    def read(self) -> str:
        return self._cells[self._head]

    def write(self, symbol: str):
        self._cells[self._head] = tape_symbol(symbol)
        self._notify()

    def head_left(self):
        if self._head == 0:
            # The head stays parked; callers may catch the error and continue
            self.reset_rw_head()
            raise TapeBoundsError()
        self._head -= 1
        self._notify()

    def head_right(self):
        self._head += 1
        if self._head >= len(self._cells):
            self._grow()
        self._notify()

    def reset_rw_head(self):
        self._head = 0
        self._notify()

    def is_parked(self) -> bool:
        return self._head == 0

    def head_location(self) -> int:
        return self._head

    def get_length(self) -> int:
        """Number of cells currently held in the backing storage."""
        return len(self._cells)

    def get_partial_string(self, start: int, length: int) -> str:
        """
        Read `length` symbols starting at cell `start` without changing the tape.

        Cells past the end of the backing storage read as blank.
        """
        if start < 0 or length < 0:
            raise ValueError("start and length must be non-negative")
        stored = self._cells[start:start + length]
        return ''.join(stored) + BLANK_SYMBOL * (length - len(stored))

    def clear_tape(self):
        self._set_contents('')
        self._head = 0
        self._notify()

    def copy_other(self, other: 'Tape'):
        """Take over the contents of another tape. The head is parked."""
        self._set_contents(str(other))
        self._head = 0
        self._notify()

    def __str__(self):
        return ''.join(self._cells).rstrip(BLANK_SYMBOL)

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r}, head={self._head})"


class ArrayTape(Tape):
    """Preallocated cells; capacity doubles whenever the head runs off the end."""

    def _set_contents(self, text: str):
        symbols = [tape_symbol(c) for c in text]
        self._cells = symbols + [BLANK_SYMBOL] * TAPE_PADDING

    def _grow(self):
        old_length = len(self._cells)
        self._cells.extend([BLANK_SYMBOL] * old_length)
        logger.debug("Tape grown from %d to %d cells", old_length, len(self._cells))


class GrowingTape(Tape):
    """Holds only the cells that have been reached; grows one cell at a time."""

    def _set_contents(self, text: str):
        self._cells = [tape_symbol(c) for c in text] or [BLANK_SYMBOL]

    def _grow(self):
        while len(self._cells) <= self._head:
            self._cells.append(BLANK_SYMBOL)
