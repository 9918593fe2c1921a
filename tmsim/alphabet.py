from typing import Iterable, List
import string

BLANK_SYMBOL = '_'
WILDCARD_SYMBOL = '*'
OTHERWISE_SYMBOL = '?'
UNDEFINED_SYMBOL = '!'
EMPTY_ACTION_SYMBOL = 'ε'

CONTROL_SYMBOLS = frozenset({WILDCARD_SYMBOL, OTHERWISE_SYMBOL, UNDEFINED_SYMBOL, EMPTY_ACTION_SYMBOL})


def normalise_symbol(symbol: str) -> str:
    """
    Bring a single tape symbol into canonical form.

    Letters are upper-cased and a space is read as the blank symbol. The
    control symbols are passed through untouched.

    Args:
        symbol: A one character string

    Returns:
        str: The canonical symbol

    Raises:
        ValueError: If the symbol is not exactly one character long, before or
            after upper-casing
    """
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise ValueError(f"A symbol must be a single character, got {symbol!r}")

    if symbol == ' ':
        return BLANK_SYMBOL
    if symbol in CONTROL_SYMBOLS:
        return symbol

    upper = symbol.upper()
    # Some letters upper-case to several characters, e.g. 'ß' -> 'SS'
    if len(upper) != 1:
        raise ValueError(f"Symbol {symbol!r} does not upper-case to a single character")
    return upper


class Alphabet:
    """The set of symbols a machine may read and write: letters, digits and the blank."""

    def __init__(self):
        self._letters = [False] * 26
        self._digits = [False] * 10
        self._blank = True
        self.set_symbol('0', True)
        self.set_symbol('1', True)

    @classmethod
    def from_symbols(cls, symbols: Iterable[str]) -> 'Alphabet':
        """Build an alphabet containing exactly the given symbols."""
        alphabet = cls()
        alphabet.set_alphabetical(False)
        alphabet.set_digits(False)
        alphabet.set_blank(False)
        for symbol in symbols:
            alphabet.set_symbol(symbol, True)
        return alphabet

    def contains_symbol(self, symbol: str) -> bool:
        """Case-insensitive membership test. Control symbols are never members."""
        try:
            symbol = normalise_symbol(symbol)
        except ValueError:
            return False

        if symbol in CONTROL_SYMBOLS:
            return False
        if symbol == BLANK_SYMBOL:
            return self._blank
        if symbol in string.ascii_uppercase:
            return self._letters[ord(symbol) - ord('A')]
        if symbol in string.digits:
            return self._digits[ord(symbol) - ord('0')]
        return False

    def set_symbol(self, symbol: str, value: bool):
        symbol = normalise_symbol(symbol)
        if symbol == BLANK_SYMBOL:
            self._blank = value
        elif symbol in string.ascii_uppercase:
            self._letters[ord(symbol) - ord('A')] = value
        elif symbol in string.digits:
            self._digits[ord(symbol) - ord('0')] = value
        # Anything else (control symbols, punctuation) can never be a member

    def set_alphabetical(self, value: bool):
        self._letters = [value] * 26

    def set_digits(self, value: bool):
        self._digits = [value] * 10

    def set_blank(self, value: bool):
        self._blank = value

    def get_symbols(self) -> str:
        """Member letters followed by member digits. The blank is not included."""
        letters = ''.join(c for i, c in enumerate(string.ascii_uppercase) if self._letters[i])
        digits = ''.join(c for i, c in enumerate(string.digits) if self._digits[i])
        return letters + digits

    def symbols(self) -> List[str]:
        """Every member symbol, blank last."""
        result = list(self.get_symbols())
        if self._blank:
            result.append(BLANK_SYMBOL)
        return result

    def copy(self) -> 'Alphabet':
        other = Alphabet.__new__(Alphabet)
        other._letters = self._letters[:]
        other._digits = self._digits[:]
        other._blank = self._blank
        return other

    def __eq__(self, other):
        return (isinstance(other, Alphabet) and self._letters == other._letters
                and self._digits == other._digits and self._blank == other._blank)

    def __repr__(self):
        return f"Alphabet({''.join(self.symbols())!r})"
