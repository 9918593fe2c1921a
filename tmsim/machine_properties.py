from typing import Dict, List, Optional, TYPE_CHECKING

from .alphabet import (
    Alphabet,
    EMPTY_ACTION_SYMBOL,
    OTHERWISE_SYMBOL,
    UNDEFINED_SYMBOL,
    WILDCARD_SYMBOL,
)
from .exceptions import NondeterministicError

if TYPE_CHECKING:
    from .machine import Machine, Transition


def has_undefined_symbols(machine: 'Machine') -> Optional[str]:
    """
    Checks that every transition has been given an input symbol and an action.

    A transition freshly drawn in the editor is a stub: both its input and the
    symbol it writes are undefined until the user fills them in. Such a machine
    must not be run.

    Args:
        machine: The machine to check

    Returns:
        Optional[str]: A description of the first offending transition, or None
    """
    for transition in machine.get_transitions():
        if transition.symbol == UNDEFINED_SYMBOL:
            return f"Transition {machine.describe_transition(transition)} has an undefined input."
        if not transition.action.moves_head() and transition.action.symbol == UNDEFINED_SYMBOL:
            return f"Transition {machine.describe_transition(transition)} has an undefined action."
    return None


def is_deterministic(machine: 'Machine') -> Optional[str]:
    """
    Checks that no state offers a choice of transitions for any tape symbol.

    For every state this rejects:
    1. Two transitions reading the same concrete symbol
    2. A concrete symbol alongside a wildcard transition
    3. More than one wildcard transition
    4. More than one otherwise transition

    An otherwise transition next to concrete ones is not a choice: it only
    applies when none of them matches.

    Args:
        machine: The machine to check

    Returns:
        Optional[str]: A description of the first nondeterministic state, or None
    """
    for state in machine.get_states():
        concrete: List[str] = []
        wildcards = 0
        otherwise = 0

        for transition in state.transitions:
            symbol = transition.symbol
            if symbol == UNDEFINED_SYMBOL:
                continue  # reported by has_undefined_symbols
            if symbol == WILDCARD_SYMBOL:
                wildcards += 1
            elif symbol == OTHERWISE_SYMBOL:
                otherwise += 1
            elif symbol in concrete:
                return f"State {state.label} has more than one transition with input {symbol}."
            else:
                concrete.append(symbol)

        if wildcards > 1:
            return f"State {state.label} has more than one wildcard transition."
        if wildcards and concrete:
            return (f"State {state.label} has a transition with input {concrete[0]} "
                    f"as well as a wildcard transition.")
        if otherwise > 1:
            return f"State {state.label} has more than one otherwise transition."

    return None


def _is_transition_consistent(transition: 'Transition', alphabet: Alphabet) -> bool:
    symbol = transition.symbol
    if not alphabet.contains_symbol(symbol) and symbol not in (UNDEFINED_SYMBOL, OTHERWISE_SYMBOL, WILDCARD_SYMBOL):
        return False

    action = transition.action
    if action.moves_head():
        return True
    return alphabet.contains_symbol(action.symbol) or action.symbol in (UNDEFINED_SYMBOL, EMPTY_ACTION_SYMBOL)


def is_consistent_with_alphabet(machine: 'Machine', alphabet: Alphabet) -> bool:
    """
    Checks whether every transition only reads and writes symbols of `alphabet`.

    Used before committing a new alphabet to a machine.
    """
    return all(_is_transition_consistent(t, alphabet) for t in machine.get_transitions())


def get_inconsistent_transitions(machine: 'Machine', alphabet: Alphabet) -> List['Transition']:
    """The transitions that would become invalid under `alphabet`, in machine order."""
    return [t for t in machine.get_transitions() if not _is_transition_consistent(t, alphabet)]


def check_start_and_final_states(machine: 'Machine') -> Optional[str]:
    """
    Checks the start and final state flags.

    Every machine needs exactly one start state. A Turing machine also needs
    exactly one final state, and no transition may leave it, since reaching
    it ends the computation.

    Args:
        machine: The machine to check

    Returns:
        Optional[str]: A description of the problem, or None
    """
    start_count = 0
    final_count = 0

    for state in machine.get_states():
        if state.is_start_state:
            start_count += 1
            if start_count > 1:
                return "Machine has more than one start state."

        if state.is_final_state and machine.is_turing_machine():
            final_count += 1
            if final_count > 1:
                return "Machine has more than one final state."
            if state.transitions:
                return f"Machine has a transition leaving the final state {state.label}."

    if start_count == 0:
        return "Machine has no start state."
    if machine.is_turing_machine() and final_count == 0:
        return "Machine has no final state."
    return None


def is_complete(machine: 'Machine') -> Optional[str]:
    """
    Checks that every state has a move for every letter and digit of the alphabet.

    A wildcard or otherwise transition covers all symbols of its state.

    Returns:
        Optional[str]: The first state and symbol without a transition, or None
    """
    symbols = machine.alphabet.get_symbols()

    for state in machine.get_states():
        read = {t.symbol for t in state.transitions}
        if WILDCARD_SYMBOL in read or OTHERWISE_SYMBOL in read:
            continue

        for symbol in symbols:
            if symbol not in read:
                return f"State {state.label} does not have a transition for input {symbol}."

    return None


def check_all_properties(machine: 'Machine') -> Dict:
    """
    Run every check at once.

    Returns:
        Dict: {
            'undefined_symbols': Optional[str],
            'start_and_final_states': Optional[str],
            'deterministic': bool,
            'determinism_error': Optional[str],
            'complete': bool,
            'completeness_error': Optional[str],
            'consistent_with_alphabet': bool
        }
    """
    determinism_error = is_deterministic(machine)
    completeness_error = is_complete(machine)

    return {
        'undefined_symbols': has_undefined_symbols(machine),
        'start_and_final_states': check_start_and_final_states(machine),
        'deterministic': determinism_error is None,
        'determinism_error': determinism_error,
        'complete': completeness_error is None,
        'completeness_error': completeness_error,
        'consistent_with_alphabet': is_consistent_with_alphabet(machine, machine.alphabet),
    }


def validate(machine: 'Machine'):
    """
    Pre-flight checks before a run: undefined symbols, start/final flags, determinism.

    Raises:
        NondeterministicError: With the message of the first failing check
    """
    for check in (has_undefined_symbols, check_start_and_final_states, is_deterministic):
        problem = check(machine)
        if problem is not None:
            raise NondeterministicError(problem)
