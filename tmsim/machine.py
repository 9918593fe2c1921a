import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set

from .alphabet import (
    Alphabet,
    EMPTY_ACTION_SYMBOL,
    OTHERWISE_SYMBOL,
    UNDEFINED_SYMBOL,
    WILDCARD_SYMBOL,
    normalise_symbol,
)
from .exceptions import DuplicateStateError, NondeterministicError, UndefinedTransitionError
from . import machine_properties
from .tape import Tape

logger = logging.getLogger(__name__)

LEFT_ARROW = '←'
RIGHT_ARROW = '→'


class Direction(Enum):
    LEFT = 'L'
    RIGHT = 'R'
    STAY = 'S'


class MachineKind(Enum):
    TM = 'TM'
    DFSA = 'DFSA'


class NamingScheme(Enum):
    """How the editor labels new states. Has no effect on execution."""
    GENERAL = 'GENERAL'
    NORMALIZED = 'NORMALIZED'


@dataclass(frozen=True)
class Action:
    """What a transition does to the tape: move the head, or write a symbol in place."""
    direction: Direction
    symbol: str = EMPTY_ACTION_SYMBOL

    def __post_init__(self):
        object.__setattr__(self, 'symbol', normalise_symbol(self.symbol))

    @classmethod
    def left(cls) -> 'Action':
        return cls(Direction.LEFT)

    @classmethod
    def right(cls) -> 'Action':
        return cls(Direction.RIGHT)

    @classmethod
    def write(cls, symbol: str) -> 'Action':
        return cls(Direction.STAY, symbol)

    @classmethod
    def nothing(cls) -> 'Action':
        return cls(Direction.STAY, EMPTY_ACTION_SYMBOL)

    @classmethod
    def undefined(cls) -> 'Action':
        return cls(Direction.STAY, UNDEFINED_SYMBOL)

    def moves_head(self) -> bool:
        return self.direction is not Direction.STAY

    def perform(self, tape: Tape):
        """Apply the action to the tape. May raise TapeBoundsError when moving left."""
        if self.direction is Direction.LEFT:
            tape.head_left()
        elif self.direction is Direction.RIGHT:
            tape.head_right()
        elif self.symbol == UNDEFINED_SYMBOL:
            raise UndefinedTransitionError("The action to perform has not been defined.")
        elif self.symbol != EMPTY_ACTION_SYMBOL:
            tape.write(self.symbol)

    def __str__(self):
        if self.direction is Direction.LEFT:
            return LEFT_ARROW
        if self.direction is Direction.RIGHT:
            return RIGHT_ARROW
        return self.symbol


class State:
    """A labelled node of a machine. Equality is identity."""

    def __init__(self, label: str, start: bool = False, final: bool = False, x: int = 0, y: int = 0):
        self.label = label
        self.is_start_state = start
        self.is_final_state = final
        self.x = x
        self.y = y
        self.transitions: List['Transition'] = []

    def __repr__(self):
        flags = [f for f, on in (('start', self.is_start_state), ('final', self.is_final_state)) if on]
        return f"State({', '.join([repr(self.label)] + flags)})"


class Transition:
    """A directed edge labelled with an input symbol and an action. Equality is identity."""

    def __init__(self, from_state: State, to_state: State, symbol: str = UNDEFINED_SYMBOL,
                 action: Optional[Action] = None):
        self.from_state = from_state
        self.to_state = to_state
        self.symbol = normalise_symbol(symbol)
        self.action = action if action is not None else Action.undefined()

    def matches(self, symbol: str) -> bool:
        """True if this transition reads `symbol` directly or via the wildcard."""
        return self.symbol == symbol or self.symbol == WILDCARD_SYMBOL

    def is_otherwise(self) -> bool:
        return self.symbol == OTHERWISE_SYMBOL

    def __str__(self):
        return f"{self.from_state.label} -> {self.to_state.label} [{self.symbol}/{self.action}]"

    def __repr__(self):
        return f"Transition({self})"


class Machine:
    """
    A Turing machine or DFSA: states, transitions, an alphabet and a naming scheme.

    The machine owns every transition. Each state also keeps its outgoing
    transitions so the simulator can look up candidate moves quickly; the
    machine keeps both views in step.
    """

    def __init__(self, kind: MachineKind = MachineKind.TM, alphabet: Optional[Alphabet] = None,
                 naming_scheme: NamingScheme = NamingScheme.GENERAL):
        self.kind = kind
        self.alphabet = alphabet if alphabet is not None else Alphabet()
        self.naming_scheme = naming_scheme
        self._states: List[State] = []
        self._transitions: List[Transition] = []

    def is_turing_machine(self) -> bool:
        return self.kind is MachineKind.TM

    def has_unique_final_state(self) -> bool:
        return self.kind is MachineKind.TM

    def describe_transition(self, transition: Transition) -> str:
        if self.kind is MachineKind.DFSA:
            return f"{transition.from_state.label} -{transition.symbol}-> {transition.to_state.label}"
        return str(transition)

    # Graph queries

    def get_states(self) -> List[State]:
        return list(self._states)

    def get_transitions(self) -> List[Transition]:
        return list(self._transitions)

    def get_state(self, label: str) -> Optional[State]:
        for state in self._states:
            if state.label == label:
                return state
        return None

    def get_label_set(self) -> Set[str]:
        return {state.label for state in self._states}

    def get_transitions_from(self, state: State) -> List[Transition]:
        return list(state.transitions)

    def get_transitions_to(self, state: State) -> List[Transition]:
        return [t for t in self._transitions if t.to_state is state]

    def get_start_states(self) -> List[State]:
        return [s for s in self._states if s.is_start_state]

    def get_start_state(self) -> Optional[State]:
        """
        The unique start state, or None if no state is flagged as start.

        Raises:
            NondeterministicError: If more than one state is flagged as start
        """
        starts = self.get_start_states()
        if len(starts) > 1:
            raise NondeterministicError("Machine has more than one start state.")
        return starts[0] if starts else None

    def get_final_states(self) -> List[State]:
        return [s for s in self._states if s.is_final_state]

    def _owns_state(self, state: State) -> bool:
        return any(s is state for s in self._states)

    # Graph mutation

    def add_state(self, state: State) -> State:
        if self._owns_state(state):
            return state
        if state.label in self.get_label_set():
            raise DuplicateStateError(f"A state labelled '{state.label}' already exists.")
        self._states.append(state)
        return state

    def new_state(self, label: Optional[str] = None, start: bool = False, final: bool = False,
                  x: int = 0, y: int = 0) -> State:
        """Create and add a state, labelling it by the naming scheme if no label is given."""
        if label is None:
            label = self.next_free_label()
        state = self.add_state(State(label, x=x, y=y))
        if start:
            self.set_start_state(state)
        if final:
            self.set_final_state(state, True)
        return state

    def remove_state(self, state: State) -> bool:
        """Remove a state and every transition that touches it."""
        if not self._owns_state(state):
            return False
        self._states = [s for s in self._states if s is not state]
        incident = [t for t in self._transitions if t.from_state is state or t.to_state is state]
        for transition in incident:
            self.remove_transition(transition)
        logger.debug("Removed state %s and %d incident transitions", state.label, len(incident))
        if self.naming_scheme is NamingScheme.NORMALIZED:
            # Normalized labels must stay 0..n-1
            self.relabel()
        return True

    def add_transition(self, transition: Transition) -> Transition:
        if not (self._owns_state(transition.from_state) and self._owns_state(transition.to_state)):
            raise ValueError(f"Transition {transition} connects a state that is not in this machine.")
        if any(t is transition for t in self._transitions):
            return transition
        self._transitions.append(transition)
        transition.from_state.transitions.append(transition)
        return transition

    def new_transition(self, from_state: State, to_state: State, symbol: str = UNDEFINED_SYMBOL,
                       action: Optional[Action] = None) -> Transition:
        """Create and add a transition. A DFSA transition always consumes its input."""
        if action is None:
            action = Action.right() if self.kind is MachineKind.DFSA else Action.undefined()
        return self.add_transition(Transition(from_state, to_state, symbol, action))

    def remove_transition(self, transition: Transition) -> bool:
        if not any(t is transition for t in self._transitions):
            return False
        self._transitions = [t for t in self._transitions if t is not transition]
        transition.from_state.transitions = [t for t in transition.from_state.transitions if t is not transition]
        return True

    def rename_state(self, state: State, label: str):
        if not self._owns_state(state):
            raise ValueError(f"State {state.label} is not in this machine.")
        if label != state.label and label in self.get_label_set():
            raise DuplicateStateError(f"A state labelled '{label}' already exists.")
        state.label = label

    def set_start_state(self, state: Optional[State]):
        """Make `state` the only start state. None clears the start state."""
        if state is not None and not self._owns_state(state):
            raise ValueError(f"State {state.label} is not in this machine.")
        for s in self._states:
            s.is_start_state = s is state

    def set_final_state(self, state: State, value: bool = True):
        """Flag or unflag a final state. A Turing machine keeps at most one."""
        if not self._owns_state(state):
            raise ValueError(f"State {state.label} is not in this machine.")
        if value and self.has_unique_final_state():
            for s in self._states:
                s.is_final_state = False
        state.is_final_state = value

    # Naming

    def next_free_label(self) -> str:
        used = self.get_label_set()
        if self.naming_scheme is NamingScheme.NORMALIZED:
            # Normalized labels are 0..n-1, so the next one is usually the state count
            current = len(self._states)
            while str(current) in used:
                current += 1
            return str(current)

        current = 0
        while f"q{current}" in used:
            current += 1
        return f"q{current}"

    def relabel(self, scheme: Optional[NamingScheme] = None):
        """
        Rename every state according to the naming scheme.

        Under NORMALIZED the start state becomes 0 and, for a Turing machine,
        the final state becomes n-1; the rest take the remaining numbers in
        order. Only the first flagged start or final state gets its reserved
        label, so the labels stay unique even when the flags are invalid.
        """
        scheme = scheme or self.naming_scheme
        labels: Dict[int, str] = {}

        if scheme is NamingScheme.GENERAL:
            for i, state in enumerate(self._states):
                labels[id(state)] = f"q{i}"
        else:
            size = len(self._states)
            start = next((s for s in self._states if s.is_start_state), None)
            final = None
            if self.has_unique_final_state():
                final = next((s for s in self._states if s.is_final_state and s is not start), None)

            if start is not None:
                labels[id(start)] = '0'
            if final is not None:
                labels[id(final)] = str(size - 1)
            reserved = set(labels.values())

            counter = 0
            for state in self._states:
                if id(state) in labels:
                    continue
                while str(counter) in reserved:
                    counter += 1
                labels[id(state)] = str(counter)
                counter += 1

        # Assign all at once, intermediate labels may collide
        for state in self._states:
            state.label = labels[id(state)]
        self.naming_scheme = scheme

    # Execution

    def step(self, tape: Tape, current_state: State, transition: Optional[Transition]) -> State:
        """
        Apply one transition to the tape and return the state it leads to.

        Args:
            tape: The tape to act on
            current_state: The state the computation is in
            transition: The transition chosen for the current tape symbol

        Returns:
            State: The destination of the transition

        Raises:
            UndefinedTransitionError: If no transition was chosen, or it cannot be applied
            TapeBoundsError: If the action moves the head off the left end of the tape
        """
        if transition is None:
            raise UndefinedTransitionError(
                f"No transition from state {current_state.label} for input '{tape.read()}'."
            )
        if transition.from_state is not current_state:
            raise UndefinedTransitionError(
                f"Transition {self.describe_transition(transition)} does not leave state {current_state.label}."
            )
        if transition.symbol == UNDEFINED_SYMBOL:
            raise UndefinedTransitionError(
                f"Transition {self.describe_transition(transition)} has an undefined input."
            )

        transition.action.perform(tape)
        return transition.to_state

    # Validation, see machine_properties

    def has_undefined_symbols(self) -> Optional[str]:
        return machine_properties.has_undefined_symbols(self)

    def is_deterministic(self) -> Optional[str]:
        return machine_properties.is_deterministic(self)

    def is_consistent_with_alphabet(self, alphabet: Alphabet) -> bool:
        return machine_properties.is_consistent_with_alphabet(self, alphabet)

    def get_inconsistent_transitions(self, alphabet: Alphabet) -> List[Transition]:
        return machine_properties.get_inconsistent_transitions(self, alphabet)

    def check_start_and_final_states(self) -> Optional[str]:
        return machine_properties.check_start_and_final_states(self)

    def is_complete(self) -> Optional[str]:
        return machine_properties.is_complete(self)

    def validate(self):
        machine_properties.validate(self)

    def copy(self) -> 'Machine':
        """Deep copy of the machine; the copy shares no states or transitions with this one."""
        other = Machine(self.kind, self.alphabet.copy(), self.naming_scheme)
        mapping: Dict[int, State] = {}
        for state in self._states:
            mapping[id(state)] = other.add_state(
                State(state.label, state.is_start_state, state.is_final_state, state.x, state.y)
            )
        for t in self._transitions:
            other.add_transition(Transition(mapping[id(t.from_state)], mapping[id(t.to_state)], t.symbol, t.action))
        return other

    def __repr__(self):
        return f"Machine({self.kind.value}, states={len(self._states)}, transitions={len(self._transitions)})"
