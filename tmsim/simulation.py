import logging
import random
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional

from .alphabet import BLANK_SYMBOL
from .exceptions import MachineError, NoStartStateError
from .machine import Machine, MachineKind, State, Transition
from .tape import Tape

logger = logging.getLogger(__name__)

# Returns None while the computation is still running, otherwise whether it was accepted
HaltingPolicy = Callable[[State, Tape], Optional[bool]]


class StepResult(NamedTuple):
    """Outcome of a single simulator step"""
    state: State
    transition: Optional[Transition]
    halted: bool
    accepted: Optional[bool]
    message: str = ''


def turing_machine_halt_status(state: State, tape: Tape) -> Optional[bool]:
    """A Turing machine halts in its final state, and succeeds only with the head parked."""
    if not state.is_final_state:
        return None
    return tape.is_parked()


def dfsa_halt_status(state: State, tape: Tape) -> Optional[bool]:
    """A DFSA halts at the end of its input, and accepts if it is in a final state."""
    if tape.read() != BLANK_SYMBOL:
        return None
    return state.is_final_state


HALTING_POLICIES: Dict[MachineKind, HaltingPolicy] = {
    MachineKind.TM: turing_machine_halt_status,
    MachineKind.DFSA: dfsa_halt_status,
}

HALT_MESSAGES = {
    (MachineKind.TM, True): "The machine halted with the r/w head parked.",
    (MachineKind.TM, False): "The machine halted, but the r/w head was not parked.",
    (MachineKind.DFSA, True): "The input string was accepted.",
    (MachineKind.DFSA, False): "The input string was not accepted.",
}


class Simulator:
    """
    Runs a machine against a tape one transition at a time.

    The simulator holds the current state (None until the first step), the
    transitions that apply to the symbol under the head, and the one of those
    that the next step will take. When several apply, one is picked with the
    injected random source; a host can override the pick with
    `set_current_next_transition`.
    """

    def __init__(self, machine: Machine, tape: Tape, rng: Optional[random.Random] = None):
        self._machine = machine
        self._tape = tape
        self._random = rng if rng is not None else random.Random()
        self._state: Optional[State] = None
        self._potential_transitions: List[Transition] = []
        self._current_next_transition: Optional[Transition] = None
        self.step_count = 0
        self.compute_potential_transitions(True)

    def get_machine(self) -> Machine:
        return self._machine

    def get_tape(self) -> Tape:
        return self._tape

    def get_current_state(self) -> Optional[State]:
        return self._state

    def set_current_state(self, state: Optional[State]):
        self._state = state
        self.compute_potential_transitions(True)

    def get_potential_transitions(self) -> List[Transition]:
        return list(self._potential_transitions)

    def get_current_next_transition(self) -> Optional[Transition]:
        return self._current_next_transition

    def set_current_next_transition(self, transition: Transition) -> bool:
        """Pin the transition the next step takes. Ignored unless it is a current candidate."""
        if self._state is None:
            return False
        if not any(t is transition for t in self._potential_transitions):
            return False
        self._current_next_transition = transition
        return True

    def _halting_policy(self) -> HaltingPolicy:
        return HALTING_POLICIES[self._machine.kind]

    def compute_potential_transitions(self, randomize: bool):
        """
        Work out which transitions apply to the current state and tape symbol.

        Transitions reading the symbol itself or the wildcard take priority;
        otherwise transitions are only candidates when none of those exist.

        Args:
            randomize: Pick the next transition afresh even if the previous pick is still a candidate
        """
        if self._state is None:
            self._potential_transitions = []
            self._current_next_transition = None
            return

        symbol = self._tape.read()
        matched = [t for t in self._state.transitions if t.matches(symbol)]
        otherwise = [t for t in self._state.transitions if t.is_otherwise()]
        self._potential_transitions = matched or otherwise

        still_valid = any(t is self._current_next_transition for t in self._potential_transitions)
        if randomize or not still_valid:
            if self._potential_transitions:
                self._current_next_transition = self._random.choice(self._potential_transitions)
            else:
                self._current_next_transition = None

        if len(self._potential_transitions) > 1:
            logger.debug("State %s has %d candidate transitions for '%s', picked %s",
                         self._state.label, len(self._potential_transitions), symbol,
                         self._current_next_transition)

    def _result(self, transition: Optional[Transition]) -> StepResult:
        status = self._halting_policy()(self._state, self._tape)
        if status is None:
            return StepResult(self._state, transition, False, None)
        return StepResult(self._state, transition, True, status, HALT_MESSAGES[(self._machine.kind, status)])

    def step(self) -> StepResult:
        """
        Advance the computation by one transition.

        The first step after construction or a reset only enters the start
        state. Stepping a halted computation returns the halted result again
        and leaves the tape alone.

        Returns:
            StepResult: The state reached, the transition taken and the halting outcome

        Raises:
            NoStartStateError: If the machine has no start state
            NondeterministicError: If the machine has more than one start state
            UndefinedTransitionError: If there is no transition to take
            TapeBoundsError: If the transition moves the head off the left end
        """
        if self._state is None:
            start = self._machine.get_start_state()
            if start is None:
                raise NoStartStateError()
            self._state = start
            transition = None
        else:
            if self._halting_policy()(self._state, self._tape) is not None:
                return self._result(None)

            transition = self._current_next_transition
            try:
                self._state = self._machine.step(self._tape, self._state, transition)
            except MachineError:
                # The state is unchanged but the tape may have been (head reset)
                self.compute_potential_transitions(False)
                raise

        self.step_count += 1
        self.compute_potential_transitions(True)
        result = self._result(transition)
        if result.halted:
            logger.info("Halted in state %s after %d steps: %s", self._state.label, self.step_count, result.message)
        return result

    def reset_machine(self):
        self._state = None
        self.step_count = 0
        self.compute_potential_transitions(True)

    def is_halted(self) -> bool:
        if self._state is None:
            raise NoStartStateError("The computation has not been started.")
        return self._halting_policy()(self._state, self._tape) is not None

    def is_halted_with_head_parked(self) -> bool:
        return self.is_halted() and self._tape.is_parked()

    def is_accepted(self) -> bool:
        if self._state is None:
            raise NoStartStateError("The computation has not been started.")
        return self._halting_policy()(self._state, self._tape) is True

    def get_configuration(self) -> str:
        """The tape contents and current state label, e.g. `"1111", q4`"""
        label = self._state.label if self._state is not None else '-'
        return f'"{self._tape}", {label}'

    def run_until_halt(self, max_steps: int = 0, verbose: bool = False) -> bool:
        """
        Step until the computation halts or `max_steps` steps have been taken.

        Args:
            max_steps: Step ceiling, 0 for none. The step entering the start state counts
            verbose: Log every configuration at INFO level

        Returns:
            bool: True if the run halted within the ceiling and was accepted; for a
            Turing machine that means the head was parked at halt
        """
        while self._state is None or not self.is_halted():
            if max_steps and self.step_count >= max_steps:
                if verbose:
                    logger.info("went too long - exiting after %d steps", self.step_count)
                return False
            self.step()
            if verbose:
                logger.info("step %d, %s", self.step_count, self.get_configuration())

        accepted = self.is_accepted()
        if verbose:
            logger.info("%s", HALT_MESSAGES[(self._machine.kind, accepted)])
        return accepted

    def step_record(self, result: StepResult) -> Dict:
        """JSON-friendly description of a step and the configuration it left behind."""
        return {
            'type': 'step',
            'step': self.step_count,
            'state': result.state.label,
            'transition': self._machine.describe_transition(result.transition) if result.transition else None,
            'tape': str(self._tape),
            'head': self._tape.head_location(),
            'configuration': self.get_configuration(),
            'halted': result.halted,
            'accepted': result.accepted,
            'message': result.message,
        }

    def iter_steps(self, max_steps: int = 0) -> Iterator[Dict]:
        """
        Generator form of `run_until_halt`, yielding a record after every step.

        Stops after the halting step, or with a `limit` record when the ceiling
        is reached first. Engine errors propagate to the caller.
        """
        while True:
            if max_steps and self.step_count >= max_steps:
                yield {'type': 'limit', 'step': self.step_count, 'configuration': self.get_configuration()}
                return
            result = self.step()
            yield self.step_record(result)
            if result.halted:
                return

    # Tape sharing

    def _on_tape_changed(self, tape: Tape):
        self.compute_potential_transitions(False)

    def attach(self):
        """Follow changes other parties make to the shared tape."""
        self._tape.subscribe(self._on_tape_changed)

    def detach(self):
        self._tape.unsubscribe(self._on_tape_changed)
