from tmsim.alphabet import BLANK_SYMBOL, OTHERWISE_SYMBOL
from tmsim.machine import Action, Machine, MachineKind


def unary_successor_machine():
    """Turing machine that appends a 1 to a unary number and parks the head."""
    machine = Machine(MachineKind.TM)
    q0, q1, q2, q3, q4 = (machine.new_state(f"q{i}") for i in range(5))
    machine.set_start_state(q0)
    machine.set_final_state(q4)

    machine.new_transition(q0, q1, '1', Action.write(BLANK_SYMBOL))
    machine.new_transition(q1, q2, BLANK_SYMBOL, Action.right())
    machine.new_transition(q2, q2, '1', Action.right())
    machine.new_transition(q2, q3, BLANK_SYMBOL, Action.write('1'))
    machine.new_transition(q3, q3, '1', Action.left())
    machine.new_transition(q3, q4, BLANK_SYMBOL, Action.write('1'))
    return machine


def ends_with_one_dfsa():
    """DFSA over {0, 1} accepting strings whose last symbol is 1."""
    machine = Machine(MachineKind.DFSA)
    a = machine.new_state('A', start=True)
    b = machine.new_state('B', final=True)

    machine.new_transition(a, a, '0')
    machine.new_transition(a, b, '1')
    machine.new_transition(b, a, '0')
    machine.new_transition(b, b, '1')
    return machine


def runaway_machine():
    """Turing machine that walks right forever."""
    machine = Machine(MachineKind.TM)
    q0 = machine.new_state('q0', start=True)
    q1 = machine.new_state('q1', final=True)
    machine.new_transition(q0, q0, OTHERWISE_SYMBOL, Action.right())
    # Unreachable, keeps the machine structurally valid
    machine.new_transition(q0, q1, '1', Action.nothing())
    return machine


def coin_flip_machine():
    """Turing machine whose start state has two moves on 1."""
    machine = Machine(MachineKind.TM)
    q0 = machine.new_state('q0', start=True)
    heads = machine.new_state('heads', final=True)
    tails = machine.new_state('tails')
    machine.new_transition(q0, heads, '1', Action.nothing())
    machine.new_transition(q0, tails, '1', Action.nothing())
    return machine
