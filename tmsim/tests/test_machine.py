import unittest
from tmsim.alphabet import BLANK_SYMBOL, WILDCARD_SYMBOL
from tmsim.exceptions import (
    DuplicateStateError,
    NondeterministicError,
    TapeBoundsError,
    UndefinedTransitionError,
)
from tmsim.machine import Action, Direction, Machine, MachineKind, NamingScheme, State, Transition
from tmsim.tape import ArrayTape
from tmsim.tests.sample_machines import ends_with_one_dfsa, unary_successor_machine


class TestAction(unittest.TestCase):
    def test_constructors(self):
        self.assertEqual(Action.left().direction, Direction.LEFT)
        self.assertEqual(Action.right().direction, Direction.RIGHT)
        self.assertEqual(Action.write('a'), Action(Direction.STAY, 'A'))
        self.assertEqual(Action.nothing().symbol, 'ε')
        self.assertEqual(Action.undefined().symbol, '!')

    def test_str(self):
        self.assertEqual(str(Action.left()), '←')
        self.assertEqual(str(Action.right()), '→')
        self.assertEqual(str(Action.write('1')), '1')

    def test_perform_write_and_moves(self):
        tape = ArrayTape('0')
        Action.write('1').perform(tape)
        self.assertEqual(tape.read(), '1')
        Action.right().perform(tape)
        self.assertEqual(tape.head_location(), 1)
        Action.left().perform(tape)
        self.assertEqual(tape.head_location(), 0)

    def test_perform_nothing_leaves_tape(self):
        tape = ArrayTape('0')
        Action.nothing().perform(tape)
        self.assertEqual(str(tape), '0')
        self.assertEqual(tape.head_location(), 0)

    def test_perform_undefined_raises(self):
        with self.assertRaises(UndefinedTransitionError):
            Action.undefined().perform(ArrayTape('0'))

    def test_perform_left_off_tape(self):
        with self.assertRaises(TapeBoundsError):
            Action.left().perform(ArrayTape('0'))


class TestMachineGraph(unittest.TestCase):
    def test_new_state_labels_follow_naming_scheme(self):
        machine = Machine()
        self.assertEqual(machine.new_state().label, 'q0')
        self.assertEqual(machine.new_state().label, 'q1')

        normalized = Machine(naming_scheme=NamingScheme.NORMALIZED)
        self.assertEqual(normalized.new_state().label, '0')
        self.assertEqual(normalized.new_state().label, '1')

    def test_next_free_label_fills_gaps(self):
        machine = Machine()
        machine.new_state('q0')
        machine.new_state('q2')
        self.assertEqual(machine.next_free_label(), 'q1')

    def test_duplicate_label_rejected(self):
        machine = Machine()
        machine.new_state('q0')
        with self.assertRaises(DuplicateStateError):
            machine.new_state('q0')
        with self.assertRaises(DuplicateStateError):
            machine.add_state(State('q0'))

    def test_add_transition_requires_own_states(self):
        machine = Machine()
        q0 = machine.new_state('q0')
        with self.assertRaises(ValueError):
            machine.add_transition(Transition(q0, State('elsewhere'), '1', Action.right()))

    def test_transition_lists_stay_in_step(self):
        machine = Machine()
        q0 = machine.new_state('q0')
        q1 = machine.new_state('q1')
        t = machine.new_transition(q0, q1, '1', Action.right())

        self.assertEqual(machine.get_transitions(), [t])
        self.assertEqual(machine.get_transitions_from(q0), [t])
        self.assertEqual(machine.get_transitions_to(q1), [t])

        self.assertTrue(machine.remove_transition(t))
        self.assertEqual(q0.transitions, [])
        self.assertFalse(machine.remove_transition(t))

    def test_remove_state_removes_incident_transitions(self):
        machine = unary_successor_machine()
        q2 = machine.get_state('q2')
        self.assertTrue(machine.remove_state(q2))

        self.assertIsNone(machine.get_state('q2'))
        self.assertEqual(len(machine.get_transitions()), 3)
        for t in machine.get_transitions():
            self.assertIsNot(t.from_state, q2)
            self.assertIsNot(t.to_state, q2)
        self.assertEqual(machine.get_state('q1').transitions, [])

    def test_default_transition_action_depends_on_kind(self):
        tm = Machine(MachineKind.TM)
        a = tm.new_state()
        self.assertEqual(tm.new_transition(a, a, '1').action, Action.undefined())

        dfsa = Machine(MachineKind.DFSA)
        b = dfsa.new_state()
        self.assertEqual(dfsa.new_transition(b, b, '1').action, Action.right())

    def test_start_state_is_exclusive(self):
        machine = Machine()
        q0 = machine.new_state('q0', start=True)
        q1 = machine.new_state('q1', start=True)
        self.assertFalse(q0.is_start_state)
        self.assertIs(machine.get_start_state(), q1)

        machine.set_start_state(None)
        self.assertIsNone(machine.get_start_state())

    def test_multiple_start_flags_raise(self):
        machine = Machine()
        machine.add_state(State('a', start=True))
        machine.add_state(State('b', start=True))
        with self.assertRaises(NondeterministicError):
            machine.get_start_state()

    def test_final_state_unique_only_for_turing_machines(self):
        tm = Machine(MachineKind.TM)
        a = tm.new_state(final=True)
        b = tm.new_state(final=True)
        self.assertEqual(tm.get_final_states(), [b])
        self.assertFalse(a.is_final_state)

        dfsa = Machine(MachineKind.DFSA)
        c = dfsa.new_state(final=True)
        d = dfsa.new_state(final=True)
        self.assertEqual(dfsa.get_final_states(), [c, d])

    def test_rename_state(self):
        machine = Machine()
        q0 = machine.new_state('q0')
        machine.new_state('q1')
        machine.rename_state(q0, 'start')
        self.assertIs(machine.get_state('start'), q0)
        with self.assertRaises(DuplicateStateError):
            machine.rename_state(q0, 'q1')

    def test_relabel_normalized(self):
        machine = Machine()
        final = machine.new_state('end', final=True)
        middle = machine.new_state('mid')
        start = machine.new_state('begin', start=True)

        machine.relabel(NamingScheme.NORMALIZED)
        self.assertEqual(start.label, '0')
        self.assertEqual(final.label, '2')
        self.assertEqual(middle.label, '1')
        self.assertIs(machine.naming_scheme, NamingScheme.NORMALIZED)

    def test_normalized_labels_after_removing_a_state(self):
        machine = Machine(naming_scheme=NamingScheme.NORMALIZED)
        first = machine.new_state()
        machine.new_state()
        machine.new_state()

        machine.remove_state(first)
        self.assertEqual(machine.get_label_set(), {'0', '1'})
        self.assertEqual(machine.new_state().label, '2')
        self.assertEqual(machine.get_label_set(), {'0', '1', '2'})

    def test_normalized_next_free_label_skips_used_labels(self):
        machine = Machine(naming_scheme=NamingScheme.NORMALIZED)
        machine.new_state('1')
        self.assertEqual(machine.next_free_label(), '2')

    def test_relabel_normalized_without_start_state(self):
        machine = Machine()
        final = machine.new_state('a', final=True)
        b = machine.new_state('b')
        c = machine.new_state('c')

        machine.relabel(NamingScheme.NORMALIZED)
        self.assertEqual(final.label, '2')
        self.assertEqual(b.label, '0')
        self.assertEqual(c.label, '1')

    def test_relabel_normalized_with_two_start_flags(self):
        machine = Machine()
        machine.add_state(State('a', start=True))
        machine.add_state(State('b', start=True))
        machine.add_state(State('c', final=True))
        machine.add_state(State('d', final=True))

        machine.relabel(NamingScheme.NORMALIZED)
        labels = [s.label for s in machine.get_states()]
        self.assertEqual(labels, ['0', '1', '3', '2'])

    def test_relabel_general(self):
        machine = Machine(naming_scheme=NamingScheme.NORMALIZED)
        machine.new_state()
        machine.new_state()
        machine.relabel(NamingScheme.GENERAL)
        self.assertEqual(machine.get_label_set(), {'q0', 'q1'})

    def test_copy_shares_nothing(self):
        machine = unary_successor_machine()
        other = machine.copy()

        self.assertEqual(other.get_label_set(), machine.get_label_set())
        self.assertEqual(len(other.get_transitions()), len(machine.get_transitions()))
        self.assertIsNot(other.get_state('q0'), machine.get_state('q0'))
        for t in other.get_transitions():
            self.assertIs(other.get_state(t.from_state.label), t.from_state)

        other.remove_state(other.get_state('q0'))
        self.assertIsNotNone(machine.get_state('q0'))

    def test_describe_transition(self):
        tm = unary_successor_machine()
        first = tm.get_transitions()[0]
        self.assertEqual(tm.describe_transition(first), 'q0 -> q1 [1/_]')

        dfsa = ends_with_one_dfsa()
        self.assertEqual(dfsa.describe_transition(dfsa.get_transitions()[1]), 'A -1-> B')


class TestMachineStep(unittest.TestCase):
    def setUp(self):
        self.machine = unary_successor_machine()
        self.q0 = self.machine.get_state('q0')
        self.q1 = self.machine.get_state('q1')

    def test_step_applies_action(self):
        tape = ArrayTape('11')
        t = self.q0.transitions[0]
        self.assertIs(self.machine.step(tape, self.q0, t), self.q1)
        self.assertEqual(tape.read(), BLANK_SYMBOL)

    def test_step_without_transition(self):
        with self.assertRaises(UndefinedTransitionError) as cm:
            self.machine.step(ArrayTape('0'), self.q0, None)
        self.assertEqual(str(cm.exception), "No transition from state q0 for input '0'.")

    def test_step_with_foreign_transition(self):
        t = self.q1.transitions[0]
        with self.assertRaises(UndefinedTransitionError):
            self.machine.step(ArrayTape('1'), self.q0, t)

    def test_step_with_undefined_input(self):
        stub = self.machine.new_transition(self.q0, self.q1)
        with self.assertRaises(UndefinedTransitionError):
            self.machine.step(ArrayTape('1'), self.q0, stub)

    def test_transition_matches_wildcard(self):
        t = Transition(self.q0, self.q1, WILDCARD_SYMBOL, Action.right())
        self.assertTrue(t.matches('1'))
        self.assertTrue(t.matches(BLANK_SYMBOL))
        self.assertFalse(t.is_otherwise())


if __name__ == '__main__':
    unittest.main()
