import json
from typing import Dict, Type

from .alphabet import Alphabet
from .exceptions import MachineFormatError
from .machine import Action, Direction, Machine, MachineKind, NamingScheme, State, Transition
from .tape import ArrayTape, Tape


def validate_machine_structure(data: Dict) -> Dict:
    """
    Validates that a machine definition has the shape `machine_from_dict` expects.

    Args:
        data: The machine dictionary to validate

    Returns:
        Dict: Validation result with 'valid' boolean and optional 'error' message
    """
    if not isinstance(data, dict):
        return {'valid': False, 'error': 'Machine must be a dictionary'}

    for key in ['states', 'transitions']:
        if key not in data:
            return {'valid': False, 'error': f'Missing required key: {key}'}

    if not isinstance(data['states'], list):
        return {'valid': False, 'error': 'states must be a list'}

    if not isinstance(data['transitions'], list):
        return {'valid': False, 'error': 'transitions must be a list'}

    if 'alphabet' in data and not isinstance(data['alphabet'], list):
        return {'valid': False, 'error': 'alphabet must be a list'}

    if data.get('kind', MachineKind.TM.value) not in [k.value for k in MachineKind]:
        return {'valid': False, 'error': f"Unknown machine kind: {data.get('kind')}"}

    labels = []
    for state in data['states']:
        if not isinstance(state, dict) or not isinstance(state.get('label'), str):
            return {'valid': False, 'error': 'Every state needs a string label'}
        if state['label'] in labels:
            return {'valid': False, 'error': f"Duplicate state label: {state['label']}"}
        labels.append(state['label'])

    for transition in data['transitions']:
        if not isinstance(transition, dict):
            return {'valid': False, 'error': 'Every transition must be a dictionary'}
        for end in ['from', 'to']:
            if transition.get(end) not in labels:
                return {'valid': False, 'error': f"Transition {end} state {transition.get(end)} not in states list"}

    return {'valid': True}


def action_to_dict(action: Action) -> Dict:
    return {'direction': action.direction.value, 'symbol': action.symbol}


def action_from_dict(data: Dict) -> Action:
    try:
        return Action(Direction(data['direction']), data.get('symbol', Action.nothing().symbol))
    except (KeyError, TypeError, ValueError) as e:
        raise MachineFormatError(f"Invalid action {data!r}: {e}")


def machine_to_dict(machine: Machine) -> Dict:
    """
    Flatten a machine into plain JSON-serialisable data.

    Transitions refer to their endpoints by label, which is unique within a machine.
    """
    return {
        'kind': machine.kind.value,
        'namingScheme': machine.naming_scheme.value,
        'alphabet': machine.alphabet.symbols(),
        'states': [
            {
                'label': s.label,
                'start': s.is_start_state,
                'final': s.is_final_state,
                'x': s.x,
                'y': s.y,
            }
            for s in machine.get_states()
        ],
        'transitions': [
            {
                'from': t.from_state.label,
                'to': t.to_state.label,
                'input': t.symbol,
                'action': action_to_dict(t.action),
            }
            for t in machine.get_transitions()
        ],
    }


def machine_from_dict(data: Dict) -> Machine:
    """
    Rebuild a machine from `machine_to_dict` output.

    Every transition is attached to the very State objects held by the new
    machine. Start and final flags are restored exactly as stored, so an
    invalid flag combination survives the round trip for the validator to report.

    Raises:
        MachineFormatError: If the data is not a well-formed machine
    """
    validation = validate_machine_structure(data)
    if not validation['valid']:
        raise MachineFormatError(validation['error'])

    try:
        kind = MachineKind(data.get('kind', MachineKind.TM.value))
        scheme = NamingScheme(data.get('namingScheme', NamingScheme.GENERAL.value))
        alphabet = Alphabet.from_symbols(data['alphabet']) if 'alphabet' in data else Alphabet()
        machine = Machine(kind, alphabet, scheme)

        for s in data['states']:
            machine.add_state(State(s['label'], bool(s.get('start', False)), bool(s.get('final', False)),
                                    int(s.get('x', 0)), int(s.get('y', 0))))

        for t in data['transitions']:
            if 'action' in t:
                action = action_from_dict(t['action'])
            elif kind is MachineKind.DFSA:
                action = Action.right()
            else:
                action = Action.undefined()
            machine.add_transition(Transition(machine.get_state(t['from']), machine.get_state(t['to']),
                                              t.get('input', Action.undefined().symbol), action))
    except MachineFormatError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise MachineFormatError(f"Invalid machine definition: {e}")

    return machine


def tape_to_string(tape: Tape) -> str:
    """The persisted form of a tape: its symbols, without the head position."""
    return str(tape)


def tape_from_string(text: str, tape_class: Type[Tape] = ArrayTape) -> Tape:
    if not isinstance(text, str):
        raise MachineFormatError('Tape contents must be a string')
    try:
        return tape_class(text)
    except ValueError as e:
        raise MachineFormatError(f"Invalid tape contents: {e}")


def save_machine(machine: Machine, path) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(machine_to_dict(machine), f, indent=2, ensure_ascii=False)


def load_machine(path) -> Machine:
    with open(path, encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MachineFormatError(f"Machine file is not valid JSON: {e}")
    return machine_from_dict(data)


def save_tape(tape: Tape, path) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        f.write(tape_to_string(tape))


def load_tape(path, tape_class: Type[Tape] = ArrayTape) -> Tape:
    with open(path, encoding='utf-8') as f:
        return tape_from_string(f.read(), tape_class)
