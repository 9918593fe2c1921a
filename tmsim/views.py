from django.http import JsonResponse, StreamingHttpResponse
from django.views.decorators.http import require_POST
from django.views.decorators.csrf import csrf_exempt
import json
import logging
import random
import time
from . import conf
from .alphabet import Alphabet
from .exceptions import MachineError
from .machine_io import machine_from_dict, tape_from_string, validate_machine_structure
from .machine_properties import check_all_properties
from .simulation import Simulator

logger = logging.getLogger(__name__)


def _parse_max_steps(value, default):
    """Positive integer step ceiling, raising ValueError like the other request fields."""
    if value is None:
        return default
    try:
        max_steps = int(value)
    except (ValueError, TypeError):
        raise ValueError('max_steps must be a positive integer')
    if max_steps <= 0:
        raise ValueError('max_steps must be a positive integer')
    return max_steps


def _build_simulator(data):
    """Machine, tape and seeded simulator from a request body. Raises ValueError on bad input."""
    machine = machine_from_dict(data['machine'])
    tape = tape_from_string(data.get('tape', ''))
    seed = data.get('seed', conf.RANDOM_SEED)
    return Simulator(machine, tape, random.Random(seed))


def _fault_response(simulator, error, trace):
    """A run that stopped on an engine fault. The engine is still in a well-defined state."""
    logger.warning("Run stopped after %d steps: %s", simulator.step_count, error)
    tape = simulator.get_tape()
    return JsonResponse({
        'halted': False,
        'accepted': False,
        'error': str(error),
        'error_type': type(error).__name__,
        'steps': simulator.step_count,
        'tape': str(tape),
        'head': tape.head_location(),
        'configuration': simulator.get_configuration(),
        'trace': trace,
    })


@csrf_exempt
@require_POST
def run_machine(request):
    """
    Django view to run a machine on a tape until it halts.

    Expects a POST request with a JSON body containing:
    - machine: The machine definition
    - tape: The initial tape contents (defaults to an empty tape)
    - max_steps: Optional step ceiling (positive integer)
    - seed: Optional seed for choosing between nondeterministic transitions
    - verbose: Optional, log every configuration on the server

    Returns a JSON response with the outcome and the configuration after every step.
    """
    try:
        # Parse the request body
        data = json.loads(request.body)
        if not data.get('machine'):
            return JsonResponse({'error': 'Missing machine definition'}, status=400)

        max_steps = _parse_max_steps(data.get('max_steps'), conf.MAX_STEPS)
        simulator = _build_simulator(data)
        machine = simulator.get_machine()

        # Pre-flight: a machine with unset symbols is never run
        undefined = machine.has_undefined_symbols()
        if undefined:
            return JsonResponse({'error': undefined}, status=400)

        trace = []
        try:
            for record in simulator.iter_steps(max_steps):
                trace.append(record)
                if data.get('verbose'):
                    logger.info("step %d, %s", record['step'], record['configuration'])
        except MachineError as e:
            return _fault_response(simulator, e, trace)

        last = trace[-1]
        tape = simulator.get_tape()
        return JsonResponse({
            'halted': last['type'] == 'step' and last['halted'],
            'accepted': last['type'] == 'step' and bool(last['accepted']),
            'limit_reached': last['type'] == 'limit',
            'message': last.get('message', ''),
            'steps': simulator.step_count,
            'state': simulator.get_current_state().label,
            'tape': str(tape),
            'head': tape.head_location(),
            'configurations': [record['configuration'] for record in trace if record['type'] == 'step'],
            'warning': machine.is_deterministic(),
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Unexpected error running machine")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def step_machine(request):
    """
    Django view to take a fixed number of steps, as the step button of an editor would.

    Expects a POST request with a JSON body containing:
    - machine: The machine definition
    - tape: The initial tape contents
    - steps: Number of steps to take (positive integer, defaults to 1)
    - seed: Optional seed for choosing between nondeterministic transitions
    - choices: Optional list of indices into the candidate transitions, used
      in order whenever a step has more than one candidate

    Returns a JSON response with a record per step and the pending candidate transitions.
    """
    try:
        data = json.loads(request.body)
        if not data.get('machine'):
            return JsonResponse({'error': 'Missing machine definition'}, status=400)

        steps = _parse_max_steps(data.get('steps'), 1)
        choices = list(data.get('choices', []))
        simulator = _build_simulator(data)
        machine = simulator.get_machine()

        undefined = machine.has_undefined_symbols()
        if undefined:
            return JsonResponse({'error': undefined}, status=400)

        trace = []
        try:
            for _ in range(steps):
                candidates = simulator.get_potential_transitions()
                if len(candidates) > 1 and choices:
                    index = int(choices.pop(0))
                    if not 0 <= index < len(candidates):
                        return JsonResponse({'error': f'Choice {index} is not a candidate transition'}, status=400)
                    simulator.set_current_next_transition(candidates[index])

                result = simulator.step()
                trace.append(simulator.step_record(result))
                if result.halted:
                    break
        except MachineError as e:
            return _fault_response(simulator, e, trace)

        next_transition = simulator.get_current_next_transition()
        return JsonResponse({
            'trace': trace,
            'state': simulator.get_current_state().label,
            'halted': simulator.is_halted(),
            'potential_transitions': [machine.describe_transition(t) for t in simulator.get_potential_transitions()],
            'next_transition': machine.describe_transition(next_transition) if next_transition else None,
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Unexpected error stepping machine")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def run_machine_stream(request):
    """
    Django view to run a machine, streaming each step as a Server-Sent Event.

    Steps are spaced by the delay of the requested execution speed, the way an
    editor animates a run on a timer.

    Expects a POST request with a JSON body containing:
    - machine, tape, max_steps, seed: As for run_machine
    - speed: One of the configured execution speeds
    """
    try:
        data = json.loads(request.body)
        if not data.get('machine'):
            def error_generator():
                yield f"data: {json.dumps({'error': 'Missing machine definition'})}\n\n"

            return StreamingHttpResponse(
                error_generator(),
                content_type='text/event-stream',
                status=400
            )

        speed = data.get('speed', conf.DEFAULT_SPEED)
        if speed not in conf.EXECUTION_DELAYS:
            raise ValueError(f'Unknown execution speed: {speed}')
        delay = conf.EXECUTION_DELAYS[speed] / 1000

        max_steps = _parse_max_steps(data.get('max_steps'), conf.MAX_STEPS)
        simulator = _build_simulator(data)

        undefined = simulator.get_machine().has_undefined_symbols()
        if undefined:
            raise ValueError(undefined)

        def result_generator():
            """Generator to stream machine steps as Server-Sent Events"""
            try:
                for index, record in enumerate(simulator.iter_steps(max_steps)):
                    if index and delay:
                        time.sleep(delay)
                    yield f"data: {json.dumps(record)}\n\n"

            except MachineError as e:
                logger.warning("Streamed run stopped after %d steps: %s", simulator.step_count, e)
                yield f"data: {json.dumps({'type': 'error', 'message': str(e), 'error_type': type(e).__name__})}\n\n"

            # Send end-of-stream marker
            yield f"data: {json.dumps({'type': 'end'})}\n\n"

        response = StreamingHttpResponse(result_generator(), content_type='text/event-stream')

        response['Cache-Control'] = 'no-cache'
        response['X-Accel-Buffering'] = 'no'  # Disable nginx buffering

        return response

    except ValueError as e:
        def error_generator():
            yield f"data: {json.dumps({'error': str(e)})}\n\n"

        return StreamingHttpResponse(
            error_generator(),
            content_type='text/event-stream',
            status=400
        )
    except Exception as e:
        logger.exception("Unexpected error streaming machine run")

        def error_generator():
            yield f"data: {json.dumps({'error': f'Server error: {str(e)}'})}\n\n"

        return StreamingHttpResponse(
            error_generator(),
            content_type='text/event-stream',
            status=500
        )


@csrf_exempt
@require_POST
def check_machine(request):
    """
    Django view to run every validation check on a machine.

    Expects a POST request with a JSON body containing:
    - machine: The machine definition

    Returns a JSON response with property check results.
    """
    try:
        data = json.loads(request.body)
        definition = data.get('machine')

        if not definition:
            return JsonResponse({'error': 'Missing machine definition'}, status=400)

        validation = validate_machine_structure(definition)
        if not validation['valid']:
            return JsonResponse({'error': validation['error']}, status=400)

        machine = machine_from_dict(definition)
        properties = check_all_properties(machine)
        start_states = machine.get_start_states()

        return JsonResponse({
            'properties': properties,
            'ready': (properties['undefined_symbols'] is None
                      and properties['start_and_final_states'] is None
                      and properties['deterministic']),
            'summary': {
                'kind': machine.kind.value,
                'total_states': len(machine.get_states()),
                'total_transitions': len(machine.get_transitions()),
                'alphabet': machine.alphabet.symbols(),
                'start_state': start_states[0].label if len(start_states) == 1 else None,
                'final_states': [s.label for s in machine.get_final_states()],
            }
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Unexpected error checking machine")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def check_deterministic(request):
    """
    Django view to check if a machine is deterministic.

    Returns a JSON response with the determinism result and the reason if not.
    """
    try:
        data = json.loads(request.body)
        definition = data.get('machine')

        if not definition:
            return JsonResponse({'error': 'Missing machine definition'}, status=400)

        machine = machine_from_dict(definition)
        reason = machine.is_deterministic()

        return JsonResponse({
            'deterministic': reason is None,
            'reason': reason
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Unexpected error checking determinism")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def check_alphabet(request):
    """
    Django view to check a machine against a candidate alphabet before it is committed.

    Expects a POST request with a JSON body containing:
    - machine: The machine definition
    - alphabet: List of symbols of the candidate alphabet

    Returns a JSON response listing the transitions the new alphabet would invalidate.
    """
    try:
        data = json.loads(request.body)
        definition = data.get('machine')
        symbols = data.get('alphabet')

        if not definition:
            return JsonResponse({'error': 'Missing machine definition'}, status=400)

        if not isinstance(symbols, list):
            return JsonResponse({'error': 'alphabet must be a list'}, status=400)

        machine = machine_from_dict(definition)
        alphabet = Alphabet.from_symbols(symbols)
        inconsistent = machine.get_inconsistent_transitions(alphabet)

        return JsonResponse({
            'consistent': not inconsistent,
            'alphabet': alphabet.symbols(),
            'inconsistent_transitions': [machine.describe_transition(t) for t in inconsistent],
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Unexpected error checking alphabet")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)
