from collections import namedtuple

from ..solvers.dpll import SolutionState


SolutionReport = namedtuple('SolutionReport', ('state', 'num_vars', 'num_clauses', 'time_elapsed', 'solution'))


def format_solution(result, num_vars, num_clauses):
    """
    Render a SolveResult in the competition-style report format:

        s cnf <state> <vars> <clauses>
        t cnf <state> <vars> <clauses> <seconds> 0
        v <literal>            (one line per witness literal, SAT only)
    """
    state = int(result.state)
    lines = [
        f's cnf {state} {num_vars} {num_clauses}',
        f't cnf {state} {num_vars} {num_clauses} {result.time_elapsed:.6f} 0',
    ]
    if result.state == SolutionState.SAT:
        lines.extend(f'v {lit}' for lit in result.solution)
    return '\n'.join(lines) + '\n'


def write_solution(path, result, num_vars, num_clauses):
    with open(path, 'w') as f:
        f.write(format_solution(result, num_vars, num_clauses))


def parse_solution(lines):
    state = num_vars = num_clauses = None
    time_elapsed = 0.0
    solution = []
    for lineno, line in enumerate(lines, 1):
        parts = line.split()
        if not parts:
            continue
        try:
            if parts[0] == 's':
                state = SolutionState(int(parts[2]))
                num_vars, num_clauses = int(parts[3]), int(parts[4])
            elif parts[0] == 't':
                time_elapsed = float(parts[5])
            elif parts[0] == 'v':
                solution.extend(int(x) for x in parts[1:] if x != '0')
            else:
                raise ValueError(f'unknown line type {parts[0]!r}')
        except (IndexError, ValueError) as e:
            raise ValueError(f'line {lineno}: malformed solution line {line.strip()!r}') from e
    if state is None:
        raise ValueError("missing 's cnf' line")
    return SolutionReport(state, num_vars, num_clauses, time_elapsed, solution)


def read_solution(path):
    with open(path) as f:
        return parse_solution(f)
