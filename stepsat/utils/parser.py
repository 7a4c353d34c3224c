import gzip
from collections import namedtuple


DimacsInstance = namedtuple('DimacsInstance', ('num_vars', 'num_clauses', 'clauses'))


class DimacsParseError(ValueError):
    def __init__(self, message, lineno=None):
        if lineno is not None:
            message = f'line {lineno}: {message}'
        super().__init__(message)
        self.lineno = lineno


def parse_dimacs(lines):
    """
    Parse DIMACS CNF text.

    Comment lines ('c') and the '%' end marker used by the SATLIB benchmarks
    are skipped. A clause is a run of signed integers closed by 0 and may
    span several lines. A missing header, literals before the header, a
    variable outside 1..num_vars, an unterminated last clause or a clause
    count that disagrees with the header all raise DimacsParseError.

    Parameters:
        lines: iterable of text lines

    Return:
        DimacsInstance(num_vars, num_clauses, clauses)
    """
    num_vars = num_clauses = None
    clauses = []
    literals = []
    lineno = 0

    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line[0] == 'c':
            continue
        if line[0] == '%':
            break
        if line[0] == 'p':
            if num_vars is not None:
                raise DimacsParseError('duplicate problem line', lineno)
            parts = line.split()
            if len(parts) != 4 or parts[1] != 'cnf':
                raise DimacsParseError(f"expected 'p cnf <vars> <clauses>', got {line!r}", lineno)
            try:
                num_vars, num_clauses = int(parts[2]), int(parts[3])
            except ValueError:
                raise DimacsParseError(f'non-numeric counts in {line!r}', lineno) from None
            if num_vars < 0 or num_clauses < 0:
                raise DimacsParseError(f'negative counts in {line!r}', lineno)
            continue

        if num_vars is None:
            raise DimacsParseError('clause before the problem line', lineno)

        for token in line.split():
            try:
                n = int(token)
            except ValueError:
                raise DimacsParseError(f'invalid literal {token!r}', lineno) from None
            if n == 0:
                clauses.append(literals)
                literals = []
            elif abs(n) > num_vars:
                raise DimacsParseError(f'literal {n} outside the {num_vars} declared variables', lineno)
            else:
                literals.append(n)

    if num_vars is None:
        raise DimacsParseError('missing problem line')
    if literals:
        raise DimacsParseError(f'premature end of input inside clause {literals}', lineno)
    if len(clauses) != num_clauses:
        raise DimacsParseError(f'header declares {num_clauses} clauses but {len(clauses)} were read')

    return DimacsInstance(num_vars, num_clauses, clauses)


def read_cnf(path):
    path = str(path)
    open_fn = gzip.open if path.endswith('.gz') else open
    with open_fn(path, 'rt') as f:
        return parse_dimacs(f)
