"""
Witness checks for solver output.

A witness is a list of signed literals. Variables it does not mention are
free, so a clause only counts as satisfied if the witness itself contains
one of its literals.
"""


def conflicting_literals(solution):
    """Variables the witness assigns both ways."""
    chosen = set(solution)
    return sorted({abs(lit) for lit in chosen if -lit in chosen})


def unsatisfied_clauses(clauses, solution):
    """
    Indices of the clauses that no literal of the witness satisfies.

    Parameters:
        clauses: iterable of clauses as iterables of signed integers
        solution: witness literals as signed integers

    Return:
        list of clause indices
    """
    chosen = set(solution)
    return [i for i, clause in enumerate(clauses) if not any(lit in chosen for lit in clause)]


def is_model(clauses, solution):
    return not conflicting_literals(solution) and not unsatisfied_clauses(clauses, solution)
