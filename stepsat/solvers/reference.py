from .dpll import SolutionState, SolveResult
from ..utils.timer import Timer


class ReferenceSolver:
    """
    Textbook DPLL that copies the clause list at every simplification.

    Slow, but it shares no code with the lifetime-stamped model, which makes
    it the oracle the benchmark and the tests compare DpllSolver against.
    """

    def __init__(self, cnf, num_vars=None):
        self.cnf = [list(clause) for clause in cnf]
        self.branching_decisions = 0

    def simplify(self, cnf, lit):
        new_cnf = []
        neg_lit = -lit
        for clause in cnf:
            if lit in clause:
                continue
            new_clause = [x for x in clause if x != neg_lit]
            if not new_clause:
                return None
            new_cnf.append(new_clause)
        return new_cnf

    def _dpll(self, cnf, assignment):
        unit_clauses = [clause[0] for clause in cnf if len(clause) == 1]
        while unit_clauses:
            unit = unit_clauses.pop()
            cnf = self.simplify(cnf, unit)
            if cnf is None:
                return None
            assignment = assignment + [unit]
            unit_clauses = [clause[0] for clause in cnf if len(clause) == 1]

        literals = {lit for clause in cnf for lit in clause}
        for lit in sorted(literals, key=abs):
            if -lit not in literals:
                cnf = self.simplify(cnf, lit)
                assignment = assignment + [lit]

        if not cnf:
            return assignment

        var = min(abs(lit) for clause in cnf for lit in clause)
        self.branching_decisions += 1

        for lit in (var, -var):
            new_cnf = self.simplify(cnf, lit)
            if new_cnf is not None:
                model = self._dpll(new_cnf, assignment + [lit])
                if model is not None:
                    return model
        return None

    def solve(self):
        self.branching_decisions = 0
        with Timer() as timer:
            if any(not clause for clause in self.cnf):
                model = None
            else:
                model = self._dpll(self.cnf, [])
        state = SolutionState.UNSAT if model is None else SolutionState.SAT
        return SolveResult(state, model or [], self.branching_decisions, timer.elapsed)
