import sys
from collections import namedtuple
from enum import IntEnum

from .cnf import Formula
from ..utils.logger import logger
from ..utils.timer import Timer


class SolutionState(IntEnum):
    UNKNOWN = -1
    UNSAT = 0
    SAT = 1


class SolveResult(namedtuple('SolveResult', ('state', 'solution', 'decisions', 'time_elapsed'))):
    """
    Outcome of one solve.

    Attributes:
        state: SolutionState.SAT or SolutionState.UNSAT
        solution: witness literals as signed integers (empty unless SAT)
        decisions: number of branching points visited
        time_elapsed: wall-clock seconds spent searching
    """
    __slots__ = ()

    @property
    def satisfiable(self):
        return self.state == SolutionState.SAT

    def assignment(self, num_vars, default=False):
        '''
        Total assignment for variables 1..num_vars.

        Variables the witness does not mention are free and get `default`.
        '''
        values = {var: default for var in range(1, num_vars + 1)}
        for lit in self.solution:
            values[abs(lit)] = lit > 0
        return values


class DpllSolver:
    """
    Recursive DPLL solver over a Formula with lifetime-stamped deletion.

    Each call of _search() is one node of the search tree. A node deepens
    ctx.step, simplifies the formula by unit propagation and pure literal
    elimination, branches on the smallest remaining variable if the verdict
    is still open, and on the way out undoes exactly the removals it made.

    Public Methods:
        solve(): decides the formula and returns a SolveResult
    """

    def __init__(self, cnf, num_vars=None):
        '''
        Parameters:
            cnf: a Formula, or clauses as iterables of signed integers
            num_vars: number of variables when cnf is given as clauses
        '''
        if isinstance(cnf, Formula):
            self.formula = cnf
        else:
            self.formula = Formula.from_clauses(cnf, num_vars)
        self.ctx = self.formula.ctx
        self.state = SolutionState.UNKNOWN
        self.solution = []
        self.decisions = 0
        self.time_elapsed = 0.0

    def solve(self):
        self.ctx.step = 0
        self.solution = []
        self.decisions = 0

        # two python frames per search level
        old_limit = sys.getrecursionlimit()
        depth = 3 * self.formula.num_vars + 1000
        if old_limit < depth:
            sys.setrecursionlimit(depth)

        try:
            with Timer() as timer:
                self.state = self._search()
        finally:
            sys.setrecursionlimit(old_limit)
        self.time_elapsed = timer.elapsed

        logger.info('%s after %d decisions in %.6fs (%s)',
                    self.state.name, self.decisions, self.time_elapsed, self.formula)
        return SolveResult(self.state, [lit.value() for lit in self.solution], self.decisions, self.time_elapsed)

    def _search(self):
        saved_occurrence = self._enter()
        state = self._simplify()
        if state == SolutionState.UNKNOWN:
            state = self._branch()
        self._leave(state, saved_occurrence)
        return state

    def _enter(self):
        saved_occurrence = list(self.formula.occurrence)
        self.ctx.step += 1
        return saved_occurrence

    def _simplify(self):
        formula = self.formula

        while formula.unit_propagation():
            pass

        while True:
            modified = formula.pure_literal_elimination()
            if formula.empty():
                return SolutionState.SAT
            if not modified:
                break

        if formula.has_falsified_clause():
            return SolutionState.UNSAT
        return SolutionState.UNKNOWN

    def _branch(self):
        formula = self.formula
        var = formula.select_variable()
        self.decisions += 1

        branch = formula.push_branch(var)
        lit = branch.literals[0]
        logger.debug('[step %d] branch x%d = True', self.ctx.step, var)
        state = self._search()
        if state != SolutionState.SAT:
            lit.negate()
            logger.debug('[step %d] branch x%d = False', self.ctx.step, var)
            state = self._search()
        formula.pop_branch()
        return state

    def _leave(self, state, saved_occurrence):
        formula = self.formula
        if state == SolutionState.SAT:
            self.solution.extend(formula.drain_pending())
        formula.restore()
        formula.discard_pending(self.ctx.step)
        self.ctx.step -= 1
        formula.occurrence = saved_occurrence
