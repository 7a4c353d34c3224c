import sys

import pytest

from conftest import brute_force_sat, random_cnf
from stepsat.solvers.cnf import Formula, SolverInvariantError
from stepsat.solvers.dpll import DpllSolver, SolutionState
from stepsat.solvers.reference import ReferenceSolver
from stepsat.utils.verify import is_model, conflicting_literals


class CheckedSolver(DpllSolver):
    """Compares the live state around every search call, independently of the restore logic."""

    def __init__(self, cnf, num_vars=None):
        super().__init__(cnf, num_vars)
        self.frames = 0

    def _search(self):
        formula = self.formula
        before = formula.live_snapshot()
        pending_before = len(formula.pending)
        step_before = self.ctx.step

        state = super()._search()

        assert self.ctx.step == step_before
        assert formula.live_snapshot() == before
        assert formula.occurrence == formula.scan_occurrence()
        if state != SolutionState.SAT:
            assert len(formula.pending) == pending_before
        self.frames += 1
        return state


def test_contradicting_units_are_unsat():
    result = DpllSolver([[1], [-1]]).solve()
    assert result.state == SolutionState.UNSAT
    assert not result.satisfiable
    assert result.solution == []


def test_single_binary_clause_is_sat():
    result = DpllSolver([[1, 2]]).solve()
    assert result.satisfiable
    assert is_model([[1, 2]], result.solution)
    values = result.assignment(2)
    assert values[1] or values[2]


def test_no_clauses_is_trivially_sat():
    result = DpllSolver([], num_vars=3).solve()
    assert result.state == SolutionState.SAT
    assert result.solution == []
    assert result.decisions == 0


def test_repeated_literal_is_sat():
    result = DpllSolver([[1, 1]]).solve()
    assert result.satisfiable
    assert result.solution == [1]
    assert result.decisions == 0


def test_all_four_binary_clauses_need_branching():
    clauses = [[1, 2], [-1, 2], [1, -2], [-1, -2]]
    solver = CheckedSolver(clauses)
    result = solver.solve()
    assert result.state == SolutionState.UNSAT
    assert result.decisions >= 1
    assert solver.frames > 1


def test_empty_input_clause_is_unsat():
    result = DpllSolver([[1, 2], []]).solve()
    assert result.state == SolutionState.UNSAT


def test_tautology_clause():
    result = DpllSolver([[1, -1], [2]]).solve()
    assert result.satisfiable
    assert 2 in result.solution


def test_branch_decisions_are_recorded_in_the_witness():
    clauses = [[1, 2], [-1, -2], [1, -2], [-1, 2, 3], [-3, 2]]
    result = DpllSolver(clauses).solve()
    assert result.satisfiable
    assert result.decisions >= 1
    assert is_model(clauses, result.solution)


def test_solve_leaves_the_formula_untouched():
    formula = Formula.from_clauses([[1, 2, -3], [-1, 3], [2, 3], [-2, -3, 1]])
    before = formula.live_snapshot()
    DpllSolver(formula).solve()
    assert formula.live_snapshot() == before
    assert formula.ctx.step == 0
    assert formula.pending == []
    assert len(formula.clauses) == formula.num_clauses


def test_solving_twice_is_deterministic(rng):
    clauses = random_cnf(rng, 12, 50)
    solver = DpllSolver(clauses, 12)
    first = solver.solve()
    second = solver.solve()
    assert first.state == second.state
    assert first.solution == second.solution
    assert first.decisions == second.decisions


def test_independent_formulas_do_not_share_steps():
    a = DpllSolver([[1, 2], [-1, 2], [1, -2], [-1, -2]])
    b = DpllSolver([[1, 2]])
    assert a.ctx is not b.ctx
    assert a.solve().state == SolutionState.UNSAT
    assert b.solve().state == SolutionState.SAT


def test_invariant_violation_is_fatal(monkeypatch):
    solver = DpllSolver([[1, 2]])
    monkeypatch.setattr(solver, "_simplify", lambda: SolutionState.UNKNOWN)
    monkeypatch.setattr(solver.formula, "occurrence", [0, 0, 0])
    with pytest.raises(SolverInvariantError):
        solver.solve()


def test_recursion_limit_is_restored_after_solve():
    before = sys.getrecursionlimit()
    seen = []

    class LimitRecordingSolver(DpllSolver):
        def _search(self):
            seen.append(sys.getrecursionlimit())
            return super()._search()

    result = LimitRecordingSolver([[1, 2]], num_vars=before).solve()
    assert result.satisfiable
    assert seen[0] >= 3 * before + 1000
    assert sys.getrecursionlimit() == before


def test_recursion_limit_is_restored_on_failure(monkeypatch):
    before = sys.getrecursionlimit()
    solver = DpllSolver([[1]], num_vars=before)
    monkeypatch.setattr(solver, "_simplify", lambda: SolutionState.UNKNOWN)
    monkeypatch.setattr(solver.formula, "occurrence", [0] * (before + 1))
    with pytest.raises(SolverInvariantError):
        solver.solve()
    assert sys.getrecursionlimit() == before


def test_result_assignment_fills_free_variables():
    result = DpllSolver([[-2]], num_vars=3).solve()
    assert result.assignment(3, default=True) == {1: True, 2: False, 3: True}


@pytest.mark.parametrize("num_vars, num_clauses", [(3, 10), (5, 21), (8, 34), (10, 43), (14, 60)])
def test_random_instances_against_brute_force(rng, num_vars, num_clauses):
    for _ in range(15):
        clauses = random_cnf(rng, num_vars, num_clauses)
        solver = CheckedSolver(clauses, num_vars)
        result = solver.solve()

        assert result.state in (SolutionState.SAT, SolutionState.UNSAT)
        assert result.satisfiable == brute_force_sat(clauses, num_vars)
        if result.satisfiable:
            assert not conflicting_literals(result.solution)
            assert is_model(clauses, result.solution)


@pytest.mark.parametrize("width", [2, 3, 4])
def test_agrees_with_reference_solver(rng, width):
    for _ in range(20):
        num_vars = rng.randint(4, 18)
        clauses = random_cnf(rng, num_vars, rng.randint(1, 5 * num_vars), width)
        ours = DpllSolver(clauses, num_vars).solve()
        reference = ReferenceSolver(clauses, num_vars).solve()
        assert ours.state == reference.state
        if reference.satisfiable:
            assert is_model(clauses, reference.solution)
