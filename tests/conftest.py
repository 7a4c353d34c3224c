import itertools
import random

import pytest


def brute_force_sat(clauses, num_vars):
    for bits in itertools.product((False, True), repeat=num_vars):
        if all(any((lit > 0) == bits[abs(lit) - 1] for lit in clause) for clause in clauses):
            return True
    return False


def random_cnf(rng, num_vars, num_clauses, width=3):
    clauses = []
    for _ in range(num_clauses):
        k = min(width, num_vars)
        chosen = rng.sample(range(1, num_vars + 1), k)
        clauses.append([v if rng.random() < 0.5 else -v for v in chosen])
    return clauses


def to_dimacs(clauses, num_vars):
    lines = [f"p cnf {num_vars} {len(clauses)}"]
    lines += [" ".join(map(str, clause)) + " 0" for clause in clauses]
    return "\n".join(lines) + "\n"


@pytest.fixture
def rng():
    return random.Random(20240517)


@pytest.fixture
def write_cnf(tmp_path):
    def _write(clauses, num_vars, name="formula.cnf"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(to_dimacs(clauses, num_vars))
        return path
    return _write
