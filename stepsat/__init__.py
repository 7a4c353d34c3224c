from .solvers.lifetime import SearchContext
from .solvers.cnf import Literal, Clause, Formula, SolverInvariantError
from .solvers.dpll import DpllSolver, SolutionState, SolveResult
from .utils.parser import DimacsInstance, DimacsParseError, parse_dimacs, read_cnf

__version__ = "0.1.0"
