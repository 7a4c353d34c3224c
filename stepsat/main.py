import argparse
import sys

from stepsat.utils.logger import logger, LOGGER_LEVEL
from stepsat.utils.parser import read_cnf, DimacsParseError
from stepsat.utils.report import write_solution
from stepsat.solvers.cnf import Formula
from stepsat.solvers.dpll import DpllSolver


def build_parser():
    parser = argparse.ArgumentParser(prog='stepsat',
                                     description='Decide a DIMACS CNF formula with the DPLL solver.')
    parser.add_argument('cnf_file', type=str,
                        help="DIMACS CNF input, optionally gzip compressed.")
    parser.add_argument('solution_file', type=str,
                        help="file the verdict and witness are written to.")
    parser.add_argument('--verbosity', type=int, choices=[0, 1, 2], default=1,
                        help='the logger level (0: WARNING, 1: INFO, 2: DEBUG).')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger.setLevel(LOGGER_LEVEL[args.verbosity])

    try:
        instance = read_cnf(args.cnf_file)
    except (OSError, DimacsParseError) as e:
        logger.error('Cannot read %s: %s', args.cnf_file, e)
        return 1

    logger.info('Loaded %s: %d variables, %d clauses', args.cnf_file, instance.num_vars, instance.num_clauses)
    result = DpllSolver(Formula.from_dimacs(instance)).solve()
    write_solution(args.solution_file, result, instance.num_vars, instance.num_clauses)
    logger.info('Wrote %s to %s', result.state.name, args.solution_file)
    return 0


if __name__ == '__main__':
    sys.exit(main())
