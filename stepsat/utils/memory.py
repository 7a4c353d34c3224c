import os
import threading
from collections import namedtuple
from statistics import mean

import psutil

from .logger import logger
from .timer import Timer


SolveMeasurement = namedtuple(
    'SolveMeasurement',
    ('result', 'elapsed', 'min_usage', 'avg_usage', 'max_usage', 'peak_by_depth')
)


class MemoryTracker:
    """
    Samples the unique set size of this process while a solve is running.

    Figures are in KB above the usage measured on entry. When a solver is
    given, every sample is filed under the search depth (ctx.step) the solver
    was at, so peak_by_depth shows how memory grows with the recursion.
    """

    def __init__(self, sample_interval=0.001, solver=None):
        self.process = psutil.Process(os.getpid())
        self.interval = sample_interval
        self.solver = solver
        self._baseline = 0.0
        self._samples = []
        self._stop = threading.Event()
        self._thread = None
        self.peak_by_depth = {}
        self.min_usage = self.avg_usage = self.max_usage = 0.0

    def _usage(self):
        try:
            return self.process.memory_full_info().uss / 1024
        except (AttributeError, psutil.AccessDenied):
            return self.process.memory_info().rss / 1024

    def _depth(self):
        ctx = getattr(self.solver, 'ctx', None)
        return ctx.step if ctx is not None else 0

    def _sample(self):
        usage = max(0.0, self._usage() - self._baseline)
        depth = self._depth()
        self._samples.append(usage)
        self.peak_by_depth[depth] = max(usage, self.peak_by_depth.get(depth, 0.0))

    def _sampler(self):
        while not self._stop.wait(self.interval):
            self._sample()

    def __enter__(self):
        self._baseline = self._usage()
        self._samples = []
        self.peak_by_depth = {}
        self._stop.clear()
        self._thread = threading.Thread(target=self._sampler, daemon=True)
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._stop.set()
        self._thread.join()
        # one closing sample so even sub-interval solves report something
        self._sample()
        self.min_usage = min(self._samples)
        self.avg_usage = mean(self._samples)
        self.max_usage = max(self._samples)
        logger.debug('memory: min %.2fKB avg %.2fKB max %.2fKB over %d samples, %d depths',
                     self.min_usage, self.avg_usage, self.max_usage,
                     len(self._samples), len(self.peak_by_depth))


def measure_solve(solver, sample_interval=0.001):
    '''
    Run solver.solve() under a Timer and a MemoryTracker.

    Parameters:
        solver: DpllSolver or ReferenceSolver, already constructed
        sample_interval: seconds between memory samples

    Return:
        SolveMeasurement with the SolveResult, wall time and KB figures
    '''
    with MemoryTracker(sample_interval, solver) as mem, Timer() as timer:
        result = solver.solve()
    return SolveMeasurement(result, timer.elapsed, mem.min_usage, mem.avg_usage,
                            mem.max_usage, dict(mem.peak_by_depth))
