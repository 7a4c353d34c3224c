MAX_STEP = float('inf')


class SearchContext:
    """
    Per-solve state shared by a formula and every literal and clause in it.

    Attributes:
        step: current search depth, also used as the logical timestamp of
              removals
        clause_count: number of clause handles handed out so far
    """

    def __init__(self):
        self.step = 0
        self.clause_count = 0

    def next_clause_id(self):
        cid = self.clause_count
        self.clause_count += 1
        return cid

    def __repr__(self):
        return f'SearchContext(step={self.step}, clauses={self.clause_count})'


class Lifetime:
    """
    Existence window [start, end) measured in steps.

    An entity is live while start <= ctx.step < end. Removing it stamps the
    current step as its end, and only the frame that removed it (same step)
    may bring it back.
    """
    __slots__ = ['ctx', 'lifetime_start', 'lifetime_end']

    def __init__(self, ctx, lifetime_start=0, lifetime_end=MAX_STEP):
        self.ctx = ctx
        self.lifetime_start = lifetime_start
        self.lifetime_end = lifetime_end

    def exists(self):
        return self.lifetime_start <= self.ctx.step < self.lifetime_end

    def remove(self):
        self.lifetime_end = self.ctx.step

    def restore(self):
        # removals made by ancestor frames are left for them to undo
        if self.lifetime_end == self.ctx.step:
            self.lifetime_end = MAX_STEP
