from collections import deque

from .lifetime import Lifetime, SearchContext, MAX_STEP


class SolverInvariantError(RuntimeError):
    """Raised when the search reaches a state that earlier checks should have ruled out."""


class Literal(Lifetime):
    """
    A signed occurrence of a variable inside a clause.

    Attributes:
        var: variable id (positive integer)
        negated: True for the negative polarity
        lifetime_start, lifetime_end: existence window in steps
    """
    __slots__ = ['var', 'negated']

    def __init__(self, ctx, var, negated, lifetime_start=0, lifetime_end=MAX_STEP):
        super().__init__(ctx, lifetime_start, lifetime_end)
        self.var = var
        self.negated = negated

    def negate(self):
        self.negated = not self.negated

    def value(self):
        return -self.var if self.negated else self.var

    def copy(self):
        return Literal(self.ctx, self.var, self.negated, self.lifetime_start, self.lifetime_end)

    def __invert__(self):
        return Literal(self.ctx, self.var, not self.negated, self.lifetime_start, self.lifetime_end)

    def __eq__(self, other):
        if not isinstance(other, Literal):
            return NotImplemented
        return self.var == other.var and self.negated == other.negated

    __hash__ = None

    def __repr__(self):
        return f'Literal({self.value()}, [{self.lifetime_start}, {self.lifetime_end}))'


class Clause(Lifetime):
    """
    A disjunction of literals with a stable handle.

    Iterating a clause yields its live literals only. Two clauses are equal
    only if they are the same clause, whatever their contents.
    """
    __slots__ = ['literals', 'cid']

    def __init__(self, ctx, literals, lifetime_start=0, lifetime_end=MAX_STEP):
        super().__init__(ctx, lifetime_start, lifetime_end)
        self.literals = list(literals)
        self.cid = ctx.next_clause_id()

    def __iter__(self):
        return (lit for lit in self.literals if lit.exists())

    def count(self):
        return sum(1 for lit in self.literals if lit.exists())

    def empty(self):
        return next(iter(self), None) is None

    def restore(self):
        super().restore()
        for lit in self.literals:
            lit.restore()

    def values(self):
        return [lit.value() for lit in self]

    def __eq__(self, other):
        if not isinstance(other, Clause):
            return NotImplemented
        return self.cid == other.cid

    def __hash__(self):
        return hash(self.cid)

    def __repr__(self):
        return f'Clause#{self.cid}({self.values()})'


class Formula:
    """
    A CNF formula whose clauses and literals are deleted and restored by
    lifetime stamps instead of being copied at every search level.

    Attributes:
        ctx: the SearchContext shared by every clause and literal
        clauses: all clauses ever created, live or not (front = newest branch clause)
        occurrence: occurrence[v] = live occurrences of variable v in live clauses
        pending: stack of (literal copy, step) recorded by pure literal elimination
        num_vars: number of declared variables
        num_clauses: number of clauses the formula was built with
    """

    def __init__(self, ctx, clauses, num_vars, occurrence=None):
        self.ctx = ctx
        self.clauses = deque(clauses)
        self.num_vars = num_vars
        self.num_clauses = len(self.clauses)
        self.pending = []
        if occurrence is None:
            self.occurrence = [0] * (num_vars + 1)
            self.occurrence = self.scan_occurrence()
        else:
            self.occurrence = list(occurrence)

    @classmethod
    def from_clauses(cls, clauses, num_vars=None, ctx=None):
        '''
        Build a formula from clauses given as iterables of signed integers.

        Parameters:
            clauses: e.g. [[1, -2], [2, 3]]
            num_vars: number of variables; defaults to the largest variable seen
            ctx: SearchContext to attach to; a fresh one is created if omitted

        Return:
            the Formula with its occurrence table filled in
        '''
        clauses = [list(clause) for clause in clauses]
        largest = max((abs(n) for clause in clauses for n in clause), default=0)
        if num_vars is None:
            num_vars = largest
        elif largest > num_vars:
            raise ValueError(f'Variable {largest} exceeds the declared {num_vars} variables')

        ctx = ctx or SearchContext()
        built = []
        occurrence = [0] * (num_vars + 1)
        for clause in clauses:
            literals = []
            for n in clause:
                if n == 0:
                    raise ValueError('Literal 0 is a clause terminator, not a literal')
                literals.append(Literal(ctx, abs(n), n < 0))
                occurrence[abs(n)] += 1
            built.append(Clause(ctx, literals))
        return cls(ctx, built, num_vars, occurrence)

    @classmethod
    def from_dimacs(cls, instance, ctx=None):
        return cls.from_clauses(instance.clauses, instance.num_vars, ctx)

    def __iter__(self):
        return (clause for clause in self.clauses if clause.exists())

    def __len__(self):
        return sum(1 for _ in self)

    def empty(self):
        return next(iter(self), None) is None

    def has_falsified_clause(self):
        return any(clause.empty() for clause in self)

    def remove_literal(self, lit):
        self.occurrence[lit.var] -= 1
        lit.remove()

    def remove_clause(self, clause):
        for lit in clause:
            self.occurrence[lit.var] -= 1
        clause.remove()

    def unit_propagation(self):
        '''
        One pass of unit propagation over the live clauses.

        For every unit clause with literal L, the negation of L is removed
        from every other live clause and every other live clause containing
        L is removed. The unit clause itself is kept.

        Return:
            True if anything was removed
        '''
        modified = False
        for clause in self:
            if clause.count() != 1:
                continue
            unit = next(iter(clause))
            neg_unit = ~unit
            for other in self:
                if other == clause:
                    continue
                for lit in other:
                    if lit == neg_unit:
                        self.remove_literal(lit)
                        modified = True
                    elif lit == unit:
                        self.remove_clause(other)
                        modified = True
                        break
        return modified

    def pure_literal_elimination(self):
        '''
        One pass of pure literal elimination.

        A literal is pure when every live occurrence of its variable sits in
        this one clause, so (x1 | x1) and (x1 | -x1) both count once. Each
        clause holding a pure literal is removed and the first live literal
        of every pure variable is pushed on the pending stack with the
        current step.

        Return:
            True if any clause was removed
        '''
        modified = False
        for clause in self:
            in_clause = {}
            for lit in clause:
                in_clause[lit.var] = in_clause.get(lit.var, 0) + 1
            pure = {}
            for lit in clause:
                if lit.var not in pure and self.occurrence[lit.var] == in_clause[lit.var]:
                    pure[lit.var] = lit
            if not pure:
                continue
            for lit in pure.values():
                self.pending.append((lit.copy(), self.ctx.step))
            self.remove_clause(clause)
            modified = True
        return modified

    def select_variable(self):
        for var in range(1, len(self.occurrence)):
            if self.occurrence[var] > 0:
                return var
        raise SolverInvariantError(
            f'No variable left to branch on at step {self.ctx.step} while the verdict is undetermined')

    def push_branch(self, var):
        step = self.ctx.step
        clause = Clause(self.ctx, [Literal(self.ctx, var, False, step)], step)
        self.clauses.appendleft(clause)
        self.occurrence[var] += 1
        return clause

    def pop_branch(self):
        return self.clauses.popleft()

    def restore(self):
        for clause in self.clauses:
            clause.restore()

    def drain_pending(self):
        drained = []
        while self.pending:
            drained.append(self.pending.pop()[0])
        return drained

    def discard_pending(self, step):
        while self.pending and self.pending[-1][1] >= step:
            self.pending.pop()

    def scan_occurrence(self):
        occurrence = [0] * len(self.occurrence)
        for clause in self:
            for lit in clause:
                occurrence[lit.var] += 1
        return occurrence

    def live_snapshot(self):
        live = tuple((clause.cid, tuple(clause.values())) for clause in self)
        return live, tuple(self.occurrence)

    def to_clauses(self):
        return [clause.values() for clause in self]

    def __repr__(self):
        return f'Formula(vars={self.num_vars}, clauses={self.num_clauses}, live={len(self)}, step={self.ctx.step})'
