"""Exceptions and warnings for ill-posed linear inversions."""


class RankDeficiencyWarning(RuntimeWarning):
    """The normal equations are (numerically) singular; the pseudoinverse was used."""


class RankDeficiencyError(ValueError):
    """
    The normal equations are (numerically) singular and no fallback was allowed.

    Attributes:
        condition: 2-norm condition number of the design matrix
        rank: Numerical rank of the design matrix
        n_columns: Number of unknowns
    """

    def __init__(self, condition, rank, n_columns):
        self.condition = condition
        self.rank = rank
        self.n_columns = n_columns
        super().__init__(
            f"Design matrix is rank deficient: rank {rank} of {n_columns} columns, "
            f"condition number {condition:.3e}"
        )
