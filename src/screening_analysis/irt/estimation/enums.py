from enum import Enum


class ConvergenceStatus(str, Enum):
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    FAILED = "failed"


class ModelFamily(str, Enum):
    ONE_PL = "1PL"
    TWO_PL = "2PL"
    GRM = "GRM"
    RSM = "RSM"

    @property
    def ties_discrimination(self) -> bool:
        """Whether one discrimination is shared by all items."""
        return self in (ModelFamily.ONE_PL, ModelFamily.RSM)

    @property
    def is_polytomous(self) -> bool:
        return self in (ModelFamily.GRM, ModelFamily.RSM)


class Estimator(str, Enum):
    MML = "MML"
    WLSMV = "WLSMV"
