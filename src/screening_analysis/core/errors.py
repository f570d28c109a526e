"""
Error kinds raised by the analysis stages.

Recoding and conversion errors are handled locally by their callers (a cell
becomes missing, a loading becomes NaN, a ratio becomes undefined). Fitting,
comparison and loading errors propagate to the caller.
"""

from collections.abc import Iterable


class AnalysisError(Exception):
    """Base class for all analysis errors."""


class InvalidRange(AnalysisError, ValueError):
    def __init__(self, value: object, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Value {value!r} cannot be mapped: {reason}")


class ConvergenceFailure(AnalysisError):
    def __init__(
        self,
        model_family: str,
        item_names: Iterable[str],
        reason: str,
        n_iterations: int | None = None,
    ) -> None:
        self.model_family = model_family
        self.item_names = tuple(item_names)
        self.reason = reason
        self.n_iterations = n_iterations

        message = (
            f"{model_family} fit failed on items "
            f"[{', '.join(self.item_names)}]: {reason}"
        )
        if n_iterations is not None:
            message += f" (after {n_iterations} iterations)"
        super().__init__(message)


class MismatchedKeys(AnalysisError):
    def __init__(
        self,
        missing_in_a: Iterable[str],
        missing_in_b: Iterable[str],
    ) -> None:
        self.missing_in_a = tuple(sorted(missing_in_a))
        self.missing_in_b = tuple(sorted(missing_in_b))
        super().__init__(
            f"Key sets differ: missing in a={list(self.missing_in_a)}, "
            f"missing in b={list(self.missing_in_b)}"
        )


class UndefinedRatio(AnalysisError, ZeroDivisionError):
    def __init__(self, key: str, numerator: float) -> None:
        self.key = key
        self.numerator = numerator
        super().__init__(
            f"Ratio undefined for '{key}': {numerator} / 0"
        )


class DataLoadFailure(AnalysisError):
    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Could not load dataset from {source}: {reason}")
