"""
Configuration dataclasses for IRT model estimation.

This module defines the configuration parameters for:
- Quadrature settings (Gauss-Hermite integration)
- Convergence criteria for EM algorithm
- Parameter bounds for the M-step optimizer
"""

from dataclasses import dataclass, field

import toml

from screening_analysis.core.paths import get_project_root_dir

# Default parameter bounds (slope-intercept parameterization)
DEFAULT_DISCRIMINATION_BOUNDS = (0.05, 10.0)
DEFAULT_INTERCEPT_BOUNDS = (-15.0, 15.0)
# Log of the gap between successive GRM intercepts
DEFAULT_LOG_GAP_BOUNDS = (-8.0, 3.0)

# Default convergence settings
DEFAULT_MAX_EM_ITERATIONS = 2000
DEFAULT_EM_TOLERANCE = 1e-5
DEFAULT_MAX_LBFGS_ITERATIONS = 100
DEFAULT_LBFGS_TOLERANCE = 1e-10

# Information matrices with a larger condition number are treated as singular
DEFAULT_MAX_CONDITION_NUMBER = 1e12

# Default quadrature settings
DEFAULT_QUADRATURE_POINTS = 41


def _get_package_version() -> str:
    root_dir = get_project_root_dir()
    with open(root_dir / "pyproject.toml") as f:
        data = toml.load(f)

    version = data.get("project", {}).get("version")

    if not version:
        raise ValueError("Version not found in pyproject.toml")

    assert isinstance(version, str)
    return version


@dataclass(frozen=True)
class QuadratureConfig:
    """
    Configuration for Gauss-Hermite quadrature.

    Attributes:
        n_points: Number of quadrature points. Standard in IRT software
            is 41 points.
        mean: Mean of the latent trait distribution (identification: 0).
        std: Standard deviation of the latent trait distribution
            (identification: 1).
    """

    n_points: int = DEFAULT_QUADRATURE_POINTS
    mean: float = 0.0
    std: float = 1.0


@dataclass(frozen=True)
class ConvergenceConfig:
    """
    Configuration for EM algorithm convergence.

    Attributes:
        max_em_iterations: Maximum number of EM iterations.
        em_tolerance: EM stops when |LL_new - LL_old| < tolerance.
        max_lbfgs_iterations: Maximum iterations for L-BFGS-B in M-step.
        lbfgs_tolerance: Convergence tolerance for L-BFGS-B optimizer.
        max_condition_number: Condition number above which the information
            matrix is reported as singular.
    """

    max_em_iterations: int = DEFAULT_MAX_EM_ITERATIONS
    em_tolerance: float = DEFAULT_EM_TOLERANCE
    max_lbfgs_iterations: int = DEFAULT_MAX_LBFGS_ITERATIONS
    lbfgs_tolerance: float = DEFAULT_LBFGS_TOLERANCE
    max_condition_number: float = DEFAULT_MAX_CONDITION_NUMBER


@dataclass(frozen=True)
class ParameterBounds:
    """
    Bounds for free parameters during optimization.

    Attributes:
        discrimination: (min, max) bounds for slopes.
        intercept: (min, max) bounds for intercepts and category steps.
        log_gap: (min, max) bounds for log gaps between GRM intercepts.
    """

    discrimination: tuple[float, float] = DEFAULT_DISCRIMINATION_BOUNDS
    intercept: tuple[float, float] = DEFAULT_INTERCEPT_BOUNDS
    log_gap: tuple[float, float] = DEFAULT_LOG_GAP_BOUNDS


@dataclass(frozen=True)
class EstimationConfig:
    """
    Master configuration for IRT model estimation.

    Attributes:
        quadrature: Settings for Gauss-Hermite quadrature.
        convergence: Convergence criteria for EM algorithm.
        bounds: Parameter bounds for optimization.
        compute_standard_errors: Whether to compute the information matrix
            after convergence (and fail on a singular one).
        model_version: Version string for reproducibility tracking.
    """

    quadrature: QuadratureConfig = QuadratureConfig()
    convergence: ConvergenceConfig = ConvergenceConfig()
    bounds: ParameterBounds = ParameterBounds()
    compute_standard_errors: bool = True
    model_version: str = field(default_factory=_get_package_version)


def default_config() -> EstimationConfig:
    """Create a default estimation configuration."""
    return EstimationConfig()
