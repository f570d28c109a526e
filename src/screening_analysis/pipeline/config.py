"""
Configuration of the analysis pipeline.

Settings are plain dataclasses so they can double as OmegaConf structured
schemas; YAML files only override the fields they name.
"""

from dataclasses import dataclass
from pathlib import Path

from omegaconf import OmegaConf

from screening_analysis.factor.cfa import DEFAULT_FACTOR_NAME
from screening_analysis.factor.conversion import DEFAULT_SCALING_CONSTANT
from screening_analysis.factor.parallel_analysis import (
    DEFAULT_N_ITERATIONS,
    DEFAULT_PERCENTILE,
)
from screening_analysis.irt.curves import (
    DEFAULT_THETA_LOWER,
    DEFAULT_THETA_STEP,
    DEFAULT_THETA_UPPER,
)
from screening_analysis.irt.estimation.enums import Estimator, ModelFamily
from screening_analysis.preprocessing.recode import RecodeRule

DEFAULT_RANDOM_SEED = 2024


@dataclass
class PipelineConfig:
    """
    Settings of one analysis run.

    Attributes:
        dichotomize: Recode responses to 0 / 1 (value > 0 becomes 1).
        model_family: "1PL", "2PL", "GRM" or "RSM".
        estimator: "MML" fits the family directly; "WLSMV" converts the
            ordinal factor solution (2PL and GRM only).
        scaling_constant: D in the discrimination to loading conversion.
        random_seed: Seed for every stochastic stage.
        parallel_analysis_iterations: Random data sets in parallel analysis.
        parallel_analysis_percentile: Percentile of random eigenvalues.
        theta_lower / theta_upper / theta_step: Trait grid for curves.
        factor_name: Name of the latent factor in the CFA.
    """

    dichotomize: bool = True
    model_family: str = ModelFamily.TWO_PL.value
    estimator: str = Estimator.MML.value
    scaling_constant: float = DEFAULT_SCALING_CONSTANT
    random_seed: int = DEFAULT_RANDOM_SEED
    parallel_analysis_iterations: int = DEFAULT_N_ITERATIONS
    parallel_analysis_percentile: float = DEFAULT_PERCENTILE
    theta_lower: float = DEFAULT_THETA_LOWER
    theta_upper: float = DEFAULT_THETA_UPPER
    theta_step: float = DEFAULT_THETA_STEP
    factor_name: str = DEFAULT_FACTOR_NAME

    def __post_init__(self) -> None:
        family = ModelFamily(self.model_family)
        estimator = Estimator(self.estimator)

        if not family.is_polytomous and not self.dichotomize:
            raise ValueError(f"{family.value} needs dichotomized data")
        if estimator == Estimator.WLSMV and family not in (
            ModelFamily.TWO_PL,
            ModelFamily.GRM,
        ):
            raise ValueError(
                f"WLSMV is only available for 2PL and GRM, got {family.value}"
            )
        if not self.scaling_constant > 0:
            raise ValueError(
                f"scaling_constant must be positive, got {self.scaling_constant}"
            )
        if self.parallel_analysis_iterations < 1:
            raise ValueError("parallel_analysis_iterations must be >= 1")
        if not 0 < self.parallel_analysis_percentile < 100:
            raise ValueError("parallel_analysis_percentile must be in (0, 100)")
        if self.theta_step <= 0 or self.theta_upper <= self.theta_lower:
            raise ValueError(
                f"Invalid trait grid [{self.theta_lower}, {self.theta_upper}] "
                f"step {self.theta_step}"
            )

    @property
    def family(self) -> ModelFamily:
        return ModelFamily(self.model_family)

    @property
    def estimation_method(self) -> Estimator:
        return Estimator(self.estimator)

    @property
    def recode_rule(self) -> RecodeRule:
        if self.dichotomize:
            return RecodeRule.DICHOTOMIZE
        return RecodeRule.ORDINAL


def load_pipeline_config(yaml_path: Path | None = None) -> PipelineConfig:
    """Load and validate pipeline settings from YAML.

    Args:
        yaml_path: Path to YAML config file. Defaults are used if None.

    Returns:
        Validated PipelineConfig

    Raises:
        ValueError: If the settings are inconsistent
        FileNotFoundError: If yaml_path doesn't exist
    """
    schema = OmegaConf.structured(PipelineConfig)

    if yaml_path is not None:
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        user_config = OmegaConf.load(yaml_path)
        config = OmegaConf.merge(schema, user_config)
    else:
        config = schema

    # Convert to typed dataclass
    result = OmegaConf.to_object(config)
    assert isinstance(result, PipelineConfig)

    return result
