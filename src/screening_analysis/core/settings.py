from pathlib import Path

from pydantic_settings import BaseSettings

SCREENING_ENV_PREFIX = "SCREENING_"

DEFAULT_DATASET_URL = "https://wwwn.cdc.gov/Nchs/Nhanes/2017-2018/DPQ_J.XPT"


class ReportSettings(BaseSettings):
    model_config = {"env_prefix": SCREENING_ENV_PREFIX}

    dataset_url: str = DEFAULT_DATASET_URL
    output_dir: Path | None = None
    http_timeout_seconds: float = 60.0
