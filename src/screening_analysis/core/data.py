"""
Dataset loading for the screening instrument.

Supports SAS transport (XPT) files from a URL or a local path, and wide CSV
files with one column per item.
"""

import io
import logging
from pathlib import Path

import httpx
import pandas as pd

from screening_analysis.core.data_models import Instrument
from screening_analysis.core.errors import DataLoadFailure

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 60.0

# The transport format stores exact zeros as tiny floats (~5.4e-79)
VALUE_ROUNDING_DECIMALS = 6


def _is_url(source: str | Path) -> bool:
    return isinstance(source, str) and source.startswith(
        ("http://", "https://")
    )


def fetch_dataset(
    url: str,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> bytes:
    """Download a dataset file and return its raw bytes.

    Raises:
        DataLoadFailure: If the server is unreachable or returns an error.
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout, follow_redirects=True)

    try:
        logger.info(f"Downloading dataset from {url}")
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise DataLoadFailure(url, str(e)) from e
    finally:
        if owns_client:
            client.close()

    if not response.content:
        raise DataLoadFailure(url, "empty response body")
    return response.content


def read_transport_file(content: bytes, source: str) -> pd.DataFrame:
    """Parse SAS transport bytes into a DataFrame.

    Raises:
        DataLoadFailure: If the bytes are not a valid transport file.
    """
    try:
        frame = pd.read_sas(io.BytesIO(content), format="xport")
    except (ValueError, KeyError, UnicodeDecodeError, EOFError) as e:
        raise DataLoadFailure(source, f"malformed transport file: {e}") from e

    assert isinstance(frame, pd.DataFrame)
    return frame


def prepare_instrument_frame(
    frame: pd.DataFrame,
    instrument: Instrument,
    source: str = "<frame>",
) -> pd.DataFrame:
    """Restrict a raw frame to the instrument's item columns.

    The respondent identifier becomes the index (when present) and the
    excluded trailing columns are dropped. The input frame is not modified.

    Raises:
        DataLoadFailure: If any instrument item is absent from the frame.
    """
    missing = [
        name for name in instrument.item_names if name not in frame.columns
    ]
    if missing:
        raise DataLoadFailure(source, f"missing item columns {missing}")

    result = frame.copy()
    if instrument.id_column in result.columns:
        result = result.set_index(instrument.id_column)
    else:
        logger.warning(
            f"Identifier column '{instrument.id_column}' not found in {source}"
        )

    dropped = [c for c in instrument.excluded_columns if c in result.columns]
    result = result.drop(columns=dropped)

    items = result.loc[:, list(instrument.item_names)]
    numeric = items.apply(pd.to_numeric, errors="coerce")
    return numeric.round(VALUE_ROUNDING_DECIMALS)


def load_instrument_frame(
    source: str | Path,
    instrument: Instrument,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> pd.DataFrame:
    """Load the raw item responses of an instrument from a URL or path.

    `.xpt` sources (and every URL) are read as SAS transport files, `.csv`
    paths as wide CSV files.

    Returns:
        DataFrame indexed by respondent identifier with one float column per
        item (NaN where the source has no value).

    Raises:
        DataLoadFailure: If the source is unreachable or malformed.
    """
    if _is_url(source):
        url = str(source)
        content = fetch_dataset(url, client=client, timeout=timeout)
        frame = read_transport_file(content, url)
        return prepare_instrument_frame(frame, instrument, source=url)

    path = Path(source)
    if not path.exists():
        raise DataLoadFailure(str(path), "file not found")

    suffix = path.suffix.lower()
    if suffix == ".xpt":
        frame = read_transport_file(path.read_bytes(), str(path))
    elif suffix == ".csv":
        try:
            frame = pd.read_csv(path)
        except (ValueError, pd.errors.ParserError) as e:
            raise DataLoadFailure(str(path), f"malformed CSV: {e}") from e
    else:
        raise DataLoadFailure(str(path), f"unsupported file type '{suffix}'")

    return prepare_instrument_frame(frame, instrument, source=str(path))
