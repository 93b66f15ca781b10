"""CSV export helpers for administrative reports."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from src.services.domain_repository import DomainStats

DEFAULT_REPORT_CSV_ENCODING = "utf-8-sig"

DOMAIN_REPORT_COLUMNS = [
    "normalizedDomain",
    "totalSources",
    "avgBiasRating",
    "usageFrequency",
    "firstSeen",
    "lastUsed",
]


def domain_stats_frame(domains: Iterable[DomainStats]) -> pd.DataFrame:
    """Build a report DataFrame with one row per tracked domain."""
    return pd.DataFrame(
        [stats.to_dict() for stats in domains],
        columns=DOMAIN_REPORT_COLUMNS,
    )


def write_report_csv(
    dataframe: pd.DataFrame,
    output_path: Path | str,
    *,
    encoding: str = DEFAULT_REPORT_CSV_ENCODING,
    logger=None,
) -> Path:
    """Persist a report DataFrame to CSV, creating parent directories.

    ``utf-8-sig`` is the default encoding so the file opens cleanly in Excel.
    """

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    dataframe.to_csv(path, index=False, encoding=encoding)

    if logger is not None:
        logger.info("Wrote report to %s", path)

    return path
