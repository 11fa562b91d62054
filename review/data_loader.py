"""Loading helpers for the linkage review interface."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

OUTPUT_REQUIRED = ["title", "match_stage", "similarity"]
REVIEW_REQUIRED = ["stage", "case_index", "case", "finding_index", "title", "chosen", "candidate_count"]


def _read(path: str | Path, required: list[str]) -> pd.DataFrame:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")
    if file_path.suffix.lower() != ".csv":
        raise ValueError("Unsupported file format. Use CSV.")
    df = pd.read_csv(file_path)
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"Missing columns in {file_path}: {missing}")
    return df


def load_output(path: str | Path) -> pd.DataFrame:
    """Load the joined table written by ``match_fair_use.py``."""
    return _read(path, OUTPUT_REQUIRED)


def load_review(path: Optional[str | Path]) -> pd.DataFrame:
    """Load the review table; ``None`` gives an empty frame with the review columns."""
    if path is None:
        return pd.DataFrame(columns=REVIEW_REQUIRED + ["similarity"])
    return _read(path, REVIEW_REQUIRED)


def available_stages(df: pd.DataFrame) -> list[str]:
    """Return the match stages present in the dataframe, in pipeline order."""
    order = ["direct", "fuzzy", "fuzzy_normalized", "positional"]
    present = set(df["match_stage"].dropna()) if "match_stage" in df.columns else set()
    return [stage for stage in order if stage in present]
