"""Filtering and summary utilities for linkage review."""
from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd


def filter_by_stage(df: pd.DataFrame, stages: Iterable[str], column: str = "match_stage") -> pd.DataFrame:
    """Keep rows whose stage is selected; an empty selection keeps everything."""
    stages = list(stages)
    if not stages:
        return df.copy()
    return df[df[column].isin(stages)]


def filter_similarity(df: pd.DataFrame, max_similarity: Optional[float]) -> pd.DataFrame:
    """Keep rows at or below ``max_similarity``, the ones worth a second look."""
    if max_similarity is None:
        return df
    return df[df["similarity"].fillna(0) <= max_similarity]


def stage_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Rows and mean similarity per match stage."""
    grouped = df.groupby("match_stage", as_index=False).agg(
        rows=("match_stage", "size"),
        mean_similarity=("similarity", "mean"),
    )
    grouped["share"] = grouped["rows"] / grouped["rows"].sum()
    return grouped


def ambiguous_candidates(review: pd.DataFrame) -> pd.DataFrame:
    """Candidates of matches that had more than one option, chosen one first."""
    ambiguous = review[review["candidate_count"] > 1]
    return ambiguous.sort_values(["case_index", "chosen"], ascending=[True, False]).reset_index(drop=True)
