"""Input schemas and record preparation for cases and findings."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from linkage.errors import MatchingError
from linkage.normalize import STRIP_TOKENS, as_text, clean_text, normalize_name, truncate_year

DEFAULT_NAME_COL = "case"
DEFAULT_TITLE_COL = "title"
DEFAULT_YEAR_COL = "year"
FINDING_PAYLOAD_FIELDS = ("case_number", "court", "outcome")

URL_PREFIXES = ("http://", "https://")


@dataclass
class CaseRecord:
    index: int
    name: str
    name_std: str
    year: str
    year4: str
    payload: Dict[str, str] = field(default_factory=dict)


@dataclass
class FindingRecord:
    index: int
    title: str
    title_std: str
    year: str
    year4: str
    case_number: str
    court: str
    outcome: str
    payload: Dict[str, str] = field(default_factory=dict)


def required_case_columns(name_col: str = DEFAULT_NAME_COL, year_col: str = DEFAULT_YEAR_COL) -> List[str]:
    return [name_col, year_col]


def required_finding_columns(
    title_col: str = DEFAULT_TITLE_COL, year_col: str = DEFAULT_YEAR_COL
) -> List[str]:
    return [title_col, year_col, *FINDING_PAYLOAD_FIELDS]


def load_table(source: Union[str, Path], required: Sequence[str]) -> pd.DataFrame:
    """Read a CSV from a local path or an HTTP(S) URL and check its columns."""
    source_str = str(source)
    if source_str.startswith(URL_PREFIXES):
        df = pd.read_csv(source_str, dtype=str, keep_default_na=False)
    else:
        path = Path(source)
        if not path.exists():
            raise MatchingError(f"File not found: {path}")
        if path.suffix.lower() != ".csv":
            raise MatchingError(f"Unsupported file format: {path.suffix}")
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise MatchingError(f"Missing columns in {source_str}: {missing}")
    return df


def _payload(row: pd.Series, exclude: Sequence[str]) -> Dict[str, str]:
    return {col: row[col] for col in row.index if col not in exclude}


def prepare_case_records(
    df: pd.DataFrame,
    name_col: str = DEFAULT_NAME_COL,
    year_col: str = DEFAULT_YEAR_COL,
    strip_tokens: Sequence[str] = STRIP_TOKENS,
) -> List[CaseRecord]:
    missing = [col for col in required_case_columns(name_col, year_col) if col not in df.columns]
    if missing:
        raise MatchingError(f"Missing case columns: {missing}")
    records: List[CaseRecord] = []
    for position, (_, row) in enumerate(df.iterrows()):
        name_raw = as_text(row[name_col])
        year_raw = clean_text(row[year_col])
        records.append(
            CaseRecord(
                index=position,
                name=name_raw,
                name_std=normalize_name(name_raw, strip_tokens),
                year=year_raw,
                year4=truncate_year(year_raw),
                payload=_payload(row, (name_col, year_col)),
            )
        )
    return records


def prepare_finding_records(
    df: pd.DataFrame,
    title_col: str = DEFAULT_TITLE_COL,
    year_col: str = DEFAULT_YEAR_COL,
    strip_tokens: Sequence[str] = STRIP_TOKENS,
) -> List[FindingRecord]:
    missing = [col for col in required_finding_columns(title_col, year_col) if col not in df.columns]
    if missing:
        raise MatchingError(f"Missing finding columns: {missing}")
    records: List[FindingRecord] = []
    exclude = (title_col, year_col, *FINDING_PAYLOAD_FIELDS)
    for position, (_, row) in enumerate(df.iterrows()):
        title_raw = as_text(row[title_col])
        year_raw = clean_text(row[year_col])
        records.append(
            FindingRecord(
                index=position,
                title=title_raw,
                title_std=normalize_name(title_raw, strip_tokens),
                year=year_raw,
                year4=truncate_year(year_raw),
                case_number=clean_text(row["case_number"]),
                court=clean_text(row["court"]),
                outcome=clean_text(row["outcome"]),
                payload=_payload(row, exclude),
            )
        )
    return records


def case_from_values(index: int, name: str, year: Optional[object] = "", **payload: str) -> CaseRecord:
    """Build a case record without going through a DataFrame."""
    year_raw = clean_text(year)
    return CaseRecord(
        index=index,
        name=name,
        name_std=normalize_name(name),
        year=year_raw,
        year4=truncate_year(year_raw),
        payload=dict(payload),
    )


def finding_from_values(
    index: int,
    title: str,
    year: Optional[object] = "",
    case_number: str = "",
    court: str = "",
    outcome: str = "",
    **payload: str,
) -> FindingRecord:
    """Build a finding record without going through a DataFrame."""
    year_raw = clean_text(year)
    return FindingRecord(
        index=index,
        title=title,
        title_std=normalize_name(title),
        year=year_raw,
        year4=truncate_year(year_raw),
        case_number=case_number,
        court=court,
        outcome=outcome,
        payload=dict(payload),
    )
