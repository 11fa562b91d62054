"""Three-pass reconciliation of cases and findings into a 1:1 table."""
from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd

from linkage.errors import LinkageValidationError
from linkage.matching import (
    LOGGER_NAME,
    LOW_SIMILARITY,
    STAGE_FUZZY,
    STAGE_FUZZY_NORMALIZED,
    STAGES,
    Match,
    PassResult,
    PositionalResult,
    direct_match,
    fuzzy_match,
    key_similarity,
    positional_reconcile,
)
from linkage.records import CaseRecord, FindingRecord

FINDING_SUFFIX = "_finding"

REVIEW_COLUMNS = [
    "stage",
    "case_index",
    "case",
    "finding_index",
    "title",
    "chosen",
    "candidate_count",
    "similarity",
]


@dataclass
class ReconcileResult:
    passes: List[PassResult]
    positional: PositionalResult
    matches: List[Match]
    case_count: int
    finding_count: int

    @property
    def flagged(self) -> List[Match]:
        return self.positional.flagged

    def stage_counts(self) -> Dict[str, int]:
        counts = Counter(match.stage for match in self.matches)
        return {stage: counts.get(stage, 0) for stage in STAGES}

    def summary(self) -> dict:
        return {
            "cases": self.case_count,
            "findings": self.finding_count,
            "rows": len(self.matches),
            "stages": self.stage_counts(),
            "passes": [result.summary() for result in self.passes],
            "flagged_positional": len(self.flagged),
        }


def validate_join(
    matches: Sequence[Match],
    case_count: int,
    finding_count: int,
) -> List[str]:
    """Return every way ``matches`` fails to be a 1:1 join; empty means valid."""
    problems: List[str] = []
    if len(matches) != case_count:
        problems.append(f"row count {len(matches)} != case count {case_count}")
    null_rows = [match.case.index for match in matches if match.is_null]
    if null_rows:
        problems.append(f"rows without finding for cases {null_rows}")
    pair_counts = Counter(match.key for match in matches)
    duplicate_pairs = sorted((pair for pair, count in pair_counts.items() if count > 1), key=str)
    if duplicate_pairs:
        problems.append(f"duplicate pairs {duplicate_pairs}")
    case_counts = Counter(match.case.index for match in matches)
    duplicate_cases = sorted(index for index, count in case_counts.items() if count > 1)
    if duplicate_cases:
        problems.append(f"cases emitted more than once {duplicate_cases}")
    finding_counts = Counter(match.finding.index for match in matches if match.finding is not None)
    duplicate_findings = sorted(index for index, count in finding_counts.items() if count > 1)
    if duplicate_findings:
        problems.append(f"findings emitted more than once {duplicate_findings}")
    if case_count == finding_count:
        unused = sorted(set(range(finding_count)) - set(finding_counts))
        if unused:
            problems.append(f"findings never matched {unused}")
    return problems


def reconcile(
    cases: Sequence[CaseRecord],
    findings: Sequence[FindingRecord],
    normalized_tie_breaker: Optional[str] = None,
    check_field: Optional[str] = "year4",
    low_similarity: float = LOW_SIMILARITY,
    logger: Optional[logging.Logger] = None,
) -> ReconcileResult:
    """Join cases to findings through escalating passes.

    Each pass only sees what the previous one left unmatched: exact equality
    on the raw fields, then containment on the raw fields with the raw year
    as tie-breaker, then containment on the normalized fields. Whatever is
    left is paired by position. Raises ``JoinDiscrepancyError`` when the
    leftovers cannot be aligned and ``LinkageValidationError`` when the
    combined result is not a 1:1 join.
    """
    logger = logger or logging.getLogger(LOGGER_NAME)
    direct = direct_match(cases, findings, logger=logger)
    logger.info("Pass summary: %s", json.dumps(direct.summary()))
    fuzzy = fuzzy_match(
        direct.unmatched_cases,
        direct.unmatched_findings,
        "name",
        "title",
        tie_breaker="year",
        stage=STAGE_FUZZY,
        logger=logger,
    )
    logger.info("Pass summary: %s", json.dumps(fuzzy.summary()))
    normalized = fuzzy_match(
        fuzzy.unmatched_cases,
        fuzzy.unmatched_findings,
        "name_std",
        "title_std",
        tie_breaker=normalized_tie_breaker,
        stage=STAGE_FUZZY_NORMALIZED,
        logger=logger,
    )
    logger.info("Pass summary: %s", json.dumps(normalized.summary()))
    passes = [direct, fuzzy, normalized]
    for result in passes:
        if result.ambiguous:
            logger.warning(
                "%s: %d ambiguous matches resolved by input order",
                result.stage,
                len(result.ambiguous),
            )
    positional = positional_reconcile(
        normalized.unmatched_cases,
        normalized.unmatched_findings,
        check_field=check_field,
        low_similarity=low_similarity,
        logger=logger,
    )
    logger.info("Positional pairs: %d (flagged %d)", len(positional.matches), len(positional.flagged))
    matches: List[Match] = []
    for result in passes:
        matches.extend(result.confirmed)
    matches.extend(positional.matches)
    problems = validate_join(matches, len(cases), len(findings))
    if problems:
        for problem in problems:
            logger.error("Validation: %s", problem)
        raise LinkageValidationError(problems)
    return ReconcileResult(
        passes=passes,
        positional=positional,
        matches=matches,
        case_count=len(cases),
        finding_count=len(findings),
    )


def _match_row(match: Match, name_col: str) -> dict:
    case = match.case
    finding = match.finding
    row: dict = dict(case.payload)
    row[name_col] = case.name
    row["year"] = case.year
    finding_values = {
        "title": finding.title,
        "year": finding.year,
        "case_number": finding.case_number,
        "court": finding.court,
        "outcome": finding.outcome,
    }
    finding_values.update(finding.payload)
    for column, value in finding_values.items():
        target = column + FINDING_SUFFIX if column in row else column
        row[target] = value
    row["match_stage"] = match.stage
    row["similarity"] = match.similarity
    return row


def build_output_table(result: ReconcileResult, name_col: str = "case") -> pd.DataFrame:
    """Flatten the final matches into one row per case, sorted by caption."""
    rows = [_match_row(match, name_col) for match in result.matches]
    table = pd.DataFrame(rows)
    if table.empty:
        return table
    return table.sort_values(name_col, kind="stable").reset_index(drop=True)


def build_review_table(result: ReconcileResult) -> pd.DataFrame:
    """Rows an auditor should look at: every ambiguous candidate and every positional pair."""
    rows: List[dict] = []
    for match in [m for r in result.passes for m in r.ambiguous] + result.positional.matches:
        for candidate in match.candidates:
            rows.append(
                {
                    "stage": match.stage,
                    "case_index": match.case.index,
                    "case": match.case.name,
                    "finding_index": candidate.index,
                    "title": candidate.title,
                    "chosen": candidate is match.finding,
                    "candidate_count": len(match.candidates),
                    "similarity": key_similarity(match.case, candidate),
                }
            )
    return pd.DataFrame(rows, columns=REVIEW_COLUMNS)
