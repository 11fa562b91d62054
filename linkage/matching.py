"""Matching passes between case records and finding records."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Callable, List, Optional, Sequence, Tuple, Union

from rapidfuzz import fuzz

from linkage.errors import JoinDiscrepancyError
from linkage.records import CaseRecord, FindingRecord

LOGGER_NAME = "fair_use_linker"

STAGE_DIRECT = "direct"
STAGE_FUZZY = "fuzzy"
STAGE_FUZZY_NORMALIZED = "fuzzy_normalized"
STAGE_POSITIONAL = "positional"
STAGES = (STAGE_DIRECT, STAGE_FUZZY, STAGE_FUZZY_NORMALIZED, STAGE_POSITIONAL)

LOW_SIMILARITY = 60.0

KeySpec = Union[str, Callable[[object], object]]


@dataclass
class Match:
    case: CaseRecord
    finding: Optional[FindingRecord]
    stage: str
    candidates: List[FindingRecord] = field(default_factory=list)
    similarity: Optional[float] = None

    @property
    def is_null(self) -> bool:
        return self.finding is None

    @property
    def is_ambiguous(self) -> bool:
        return len(self.candidates) > 1

    @property
    def key(self) -> Tuple[int, Optional[int]]:
        return (self.case.index, self.finding.index if self.finding else None)


@dataclass
class PassResult:
    stage: str
    matches: List[Match]
    unmatched_cases: List[CaseRecord]
    unmatched_findings: List[FindingRecord]

    @property
    def confirmed(self) -> List[Match]:
        return [match for match in self.matches if not match.is_null]

    @property
    def ambiguous(self) -> List[Match]:
        return [match for match in self.matches if match.is_ambiguous]

    def summary(self) -> dict:
        return {
            "stage": self.stage,
            "cases": len(self.matches),
            "matched": len(self.confirmed),
            "ambiguous": len(self.ambiguous),
            "unmatched_cases": len(self.unmatched_cases),
            "unmatched_findings": len(self.unmatched_findings),
        }


@dataclass
class PositionalResult:
    matches: List[Match]
    flagged: List[Match] = field(default_factory=list)


def _getter(spec: KeySpec) -> Callable[[object], object]:
    if callable(spec):
        return spec
    return attrgetter(spec)


def key_similarity(case: CaseRecord, finding: FindingRecord) -> float:
    return float(fuzz.token_set_ratio(case.name_std, finding.title_std))


def _link_pass(
    cases: Sequence[CaseRecord],
    findings: Sequence[FindingRecord],
    key_a: KeySpec,
    key_b: KeySpec,
    predicate: Callable[[str, str], bool],
    tie_breaker: Optional[KeySpec],
    stage: str,
    logger: logging.Logger,
) -> PassResult:
    get_a = _getter(key_a)
    get_b = _getter(key_b)
    get_tie = _getter(tie_breaker) if tie_breaker else None
    finding_keys = [str(get_b(finding) or "") for finding in findings]
    claimed: set = set()
    matches: List[Match] = []
    for case in cases:
        case_key = str(get_a(case) or "")
        positions: List[int] = []
        for position, finding in enumerate(findings):
            if position in claimed:
                continue
            finding_key = finding_keys[position]
            if not finding_key or not case_key or not predicate(case_key, finding_key):
                continue
            if get_tie is not None and str(get_tie(case)) != str(get_tie(finding)):
                continue
            positions.append(position)
        if not positions:
            logger.debug("%s: no candidate for case %r", stage, case.name)
            matches.append(Match(case=case, finding=None, stage=stage))
            continue
        candidates = [findings[position] for position in positions]
        chosen = candidates[0]
        claimed.add(positions[0])
        if len(candidates) > 1:
            logger.debug(
                "%s: %d candidates for case %r, taking %r",
                stage,
                len(candidates),
                case.name,
                chosen.title,
            )
        matches.append(
            Match(
                case=case,
                finding=chosen,
                stage=stage,
                candidates=candidates,
                similarity=key_similarity(case, chosen),
            )
        )
    unmatched_cases = [match.case for match in matches if match.is_null]
    unmatched_findings = [finding for position, finding in enumerate(findings) if position not in claimed]
    return PassResult(
        stage=stage,
        matches=matches,
        unmatched_cases=unmatched_cases,
        unmatched_findings=unmatched_findings,
    )


def direct_match(
    cases: Sequence[CaseRecord],
    findings: Sequence[FindingRecord],
    key_a: KeySpec = "name",
    key_b: KeySpec = "title",
    logger: Optional[logging.Logger] = None,
) -> PassResult:
    """Pair records whose identifying fields are exactly equal."""
    return _link_pass(
        cases,
        findings,
        key_a,
        key_b,
        lambda a, b: a == b,
        None,
        STAGE_DIRECT,
        logger or logging.getLogger(LOGGER_NAME),
    )


def fuzzy_match(
    cases: Sequence[CaseRecord],
    findings: Sequence[FindingRecord],
    key_a: KeySpec,
    key_b: KeySpec,
    tie_breaker: Optional[KeySpec] = None,
    stage: str = STAGE_FUZZY,
    logger: Optional[logging.Logger] = None,
) -> PassResult:
    """Pair each case with the first unclaimed finding whose key is contained in the case key.

    ``tie_breaker`` names a field (or callable) that must be equal on both
    records. Every accepted candidate is kept on the match, so ambiguous
    pairings can be audited after the fact; the first one in input order wins.
    Every case gets a match entry, unmatched ones with ``finding=None``.
    """
    return _link_pass(
        cases,
        findings,
        key_a,
        key_b,
        lambda a, b: b in a,
        tie_breaker,
        stage,
        logger or logging.getLogger(LOGGER_NAME),
    )


def positional_reconcile(
    cases: Sequence[CaseRecord],
    findings: Sequence[FindingRecord],
    check_field: Optional[str] = "year4",
    low_similarity: float = LOW_SIMILARITY,
    logger: Optional[logging.Logger] = None,
) -> PositionalResult:
    """Pair two leftover collections row by row.

    This relies on both remainders listing the same entities in the same
    order. Differing sizes, or any pair disagreeing on ``check_field``, raise
    :class:`JoinDiscrepancyError` and nothing is paired.
    """
    logger = logger or logging.getLogger(LOGGER_NAME)
    if len(cases) != len(findings):
        raise JoinDiscrepancyError(
            f"Remainder sizes differ: {len(cases)} cases vs {len(findings)} findings",
            size_cases=len(cases),
            size_findings=len(findings),
        )
    if check_field:
        mismatched = [
            position
            for position, (case, finding) in enumerate(zip(cases, findings))
            if getattr(case, check_field) != getattr(finding, check_field)
        ]
        if mismatched:
            raise JoinDiscrepancyError(
                f"Remainders disagree on {check_field} at positions {mismatched}",
                size_cases=len(cases),
                size_findings=len(findings),
                mismatched_positions=mismatched,
            )
    matches: List[Match] = []
    flagged: List[Match] = []
    for case, finding in zip(cases, findings):
        match = Match(
            case=case,
            finding=finding,
            stage=STAGE_POSITIONAL,
            candidates=[finding],
            similarity=key_similarity(case, finding),
        )
        if match.similarity < low_similarity:
            logger.warning(
                "Low similarity %.1f for positional pair %r / %r",
                match.similarity,
                case.name,
                finding.title,
            )
            flagged.append(match)
        matches.append(match)
    return PositionalResult(matches=matches, flagged=flagged)
