"""Exceptions raised by the linker."""
from __future__ import annotations

from typing import List, Optional, Sequence


class MatchingError(Exception):
    pass


class JoinDiscrepancyError(MatchingError):
    """Positional reconciliation cannot produce a trustworthy alignment."""

    def __init__(
        self,
        message: str,
        size_cases: int,
        size_findings: int,
        mismatched_positions: Optional[Sequence[int]] = None,
    ) -> None:
        super().__init__(message)
        self.size_cases = size_cases
        self.size_findings = size_findings
        self.mismatched_positions: List[int] = list(mismatched_positions or [])

    @property
    def size_difference(self) -> int:
        return self.size_cases - self.size_findings


class LinkageValidationError(MatchingError):
    """The final join violates the one-row-per-entity postcondition."""

    def __init__(self, problems: Sequence[str]) -> None:
        super().__init__("Join validation failed: " + "; ".join(problems))
        self.problems = list(problems)
