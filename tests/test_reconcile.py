"""Tests for the end-to-end reconciliation."""

from collections import Counter

import pytest

from linkage.errors import JoinDiscrepancyError, LinkageValidationError
from linkage.matching import Match
from linkage.reconcile import build_output_table, build_review_table, reconcile, validate_join
from linkage.records import (
    case_from_values,
    finding_from_values,
    prepare_case_records,
    prepare_finding_records,
)

SYNTHETIC_SIZE = 251


class TestReconcileSynthetic:
    """Every entity of the synthetic tables is recovered by one of the passes."""

    @pytest.fixture
    def result(self, synthetic_tables):
        case_df, finding_df = synthetic_tables
        return reconcile(prepare_case_records(case_df), prepare_finding_records(finding_df))

    def test_row_count(self, result):
        assert len(result.matches) == SYNTHETIC_SIZE

    def test_no_duplicate_pairs(self, result):
        keys = [match.key for match in result.matches]
        assert len(set(keys)) == len(keys)

    def test_every_record_once(self, result, synthetic_tables):
        case_df, finding_df = synthetic_tables
        assert Counter(m.case.name for m in result.matches) == Counter(case_df["case"])
        assert Counter(m.finding.title for m in result.matches) == Counter(finding_df["title"])

    def test_stage_counts(self, result):
        counts = result.stage_counts()
        assert counts == {"direct": 84, "fuzzy": 84, "fuzzy_normalized": 83, "positional": 0}

    def test_pairs_are_correct(self, result):
        for match in result.matches:
            assert match.finding.case_number == f"{match.case.index:05d}"

    def test_summary(self, result):
        summary = result.summary()
        assert summary["rows"] == SYNTHETIC_SIZE
        assert [p["stage"] for p in summary["passes"]] == ["direct", "fuzzy", "fuzzy_normalized"]
        assert summary["passes"][0]["unmatched_cases"] == SYNTHETIC_SIZE - 84


class TestReconcileSmall:
    """A handful of real captions, one per stage."""

    def test_stages(self, small_tables):
        case_df, finding_df = small_tables
        result = reconcile(prepare_case_records(case_df), prepare_finding_records(finding_df))
        stages = {m.case.name: m.stage for m in result.matches}
        assert stages == {
            "Campbell v. Acuff-Rose Music, Inc.": "direct",
            "Authors Guild v. Google, Inc.": "fuzzy",
            "Núñez v. Caribbean Int'l News Corp.": "fuzzy_normalized",
            "Sega Enterprises Ltd. v. Accolade, Inc.": "positional",
        }
        assert result.flagged == []

    def test_output_table(self, small_tables):
        case_df, finding_df = small_tables
        result = reconcile(prepare_case_records(case_df), prepare_finding_records(finding_df))
        table = build_output_table(result)
        assert len(table) == 4
        assert list(table["case"]) == sorted(case_df["case"])
        assert "name_std" not in table.columns
        assert "title_std" not in table.columns
        for column in ["category", "case", "year", "title", "year_finding", "case_number", "court", "outcome", "match_stage", "similarity"]:
            assert column in table.columns
        sega = table[table["case"].str.startswith("Sega")].iloc[0]
        assert sega["case_number"] == "92-15655"
        assert sega["year_finding"] == "1992-10-20"

    def test_review_table(self, small_tables):
        case_df, finding_df = small_tables
        result = reconcile(prepare_case_records(case_df), prepare_finding_records(finding_df))
        review = build_review_table(result)
        assert list(review["stage"]) == ["positional"]
        assert bool(review["chosen"].iloc[0])

    def test_normalized_tie_breaker(self, small_tables):
        case_df, finding_df = small_tables
        result = reconcile(
            prepare_case_records(case_df),
            prepare_finding_records(finding_df),
            normalized_tie_breaker="year4",
        )
        assert result.stage_counts()["fuzzy_normalized"] == 1


class TestReconcileFailures:
    """Discrepancies and validation failures are raised, never papered over."""

    def test_remainder_size_mismatch(self):
        cases = [case_from_values(0, "Acme v. Beta", 2000), case_from_values(1, "Gamma v. Delta", 2001)]
        findings = [finding_from_values(0, "Acme v. Beta", 2000)]
        with pytest.raises(JoinDiscrepancyError) as excinfo:
            reconcile(cases, findings)
        assert excinfo.value.size_cases == 1
        assert excinfo.value.size_findings == 0

    def test_misordered_remainder(self):
        cases = [case_from_values(0, "Gamma v. Delta", 2001), case_from_values(1, "Epsilon v. Zeta", 2002)]
        findings = [finding_from_values(0, "Zeta Corp", 2002), finding_from_values(1, "Delta Inc", 2001)]
        with pytest.raises(JoinDiscrepancyError) as excinfo:
            reconcile(cases, findings)
        assert excinfo.value.mismatched_positions == [0, 1]

    def test_validate_join_reports_duplicates(self):
        case_a = case_from_values(0, "Acme v. Beta", 2000)
        case_b = case_from_values(1, "Gamma v. Delta", 2001)
        finding = finding_from_values(0, "Acme", 2000)
        matches = [Match(case_a, finding, "fuzzy"), Match(case_b, finding, "fuzzy")]
        problems = validate_join(matches, case_count=2, finding_count=2)
        assert any("findings emitted more than once" in p for p in problems)
        assert any("findings never matched" in p for p in problems)

    def test_validate_join_reports_row_count(self):
        case_a = case_from_values(0, "Acme v. Beta", 2000)
        finding = finding_from_values(0, "Acme", 2000)
        matches = [Match(case_a, finding, "fuzzy"), Match(case_a, finding, "fuzzy")]
        problems = validate_join(matches, case_count=1, finding_count=1)
        assert any("row count" in p for p in problems)
        assert any("duplicate pairs" in p for p in problems)

    def test_validate_join_clean(self):
        case_a = case_from_values(0, "Acme v. Beta", 2000)
        finding = finding_from_values(0, "Acme", 2000)
        assert validate_join([Match(case_a, finding, "fuzzy")], 1, 1) == []

    def test_validation_error_carries_problems(self):
        error = LinkageValidationError(["row count 1 != case count 2"])
        assert error.problems == ["row count 1 != case count 2"]
        assert "row count" in str(error)
