"""Pytest fixtures for the fair-use linkage tests."""

import pandas as pd
import pytest

from linkage.records import case_from_values

SYNTHETIC_SIZE = 251


def synthetic_frames(size: int = SYNTHETIC_SIZE):
    """Cases and findings where each row is recoverable by exactly one pass.

    Rows cycle through three shapes: identical caption and title (direct),
    title contained in the raw caption with equal year (fuzzy), and title
    contained only once accents, punctuation and LLC are stripped
    (fuzzy_normalized). Findings come in reverse order.
    """
    cases = []
    findings = []
    for i in range(size):
        year = str(1990 + i % 30)
        plaintiff = f"Alpha {i:03d} Media"
        defendant = f"Beta {i:03d} Records"
        shape = i % 3
        if shape == 0:
            caption = f"{plaintiff} v. {defendant}"
            title = caption
            finding_year = year
        elif shape == 1:
            caption = f"{plaintiff} v. {defendant}"
            title = plaintiff
            finding_year = year
        else:
            caption = f"Álpha {i:03d} Media, LLC v. {defendant}"
            title = plaintiff
            finding_year = f"{year}-06-01"
        cases.append({"case": caption, "year": year, "jurisdiction": f"J{i % 4}"})
        findings.append(
            {
                "title": title,
                "year": finding_year,
                "case_number": f"{i:05d}",
                "court": f"C{i % 5}",
                "outcome": "Fair use found" if i % 2 else "Fair use not found",
            }
        )
    return pd.DataFrame(cases), pd.DataFrame(findings[::-1])


@pytest.fixture
def synthetic_tables():
    return synthetic_frames()


@pytest.fixture
def acme_case():
    return case_from_values(0, "Acme Corp v. Example, Inc.", 2010)


@pytest.fixture
def small_tables():
    """Four cases: one per pass plus one left for positional pairing."""
    cases = pd.DataFrame(
        {
            "case": [
                "Campbell v. Acuff-Rose Music, Inc.",
                "Authors Guild v. Google, Inc.",
                "Núñez v. Caribbean Int'l News Corp.",
                "Sega Enterprises Ltd. v. Accolade, Inc.",
            ],
            "year": ["1994", "2015", "2000", "1992"],
            "category": ["Music", "Textual", "Photograph", "Software"],
        }
    )
    findings = pd.DataFrame(
        {
            "title": [
                "Campbell v. Acuff-Rose Music, Inc.",
                "Authors Guild",
                "Nunez v Caribbean Intl News Corp",
                "Sega v. Accolade",
            ],
            "year": ["1994", "2015", "2000-01-01", "1992-10-20"],
            "case_number": ["92-1292", "13-4829", "99-1255", "92-15655"],
            "court": ["Supreme Court", "2d Cir.", "1st Cir.", "9th Cir."],
            "outcome": ["Fair use found"] * 4,
        }
    )
    return cases, findings


@pytest.fixture
def write_tables(tmp_path):
    def _write(cases: pd.DataFrame, findings: pd.DataFrame):
        cases_path = tmp_path / "fair_use_cases.csv"
        findings_path = tmp_path / "fair_use_findings.csv"
        cases.to_csv(cases_path, index=False)
        findings.to_csv(findings_path, index=False)
        return cases_path, findings_path

    return _write
