"""Streamlit interface for reviewing a case/finding linkage run."""
from __future__ import annotations

import pandas as pd
import streamlit as st

from review.data_loader import REVIEW_REQUIRED, available_stages, load_output, load_review
from review.plots import similarity_histogram, stage_bar
from review.processing import ambiguous_candidates, filter_by_stage, filter_similarity, stage_summary

st.set_page_config(page_title="Fair-use linkage review", layout="wide")


def read_uploaded(file, path: str, required: bool):
    if file is not None:
        return pd.read_csv(file)
    if path:
        return load_output(path) if required else load_review(path)
    if required:
        return None
    return load_review(None)


def sidebar_controls(df: pd.DataFrame) -> dict:
    stages = st.sidebar.multiselect("Stages", available_stages(df))
    limit_similarity = st.sidebar.checkbox("Only low similarity")
    max_similarity = None
    if limit_similarity:
        max_similarity = st.sidebar.slider("Max similarity", min_value=0, max_value=100, value=60, step=5)
    return {"stages": stages, "max_similarity": max_similarity}


def main():
    st.title("Fair-use case / finding linkage review")
    st.markdown(
        """
        Load the output and review CSVs written by ``match_fair_use.py`` to inspect
        how each case was paired with a finding. Positional pairs and ambiguous
        matches are the ones to check by hand.
        """
    )

    st.sidebar.header("Linkage run")
    output_file = st.sidebar.file_uploader("Output CSV", type=["csv"])
    output_path = st.sidebar.text_input("...or output path")
    review_file = st.sidebar.file_uploader("Review CSV", type=["csv"])
    review_path = st.sidebar.text_input("...or review path")

    output = read_uploaded(output_file, output_path, required=True)
    if output is None:
        st.info("Upload an output CSV to start.")
        return
    review = read_uploaded(review_file, review_path, required=False)
    controls = sidebar_controls(output)

    filtered = filter_by_stage(output, controls["stages"])
    filtered = filter_similarity(filtered, controls["max_similarity"])

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Stages")
        st.plotly_chart(stage_bar(stage_summary(output)), use_container_width=True)
    with col2:
        st.subheader("Similarity")
        st.plotly_chart(similarity_histogram(filtered), use_container_width=True)

    st.markdown("### Rows shown")
    st.write(filtered.shape[0])
    st.dataframe(filtered.reset_index(drop=True))

    if set(REVIEW_REQUIRED).issubset(review.columns) and not review.empty:
        st.markdown("### Ambiguous matches")
        st.dataframe(ambiguous_candidates(review))
        st.markdown("### Positional pairs")
        st.dataframe(filter_by_stage(review, ["positional"], column="stage").reset_index(drop=True))


if __name__ == "__main__":
    main()
