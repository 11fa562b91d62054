"""Plotting helpers using Plotly Express."""
from __future__ import annotations

import pandas as pd
import plotly.express as px


COLORS = px.colors.sequential.Plasma


def stage_bar(summary: pd.DataFrame):
    """Bar chart of rows per match stage."""
    fig = px.bar(
        summary,
        x="match_stage",
        y="rows",
        color="match_stage",
        text="rows",
        color_discrete_sequence=COLORS,
    )
    fig.update_layout(
        title="Rows per match stage",
        xaxis_title="Stage",
        yaxis_title="Rows",
        showlegend=False,
        template="simple_white",
    )
    return fig


def similarity_histogram(df: pd.DataFrame, nbins: int = 20):
    """Distribution of key similarity, split by stage."""
    fig = px.histogram(
        df,
        x="similarity",
        color="match_stage",
        nbins=nbins,
        color_discrete_sequence=COLORS,
    )
    fig.update_layout(
        title="Key similarity",
        xaxis_title="Token set ratio",
        yaxis_title="Rows",
        legend_title="Stage",
        template="simple_white",
    )
    return fig
