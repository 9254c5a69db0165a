"""Tables and the PDF report for a finished run.

The pandas frames feed ``st.dataframe`` and the CSV downloads; ``build_pdf``
turns the plan and the headline numbers into a one-file report.
"""

from __future__ import annotations

import io
from typing import Dict, List, Mapping

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import SimulationOutput


def percentile_frame(output: SimulationOutput) -> pd.DataFrame:
    """One row per year point: age and the p10/p50/p90 portfolio values."""
    n = len(output.p50_asset_curve)
    ages = list(output.ages) or list(range(n))
    return pd.DataFrame({
        "year": list(range(n)),
        "age": ages[:n],
        "p10": output.p10_asset_curve,
        "p50": output.p50_asset_curve,
        "p90": output.p90_asset_curve,
    })


def ledger_frame(ledger: Mapping[str, list]) -> pd.DataFrame:
    return pd.DataFrame(dict(ledger))


def summary_rows(output: SimulationOutput) -> List[List[str]]:
    q = output.final_asset_quantiles
    n_paths = len(output.failure_year_by_path)
    failed = n_paths - sum(1 for y in output.failure_year_by_path if y is None)
    drawdowns = pd.Series(output.max_drawdown_by_path, dtype=float)
    return [
        ["Metric", "Value"],
        ["Paths simulated", f"{n_paths:,}"],
        ["Success rate", f"{output.success_rate * 100:.1f}%"],
        ["Paths depleted", f"{failed:,}"],
        ["Final value p10", f"${q.p10:,.0f}"],
        ["Final value p50", f"${q.p50:,.0f}"],
        ["Final value p90", f"${q.p90:,.0f}"],
        ["Median max drawdown", f"{(drawdowns.median() if n_paths else 0.0) * 100:.1f}%"],
    ]


def _flatten(prefix: str, obj, rows: List[List[str]]) -> None:
    if isinstance(obj, dict):
        for k, v in obj.items():
            key = f"{prefix}{k}" if prefix else k
            _flatten(f"{key}.", v, rows)
    elif isinstance(obj, (list, tuple)):
        for i, v in enumerate(obj):
            _flatten(f"{prefix}{i}.", v, rows)
    else:
        rows.append([prefix[:-1], str(obj)])


def _table(rows: List[List[str]]) -> Table:
    table = Table(rows, hAlign="LEFT")
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#E6ECE9")),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ]
        )
    )
    return table


def build_pdf(plan: Dict, output: SimulationOutput) -> bytes:
    """Create a PDF report with the plan inputs, headline results and percentiles."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, leftMargin=36, rightMargin=36)
    styles = getSampleStyleSheet()
    story = [Paragraph("Retirement Projection Report", styles["Title"]), Spacer(1, 12)]

    story.append(Paragraph("Results", styles["Heading2"]))
    story.extend([_table(summary_rows(output)), Spacer(1, 12)])

    story.append(Paragraph("Input Data", styles["Heading2"]))
    rows = [["Field", "Value"]]
    _flatten("", plan, rows)
    story.extend([_table(rows), Spacer(1, 12)])

    story.append(Paragraph("Portfolio Percentiles by Age", styles["Heading2"]))
    df = percentile_frame(output)
    pct_rows = [["Age", "p10", "p50", "p90"]]
    for r in df.itertuples(index=False):
        pct_rows.append([str(r.age), f"${r.p10:,.0f}", f"${r.p50:,.0f}", f"${r.p90:,.0f}"])
    story.append(_table(pct_rows))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes
