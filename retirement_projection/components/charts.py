# components/charts.py
# Plotly chart helpers used by the app.
# All functions return a Plotly Figure that Streamlit can display with st.plotly_chart(...).

from typing import Dict, Mapping, Sequence

import plotly.graph_objects as go
import plotly.io as pio

pio.templates.default = "plotly_white"

_MARGIN = dict(l=10, r=10, t=40, b=10)
_LEGEND = dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)


def _fit(series, n):
    arr = list(series)
    if len(arr) < n: arr += [0.0] * (n - len(arr))
    return arr[:n]


# ---------- Portfolio "fan" ----------
def fan_chart(ages: Sequence[int],
              p10: Sequence[float],
              p50: Sequence[float],
              p90: Sequence[float],
              title: str = "Portfolio Value (Percentile Fan)") -> go.Figure:
    """Shaded 10–90 band with a median line."""
    n = len(ages)
    p10 = _fit(p10, n)
    p50 = _fit(p50, n)
    p90 = _fit(p90, n)

    fig = go.Figure()

    # Shaded band 10–90
    fig.add_trace(go.Scatter(
        x=ages, y=p90, mode="lines", line=dict(width=0),
        hoverinfo="skip", showlegend=False
    ))
    fig.add_trace(go.Scatter(
        x=ages, y=p10, mode="lines", line=dict(width=0),
        fill="tonexty", name="10–90%",
        hovertemplate="Age %{x}<br>$%{y:,.0f}<extra></extra>"
    ))

    # Median
    fig.add_trace(go.Scatter(
        x=ages, y=p50, mode="lines", name="Median",
        hovertemplate="Age %{x}<br>$%{y:,.0f}<extra></extra>"
    ))

    fig.update_layout(
        title=title,
        template="plotly_white",
        height=380,
        margin=_MARGIN,
        legend=_LEGEND,
        xaxis_title="Age",
        yaxis_title="Dollars (nominal)"
    )
    return fig


# ---------- Success gauge ----------
def success_gauge(success_rate: float) -> go.Figure:
    pct = max(0.0, min(100.0, float(success_rate) * 100.0))  # clamp 0–100
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=round(pct, 1),
        number={"suffix": "%"},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"thickness": 0.35},
            "steps": [
                {"range": [0, 60],  "color": "#ef4444"},  # red-500
                {"range": [60, 80], "color": "#f59e0b"},  # amber-500
                {"range": [80, 100],"color": "#22c55e"},  # green-500
            ],
        }
    ))
    fig.update_layout(template="plotly_white", height=220, margin=dict(l=10, r=10, t=10, b=10))
    return fig


# ---------- When do failing paths run out? ----------
def failure_histogram(distribution: Mapping[int, int],
                      retirement_years: int,
                      n_paths: int,
                      title: str = "Depletion Year") -> go.Figure:
    """Bars: share of paths depleted in each year.  Line: cumulative share."""
    years = list(range(1, retirement_years + 1))
    total = max(1, int(n_paths))
    share = [distribution.get(y, 0) / total for y in years]
    cumulative = []
    running = 0.0
    for s in share:
        running += s
        cumulative.append(running)

    fig = go.Figure()
    fig.add_bar(x=years, y=share, name="Depleted that year",
                hovertemplate="Year %{x}<br>%{y:.1%}<extra></extra>")
    fig.add_trace(go.Scatter(x=years, y=cumulative, mode="lines", name="Cumulative",
                             hovertemplate="Year %{x}<br>%{y:.1%}<extra></extra>"))
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=320,
        margin=_MARGIN,
        legend=_LEGEND,
        xaxis_title="Retirement year",
        yaxis_title="Share of paths",
        yaxis_tickformat=".0%",
    )
    return fig


# ---------- Max drawdown distribution ----------
def drawdown_histogram(drawdowns: Sequence[float],
                       title: str = "Maximum Drawdown per Path") -> go.Figure:
    fig = go.Figure(go.Histogram(
        x=list(drawdowns), nbinsx=40, name="Paths",
        xbins=dict(start=0.0, end=1.0),
        hovertemplate="%{x:.0%}<br>%{y} paths<extra></extra>",
    ))
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=320,
        margin=_MARGIN,
        xaxis_title="Peak-to-trough decline",
        xaxis_tickformat=".0%",
        yaxis_title="Paths",
    )
    return fig


# ---------- Cash flows on one path (stacked bars) ----------
def cash_flow_chart(ages: Sequence[int],
                    ledger: Dict[str, Sequence[float]],
                    title: str = "Outflows (Median Path)") -> go.Figure:
    """
    Stacked bars for the outflows recorded in a path ledger.
    Uses 'withdrawal', 'fees', 'taxes', 'transaction_costs'; missing keys are zeros.
    """
    n = len(ages)

    def vec(key: str):
        return _fit(ledger.get(key, []), n)

    fig = go.Figure()
    fig.add_bar(x=ages, y=vec("withdrawal"),        name="Withdrawals")
    fig.add_bar(x=ages, y=vec("fees"),              name="Fees")
    fig.add_bar(x=ages, y=vec("taxes"),             name="Taxes")
    fig.add_bar(x=ages, y=vec("transaction_costs"), name="Trading costs")

    fig.update_layout(
        barmode="stack",
        title=title,
        template="plotly_white",
        height=380,
        margin=_MARGIN,
        xaxis_title="Age",
        yaxis_title="Dollars (nominal)",
        legend=_LEGEND,
    )
    return fig


# ---------- Sensitivity sweep ----------
def sensitivity_chart(points, title: str = "Sensitivity") -> go.Figure:
    """Success rate against the varied parameter value (``SensitivityPoint`` list)."""
    points = list(points)
    label = points[0].parameter.replace("_", " ") if points else ""
    fig = go.Figure(go.Scatter(
        x=[p.value for p in points],
        y=[p.success_rate for p in points],
        mode="lines+markers",
        name="Success rate",
        hovertemplate="%{x:,.4g}<br>%{y:.1%}<extra></extra>",
    ))
    fig.update_layout(
        title=f"{title}: {label}" if label else title,
        template="plotly_white",
        height=320,
        margin=_MARGIN,
        xaxis_title=label,
        yaxis_title="Success rate",
        yaxis_tickformat=".0%",
        yaxis_range=[0, 1],
    )
    return fig
