import json
from typing import Sequence
from urllib.parse import quote

from loguru import logger

from chatledger.errors import ChartGenerationError

_PALETTE = [
    "#FF6384",
    "#36A2EB",
    "#FFCE56",
    "#4BC0C0",
    "#9966FF",
    "#FF9F40",
    "#C9CBCF",
]


def _title_with_total(title: str | None, total: float) -> str:
    line = f"Total: ${total:,.2f}"
    return f"{title}\n{line}" if title else line


class ChartService:
    """Builds QuickChart image URLs. No request is made; the URL renders on fetch."""

    def __init__(self, base_url: str = "https://quickchart.io/chart"):
        self.base_url = base_url

    def _validate(self, labels: Sequence[str], values: Sequence[float]) -> list[float]:
        if not labels or not values:
            raise ChartGenerationError("Chart data is empty")
        if len(labels) != len(values):
            raise ChartGenerationError(
                f"Got {len(labels)} labels for {len(values)} values"
            )
        return [float(value) for value in values]

    def _url(self, config: dict) -> str:
        encoded = quote(json.dumps(config, separators=(",", ":")), safe="")
        return f"{self.base_url}?c={encoded}"

    def render_pie(self, labels: Sequence[str], values: Sequence[float], title: str | None = None) -> str:
        numeric = self._validate(labels, values)
        total = sum(numeric)
        config = {
            "type": "outlabeledPie",
            "data": {
                "labels": [f"{label}: ${value:,.2f}" for label, value in zip(labels, numeric)],
                "datasets": [
                    {
                        "data": numeric,
                        "backgroundColor": [_PALETTE[i % len(_PALETTE)] for i in range(len(numeric))],
                    }
                ],
            },
            "options": {
                "title": {"display": True, "text": _title_with_total(title, total), "fontSize": 18},
                "legend": {"display": False},
                "plugins": {
                    "outlabels": {"text": "%l", "color": "black", "stretch": 35, "lineWidth": 2}
                },
            },
        }
        url = self._url(config)
        logger.debug("Pie chart URL ({} slices): {}", len(numeric), url)
        return url

    def render_bar(self, labels: Sequence[str], values: Sequence[float], title: str | None = None) -> str:
        numeric = self._validate(labels, values)
        total = sum(numeric)
        config = {
            "type": "bar",
            "data": {
                "labels": list(labels),
                "datasets": [
                    {
                        "label": "Daily Expenses",
                        "data": numeric,
                        "backgroundColor": "#36A2EB",
                        "borderColor": "#36A2EB",
                        "borderWidth": 1,
                    }
                ],
            },
            "options": {
                "title": {"display": True, "text": _title_with_total(title, total), "fontSize": 18},
                "legend": {"display": False},
                "scales": {
                    "yAxes": [
                        {
                            "ticks": {"beginAtZero": True},
                            "scaleLabel": {"display": True, "labelString": "Amount ($)"},
                        }
                    ],
                    "xAxes": [{"scaleLabel": {"display": True, "labelString": "Date"}}],
                },
            },
        }
        url = self._url(config)
        logger.debug("Bar chart URL ({} bars): {}", len(numeric), url)
        return url
