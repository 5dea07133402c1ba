"""
Insight models (dataclasses) shared by the analytics routines and the router.
Keeps business structures separate from transport concerns.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

MESSAGE_ROLES = ("user", "assistant", "system")


@dataclass(frozen=True)
class ChartDataPoint:
    """One point of a chart series; units depend on the routine."""
    label: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass
class InsightResult:
    """Answer to a single question: a paragraph plus an optional chart series.

    chart_data is None when there is nothing to plot; the fallback answer
    never carries one.
    """
    text: str
    chart_data: Optional[List[ChartDataPoint]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape consumed by the chat UI and chart renderer."""
        payload: Dict[str, Any] = {"text": self.text}
        if self.chart_data is not None:
            payload["chartData"] = [p.to_dict() for p in self.chart_data]
        return payload


@dataclass(frozen=True)
class Message:
    """A conversation entry owned by the caller."""
    role: str
    content: str

    def __post_init__(self):
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unknown message role '{self.role}'; expected one of {MESSAGE_ROLES}")
