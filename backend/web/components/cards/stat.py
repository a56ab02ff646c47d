"""
StatCard and MetricGrid components.

Small dashboard tiles: a headline value with a label and optional hint line.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..base import Component


@dataclass
class Metric:
    label: str
    value: str
    hint: str = ""
    tone: str = ""


class StatCard(Component):
    def __init__(self, label: str, value: object, *, hint: Optional[str] = None, tone: str = ""):
        self.label = label
        self.value = value
        self.hint = hint
        self.tone = tone

    def render(self) -> str:
        hint_html = f'<p class="stat-card__hint">{self.escape(self.hint)}</p>' if self.hint else ""
        return f"""
        <article class="{self.classes('card', 'stat-card', f'stat-card--{self.tone}' if self.tone else '')}">
            <p class="stat-card__value">{self.escape(self.value)}</p>
            <p class="stat-card__label">{self.escape(self.label)}</p>
            {hint_html}
        </article>"""


class MetricGrid(Component):
    def __init__(self, metrics: Iterable[Metric], *, title: str = "", grid_id: str = ""):
        self.metrics = list(metrics)
        self.title = title
        self.grid_id = grid_id

    def render(self) -> str:
        cards = "".join(StatCard(m.label, m.value, hint=m.hint, tone=m.tone).render() for m in self.metrics)
        heading = f"<h2>{self.escape(self.title)}</h2>" if self.title else ""
        attrs = self.attributes(class_="metric-section", id=self.grid_id or None)
        return f'<section {attrs}>{heading}<div class="metric-grid">{cards}</div></section>'
