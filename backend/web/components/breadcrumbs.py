"""
Breadcrumb component for Touchline

Builds the trail from the role registry labels. Intermediate paths that are
not registered surfaces are skipped so every crumb is a real page.
"""

from typing import List, Tuple

from identity_access.registry import label_for

from .base import Component

ROOT_CRUMB = ("/dashboard", "Dashboard")


class Breadcrumbs(Component):
    """Server-rendered breadcrumb trail"""

    def __init__(self, current_path: str = "/"):
        self.current_path = current_path or "/"

    def render(self) -> str:
        crumbs = self.crumbs()
        if len(crumbs) <= 1:
            return ""
        items = []
        last_index = len(crumbs) - 1
        for index, (href, label) in enumerate(crumbs):
            escaped = self.escape(label)
            if index == last_index:
                items.append(f'<li class="breadcrumb-item" aria-current="page">{escaped}</li>')
            else:
                items.append(
                    f'<li class="breadcrumb-item"><a href="{self.escape(href)}" hx-get="{self.escape(href)}" '
                    f'hx-target="#main-content" hx-push-url="true" class="breadcrumb-link">{escaped}</a></li>'
                )
        return f'<nav class="breadcrumb" aria-label="Breadcrumb"><ol>{"".join(items)}</ol></nav>'

    def crumbs(self) -> List[Tuple[str, str]]:
        path = self.current_path.split("?")[0].split("#")[0] or "/"
        crumbs: List[Tuple[str, str]] = [ROOT_CRUMB]
        current = ""
        for segment in [s for s in path.strip("/").split("/") if s]:
            current = f"{current}/{segment}"
            if current == ROOT_CRUMB[0]:
                continue
            label = label_for(current)
            if label:
                crumbs.append((current, label))
        return crumbs
