"""
Badge components for roles, disciplinary risk and selection status.
"""

from ..base import Component

_RISK_TONES = {
    "SAFE": "ok",
    "AT RISK": "warn",
    "CRITICAL": "danger",
    "HIGH": "danger",
    "MEDIUM": "warn",
    "LOW": "info",
}

_STATUS_TONES = {
    "available": "ok",
    "injured": "danger",
    "suspended": "danger",
    "ineligible": "muted",
}


class Badge(Component):
    def __init__(self, text: str, tone: str = "info", *, title: str = ""):
        self.text = text
        self.tone = tone
        self.title = title

    def render(self) -> str:
        attrs = self.attributes(class_=self.classes("badge", f"badge--{self.tone}"), title=self.title or None)
        return f"<span {attrs}>{self.escape(self.text)}</span>"


class RiskBadge(Badge):
    def __init__(self, level: str):
        super().__init__(level, _RISK_TONES.get(level, "info"))


class PlayerStatusBadge(Badge):
    def __init__(self, status: str, status_text: str, description: str = ""):
        super().__init__(status_text, _STATUS_TONES.get(status, "info"), title=description)


class RoleBadge(Badge):
    def __init__(self, role_label: str):
        super().__init__(role_label, "role")
