# Touchline Component System
# Pure Python Components for HTML generation

from .base import Component
from .layout import Layout, NoticeBanner
from .navigation import Navigation
from .breadcrumbs import Breadcrumbs
from .cards import Badge, PlayerStatusBadge, RiskBadge, RoleBadge, Metric, MetricGrid, StatCard

__all__ = [
    "Component",
    "Layout",
    "NoticeBanner",
    "Navigation",
    "Breadcrumbs",
    "Badge",
    "PlayerStatusBadge",
    "RiskBadge",
    "RoleBadge",
    "Metric",
    "MetricGrid",
    "StatCard",
]
