"""
Card and badge components for Touchline dashboards.
"""

from .badges import Badge, PlayerStatusBadge, RiskBadge, RoleBadge
from .stat import Metric, MetricGrid, StatCard

__all__ = ["Badge", "PlayerStatusBadge", "RiskBadge", "RoleBadge", "Metric", "MetricGrid", "StatCard"]
