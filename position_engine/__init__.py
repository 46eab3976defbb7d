"""Collateralized debt position engine: valuation, borrowing and liquidation."""
from .models import Asset, RiskParameters
from .position import Position
from .roles import Role, RoleGuard

__all__ = ["Asset", "Position", "RiskParameters", "Role", "RoleGuard"]
