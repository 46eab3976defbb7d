"""Service modules"""
from .bootstrap import Deployment, build_position
from .monitor import PositionMonitor

__all__ = ["Deployment", "build_position", "PositionMonitor"]
