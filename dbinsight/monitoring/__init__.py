"""
Report comparison, alerting and scheduled analysis
"""

from .comparison import ComparisonEngine, calculate_impact, calculate_row_count_impact
from .alerts import AlertManager, default_alerts
from .scheduler import Scheduler

__all__ = [
    'ComparisonEngine',
    'calculate_impact',
    'calculate_row_count_impact',
    'AlertManager',
    'default_alerts',
    'Scheduler'
]
