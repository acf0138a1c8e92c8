"""
Profiling, insight generation and scoring
"""

from .profiler import DataProfiler, quality_score
from .security import SecurityAnalyzer
from .insights import InsightGenerator
from .scoring import (
    calculate_health_score, calculate_complexity_score,
    generate_summary, generate_recommendations
)
from .analyzer import DatabaseAnalyzer

__all__ = [
    'DataProfiler',
    'quality_score',
    'SecurityAnalyzer',
    'InsightGenerator',
    'calculate_health_score',
    'calculate_complexity_score',
    'generate_summary',
    'generate_recommendations',
    'DatabaseAnalyzer'
]
