"""
Column-level data profiling
"""

from typing import Optional

from ..database.adapters import DialectAdapter
from ..database.errors import DBInsightError
from ..database.models import Column, DataProfile
from ..utils.log import get_logger
from ..utils.type_utils import is_numeric_type, is_string_type, detect_pattern


SAMPLE_LIMIT = 10


class DataProfiler:
    """Collect samples, numeric ranges, patterns and quality for columns"""

    def __init__(self, sample_limit: int = SAMPLE_LIMIT):
        self.sample_limit = sample_limit
        self.logger = get_logger(__name__)

    def profile(self, adapter: DialectAdapter, table: str, column: str,
                data_type: str, row_count: int) -> DataProfile:
        """Build the data profile of one column.

        Each statistic is collected independently; a failed lookup leaves
        that statistic at its default and logs a warning.
        """
        nulls = self._count_nulls(adapter, table, column) if row_count > 0 else None
        return self._build_profile(adapter, table, column, data_type, row_count, nulls)

    def profile_column(self, adapter: DialectAdapter, table: str, column: Column,
                       row_count: int) -> Column:
        """Fill profile, distinct and null counts of a column in place"""
        nulls = self._count_nulls(adapter, table, column.name)
        if nulls is not None:
            column.null_count = nulls

        column.data_profile = self._build_profile(adapter, table, column.name, column.data_type, row_count, nulls)

        try:
            column.unique_values = adapter.distinct_count(table, column.name)
        except DBInsightError as e:
            self.logger.warning(f"Failed to count distinct values of {table}.{column.name}: {e}")

        return column

    def _build_profile(self, adapter: DialectAdapter, table: str, column: str, data_type: str,
                       row_count: int, nulls: Optional[int]) -> DataProfile:
        profile = DataProfile()

        try:
            profile.sample_data = adapter.sample_values(table, column, self.sample_limit)[:self.sample_limit]
        except DBInsightError as e:
            self.logger.warning(f"Failed to sample {table}.{column}: {e}")

        if is_numeric_type(data_type):
            try:
                profile.min, profile.max, profile.avg = adapter.numeric_stats(table, column)
            except DBInsightError as e:
                self.logger.warning(f"Failed to get numeric stats for {table}.{column}: {e}")

        if is_string_type(data_type):
            profile.pattern = detect_pattern(profile.sample_data)

        # unknown null count keeps full quality
        if nulls is not None:
            profile.quality = quality_score(nulls, row_count)
        return profile

    def _count_nulls(self, adapter: DialectAdapter, table: str, column: str) -> Optional[int]:
        try:
            return adapter.null_count(table, column)
        except DBInsightError as e:
            self.logger.warning(f"Failed to count nulls of {table}.{column}: {e}")
            return None


def quality_score(null_count: int, row_count: int) -> float:
    """Fraction of non-null values, clamped to [0, 1]"""
    if row_count <= 0:
        return 1.0
    score = 1.0 - float(null_count) / float(row_count)
    return min(1.0, max(0.0, score))
