"""
Database analyzer: introspection, profiling and insight generation for a whole database
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..config.settings import AnalysisSettings, SecuritySettings
from ..database.adapters import DialectAdapter
from ..database.errors import DBInsightError, SampleUnavailable
from ..database.models import DatabaseReport, Table
from ..database.normalizer import normalize_table
from ..utils.log import get_logger
from .insights import InsightGenerator
from .profiler import DataProfiler
from .scoring import generate_summary, generate_recommendations


class DatabaseAnalyzer:
    """Analyze every table of a database into a DatabaseReport"""

    def __init__(self, adapter: DialectAdapter,
                 settings: Optional[AnalysisSettings] = None,
                 max_workers: Optional[int] = None,
                 security_settings: Optional[SecuritySettings] = None):
        self.adapter = adapter
        self.settings = settings or AnalysisSettings()
        self.max_workers = max(1, max_workers or self.settings.max_workers)
        self.profiler = DataProfiler()
        self.insight_generator = InsightGenerator(self.settings, security_settings, adapter.dialect)
        self.logger = get_logger(__name__)

    def analyze_table(self, name: str) -> Table:
        """Analyze one table.

        Only a failure to describe the columns aborts the table. When the
        columns come from a document sample that cannot be read, the table
        is kept without columns. Every other lookup falls back to its default.
        """
        row_count = self._degrade(lambda: self.adapter.row_count(name), 0, f"row count of {name}")
        raw_columns = self._degrade_sample(lambda: self.adapter.describe_columns(name), [], f"fields of {name}")

        table = normalize_table(
            name,
            row_count=row_count,
            columns=raw_columns,
            indexes=self._degrade(lambda: self.adapter.list_indexes(name), [], f"indexes of {name}"),
            constraints=self._degrade(lambda: self.adapter.list_constraints(name), [], f"constraints of {name}"),
            relationships=self._degrade(lambda: self.adapter.list_relationships(name), [], f"relationships of {name}"),
            size=self._degrade(lambda: self.adapter.estimate_size(name), "Unknown", f"size of {name}"),
            is_partitioned=self._degrade(lambda: self.adapter.is_partitioned(name), False, f"partitioning of {name}")
        )

        for column in table.columns:
            self.profiler.profile_column(self.adapter, name, column, table.row_count)

        self.logger.info(f"Analyzed {name}: {table.row_count} rows, {len(table.columns)} columns")
        return table

    def analyze_tables(self) -> Tuple[List[Table], Dict[str, str]]:
        """Analyze all tables concurrently, keeping enumeration order.

        Returns the analyzed tables and a mapping of failed table names to
        their error messages.
        """
        names = self.adapter.list_entities()

        tables: List[Table] = []
        failures: Dict[str, str] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [(name, executor.submit(self.analyze_table, name)) for name in names]

            for name, future in futures:
                try:
                    tables.append(future.result())
                except Exception as e:
                    self.logger.error(f"Failed to analyze {name}: {e}")
                    failures[name] = str(e)

        return tables, failures

    def analyze_database(self) -> DatabaseReport:
        """Run the full analysis pipeline"""
        self.logger.info(f"Analyzing {self.adapter.dialect.value} database {self.adapter.database_name()}")
        self.adapter.begin_pass()

        tables, failures = self.analyze_tables()
        insights = self.insight_generator.generate_insights(tables)
        total_size = self._degrade(self.adapter.database_size, "Unknown", "database size")

        return DatabaseReport(
            database_name=self.adapter.database_name(),
            database_type=self.adapter.dialect.value,
            analysis_time=datetime.now(),
            summary=generate_summary(tables, total_size),
            tables=tables,
            insights=insights,
            recommendations=generate_recommendations(tables, insights, self.adapter.dialect),
            failed_tables=failures
        )

    def _degrade(self, lookup, default, what: str):
        try:
            return lookup()
        except DBInsightError as e:
            self.logger.warning(f"Failed to get {what}: {e}")
            return default

    def _degrade_sample(self, lookup, default, what: str):
        try:
            return lookup()
        except SampleUnavailable as e:
            self.logger.warning(f"Failed to sample {what}: {e}")
            return default
