"""
Command line interface for database analysis
"""

import argparse
import json
import sys
import threading
from typing import List, Optional

from ..analysis.analyzer import DatabaseAnalyzer
from ..config.settings import ConfigManager, Config, load_database_config
from ..database.errors import DBInsightError
from ..database.factory import DatabaseFactory
from ..database.models import DatabaseReport
from ..monitoring.alerts import AlertManager, default_alerts
from ..monitoring.comparison import ComparisonEngine
from ..monitoring.scheduler import Scheduler
from ..utils.notification import NotificationManager
from ..utils.query_optimizer import QueryOptimizer
from ..utils.schema_analyzer import SchemaAnalyzer


def _build_analyzer(args, config: Config) -> DatabaseAnalyzer:
    url = args.url or load_database_config(args.env_file).url
    adapter = DatabaseFactory.from_url(
        url,
        pool_size=max(5, config.analysis_settings.max_workers),
        sample_size=min(100, config.analysis_settings.sample_size)
    )
    return DatabaseAnalyzer(adapter, config.analysis_settings,
                            security_settings=config.security_settings)


def build_alert_manager(config: Config) -> AlertManager:
    settings = config.analysis_settings
    return AlertManager(default_alerts(quality_threshold=settings.quality_score_minimum,
                                       large_table_threshold=settings.large_table_threshold))


def _load_report(path: str) -> DatabaseReport:
    with open(path, 'r', encoding='utf-8') as f:
        return DatabaseReport.from_dict(json.load(f))


def print_report(report: DatabaseReport):
    summary = report.summary
    print(f"\n📊 {report.database_type} database '{report.database_name}'")
    print(f"   Tables: {summary.total_tables}  Columns: {summary.total_columns}  Rows: {summary.total_rows}")
    print(f"   Size: {summary.total_size}")
    print(f"   Health: {summary.health_score:.2f}  Complexity: {summary.complexity_score:.2f}")

    if report.failed_tables:
        print("\n⚠️ Tables that could not be analyzed:")
        for name, error in report.failed_tables.items():
            print(f"  - {name}: {error}")

    print("\n📋 Tables:")
    for table in report.tables[:20]:
        print(f"  - {table.name} ({table.row_count} rows, {len(table.columns)} columns, "
              f"{len(table.indexes)} indexes, {table.size})")
    if len(report.tables) > 20:
        print(f"  ... and {len(report.tables) - 20} more tables")

    if report.insights:
        print("\n🔍 Insights:")
        for insight in report.insights:
            print(f"  [{insight.severity.value.upper()}] {insight.title}: {insight.description}")

    print("\n💡 Recommendations:")
    for rec in report.recommendations:
        print(f"  - {rec}")


def cmd_analyze(args, config: Config) -> int:
    analyzer = _build_analyzer(args, config)
    print("\n🔍 Analyzing database...")
    report = analyzer.analyze_database()
    print_report(report)

    if args.lineage:
        graph = SchemaAnalyzer().analyze_schema(report.tables)
        print("\n🔗 Insertion order: " + " -> ".join(graph['insertion_order']))
        for cycle in graph['circular_references']:
            print(f"  ⚠️ Circular reference: {' <-> '.join(cycle)}")
        for rel in graph['implicit_relationships']:
            print(f"  {rel['from_table']}.{rel['from_column']} -> {rel['to_table']}.{rel['to_column']} "
                  f"[{rel['type']}] (confidence: {rel['confidence']:.0%})")

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
        print(f"\n💾 Report saved to {args.output}")

    if args.notify:
        NotificationManager(config.alert_settings).send_report_digest(report)

    return 0


def cmd_compare(args, config: Config) -> int:
    comparison = ComparisonEngine().compare_reports(_load_report(args.old), _load_report(args.new))
    summary = comparison.summary

    print(f"\n🔄 {summary.total_changes} changes "
          f"({summary.schema_changes} schema, {summary.data_changes} data)")
    print(f"   Impact: {summary.high_impact} high, {summary.medium_impact} medium, {summary.low_impact} low")
    for change in comparison.changes:
        print(f"  [{change.impact.upper()}] {change.description}")

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(comparison.to_dict(), f, indent=2, ensure_ascii=False)
    return 0


def cmd_watch(args, config: Config) -> int:
    analyzer = _build_analyzer(args, config)
    alerts = build_alert_manager(config)
    notifier = NotificationManager(config.alert_settings) if args.notify else None
    interval = args.interval or config.analysis_settings.auto_analysis_interval

    def on_report(report: DatabaseReport):
        print(f"\n🕒 Analysis at {report.analysis_time:%Y-%m-%d %H:%M:%S}: "
              f"health {report.summary.health_score:.2f}, {len(report.insights)} insights")
        triggered = alerts.check_alerts(report)
        for alert in triggered:
            print(f"  🚨 [{alert.severity.value.upper()}] {alert.name}: {alert.message}")
        if notifier is not None:
            notifier.notify_alerts(triggered, report.database_name)

    scheduler = Scheduler(analyzer)
    scheduler.start(interval, on_report)
    print(f"\n👀 Watching database every {interval}. Press Ctrl+C to stop.")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\n\n👋 Stopping...")
    finally:
        scheduler.stop()
    return 0


def cmd_suggest(args, config: Config) -> int:
    optimizer = QueryOptimizer()
    suggestion = optimizer.analyze_query(args.sql)

    print(f"\n🛠️ {suggestion.explanation}")
    print(f"   Expected gain: {suggestion.expected_gain} (confidence {suggestion.confidence:.0%})")
    print("\nSuggested query:")
    print(suggestion.optimized_query)

    if args.url or args.env_file:
        report = _build_analyzer(args, config).analyze_database()
        performance = optimizer.analyze_query_performance(args.sql, report)
        for rec in performance['recommendations']:
            print(f"  - {rec}")
        for issue in performance['potential_issues']:
            print(f"  ⚠️ {issue}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbinsight",
        description="Schema and data profiling for relational and document databases"
    )
    parser.add_argument("--config", default="", help="JSON config file (created with defaults if missing)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_connection_args(sub):
        sub.add_argument("--url", help="Database URL (defaults to DATABASE_URL / MONGODB_URL / DB_* variables)")
        sub.add_argument("--env-file", default=None, help=".env file to load")

    analyze = subparsers.add_parser("analyze", help="Analyze a database once")
    add_connection_args(analyze)
    analyze.add_argument("--output", help="Write the report as JSON")
    analyze.add_argument("--lineage", action="store_true", help="Show dependency order and implicit relationships")
    analyze.add_argument("--notify", action="store_true", help="Send the report digest to configured channels")
    analyze.set_defaults(handler=cmd_analyze)

    compare = subparsers.add_parser("compare", help="Compare two saved JSON reports")
    compare.add_argument("old")
    compare.add_argument("new")
    compare.add_argument("--output", help="Write the comparison as JSON")
    compare.set_defaults(handler=cmd_compare)

    watch = subparsers.add_parser("watch", help="Re-analyze periodically and evaluate alerts")
    add_connection_args(watch)
    watch.add_argument("--interval", help="Interval such as 30m, 1h30m or 24h")
    watch.add_argument("--notify", action="store_true", help="Send triggered alerts to configured channels")
    watch.set_defaults(handler=cmd_watch)

    suggest = subparsers.add_parser("suggest", help="Suggest improvements for a SQL query")
    add_connection_args(suggest)
    suggest.add_argument("sql")
    suggest.set_defaults(handler=cmd_suggest)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        manager = ConfigManager()
        config = manager.load_config(args.config)
        manager.validate_config(config)
        return args.handler(args, config)
    except (DBInsightError, ValueError, OSError) as e:
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
