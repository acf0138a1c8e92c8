"""
Schema graph analysis: lineage, dependency ordering and relationship detection
"""

import networkx as nx
from datetime import datetime
from typing import Dict, List, Any, Tuple

from ..database.models import DataLineage, LineageDependency, Table


class SchemaAnalyzer:
    """Analyze table relationships as a directed dependency graph.

    An edge ``a -> b`` means table ``a`` references table ``b``.
    """

    def __init__(self):
        self.relationship_graph = nx.DiGraph()

    def analyze_schema(self, tables: List[Table]) -> Dict[str, Any]:
        """Analyze tables and return graph insights"""
        self.build_graph(tables)

        return {
            'lineage': self.track_lineage(tables),
            'implicit_relationships': self.detect_implicit_relationships(tables),
            'dependencies': self.table_dependencies(tables),
            'circular_references': self.find_circular_references(),
            'isolated_tables': self.find_isolated_tables(),
            'insertion_order': self.insertion_order(tables),
            'deletion_order': list(reversed(self.insertion_order(tables)))
        }

    def build_graph(self, tables: List[Table]):
        self.relationship_graph.clear()

        for table in tables:
            self.relationship_graph.add_node(table.name)

        for table in tables:
            for rel in table.relationships:
                self.relationship_graph.add_edge(
                    table.name,
                    rel.target_table,
                    source_column=rel.source_column,
                    target_column=rel.target_column,
                    relationship_type=rel.relationship_type
                )

    def track_lineage(self, tables: List[Table]) -> Dict[str, DataLineage]:
        """Upstream (referenced) and downstream (referencing) tables for each table"""
        now = datetime.now()
        lineage = {table.name: DataLineage(table_name=table.name, last_updated=now) for table in tables}

        for table in tables:
            for rel in table.relationships:
                if rel.relationship_type != 'foreign_key':
                    continue
                lineage[table.name].upstream.append(LineageDependency(
                    table_name=rel.target_table,
                    column_name=rel.target_column,
                    dependency_type=rel.relationship_type
                ))
                if rel.target_table in lineage:
                    lineage[rel.target_table].downstream.append(LineageDependency(
                        table_name=table.name,
                        column_name=rel.source_column,
                        dependency_type=rel.relationship_type
                    ))

        return lineage

    def get_lineage_for_table(self, table_name: str, tables: List[Table]) -> DataLineage:
        lineage = self.track_lineage(tables)
        if table_name not in lineage:
            raise KeyError(f"table {table_name} not found")
        return lineage[table_name]

    def detect_implicit_relationships(self, tables: List[Table]) -> List[Dict[str, Any]]:
        """Columns named ``<table>_id`` that are not declared foreign keys"""
        implicit_rels = []
        names = {table.name.lower(): table.name for table in tables}

        for table in tables:
            declared = {(rel.source_column, rel.target_table) for rel in table.relationships}

            for column in table.columns:
                col_name = column.name.lower()
                if not col_name.endswith('_id'):
                    continue

                target = names.get(col_name[:-3]) or names.get(col_name[:-3] + 's')
                if target is None or target == table.name:
                    continue
                if (column.name, target) in declared:
                    continue

                implicit_rels.append({
                    'from_table': table.name,
                    'from_column': column.name,
                    'to_table': target,
                    'to_column': 'id',
                    'type': 'implicit_foreign_key',
                    'confidence': 0.8
                })

        return implicit_rels

    def table_dependencies(self, tables: List[Table]) -> Dict[str, List[str]]:
        """Tables each table references, in declaration order"""
        dependencies = {}
        for table in tables:
            dependencies[table.name] = []
            for rel in table.relationships:
                if rel.target_table not in dependencies[table.name]:
                    dependencies[table.name].append(rel.target_table)
        return dependencies

    def find_circular_references(self) -> List[List[str]]:
        return [sorted(cycle) for cycle in nx.simple_cycles(self.relationship_graph)]

    def find_isolated_tables(self) -> List[str]:
        """Tables that neither reference nor are referenced by another table"""
        return sorted(node for node in self.relationship_graph.nodes
                      if self.relationship_graph.degree(node) == 0)

    def insertion_order(self, tables: List[Table]) -> List[str]:
        """Order in which tables can be populated without violating foreign keys"""
        graph = self.relationship_graph.copy()
        graph.remove_edges_from(list(nx.selfloop_edges(graph)))

        try:
            # referenced tables come before the tables referencing them
            return list(nx.lexicographical_topological_sort(graph.reverse(copy=False)))
        except nx.NetworkXUnfeasible:
            dependencies = self.table_dependencies(tables)
            return sorted(dependencies, key=lambda name: (len(dependencies[name]), name))

    def validate_insert_order(self, order: List[str], tables: List[Table]) -> Tuple[bool, List[str]]:
        """Check that every table comes after the tables it references"""
        dependencies = self.table_dependencies(tables)
        errors = []
        inserted = set()

        for name in order:
            missing = [dep for dep in dependencies.get(name, []) if dep != name and dep not in inserted]
            if missing:
                errors.append(f"Table '{name}' requires tables {missing} to be inserted first")
            inserted.add(name)

        return len(errors) == 0, errors
