"""
Conversion of dialect-specific introspection rows into the normalized model
"""

from datetime import datetime
from typing import Dict, List, Any, Iterable, Optional

from .models import Column, Constraint, DataProfile, Index, Relationship, Table, ValueKind


def _as_int(value: Any) -> int:
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def classify_value(value: Any) -> ValueKind:
    """Runtime kind of a decoded document value.

    bool is tested before int because Python booleans are integers.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.DOUBLE
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    return ValueKind.MIXED


def _merge_kind(current: Optional[ValueKind], seen: ValueKind) -> ValueKind:
    if current is None or current is ValueKind.NULL:
        return seen
    if seen is ValueKind.NULL or seen is current:
        return current
    return ValueKind.MIXED


def _walk_document(doc: Dict[str, Any], fields: Dict[str, Dict[str, Any]], prefix: str = ""):
    for key, value in doc.items():
        name = f"{prefix}.{key}" if prefix else key
        kind = classify_value(value)

        entry = fields.get(name)
        if entry is None:
            entry = {'name': name, 'kind': None, 'count': 0, 'null_count': 0, 'sample_value': value}
            fields[name] = entry

        entry['count'] += 1
        if kind is ValueKind.NULL:
            entry['null_count'] += 1
        entry['kind'] = _merge_kind(entry['kind'], kind)

        if kind is ValueKind.OBJECT:
            _walk_document(value, fields, name)


def analyze_documents(documents: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-field frequency statistics over sampled documents.

    Nested documents are flattened into dotted paths, each with its own
    entry. Fields are reported in the order they were first seen.
    """
    fields: Dict[str, Dict[str, Any]] = {}
    total_docs = 0

    for doc in documents:
        total_docs += 1
        _walk_document(doc, fields)

    stats = []
    for entry in fields.values():
        kind = entry['kind'] or ValueKind.NULL
        stats.append({
            'name': entry['name'],
            'type': kind.value,
            'frequency': entry['count'] / total_docs if total_docs else 0.0,
            'nullable': entry['null_count'] > 0 or entry['count'] < total_docs,
            'sample_value': entry['sample_value']
        })
    return stats


def get_path(doc: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted path inside a document, None when absent"""
    value: Any = doc
    for part in path.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def normalize_columns(rows: List[Dict[str, Any]]) -> List[Column]:
    """Relational column rows or document field statistics to Column objects"""
    columns = []
    for row in rows:
        default = row.get('default')
        columns.append(Column(
            name=row['name'],
            data_type=str(row.get('type') or ''),
            is_nullable=bool(row.get('nullable', True)),
            is_primary_key=bool(row.get('primary_key', False)),
            default_value=str(default) if default is not None else None,
            max_length=_as_int(row.get('max_length')),
            precision=_as_int(row.get('precision')),
            scale=_as_int(row.get('scale')),
            data_profile=DataProfile(),
            frequency=row.get('frequency')
        ))
    return columns


def normalize_indexes(rows: List[Dict[str, Any]]) -> List[Index]:
    """Index rows to Index objects.

    Rows may carry a full ``columns`` list, a single ``column`` (one row per
    indexed column, merged by index name) or a document-store ``key`` document.
    """
    indexes: Dict[str, Index] = {}
    for row in rows:
        name = row.get('name')
        if not name:
            continue

        if 'key' in row:
            columns = list((row.get('key') or {}).keys())
        elif 'columns' in row:
            columns = [c for c in row.get('columns') or [] if c]
        else:
            columns = [row['column']] if row.get('column') else []

        index = indexes.get(name)
        if index is None:
            indexes[name] = Index(
                name=name,
                columns=columns,
                is_unique=bool(row.get('unique', False)),
                index_type=row.get('type') or 'btree'
            )
        else:
            index.columns.extend(c for c in columns if c not in index.columns)
    return list(indexes.values())


def normalize_constraints(rows: List[Dict[str, Any]]) -> List[Constraint]:
    """Constraint rows (one per constrained column) to Constraint objects"""
    constraints: Dict[str, Constraint] = {}
    for row in rows:
        name = row.get('name')
        if not name:
            continue

        constraint = constraints.get(name)
        if constraint is None:
            constraint = Constraint(
                name=name,
                constraint_type=str(row.get('type') or '').upper(),
                ref_table=row.get('ref_table')
            )
            constraints[name] = constraint

        column = row.get('column')
        if column and column not in constraint.columns:
            constraint.columns.append(column)
        ref_column = row.get('ref_column')
        if ref_column and ref_column not in constraint.ref_columns:
            constraint.ref_columns.append(ref_column)
        if constraint.ref_table is None and row.get('ref_table'):
            constraint.ref_table = row['ref_table']
    return list(constraints.values())


def normalize_relationships(rows: List[Dict[str, Any]]) -> List[Relationship]:
    relationships = []
    for row in rows:
        if not row.get('ref_table'):
            continue
        relationships.append(Relationship(
            source_column=row.get('column') or '',
            target_table=row['ref_table'],
            target_column=row.get('ref_column') or '',
            relationship_type='foreign_key'
        ))
    return relationships


def normalize_table(name: str,
                    row_count: int = 0,
                    columns: Optional[List[Dict[str, Any]]] = None,
                    indexes: Optional[List[Dict[str, Any]]] = None,
                    constraints: Optional[List[Dict[str, Any]]] = None,
                    relationships: Optional[List[Dict[str, Any]]] = None,
                    size: Optional[str] = None,
                    is_partitioned: bool = False,
                    last_modified: Optional[datetime] = None) -> Table:
    """Assemble a Table from raw rows; absent metadata takes defaults"""
    return Table(
        name=name,
        row_count=max(_as_int(row_count), 0),
        columns=normalize_columns(columns or []),
        indexes=normalize_indexes(indexes or []),
        constraints=normalize_constraints(constraints or []),
        relationships=normalize_relationships(relationships or []),
        size=size or "Unknown",
        last_modified=last_modified,
        is_partitioned=bool(is_partitioned)
    )
