"""Builds the dependency fragment of one record from a dependency query result."""

from __future__ import annotations

from collections.abc import Iterable

from org_check.models.domain import DataDependencies, DependencyData, DependencyItem


def create_dependencies(data: DependencyData, what_ids: Iterable[str | None]) -> DataDependencies:
    """Select the edges touching `what_ids`.

    `using` lists what the ids use, `referenced` lists who references them. If
    any of the ids was in error during the query, only `had_error` is set.
    """
    ids = set(what_ids)
    if any(error_id in ids for error_id in data.errors):
        return DataDependencies(had_error=True)

    using = [
        DependencyItem(id=r.ref_id, name=r.ref_name, type=r.ref_type, url=r.ref_url)
        for r in data.records
        if r.id in ids
    ]
    referenced: list[DependencyItem] = []
    referenced_by_types: dict[str, int] = {}
    for r in data.records:
        if r.ref_id not in ids:
            continue
        referenced_by_types[r.type] = referenced_by_types.get(r.type, 0) + 1
        referenced.append(DependencyItem(id=r.id, name=r.name, type=r.type, url=r.url))

    return DataDependencies(
        had_error=False,
        using=using,
        referenced=referenced,
        referenced_by_types=referenced_by_types,
    )
