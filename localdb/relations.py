from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from . import query
from .errors import QueryOptionsError

Document = dict[str, Any]
Loader = Callable[[str], list[Document]]
RelationsOf = Callable[[str], Sequence["Relation"]]

COUNT_KEY = "_count"
RELATED_QUERY_OPTIONS = frozenset({"where", "select", "include", "orderBy", "skip", "take"})


@dataclass(frozen=True)
class Relation:
    """
    A link from documents of one collection to documents of `target`.

    Related documents are those whose `foreign_field` equals the current
    document's `local_field`. Belongs-to relations use a natural key on both
    sides (User.userId <- Student.userId); has-many relations store the
    current document's internal id on the related side
    (Vocabulary.id <- Word.vocabularyId).
    """

    name: str
    target: str
    local_field: str
    foreign_field: str
    many: bool = False


@dataclass(frozen=True)
class Reference:
    """
    A write-side foreign key: `field` may be given as the natural key of a
    `target` document and is stored as that document's `id_field` instead.
    """

    field: str
    target: str
    natural_key: str
    id_field: str = "id"


class CachingLoader:
    """Loads each collection at most once while resolving a single call."""

    def __init__(self, loader: Loader):
        self._loader = loader
        self._loaded: dict[str, list[Document]] = {}

    def __call__(self, collection: str) -> list[Document]:
        docs = self._loaded.get(collection)
        if docs is None:
            docs = self._loader(collection)
            self._loaded[collection] = docs
        return docs


def merge_relation_select(
    include: Mapping[str, Any] | None,
    select: Mapping[str, Any] | None,
    relation_names: Sequence[str],
) -> dict[str, Any]:
    """
    Relations may be requested through `include` or by naming them in `select`;
    return a single include spec covering both.
    """
    spec = dict(include or {})
    for key, flag in (select or {}).items():
        if flag and (key in relation_names or key == COUNT_KEY):
            spec.setdefault(key, flag)
    return spec


def resolve_includes(
    loader: Loader,
    relations_of: RelationsOf,
    collection: str,
    docs: Sequence[Document],
    spec: Mapping[str, Any] | None,
) -> list[Document]:
    """
    Attach requested relations to every document in `docs`.

    Each relation is a linear scan of the related collection per document; at
    large collection sizes this is the dominant cost of a query.
    """
    if not spec:
        return [dict(d) for d in docs]
    if not isinstance(loader, CachingLoader):
        loader = CachingLoader(loader)
    relations = {r.name: r for r in relations_of(collection)}
    unknown = [name for name in spec if name != COUNT_KEY and name not in relations]
    if unknown:
        raise QueryOptionsError(f"Unknown relation(s) for {collection!r}: {unknown}")
    return [_include_one(loader, relations_of, relations, d, spec) for d in docs]


def _include_one(
    loader: Loader,
    relations_of: RelationsOf,
    relations: Mapping[str, Relation],
    doc: Document,
    spec: Mapping[str, Any],
) -> Document:
    out = dict(doc)
    for name, opts in spec.items():
        if not opts:
            continue
        if name == COUNT_KEY:
            out[COUNT_KEY] = _count_relations(loader, relations, doc, opts)
            continue
        rel = relations[name]
        out[name] = _resolve(loader, relations_of, rel, doc, opts if isinstance(opts, Mapping) else {})
    return out


def _related_candidates(loader: Loader, rel: Relation, doc: Mapping[str, Any]) -> list[Document]:
    key = doc.get(rel.local_field)
    if key is None:
        return []
    return [d for d in loader(rel.target) if d.get(rel.foreign_field) == key]


def _resolve(
    loader: Loader,
    relations_of: RelationsOf,
    rel: Relation,
    doc: Mapping[str, Any],
    opts: Mapping[str, Any],
) -> Document | list[Document] | None:
    unknown = set(opts) - RELATED_QUERY_OPTIONS
    if unknown:
        raise QueryOptionsError(f"Unsupported options for relation {rel.name!r}: {sorted(unknown)}")

    candidates = _related_candidates(loader, rel, doc)
    if rel.many:
        related = query.find(
            candidates,
            where=opts.get("where"),
            order_by=opts.get("orderBy"),
            skip=opts.get("skip"),
            take=opts.get("take"),
        )
    else:
        related = candidates[:1]

    select = opts.get("select")
    nested = merge_relation_select(
        opts.get("include"), select, [r.name for r in relations_of(rel.target)]
    )
    if nested:
        related = resolve_includes(loader, relations_of, rel.target, related, nested)
    related = [query.project(d, select) for d in related]

    if rel.many:
        return related
    return related[0] if related else None


def _count_relations(
    loader: Loader,
    relations: Mapping[str, Relation],
    doc: Mapping[str, Any],
    opts: Any,
) -> dict[str, int]:
    if opts is True:
        wanted: dict[str, Any] = {r.name: True for r in relations.values() if r.many}
    elif isinstance(opts, Mapping) and isinstance(opts.get("select"), Mapping):
        wanted = {k: v for k, v in opts["select"].items() if v}
    else:
        raise QueryOptionsError("_count expects True or {'select': {relation: True}}")

    counts: dict[str, int] = {}
    for name, flag in wanted.items():
        rel = relations.get(name)
        if rel is None or not rel.many:
            raise QueryOptionsError(f"Cannot count {name!r}: not a has-many relation")
        where = flag.get("where") if isinstance(flag, Mapping) else None
        counts[name] = query.count(_related_candidates(loader, rel, doc), where)
    return counts


def translate_references(
    loader: Loader,
    references: Sequence[Reference],
    values: Mapping[str, Any] | None,
) -> dict[str, Any] | None:
    """
    Rewrite natural-key references in `values` (create data or a where clause)
    to the referenced document's internal id. Values that match no natural key
    are left as they are, since they may already be internal ids. Clauses
    nested under AND/OR/NOT are rewritten too.
    """
    if values is None:
        return None
    out = dict(values)
    for key in out.keys() & query.LOGICAL_OPERATORS:
        clause = out[key]
        if isinstance(clause, Mapping):
            out[key] = translate_references(loader, references, clause)
        elif isinstance(clause, (list, tuple)):
            out[key] = [
                translate_references(loader, references, c) if isinstance(c, Mapping) else c
                for c in clause
            ]
    for ref in references:
        if ref.field not in out:
            continue
        lookup = {
            d.get(ref.natural_key): d.get(ref.id_field)
            for d in loader(ref.target)
            if d.get(ref.natural_key) is not None
        }
        out[ref.field] = _translate_value(lookup, out[ref.field])
    return out


def _translate_value(lookup: Mapping[Any, Any], value: Any) -> Any:
    if isinstance(value, Mapping):
        return {op: _translate_value(lookup, arg) for op, arg in value.items()}
    if isinstance(value, (list, tuple)):
        return [_translate_value(lookup, v) for v in value]
    if isinstance(value, str):
        return lookup.get(value, value)
    return value
