"""Oxigraph-backed memory store: note bodies, attachments, and a cached index."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pyoxigraph import DefaultGraph, NamedNode, Quad, RdfFormat, Store

from .errors import NoteNotFoundError, ProtectedNoteError
from .logging_config import get_logger
from .markdown_parser import extract_triples
from .models import LONG_TERM, Note
from .paths import get_db_path
from .utils import (
    SB_NS,
    make_concept_uri,
    make_memory_uri,
    make_person_uri,
    note_identity,
    now_iso,
    parse_iso,
    to_utc,
)

logger = get_logger(__name__)

_RDF_TYPE = NamedNode("http://www.w3.org/1999/02/22-rdf-syntax-ns#type")
_MEMORY = NamedNode(f"{SB_NS}Memory")
_HAS_TAG = NamedNode(f"{SB_NS}hasTag")
_MENTIONS = NamedNode(f"{SB_NS}mentions")
_PATH = NamedNode(f"{SB_NS}path")

_FORMAT_MAP: dict[str, RdfFormat] = {
    "turtle": RdfFormat.TURTLE,
    "ttl": RdfFormat.TURTLE,
    "ntriples": RdfFormat.N_TRIPLES,
    "nt": RdfFormat.N_TRIPLES,
    "nquads": RdfFormat.N_QUADS,
    "nq": RdfFormat.N_QUADS,
}


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _normalise_timestamp(value: str) -> str:
    # Oxigraph returns xsd:dateTime in canonical form (``Z`` suffix).
    return parse_iso(value).isoformat() if value else ""


def _resolve_format(fmt: str) -> RdfFormat:
    fmt_lower = fmt.lower().strip()
    if fmt_lower in _FORMAT_MAP:
        return _FORMAT_MAP[fmt_lower]
    raise ValueError(f"Unsupported RDF format: {fmt}. Supported: {list(_FORMAT_MAP.keys())}")


class MemoryStore:
    """Persistent memory store backed by Oxigraph.

    Each write re-derives the memory's tag, contact, and link triples, so the
    index is a cache of note text and never the source of truth.
    """

    def __init__(self, path: Path | None = None):
        db_path = path or get_db_path()
        self._store = Store(str(db_path))

    def insert_triples(self, quads: list[Quad]) -> int:
        """Batch insert quads. Returns number inserted."""
        self._store.extend(quads)
        return len(quads)

    def remove_triples(
        self,
        subject: NamedNode | None = None,
        predicate: NamedNode | None = None,
        obj=None,
    ) -> int:
        """Remove all triples matching the pattern. Returns count removed."""
        quads = list(self._store.quads_for_pattern(subject, predicate, obj, None))
        for q in quads:
            self._store.remove(q)
        return len(quads)

    # ------------------------------------------------------------------
    # Memories
    # ------------------------------------------------------------------
    def get_note(self, path: str) -> Note | None:
        """Return the memory stored at ``path``, or None."""
        subject = NamedNode(make_memory_uri(path))
        values: dict[str, list[str]] = {}
        for q in self._store.quads_for_pattern(subject, None, None, None):
            key = q.predicate.value
            if key.startswith(SB_NS):
                values.setdefault(key[len(SB_NS):], []).append(q.object.value)
        if "path" not in values:
            return None

        def one(key: str) -> str:
            return values.get(key, [""])[0]

        return Note(
            path=one("path"),
            name=one("name"),
            content=one("content"),
            last_modified=_normalise_timestamp(one("modifiedAt")),
            category=one("category"),
            attachments=sorted(values.get("attachment", [])),
        )

    def list_notes(self) -> list[Note]:
        """All memories, most recently modified first."""
        notes = []
        for q in self._store.quads_for_pattern(None, _RDF_TYPE, _MEMORY, None):
            for path_quad in self._store.quads_for_pattern(q.subject, _PATH, None, None):
                note = self.get_note(path_quad.object.value)
                if note is not None:
                    notes.append(note)
        return sorted(
            notes,
            key=lambda n: parse_iso(n.last_modified) if n.last_modified else _EPOCH,
            reverse=True,
        )

    def set_note(self, path: str, content: str, modified_at: datetime | str | None = None) -> Note:
        """Create or replace a memory body, keeping its attachments.

        Raises ValueError for paths that are neither ``MEMORY.md`` nor
        ``memory/<name>.md``.
        """
        name, category = note_identity(path)
        existing = self.get_note(path)
        note = Note(
            path=path,
            name=name,
            content=content,
            last_modified=to_utc(modified_at).isoformat() if modified_at else now_iso(),
            category=category,
            attachments=existing.attachments if existing else [],
        )
        self._write(note)
        logger.info("Saved memory %s (%d chars)", path, len(content))
        return note

    def delete_note(self, path: str) -> bool:
        """Delete a memory. The long-term memory cannot be deleted."""
        note = self.get_note(path)
        if note is None:
            return False
        if note.category == LONG_TERM:
            raise ProtectedNoteError("The long-term memory cannot be deleted", context={"path": path})
        self.remove_triples(subject=NamedNode(make_memory_uri(path)))
        logger.info("Deleted memory %s", path)
        return True

    def add_attachment(self, path: str, reference: str) -> Note:
        note = self._require(path)
        if reference not in note.attachments:
            note.attachments.append(reference)
            self._write(note)
        return note

    def remove_attachment(self, path: str, reference: str) -> Note:
        note = self._require(path)
        if reference in note.attachments:
            note.attachments.remove(reference)
            self._write(note)
        return note

    def _require(self, path: str) -> Note:
        note = self.get_note(path)
        if note is None:
            raise NoteNotFoundError(f"No memory at {path}", context={"path": path})
        return note

    def _write(self, note: Note) -> None:
        self.remove_triples(subject=NamedNode(make_memory_uri(note.path)))
        self.insert_triples(extract_triples(note))

    # ------------------------------------------------------------------
    # Cached index
    # ------------------------------------------------------------------
    def _paths_for(self, predicate: NamedNode, target: NamedNode) -> list[str]:
        paths = []
        for q in self._store.quads_for_pattern(None, predicate, target, None):
            for path_quad in self._store.quads_for_pattern(q.subject, _PATH, None, None):
                paths.append(path_quad.object.value)
        return sorted(paths)

    def memories_for_tag(self, tag: str) -> list[str]:
        """Paths of memories indexed under ``tag``."""
        return self._paths_for(_HAS_TAG, NamedNode(make_concept_uri(tag.lstrip("#"))))

    def memories_mentioning(self, contact_name: str) -> list[str]:
        """Paths of memories indexed as mentioning ``contact_name``."""
        return self._paths_for(_MENTIONS, NamedNode(make_person_uri(contact_name.lstrip("@"))))

    # ------------------------------------------------------------------
    # SPARQL, export, stats
    # ------------------------------------------------------------------
    def query_sparql(self, sparql: str) -> list[dict]:
        """Execute a SPARQL SELECT query and return list of binding dicts."""
        results = self._store.query(sparql)
        rows = []
        for solution in results:
            row = {}
            for var in results.variables:
                val = solution[var]
                if val is not None:
                    row[var.value] = val.value
            rows.append(row)
        return rows

    def export(self, fmt: str = "turtle", path: str | None = None) -> str:
        """Export the store to a file or return as string."""
        rdf_format = _resolve_format(fmt)
        kwargs = {"format": rdf_format}
        if rdf_format in {RdfFormat.TURTLE, RdfFormat.N_TRIPLES}:
            kwargs["from_graph"] = DefaultGraph()
        if path:
            self._store.dump(path, **kwargs)
            return path
        result = self._store.dump(**kwargs)
        if isinstance(result, bytes):
            return result.decode("utf-8")
        return str(result)

    def get_stats(self) -> dict:
        """Return counts of triples, memories, tags, and mentioned people."""
        counts = {}
        for label, pattern in (
            ("memories", f"?x <{_RDF_TYPE.value}> <{_MEMORY.value}>"),
            ("tags", f"?m <{_HAS_TAG.value}> ?x"),
            ("people", f"?m <{_MENTIONS.value}> ?x"),
        ):
            rows = self.query_sparql(f"SELECT (COUNT(DISTINCT ?x) AS ?c) WHERE {{ {pattern} }}")
            counts[label] = int(rows[0].get("c", 0)) if rows else 0
        return {"total_triples": self._count_triples(), **counts}

    def _count_triples(self) -> int:
        result = self.query_sparql("SELECT (COUNT(*) AS ?c) WHERE { ?s ?p ?o }")
        if result:
            return int(result[0].get("c", 0))
        return 0
