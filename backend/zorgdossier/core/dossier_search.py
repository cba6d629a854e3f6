"""Dossier Search — ranked keyword search over one client's notes, measures and incidents.

Invariants:
    - Pure and stateless: documents are rebuilt from the dossier snapshot on every call,
      so deleted records can never be returned
    - A query term matches a document token when the token starts with the term
    - A document matches when at least one query term matches (OR semantics)
    - Scores decay linearly from 100 across the returned hits

Design Decisions:
    - Ranked by number of distinct matched query terms; ties keep document order
      (notes, then measures, then incidents, each newest first)
    - `row` is the 1-based position within its source list, mirroring the CSV row
      the record would have in an export
"""

import re
from dataclasses import dataclass

from zorgdossier.core.dossier import Dossier

_TOKEN = re.compile(r"\w+")
SNIPPET_LENGTH = 150


@dataclass(frozen=True)
class SearchDocument:
    id: str
    source: str
    type: str
    text: str
    date: str
    row: int
    author: str | None = None
    section: str | None = None


@dataclass(frozen=True)
class SearchFilters:
    date_from: str | None = None
    date_to: str | None = None
    section: str | None = None
    author: str | None = None


def build_documents(dossier: Dossier) -> list[SearchDocument]:
    docs = [
        SearchDocument(
            note.id, "notes.csv", "note", note.text, note.date.isoformat(), idx,
            author=note.author, section=note.section,
        )
        for idx, note in enumerate(dossier.notes, 1)
    ]
    for idx, measure in enumerate(dossier.measures, 1):
        comment = f" - {measure.comment}" if measure.comment else ""
        docs.append(SearchDocument(
            measure.id, "measures.csv", "measure",
            f"{measure.type}: {measure.score}{comment}",
            measure.date.isoformat(), idx,
        ))
    for idx, incident in enumerate(dossier.incidents, 1):
        docs.append(SearchDocument(
            incident.id, "incidents.csv", "incident",
            f"{incident.type} ({incident.severity}): {incident.description}",
            incident.date.isoformat(), idx,
        ))
    return docs


def tokenize(text: str) -> list[str]:
    return _TOKEN.findall(text.lower())


def _matched_terms(terms: list[str], tokens: set[str]) -> int:
    return sum(1 for term in terms if any(token.startswith(term) for token in tokens))


def _passes(doc: SearchDocument, filters: SearchFilters | None) -> bool:
    if filters is None:
        return True
    if filters.date_from and doc.date < filters.date_from:
        return False
    if filters.date_to and doc.date > filters.date_to:
        return False
    if filters.section and doc.section != filters.section:
        return False
    if filters.author and doc.author != filters.author:
        return False
    return True


def make_snippet(text: str, query: str, max_length: int = SNIPPET_LENGTH) -> str:
    """Window starting 50 chars before the first query word found in text."""
    lowered = text.lower()
    start = 0
    for word in query.lower().split(" "):
        if not word:
            continue
        idx = lowered.find(word)
        if idx != -1:
            start = max(0, idx - 50)
            break
    snippet = text[start:start + max_length]
    if start > 0:
        snippet = "..." + snippet
    if start + max_length < len(text):
        snippet = snippet + "..."
    return snippet.strip()


def search_dossier(
    dossier: Dossier,
    query: str,
    k: int = 10,
    filters: SearchFilters | None = None,
) -> list[dict]:
    """Top-k hits as {source, row, snippet, score, type, id, date}."""
    terms = tokenize(query)
    if not terms:
        return []

    scored = []
    for position, doc in enumerate(build_documents(dossier)):
        matched = _matched_terms(terms, set(tokenize(doc.text)))
        if matched and _passes(doc, filters):
            scored.append((matched, position, doc))
    scored.sort(key=lambda item: (-item[0], item[1]))
    hits = [doc for _, _, doc in scored[:k]]

    max_score = 100 if hits else 0
    decay = max_score / (len(hits) or 1)
    return [
        {
            "source": doc.source,
            "row": doc.row,
            "snippet": make_snippet(doc.text, query),
            "score": round(max_score - idx * decay, 1),
            "type": doc.type,
            "id": doc.id,
            "date": doc.date,
        }
        for idx, doc in enumerate(hits)
    ]
