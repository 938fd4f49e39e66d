"""Item kinds the fetch pipeline understands."""

from __future__ import annotations

from enum import Enum


class ItemKind(str, Enum):
    BOARDS = "boards"
    UNIVERSITIES = "universities"
    PAPERS = "papers"
    STREAMS = "streams"
    SUBJECTS = "subjects"
    CHAPTERS = "chapters"
    STRUCTURE = "structure"
    MCQ = "mcq"


ALIASES = {
    "school education boards": ItemKind.BOARDS,
    "board": ItemKind.BOARDS,
    "university": ItemKind.UNIVERSITIES,
    "papers/stages": ItemKind.PAPERS,
    "stream": ItemKind.STREAMS,
    "subject": ItemKind.SUBJECTS,
    "chapter": ItemKind.CHAPTERS,
    "generic": ItemKind.STRUCTURE,
    "generic-structure": ItemKind.STRUCTURE,
    "mcqs": ItemKind.MCQ,
}

LABELS = {
    ItemKind.BOARDS: "School Education Boards",
    ItemKind.UNIVERSITIES: "Universities",
    ItemKind.PAPERS: "Papers/Stages",
    ItemKind.STREAMS: "Streams",
    ItemKind.SUBJECTS: "Subjects",
    ItemKind.CHAPTERS: "Chapters",
    ItemKind.STRUCTURE: "items",
    ItemKind.MCQ: "MCQs",
}


def parse_kind(value: "ItemKind | str") -> ItemKind:
    """Resolves a kind or alias. Unknown values raise ValueError."""
    if isinstance(value, ItemKind):
        return value
    clean = str(value).strip().lower()
    if clean in ALIASES:
        return ALIASES[clean]
    return ItemKind(clean)
