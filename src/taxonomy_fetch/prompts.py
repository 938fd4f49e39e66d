"""Prompt builders."""

from __future__ import annotations

from .kinds import LABELS, ItemKind, parse_kind

JSON_ONLY = "Return ONLY valid JSON. Do not wrap it in markdown or ```json fences."


def school_boards_context(state_name: str) -> str:
    return f"State of {state_name}, India"


def school_subjects_context(board_name: str, class_name: str, stream_name: str | None = None) -> str:
    return f"Board: {board_name}, Class: {class_name}, Stream: {stream_name or 'General'}, India"


def school_chapters_context(subject_name: str, board_name: str, class_name: str) -> str:
    return f"Subject: {subject_name}, Board: {board_name}, Class: {class_name}"


def build_boards_prompt(context: str, count: int) -> str:
    return (
        f"{context}. List exactly {count} REAL education boards that govern school education "
        "(Class 1 to Class 12) here.\n"
        "Valid answers look like: \"Central Board of Secondary Education (CBSE)\", "
        "\"Council for the Indian School Certificate Examinations (CISCE)\", "
        "the state's own secondary/higher secondary board, "
        "\"National Institute of Open Schooling (NIOS)\".\n"
        "DO NOT include university boards, entrance exam boards (JEE/NEET/state entrance), "
        "councils of higher education, technical education boards, or any body not related to "
        "school-level education. No generic placeholders.\n"
        "Return a JSON array of strings.\n"
        f"{JSON_ONLY}"
    )


def build_subjects_prompt(context: str, count: int) -> str:
    return (
        f"{context}.\n"
        f"List exactly {count} REAL official compulsory subjects from the authorized syllabus "
        "(e.g. NCERT or the State Board syllabus).\n"
        "Exclude elective or minor subjects. No generic placeholders.\n"
        "Return a JSON array of strings.\n"
        f"{JSON_ONLY}"
    )


def build_chapters_prompt(context: str, count: int) -> str:
    return (
        f"{context}.\n"
        f"Return up to {count} OFFICIALLY CORRECT textbook chapters for this subject.\n"
        "- Use real, specific chapter names from the authorized textbook syllabus for the current academic year.\n"
        "- DO NOT use placeholders like \"Chapter 1\".\n"
        "- Focus on core curriculum content.\n"
        "Return a JSON array of objects with a \"name\" key.\n"
        "Example: [{\"name\": \"Real Numbers\"}, {\"name\": \"Introduction to Trigonometry\"}]\n"
        f"{JSON_ONLY}"
    )


def build_structure_prompt(item_label: str, context: str, count: int) -> str:
    return (
        f"Generate a list of exactly {count} {item_label} for the following context: \"{context}\".\n"
        "Use real, original names only. No generic placeholders.\n"
        "Return the result as a JSON array of strings.\n"
        "Example: [\"First real name\", \"Second real name\"]\n"
        f"{JSON_ONLY}"
    )


def build_mcq_prompt(topic: str, count: int) -> str:
    return (
        f"Generate exactly {count} multiple-choice questions (MCQs) about the topic: \"{topic}\".\n"
        "The output must be a JSON array of objects. Each object must have:\n"
        "- \"question\": (string) The MCQ question.\n"
        "- \"options\": (array of 4 strings) Four distinct options.\n"
        "- \"correct_option\": (integer, 0-3) The index of the correct option.\n"
        "- \"explanation\": (string) Why the answer is correct.\n"
        f"- \"subject\": (string) Set as \"{topic}\".\n"
        "- \"chapter\": (string) A logical chapter name related to the topic.\n"
        f"{JSON_ONLY}"
    )


_KIND_HINTS = {
    ItemKind.UNIVERSITIES: "Strictly provide original university names only.",
    ItemKind.PAPERS: "List the papers or stages of this exam. Strictly original names.",
    ItemKind.STREAMS: (
        "List ONLY the academic streams offered at this class level by this board. "
        "Typical values: Science, Commerce, Arts/Humanities, Vocational."
    ),
}


def build_prompt(kind: ItemKind | str, context: str, count: int, label: str | None = None) -> str:
    """Instruction text for one fetch; `label` names the items of a generic structure."""
    kind = parse_kind(kind)
    if kind is ItemKind.BOARDS:
        return build_boards_prompt(context, count)
    if kind is ItemKind.SUBJECTS:
        return build_subjects_prompt(context, count)
    if kind is ItemKind.CHAPTERS:
        return build_chapters_prompt(context, count)
    if kind is ItemKind.MCQ:
        return build_mcq_prompt(context, count)
    hint = _KIND_HINTS.get(kind)
    full_context = f"{context}. {hint}" if hint else context
    return build_structure_prompt(label or LABELS[kind], full_context, count)
