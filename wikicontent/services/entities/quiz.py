# wikicontent/services/entities/quiz.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Quiz, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, parse_array, parse_int

def transform_quiz(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Quizzes ship as JSON, so list and number columns may already be typed;
    the parse helpers accept both.
    """
    row = {key: value for key, value in row.items()}
    if isinstance(row.get("name"), dict):
        # Nested {"name": {"en": ..., "jp": ...}} form.
        for lang, value in row.pop("name").items():
            row.setdefault(f"name_{lang}", value)
    if isinstance(row.get("description"), dict):
        for lang, value in row.pop("description").items():
            row.setdefault(f"description_{lang}", value)
    if isinstance(row.get("tags"), list):
        row["tags"] = parse_array(row["tags"])
    if row.get("id") is not None:
        row["id"] = str(row["id"])

    fields = base_fields(
        row,
        title=row.get("name_en") or row.get("title") or "",
        summary=row.get("description_en") or row.get("summary") or "",
        category=row.get("category") or "",
        default_tags=[],
    )
    fields.update({
        "difficulty": row.get("difficulty") or None,
        "time_limit": parse_int(row.get("time_limit")) or 0,
        "question_count": parse_int(row.get("question_count")) or 0,
        "questions_ref": row.get("questions_ref") or "",
        "status": row.get("status") or "draft",
        "name": localized_from_row(row, "name"),
        "description": localized_from_row(row, "description"),
    })
    return fields

def process_quizzes(rows: List[Dict[str, Any]]) -> Tuple[List[Quiz], List[RecordValidationIssue]]:
    return build_records(ContentType.QUIZ.value, rows, transform_quiz, Quiz)
