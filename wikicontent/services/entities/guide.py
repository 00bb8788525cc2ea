# wikicontent/services/entities/guide.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Guide, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, parse_array

def transform_guide(row: Dict[str, Any]) -> Dict[str, Any]:
    topics = parse_array(row.get("topics"))
    fields = base_fields(
        row,
        title=row.get("title_en") or row.get("title") or "",
        summary=row.get("summary_en") or row.get("summary") or "",
        category=row.get("category_id") or row.get("category") or "beginner",
        default_tags=topics or ["Guide"],
    )
    fields.update({
        "content_ref": row.get("content_ref") or None,
        "difficulty": row.get("difficulty") or None,
        "read_time": row.get("read_time") or None,
        "topics": topics,
        "localized_title": localized_from_row(row, "title"),
        "localized_summary": localized_from_row(row, "summary"),
    })
    return fields

def process_guides(rows: List[Dict[str, Any]]) -> Tuple[List[Guide], List[RecordValidationIssue]]:
    return build_records(ContentType.GUIDE.value, rows, transform_guide, Guide)
