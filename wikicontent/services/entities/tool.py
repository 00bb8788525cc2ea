# wikicontent/services/entities/tool.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, RecordValidationIssue, Tool
from wikicontent.services.common import base_fields, build_records, localized_from_row

def transform_tool(row: Dict[str, Any]) -> Dict[str, Any]:
    fields = base_fields(
        row,
        title=row.get("title_en") or row.get("title") or "",
        summary=row.get("summary_en") or row.get("summary") or "",
        category=row.get("category_id") or row.get("category") or "utilities",
        default_tags=["Tools"],
    )
    fields.update({
        "content_ref": row.get("content_ref") or None,
        "windows_path": row.get("windows_path") or None,
        "version": row.get("version") or None,
        "localized_title": localized_from_row(row, "title"),
        "localized_summary": localized_from_row(row, "summary"),
    })
    return fields

def process_tools(rows: List[Dict[str, Any]]) -> Tuple[List[Tool], List[RecordValidationIssue]]:
    return build_records(ContentType.TOOL.value, rows, transform_tool, Tool)
