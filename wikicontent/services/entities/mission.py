# wikicontent/services/entities/mission.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Mission, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, optional_localized, parse_array

def transform_mission(row: Dict[str, Any]) -> Dict[str, Any]:
    fields = base_fields(
        row,
        title=row.get("name_en") or row.get("title") or "",
        summary=row.get("description_en") or row.get("summary") or "",
        category=row.get("category") or "Mission",
        default_tags=["Mission"],
    )
    fields.update({
        "type": row.get("type") or None,
        "event_id": row.get("event_id") or None,
        "objectives": parse_array(row.get("objectives")),
        "rewards": parse_array(row.get("rewards")),
        "requirements": parse_array(row.get("requirements")),
        "name": localized_from_row(row, "name"),
        "description": optional_localized(row, "description"),
    })
    return fields

def process_missions(rows: List[Dict[str, Any]]) -> Tuple[List[Mission], List[RecordValidationIssue]]:
    return build_records(ContentType.MISSION.value, rows, transform_mission, Mission)
