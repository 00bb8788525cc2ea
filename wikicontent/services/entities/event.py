# wikicontent/services/entities/event.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Event, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, optional_localized, parse_array, parse_date

def transform_event(row: Dict[str, Any]) -> Dict[str, Any]:
    fields = base_fields(
        row,
        title=row.get("name_en") or row.get("title") or "",
        summary=row.get("description_en") or row.get("summary") or "",
        category="Events",
        default_tags=["Events"],
    )
    fields.update({
        "type": row.get("type") or None,
        "event_status": row.get("event_status") or None,
        "start_date": parse_date(row.get("start_date")),
        "end_date": parse_date(row.get("end_date")),
        "rewards": parse_array(row.get("rewards_en") or row.get("rewards")),
        "how_to_participate": parse_array(row.get("how_to_participate_en") or row.get("how_to_participate")),
        "tips": parse_array(row.get("tips_en") or row.get("tips")),
        "gacha_ids": parse_array(row.get("gacha_ids")),
        "episode_ids": parse_array(row.get("episode_ids")),
        "mission_ids": parse_array(row.get("mission_ids")),
        "name": localized_from_row(row, "name"),
        "description": optional_localized(row, "description"),
    })
    return fields

def process_events(rows: List[Dict[str, Any]]) -> Tuple[List[Event], List[RecordValidationIssue]]:
    return build_records(ContentType.EVENT.value, rows, transform_event, Event)
