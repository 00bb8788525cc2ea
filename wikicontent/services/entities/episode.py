# wikicontent/services/entities/episode.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Episode, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, optional_localized, parse_array, parse_date

def transform_episode(row: Dict[str, Any]) -> Dict[str, Any]:
    fields = base_fields(
        row,
        title=row.get("name_en") or row.get("title") or "",
        summary=row.get("description_en") or row.get("summary") or "",
        category="Episodes",
        default_tags=["Episodes"],
    )
    fields.update({
        "type": row.get("type") or None,
        "episode_status": row.get("episode_status") or None,
        "release_version": row.get("release_version") or None,
        "release_date": parse_date(row.get("release_date")),
        "character_ids": parse_array(row.get("character_ids")),
        "name": localized_from_row(row, "name"),
        "description": optional_localized(row, "description"),
    })
    return fields

def process_episodes(rows: List[Dict[str, Any]]) -> Tuple[List[Episode], List[RecordValidationIssue]]:
    return build_records(ContentType.EPISODE.value, rows, transform_episode, Episode)
