# wikicontent/services/entities/accessory.py
from typing import List, Dict, Any, Tuple

import orjson

from wikicontent.models import Accessory, ContentType, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, optional_localized, parse_array, parse_json_value

def transform_accessory(row: Dict[str, Any]) -> Dict[str, Any]:
    # Broken stats JSON only costs the accessory its stats, not the whole record.
    try:
        stats = parse_json_value(row.get("stats"))
    except orjson.JSONDecodeError:
        stats = None

    fields = base_fields(
        row,
        title=row.get("name_en") or row.get("title") or "",
        summary=row.get("description_en") or row.get("summary") or "",
        category=row.get("category") or "Accessory",
        default_tags=["Accessory"],
    )
    fields.update({
        "rarity": row.get("rarity") or None,
        "character_ids": parse_array(row.get("character_ids")),
        "stats": stats,
        "obtain_method": row.get("obtain_method") or None,
        "obtain_source": row.get("obtain_source") or None,
        "name": localized_from_row(row, "name"),
        "description": optional_localized(row, "description"),
        "effect": optional_localized(row, "effect"),
    })
    return fields

def process_accessories(rows: List[Dict[str, Any]]) -> Tuple[List[Accessory], List[RecordValidationIssue]]:
    return build_records(ContentType.ACCESSORY.value, rows, transform_accessory, Accessory)
