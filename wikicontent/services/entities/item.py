# wikicontent/services/entities/item.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Item, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, optional_localized

def transform_item(row: Dict[str, Any]) -> Dict[str, Any]:
    fields = base_fields(
        row,
        title=row.get("name_en") or row.get("title") or "",
        summary=row.get("description_en") or row.get("summary") or "",
        category="Items",
        default_tags=["Items"],
    )
    fields.update({
        "type": row.get("type") or None,
        "rarity": row.get("rarity") or None,
        "name": localized_from_row(row, "name"),
        "description": optional_localized(row, "description"),
    })
    return fields

def process_items(rows: List[Dict[str, Any]]) -> Tuple[List[Item], List[RecordValidationIssue]]:
    return build_records(ContentType.ITEM.value, rows, transform_item, Item)
