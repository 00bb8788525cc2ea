# wikicontent/services/entities/character.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import Character, ContentType, RecordValidationIssue
from wikicontent.services.common import base_fields, build_records, localized_from_row, optional_localized, parse_json_value

# Profile fields that only appear when the dataset has an English value for them.
OPTIONAL_PROFILE_FIELDS = ("age", "measurements", "blood_type", "job", "food", "color", "cast")

def transform_character(row: Dict[str, Any]) -> Dict[str, Any]:
    title = row.get("name_en") or row.get("title") or ""
    fields = base_fields(
        row,
        title=title,
        summary=row.get("summary") or f"{title or 'Character'} - {row.get('type')} Character",
        category="Characters",
        default_tags=["Stats"],
    )
    fields.update({
        "type": row.get("type") or None,
        "stats": parse_json_value(row.get("stats")),
        "name": localized_from_row(row, "name"),
        "birthday": localized_from_row(row, "birthday"),
        "height": localized_from_row(row, "height"),
        "hobby": localized_from_row(row, "hobby"),
    })
    for field_name in OPTIONAL_PROFILE_FIELDS:
        fields[field_name] = optional_localized(row, field_name)
    return fields

def process_characters(rows: List[Dict[str, Any]]) -> Tuple[List[Character], List[RecordValidationIssue]]:
    return build_records(ContentType.CHARACTER.value, rows, transform_character, Character)
