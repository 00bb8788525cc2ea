# wikicontent/services/entities/swimsuit.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, RecordValidationIssue, Swimsuit
from wikicontent.services.common import (
    base_fields, build_records, humanize_key, localized_from_row, parse_float, parse_int, parse_json_value
)

MAX_SKILLS = 3
INT_STAT_COLUMNS = (
    "max_level", "base_pow", "max_pow", "base_tec", "max_tec",
    "base_stm", "max_stm", "base_apl", "max_apl",
)
GROWTH_COLUMNS = ("pow_growth", "tec_growth", "stm_growth", "apl_growth")

def _skills(row: Dict[str, Any]) -> List[Dict[str, Any]]:
    skills = []
    for slot in range(1, MAX_SKILLS + 1):
        # A skill slot exists only when its English name is filled in.
        if not row.get(f"skill{slot}_name_en"):
            continue
        skills.append({
            "name": localized_from_row(row, f"skill{slot}_name"),
            "description": localized_from_row(row, f"skill{slot}_desc"),
        })
    return skills

def transform_swimsuit(row: Dict[str, Any]) -> Dict[str, Any]:
    title = row.get("name_en") or row.get("title") or ""
    character_id = row.get("character_id") or ""
    fields = base_fields(
        row,
        title=title,
        summary=row.get("summary") or f"{title or 'Swimsuit'} ({row.get('rarity')}) for {character_id}",
        category="Swimsuits",
        default_tags=["Suits"],
    )
    fields.update({
        "rarity": row.get("rarity") or None,
        "character_id": character_id or None,
        "character": humanize_key(character_id),
        "stats": parse_json_value(row.get("stats")),
        "name": localized_from_row(row, "name"),
        "skills": _skills(row),
    })
    for column in INT_STAT_COLUMNS:
        fields[column] = parse_int(row.get(column))
    for column in GROWTH_COLUMNS:
        fields[column] = parse_float(row.get(column))
    return fields

def process_swimsuits(rows: List[Dict[str, Any]]) -> Tuple[List[Swimsuit], List[RecordValidationIssue]]:
    return build_records(ContentType.SWIMSUIT.value, rows, transform_swimsuit, Swimsuit)
