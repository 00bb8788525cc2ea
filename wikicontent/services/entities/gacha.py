# wikicontent/services/entities/gacha.py
from typing import List, Dict, Any, Tuple
from wikicontent.models import ContentType, Gacha, RecordValidationIssue
from wikicontent.services.common import (
    base_fields, build_records, localized_from_row, parse_array, parse_boolean, parse_date, parse_float, parse_int
)

DEFAULT_RATES = {"ssr": 3.0, "sr": 17.0, "r": 80.0}
DEFAULT_PITY = 100

def transform_gacha(row: Dict[str, Any]) -> Dict[str, Any]:
    # Gacha datasets may use 'slug' instead of 'unique_key'.
    if not row.get("unique_key") and row.get("slug"):
        row = {**row, "unique_key": row["slug"]}
    title = row.get("name_en") or row.get("title") or ""
    fields = base_fields(row, title=title, summary=row.get("summary") or "", category="Gachas", default_tags=["Gacha"])

    rates = {}
    for tier, default in DEFAULT_RATES.items():
        rates[tier] = parse_float(row.get(f"rates_{tier}")) or default
    pity_at = parse_int(row.get("pity_at"))

    fields.update({
        "name": localized_from_row(row, "name"),
        "gacha_status": row.get("gacha_status") or None,
        "start_date": parse_date(row.get("start_date")),
        "end_date": parse_date(row.get("end_date")),
        "rates": rates,
        "pity_at": pity_at if pity_at else DEFAULT_PITY,
        "step_up": parse_boolean(row.get("step_up")),
        "featured_swimsuits": parse_array(row.get("featured_swimsuits")),
        "featured_characters": parse_array(row.get("featured_characters")),
    })
    return fields

def process_gachas(rows: List[Dict[str, Any]]) -> Tuple[List[Gacha], List[RecordValidationIssue]]:
    return build_records(ContentType.GACHA.value, rows, transform_gacha, Gacha)
