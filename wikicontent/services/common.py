import csv
import io
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Union, Callable, Tuple, Type

import orjson
from pydantic import BaseModel, ValidationError

from wikicontent.config import ARRAY_SEPARATOR, ISO_DATE_RE, SUPPORTED_LANGUAGES
from wikicontent.models import LocalizedString, RecordValidationIssue


def parse_csv(text: str) -> List[Dict[str, str]]:
    """
    Parses CSV text into one dict per row. Headers and values are trimmed,
    a UTF-8 BOM is tolerated and blank lines are skipped.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
    rows: List[Dict[str, str]] = []
    for raw_row in reader:
        row = {key: (value or "").strip() for key, value in raw_row.items() if key is not None}
        if any(row.values()):
            rows.append(row)
    return rows

def parse_json_records(text: Union[str, bytes]) -> List[Dict[str, Any]]:
    """A JSON dataset is either a list of objects or {"data": [...]}."""
    payload = orjson.loads(text)
    if isinstance(payload, dict):
        payload = payload.get("data", payload.get("items"))
    if not isinstance(payload, list):
        raise ValueError("JSON dataset must be a list of records")
    return [row for row in payload if isinstance(row, dict)]

def has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and value.strip() == "":
        return False
    return True

def parse_array(value: Any) -> List[str]:
    """
    'a|b|c' -> ['a', 'b', 'c']. JSON array strings and real lists are accepted
    too, since JSON datasets carry arrays natively.
    """
    if not has_value(value):
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if has_value(item)]
    text = str(value).strip()
    if text.startswith("["):
        try:
            parsed = orjson.loads(text)
        except orjson.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if has_value(item)]
    return [part.strip() for part in text.split(ARRAY_SEPARATOR) if part.strip()]

def parse_json_value(value: Any) -> Any:
    """Decodes JSON-encoded cells such as stats; non-strings pass through."""
    if not has_value(value):
        return None
    if not isinstance(value, str):
        return value
    return orjson.loads(value)

def parse_int(value: Any) -> Optional[int]:
    if not has_value(value):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        number = parse_float(value)
        if number is not None and number.is_integer():
            return int(number)
        raise

def parse_float(value: Any) -> Optional[float]:
    if not has_value(value):
        return None
    return float(str(value).strip())

def parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if not has_value(value):
        return False
    return str(value).strip().lower() in ("true", "1", "yes", "y")

def parse_date(value: Any) -> Optional[datetime]:
    """
    Parses YYYY-MM-DD or a full ISO timestamp. Aware timestamps are converted
    to naive UTC so every parsed date compares against every other.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not has_value(value):
        return None
    else:
        text = str(value).strip()
        if not ISO_DATE_RE.match(text):
            raise ValueError(f"Invalid date '{text}', expected YYYY-MM-DD")
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def localized_from_row(row: Dict[str, Any], field_name: str) -> LocalizedString:
    """
    Builds a localized string from '<field>_en', '<field>_jp', ... columns.
    The bare '<field>' column is used for English and Japanese when their
    columns are empty.
    """
    bare = row.get(field_name) or ""
    localized: LocalizedString = {}
    for lang in SUPPORTED_LANGUAGES:
        value = row.get(f"{field_name}_{lang}") or ""
        if not value and lang in ("en", "jp"):
            value = bare
        if value or lang == "en":
            localized[lang] = value
    return localized

def optional_localized(row: Dict[str, Any], field_name: str) -> Optional[LocalizedString]:
    """Like localized_from_row, but None when there's no English value."""
    if not (row.get(f"{field_name}_en") or row.get(field_name)):
        return None
    return localized_from_row(row, field_name)

def humanize_key(key: Optional[str]) -> str:
    """'kasumi-kasumi' -> 'Kasumi Kasumi'"""
    if not key:
        return ""
    return " ".join(part.capitalize() for part in key.split("-") if part)

def issues_from_validation_error(
    content_type: str, row_number: int, exc: ValidationError, row: Dict[str, Any]
) -> List[RecordValidationIssue]:
    """Flattens a pydantic ValidationError into one issue per failing field."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "record"
        top_level = str(error["loc"][0]) if error.get("loc") else None
        issues.append(RecordValidationIssue(
            content_type=content_type,
            row=row_number,
            field=field,
            message=error.get("msg", "invalid value"),
            value=row.get(top_level) if top_level else None,
        ))
    return issues

def build_records(
    content_type: str,
    rows: List[Dict[str, Any]],
    transform: Callable[[Dict[str, Any]], Dict[str, Any]],
    model: Type[BaseModel],
    row_offset: int = 2,
) -> Tuple[List[BaseModel], List[RecordValidationIssue]]:
    """
    Transforms and validates raw rows. Rows that fail are dropped and reported
    as issues; a repeated unique_key keeps the first row.
    """
    records: List[BaseModel] = []
    issues: List[RecordValidationIssue] = []
    seen_keys = set()

    for index, row in enumerate(rows):
        row_number = index + row_offset
        try:
            fields = transform(row)
        except (ValueError, TypeError) as e:
            issues.append(RecordValidationIssue(
                content_type=content_type, row=row_number, field="record", message=str(e),
            ))
            continue

        # Absent optional cells fall back to model defaults; absent required ones fail validation.
        fields = {key: value for key, value in fields.items() if value is not None}
        try:
            record = model.model_validate(fields)
        except ValidationError as e:
            issues.extend(issues_from_validation_error(content_type, row_number, e, row))
            continue

        if record.unique_key in seen_keys:
            issues.append(RecordValidationIssue(
                content_type=content_type,
                row=row_number,
                field="unique_key",
                message="duplicate unique_key, keeping the first occurrence",
                value=record.unique_key,
            ))
            continue
        seen_keys.add(record.unique_key)
        records.append(record)

    return records, issues

def base_fields(
    row: Dict[str, Any],
    title: str,
    summary: str,
    category: str,
    default_tags: List[str],
) -> Dict[str, Any]:
    """Columns every content dataset shares."""
    return {
        "id": parse_int(row.get("id")),
        "unique_key": row.get("unique_key") or None,
        "updated_at": row.get("updated_at") or None,
        "title": title,
        "summary": summary,
        "category": category,
        "tags": parse_array(row.get("tags")) or list(default_tags),
        "author": row.get("author") or None,
        "status": row.get("status") or None,
        "related_ids": parse_array(row.get("related_ids")),
        "image": row.get("image") or None,
    }
