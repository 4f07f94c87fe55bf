"""
CSV Tools

Article catalog import/export and booking export.

Files always start with a header row. Values are quoted by the ``csv``
module, so names and notes may contain commas and quotes.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from datetime import date, datetime
import csv
import io

import structlog
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from lrdesk.errors import ValidationError
from lrdesk.schemas import (
    ArticleCreate, ArticleImportResult, ArticleResponse, ImportSkippedRow, OrgContext,
)
from lrdesk.tools.article_tools import create_article
from lrdesk.tools.directory_tools import find_branch
from lrdesk.tools.filter_tools import get_field

logger = structlog.get_logger()

REQUIRED_IMPORT_HEADERS = ("name", "base_rate")

IMPORT_TEMPLATE_HEADERS = (
    "name",
    "description",
    "base_rate",
    "branch",
    "hsn_code",
    "tax_rate",
    "unit_of_measure",
    "min_quantity",
    "is_fragile",
    "requires_special_handling",
    "notes",
)

IMPORT_TEMPLATE_EXAMPLE = (
    "Garments", "Ready-made garments", "200", "Delhi Branch", "6309",
    "12", "pcs", "1", "true", "true", "Fragile items",
)

ARTICLE_EXPORT_FIELDS = IMPORT_TEMPLATE_HEADERS

BOOKING_EXPORT_FIELDS = (
    "lr_number",
    "created_at",
    "status",
    "payment_type",
    "from_branch",
    "to_branch",
    "sender",
    "receiver",
    "article",
    "quantity",
    "uom",
    "actual_weight",
    "freight_per_qty",
    "loading_charges",
    "unloading_charges",
    "insurance_charge",
    "packaging_charge",
    "total_amount",
)

# Export columns that read from a relation instead of a same-named attribute.
ARTICLE_COLUMN_PATHS = {"branch": "branch_name"}
BOOKING_COLUMN_PATHS = {
    "from_branch": "from_branch_details.name",
    "to_branch": "to_branch_details.name",
    "sender": "sender.name",
    "receiver": "receiver.name",
    "article": "article.name",
}

TRUE_VALUES = {"true", "1", "yes", "y"}


# ==================== Export ====================

def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return getattr(value, "value", value)


def write_csv(
    records: Iterable[Any],
    fields: Sequence[str],
    paths: Optional[Dict[str, str]] = None,
) -> str:
    """Header row of ``fields`` followed by one row per record."""
    paths = paths or {}
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(fields)
    for record in records:
        writer.writerow([_cell(get_field(record, paths.get(name, name))) for name in fields])
    return buffer.getvalue()


def _select_fields(requested: Optional[Sequence[str]], allowed: Sequence[str]) -> Sequence[str]:
    if not requested:
        return allowed
    unknown = [name for name in requested if name not in allowed]
    if unknown:
        raise ValidationError(f"Unknown export fields: {', '.join(unknown)}", field="fields", allowed=list(allowed))
    return list(requested)


def export_articles_csv(articles: Iterable[Any], fields: Optional[Sequence[str]] = None) -> str:
    """
    Raises:
        ValidationError: if ``fields`` names a column that cannot be exported
    """
    return write_csv(articles, _select_fields(fields, ARTICLE_EXPORT_FIELDS), ARTICLE_COLUMN_PATHS)


def export_bookings_csv(bookings: Iterable[Any], fields: Optional[Sequence[str]] = None) -> str:
    return write_csv(bookings, _select_fields(fields, BOOKING_EXPORT_FIELDS), BOOKING_COLUMN_PATHS)


def import_template_csv() -> str:
    return write_csv([dict(zip(IMPORT_TEMPLATE_HEADERS, IMPORT_TEMPLATE_EXAMPLE))], IMPORT_TEMPLATE_HEADERS)


# ==================== Import ====================

@dataclass
class ParsedArticleRow:
    row: int
    values: Dict[str, Any] = field(default_factory=dict)
    branch: str = ""


def _to_float(value: str, default: Optional[float] = None) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: str) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_bool(value: str) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def _optional(value: str) -> Optional[str]:
    return value or None


_IMPORT_CONVERTERS: Dict[str, Callable[[str], Any]] = {
    "description": _optional,
    "base_rate": lambda v: _to_float(v, 0),
    "hsn_code": _optional,
    "tax_rate": _to_float,
    "unit_of_measure": _optional,
    "min_quantity": _to_int,
    "is_fragile": _to_bool,
    "requires_special_handling": _to_bool,
    "notes": _optional,
}


def parse_article_csv(text: str) -> Tuple[List[ParsedArticleRow], List[ImportSkippedRow]]:
    """
    Parse an article CSV into typed rows.

    An unparsable ``base_rate`` becomes 0. Rows without a name are skipped
    and reported; blank lines are ignored. Row numbers are 1-based and
    count the header.

    Raises:
        ValidationError: if the file is empty or misses a required header
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    try:
        headers = [h.strip().lower() for h in next(reader)]
    except StopIteration:
        raise ValidationError("CSV file is empty", field="file")

    missing = [h for h in REQUIRED_IMPORT_HEADERS if h not in headers]
    if missing:
        raise ValidationError(f"Missing required headers: {', '.join(missing)}", field="file")

    rows: List[ParsedArticleRow] = []
    skipped: List[ImportSkippedRow] = []
    for number, values in enumerate(reader, start=2):
        if not any(v.strip() for v in values):
            continue
        raw = {header: (values[i].strip() if i < len(values) else "") for i, header in enumerate(headers)}
        if not raw.get("name"):
            skipped.append(ImportSkippedRow(row=number, reason="Missing name"))
            continue

        parsed = {"name": raw["name"]}
        for column, convert in _IMPORT_CONVERTERS.items():
            if column in raw:
                parsed[column] = convert(raw[column])
        rows.append(ParsedArticleRow(row=number, values=parsed, branch=raw.get("branch", "")))
    return rows, skipped


async def import_articles(db: AsyncSession, ctx: OrgContext, text: str) -> ArticleImportResult:
    """
    Create one article per valid CSV row.

    The ``branch`` column is matched against branch names and codes; rows
    without one go to the context branch. Invalid rows are skipped and
    reported rather than failing the whole import.
    """
    rows, skipped = parse_article_csv(text)
    imported = []
    for parsed in rows:
        branch_id = ctx.branch_id
        if parsed.branch:
            branch = await find_branch(db, ctx, parsed.branch)
            if branch is None:
                skipped.append(ImportSkippedRow(row=parsed.row, reason=f"Unknown branch: {parsed.branch}"))
                continue
            branch_id = branch.id
        if not branch_id:
            skipped.append(ImportSkippedRow(row=parsed.row, reason="No branch given"))
            continue

        try:
            data = ArticleCreate(**parsed.values, branch_id=branch_id)
            article = await create_article(db, ctx, data)
        except (SchemaValidationError, ValidationError) as e:
            skipped.append(ImportSkippedRow(row=parsed.row, reason=str(e).splitlines()[0]))
            continue
        imported.append(ArticleResponse.model_validate(article))

    skipped.sort(key=lambda s: s.row)
    logger.info("Articles imported", imported=len(imported), skipped=len(skipped))
    return ArticleImportResult(imported=len(imported), skipped=skipped, articles=imported)
