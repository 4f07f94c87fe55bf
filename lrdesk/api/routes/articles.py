"""
Articles API Routes (cargo catalog and rates)
"""
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date
import structlog

from lrdesk.api.deps import get_org_context
from lrdesk.db.database import get_db
from lrdesk.errors import ValidationError
from lrdesk.schemas import (
    ArticleCreate, ArticleImportResult, ArticleResponse, ArticleUpdate, BulkRateRequest,
    CustomerRateResponse, CustomerRateUpdate, OrgContext, SortDirection,
)
from lrdesk.tools import article_tools
from lrdesk.tools.csv_tools import export_articles_csv, import_articles, import_template_csv

logger = structlog.get_logger()
router = APIRouter()

ARTICLE_SORT_FIELDS = ("name", "base_rate", "created_at", "updated_at")


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/", response_model=List[ArticleResponse])
async def list_articles(
    search: str = Query("", description="Matches name or description"),
    branch_id: Optional[str] = Query(None),
    sort_field: str = Query("name"),
    sort_direction: Optional[SortDirection] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    if sort_field not in ARTICLE_SORT_FIELDS:
        raise ValidationError(f"Cannot sort articles by {sort_field}", field="sort_field")
    return await article_tools.list_articles(db, ctx, search, branch_id, sort_field, sort_direction)


@router.post("/", response_model=ArticleResponse, status_code=201)
async def create_article(
    request: ArticleCreate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await article_tools.create_article(db, ctx, request)


@router.post("/bulk-rates/preview")
async def preview_bulk_rates(
    request: BulkRateRequest,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Show what a percentage or fixed adjustment would do, without saving."""
    preview = await article_tools.preview_bulk_rates(db, ctx, request)
    return {"count": len(preview), "items": [p.to_dict() for p in preview]}


@router.post("/bulk-rates/apply")
async def apply_bulk_rates(
    request: BulkRateRequest,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    applied = await article_tools.apply_bulk_rates(db, ctx, request)
    return {
        "success": True,
        "message": f"Updated rates for {len(applied)} articles",
        "count": len(applied),
        "items": [a.to_dict() for a in applied],
    }


@router.get("/export")
async def export_articles(
    fields: Optional[str] = Query(None, description="Comma-separated column names"),
    search: str = Query(""),
    branch_id: Optional[str] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Download the catalog as CSV with the selected columns."""
    articles = await article_tools.list_articles(db, ctx, search, branch_id)
    selected = [f.strip() for f in fields.split(",") if f.strip()] if fields else None
    content = export_articles_csv(articles, selected)
    logger.info("Articles exported", rows=len(articles))
    return _csv_response(content, f"articles_export_{date.today().isoformat()}.csv")


@router.get("/import-template")
async def article_import_template():
    return _csv_response(import_template_csv(), "article_import_template.csv")


@router.post("/import", response_model=ArticleImportResult)
async def import_article_csv(
    request: Request,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Import articles from a CSV body.

    Requires ``name`` and ``base_rate`` headers; rows that cannot be
    imported are reported in ``skipped``.
    """
    try:
        content = (await request.body()).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded", field="file")
    return await import_articles(db, ctx, content)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await article_tools.get_article(db, ctx, article_id)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    request: ArticleUpdate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await article_tools.update_article(db, ctx, article_id, request)


@router.get("/{article_id}/customer-rates", response_model=List[CustomerRateResponse])
async def get_customer_rates(
    article_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await article_tools.get_customer_rates(db, ctx, article_id)


@router.put("/{article_id}/customer-rates/{customer_id}", response_model=CustomerRateResponse)
async def set_customer_rate(
    article_id: str,
    customer_id: str,
    request: CustomerRateUpdate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await article_tools.set_customer_rate(db, ctx, article_id, customer_id, request.rate)
