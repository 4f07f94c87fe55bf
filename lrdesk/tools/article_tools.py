"""
Article Tools

Catalog data access: article CRUD, bulk rate adjustments and
per-customer negotiated rates.
"""
from typing import Any, Dict, List, Optional
import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lrdesk.errors import NotFound, ValidationError
from lrdesk.models.article import Article, CustomerArticleRate
from lrdesk.schemas import ArticleCreate, ArticleUpdate, BulkRateRequest, OrgContext
from lrdesk.tools.audit_tools import record_audit
from lrdesk.tools.directory_tools import get_branch, get_customer
from lrdesk.tools.filter_tools import filter_articles
from lrdesk.tools.pricing_tools import RateAdjustment, preview_bulk_adjustment
from lrdesk.tools.sort_tools import SortState

logger = structlog.get_logger()


def _articles(ctx: OrgContext):
    return (
        select(Article)
        .options(selectinload(Article.branch))
        .where(Article.organization_id == ctx.organization_id)
    )


def _snapshot(article: Article) -> Dict[str, Any]:
    return {"name": article.name, "base_rate": article.base_rate, "branch_id": article.branch_id}


async def list_articles(
    db: AsyncSession,
    ctx: OrgContext,
    search: str = "",
    branch_id: Optional[str] = None,
    sort_field: str = "name",
    sort_direction: Optional[str] = None,
) -> List[Article]:
    """Articles of the organization, searched and sorted in memory."""
    result = await db.execute(_articles(ctx))
    articles = filter_articles(result.scalars().all(), search, branch_id)
    return SortState.for_field(sort_field, sort_direction).apply(articles)


async def get_article(db: AsyncSession, ctx: OrgContext, article_id: str) -> Article:
    """
    Raises:
        NotFound: if the article does not exist in the organization
    """
    result = await db.execute(
        _articles(ctx)
        .where(Article.id == article_id)
        .execution_options(populate_existing=True)
    )
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFound(f"Article {article_id} not found", field="article_id")
    return article


async def create_article(db: AsyncSession, ctx: OrgContext, data: ArticleCreate) -> Article:
    """
    Add an article to a branch catalog.

    The article belongs to ``data.branch_id`` or, when omitted, the
    context branch.

    Raises:
        ValidationError: if no branch can be determined or the rate is negative
        NotFound: if the branch does not exist
    """
    branch_id = data.branch_id or ctx.branch_id
    if not branch_id:
        raise ValidationError("Branch is required", field="branch_id")
    if data.base_rate < 0:
        raise ValidationError("Base rate cannot be negative", field="base_rate")
    await get_branch(db, ctx, branch_id)

    article = Article(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        **{**data.model_dump(), "branch_id": branch_id, "name": data.name.strip()},
    )
    db.add(article)
    await record_audit(
        db, ctx, "ARTICLE", article.id, "CREATED",
        description=f"Article {article.name} created",
        after_state=_snapshot(article),
    )
    await db.flush()

    logger.info("Article created", article_id=article.id, name=article.name, base_rate=article.base_rate)
    return await get_article(db, ctx, article.id)


async def update_article(
    db: AsyncSession,
    ctx: OrgContext,
    article_id: str,
    changes: ArticleUpdate,
    action: str = "MODIFIED",
) -> Article:
    """
    Apply the fields set on ``changes`` to an article.

    Raises:
        NotFound: if the article or the new branch does not exist
        ValidationError: if the new base rate is negative
    """
    article = await get_article(db, ctx, article_id)
    updates = {k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None}

    if updates.get("base_rate", 0) < 0:
        raise ValidationError("Base rate cannot be negative", field="base_rate")
    if "branch_id" in updates:
        await get_branch(db, ctx, updates["branch_id"])

    before = _snapshot(article)
    for key, value in updates.items():
        setattr(article, key, value)

    await record_audit(
        db, ctx, "ARTICLE", article.id, action,
        description=f"Article {article.name} updated",
        details={"fields": sorted(updates)},
        before_state=before,
        after_state=_snapshot(article),
    )
    await db.flush()
    return await get_article(db, ctx, article.id)


async def _bulk_targets(db: AsyncSession, ctx: OrgContext, request: BulkRateRequest) -> List[Article]:
    if request.article_ids:
        result = await db.execute(_articles(ctx).where(Article.id.in_(request.article_ids)))
        return SortState.for_field("name").apply(result.scalars().all())
    return await list_articles(db, ctx, search=request.search, branch_id=request.branch_id)


async def preview_bulk_rates(db: AsyncSession, ctx: OrgContext, request: BulkRateRequest) -> List[RateAdjustment]:
    """Projected new rates for the selected articles; nothing is written."""
    articles = await _bulk_targets(db, ctx, request)
    return preview_bulk_adjustment(articles, request.adjustment_type, request.adjustment_value)


async def apply_bulk_rates(db: AsyncSession, ctx: OrgContext, request: BulkRateRequest) -> List[RateAdjustment]:
    """
    Write the previewed rates back, one ``update_article`` per article.

    Returns:
        The adjustments that were applied
    """
    adjustments = await preview_bulk_rates(db, ctx, request)
    for adjustment in adjustments:
        await update_article(
            db, ctx, adjustment.article_id,
            ArticleUpdate(base_rate=adjustment.new_rate),
            action="RATE_ADJUSTED",
        )

    logger.info(
        "Bulk rate adjustment applied",
        articles=len(adjustments),
        adjustment_type=request.adjustment_type.value,
        adjustment_value=request.adjustment_value,
    )
    return adjustments


async def find_customer_rate(
    db: AsyncSession,
    customer_id: Optional[str],
    article_id: Optional[str],
) -> Optional[CustomerArticleRate]:
    if not customer_id or not article_id:
        return None
    result = await db.execute(
        select(CustomerArticleRate).where(
            CustomerArticleRate.customer_id == customer_id,
            CustomerArticleRate.article_id == article_id,
        )
    )
    return result.scalar_one_or_none()


async def get_customer_rates(db: AsyncSession, ctx: OrgContext, article_id: str) -> List[CustomerArticleRate]:
    """Negotiated rates for an article, highest first."""
    await get_article(db, ctx, article_id)
    result = await db.execute(
        select(CustomerArticleRate)
        .options(selectinload(CustomerArticleRate.customer))
        .where(CustomerArticleRate.article_id == article_id)
        .order_by(CustomerArticleRate.rate.desc())
    )
    return list(result.scalars().all())


async def set_customer_rate(
    db: AsyncSession,
    ctx: OrgContext,
    article_id: str,
    customer_id: str,
    rate: float,
) -> CustomerArticleRate:
    """
    Create or replace a customer's rate for an article.

    Raises:
        ValidationError: if the rate is negative
        NotFound: if the article or customer does not exist
    """
    if rate is None or rate < 0:
        raise ValidationError("Rate cannot be negative", field="rate")
    await get_article(db, ctx, article_id)
    await get_customer(db, ctx, customer_id)

    customer_rate = await find_customer_rate(db, customer_id, article_id)
    if customer_rate is None:
        customer_rate = CustomerArticleRate(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            article_id=article_id,
            rate=rate,
        )
        db.add(customer_rate)
    else:
        customer_rate.rate = rate
    await db.flush()

    logger.info("Customer rate set", article_id=article_id, customer_id=customer_id, rate=rate)
    result = await db.execute(
        select(CustomerArticleRate)
        .options(selectinload(CustomerArticleRate.customer))
        .where(CustomerArticleRate.id == customer_rate.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()
