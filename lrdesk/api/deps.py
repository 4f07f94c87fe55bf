"""
Shared API dependencies
"""
from typing import Optional

from fastapi import Header, Query

from lrdesk.config import settings
from lrdesk.schemas import OrgContext


async def get_org_context(
    x_organization_id: str = Header(..., alias="X-Organization-Id", min_length=1),
    x_branch_id: Optional[str] = Header(None, alias="X-Branch-Id"),
) -> OrgContext:
    """Organization and branch the request acts for, taken from headers."""
    return OrgContext(organization_id=x_organization_id, branch_id=x_branch_id or None)


class Pagination:
    """``page``/``page_size`` query parameters, clamped to the configured maximum."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1),
    ):
        self.page = page
        self.page_size = min(page_size or settings.default_page_size, settings.max_page_size)
