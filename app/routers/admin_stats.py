# app/routers/admin_stats.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.config import get_settings
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.stats_repo import StatsRepository
from app.schemas.category import CategoryConsistencyReport
from app.schemas.stats import AdminOverview, OrderStats
from app.services.category_service import check_category_consistency
from app.services.stats_service import StatsService

router = APIRouter(prefix="/admin", tags=["Admin Stats"])

settings = get_settings()

product_repo = ProductRepository()
category_repo = CategoryRepository()
service = StatsService(StatsRepository(), product_repo)


@router.get("/orders-stats", response_model=OrderStats)
def get_order_stats(session: Session = Depends(get_session)):
    """
    Order totals per status plus revenue (cancelled orders excluded).
    """
    return service.get_order_stats(session)


@router.get("/overview", response_model=AdminOverview)
def get_overview(
    low_stock_threshold: int | None = Query(None, ge=0),
    session: Session = Depends(get_session),
):
    """
    Aggregated numbers for the admin home page.

    Query params (optional):
      - low_stock_threshold: defaults to LOW_STOCK_THRESHOLD
    """
    threshold = (
        settings.LOW_STOCK_THRESHOLD
        if low_stock_threshold is None
        else low_stock_threshold
    )
    return service.get_overview(session, low_stock_threshold=threshold)


@router.get(
    "/catalog/orphan-categories",
    response_model=CategoryConsistencyReport,
)
def get_orphan_categories(session: Session = Depends(get_session)):
    """
    Product category strings that match no existing category.
    """
    return check_category_consistency(session, category_repo, product_repo)
