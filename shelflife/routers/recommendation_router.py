from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy import select

from shelflife.db.session import SessionLocal
from shelflife.db.models import Recommendation
from shelflife.services.alerts import priority_rank
from shelflife.services.serializers import recommendation_to_dict
from shelflife.services.shelf_life import utcnow

router = APIRouter()

@router.get("/recommendations")
def get_recommendations(
    product_id: Optional[int] = Query(default=None),
    include_implemented: bool = Query(default=False),
):
    db = SessionLocal()
    try:
        stmt = select(Recommendation)
        if product_id is not None:
            stmt = stmt.where(Recommendation.product_id == product_id)
        if not include_implemented:
            stmt = stmt.where(Recommendation.is_implemented.is_(False))
        stmt = stmt.order_by(priority_rank(Recommendation.urgency).desc(), Recommendation.id)
        return [recommendation_to_dict(r) for r in db.execute(stmt).scalars()]
    finally:
        db.close()


@router.post("/recommendations/{recommendation_id}/implement")
def implement_recommendation(recommendation_id: int):
    db = SessionLocal()
    try:
        rec = db.get(Recommendation, recommendation_id)
        if rec is None:
            raise HTTPException(status_code=404, detail="Recommendation not found")
        rec.is_implemented = True
        rec.implemented_at = utcnow()
        db.commit()
        db.refresh(rec)
        return recommendation_to_dict(rec)
    finally:
        db.close()
