import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.models.reference import College
from app.schemas.collegeSchema import CollegeResponse, CollegesResponse, DistrictsResponse, StatesResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/colleges", tags=["colleges"])

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 10


@router.get("/states", response_model=StatesResponse)
async def list_states(db: AsyncSession = Depends(aget_db)):
    try:
        result = await db.execute(select(College.state).distinct().order_by(College.state))
        return StatesResponse(states=list(result.scalars().all()))
    except Exception as e:
        logger.error(f"Error fetching states: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch states")


@router.get("/districts/{state}", response_model=DistrictsResponse)
async def list_districts(state: str, db: AsyncSession = Depends(aget_db)):
    try:
        result = await db.execute(
            select(College.district)
            .where(College.state == state)
            .distinct()
            .order_by(College.district)
        )
        return DistrictsResponse(districts=list(result.scalars().all()))
    except Exception as e:
        logger.error(f"Error fetching districts: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch districts")


@router.get("/search", response_model=CollegesResponse)
async def search_colleges(query: str = Query(default=""), db: AsyncSession = Depends(aget_db)):
    """Case-insensitive name search for the "Other" college picker."""
    term = query.strip()
    if len(term) < SEARCH_MIN_LENGTH:
        return CollegesResponse(colleges=[])

    try:
        result = await db.execute(
            select(College)
            .where(College.name.ilike(f"%{term}%"))
            .order_by(College.name)
            .limit(SEARCH_LIMIT)
        )
        return CollegesResponse(colleges=[CollegeResponse.model_validate(c) for c in result.scalars().all()])
    except Exception as e:
        logger.error(f"Error searching colleges: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search colleges")


@router.get("/{state}/{district}", response_model=CollegesResponse)
async def list_colleges(state: str, district: str, db: AsyncSession = Depends(aget_db)):
    try:
        result = await db.execute(
            select(College)
            .where(College.state == state, College.district == district)
            .order_by(College.name)
        )
        return CollegesResponse(colleges=[CollegeResponse.model_validate(c) for c in result.scalars().all()])
    except Exception as e:
        logger.error(f"Error fetching colleges: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch colleges")
