from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.database import get_db
from publisher.schemas import ArticleResponse
from publisher.services import search_service

router = APIRouter(prefix="/api/v1/search", tags=["search"])

@router.get("", response_model=list[ArticleResponse], response_model_exclude_unset=True)
async def search(query: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    return await search_service.search(db, query)
