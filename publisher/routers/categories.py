from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.database import get_db
from publisher.dependencies import CurrentUser, JsonBody
from publisher.schemas import CategoryResponse
from publisher.services import category_service

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])

@router.get("", response_model=list[CategoryResponse], response_model_exclude_unset=True)
async def list_categories(count: bool = False, db: AsyncSession = Depends(get_db)):
    return await category_service.list_categories(db, count)

@router.post("", status_code=201, response_model=CategoryResponse, response_model_exclude_unset=True)
async def create_category(
    user: CurrentUser,
    payload: JsonBody,
    db: AsyncSession = Depends(get_db),
):
    return await category_service.create_category(db, payload, user)
