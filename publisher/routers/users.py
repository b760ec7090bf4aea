from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.database import get_db
from publisher.dependencies import JsonBody
from publisher.schemas import LoginRequest, TokenResponse, UserResponse
from publisher.services import auth_service, user_service

router = APIRouter(prefix="/api/v1/user", tags=["users"])

@router.post("", status_code=201, response_model=UserResponse)
async def register_user(payload: JsonBody, db: AsyncSession = Depends(get_db)):
    return await user_service.register_user(db, payload)

@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    token = await auth_service.issue_token(db, credentials)
    return TokenResponse(access_token=token)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, user_id)
