from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.schemas import SearchResponse
from blog.services import search_service

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    query: Annotated[str, Query(description="Case-insensitive text to look for.")],
    db: AsyncSession = Depends(get_db),
):
    return await search_service.search(db, query)
