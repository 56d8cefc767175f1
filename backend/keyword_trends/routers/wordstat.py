from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, status

from ..errors import ExternalServiceError
from ..services.wordstat_client import fetch_wordstat

router = APIRouter(
    prefix="/wordstat",
    tags=["WordStat"],
)


@router.get(
    "",
    summary="Raw WordStat data",
    response_description="The provider's JSON response, unmodified",
)
async def get_wordstat(
    keyword: Optional[str] = Query(default=None, description="Keyword to look up"),
) -> Any:
    """Proxy a WordStat lookup so provider credentials stay server-side."""
    if not keyword or not keyword.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Keyword is required",
        )

    try:
        return await fetch_wordstat(keyword)
    except (ExternalServiceError, EnvironmentError) as exc:
        print(f"❌ [WORDSTAT] API error: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch data from WordStat",
        ) from exc
