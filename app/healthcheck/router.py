from fastapi import APIRouter, Request, status

from app.core.json import api_response

router = APIRouter(prefix="/api/v1/healthcheck", tags=["healthcheck"])


@router.get("")
async def healthcheck(request: Request):
    db_up = await request.app.state.db.ping()
    return api_response(
        status.HTTP_200_OK,
        {"status": "OK", "database": "up" if db_up else "down"},
        "OK",
    )
