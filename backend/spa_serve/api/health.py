from fastapi import APIRouter

from spa_serve.config import get_mode

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "mode": get_mode().value}
