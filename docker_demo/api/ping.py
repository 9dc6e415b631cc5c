"""Static-response endpoints exercised by the container tests."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/ping", response_class=PlainTextResponse, summary="Liveness ping")
async def ping():
    return "pong"


@router.get("/unused", response_class=PlainTextResponse, summary="Never called by tests")
async def unused():
    """Left uncalled so the coverage report shows an uncovered handler."""
    return "unused"
