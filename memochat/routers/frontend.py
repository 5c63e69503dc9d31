from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

# Methods routed here; anything else is answered by the app middleware
PAGE_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE")

router = APIRouter()

@lru_cache(maxsize=1)
def load_index_html() -> str:
    return (STATIC_DIR / "index.html").read_text(encoding="utf-8")

def page_response() -> HTMLResponse:
    return HTMLResponse(content=load_index_html(), status_code=200)

# Everything that is not an API route gets the chat page
@router.api_route(
    "/{full_path:path}",
    methods=list(PAGE_METHODS),
    response_class=HTMLResponse,
    include_in_schema=False,
)
async def index(full_path: str):
    return page_response()
