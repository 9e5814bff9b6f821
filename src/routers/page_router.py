import orjson
from fastapi import APIRouter, Depends, Request, Response, status

from auth import AuthConfig, AuthContext, get_auth_config, preflight_response, require_signature
from auth.authenticator import read_body
from auth.errors import SerializationFailure
from core.logger import get_logger
from services import Page, PageStore, get_page_store

logger = get_logger(__name__)

PAGE_LIST_METHODS = "GET, OPTIONS"
PAGE_METHODS = "GET, OPTIONS, POST, DELETE"

page_router = APIRouter(tags=["pages"])


@page_router.options("/page")
async def page_list_preflight(config: AuthConfig = Depends(get_auth_config)) -> Response:
    return preflight_response(PAGE_LIST_METHODS, config.allow_origin)


@page_router.get("/page")
def list_pages(
    auth: AuthContext = Depends(require_signature(PAGE_LIST_METHODS)),
    store: PageStore = Depends(get_page_store),
) -> dict:
    """List page titles: {"items": [{"title": ...}, ...]}"""
    return {"items": [page.to_dict() for page in store.list_pages()]}


@page_router.options("/page/{title}")
async def page_preflight(title: str, config: AuthConfig = Depends(get_auth_config)) -> Response:
    return preflight_response(PAGE_METHODS, config.allow_origin)


@page_router.get("/page/{title}")
def get_page(
    title: str,
    auth: AuthContext = Depends(require_signature(PAGE_METHODS)),
    store: PageStore = Depends(get_page_store),
) -> dict:
    return store.load(title).to_dict()


@page_router.post("/page/{title}")
async def save_page(
    title: str,
    request: Request,
    auth: AuthContext = Depends(require_signature(PAGE_METHODS)),
    store: PageStore = Depends(get_page_store),
) -> dict:
    """
    Create or replace a page from a JSON body {"body": "..."}.

    The title in the path names the page. A body without a "body" key
    keeps the current text.
    """
    raw = await read_body(request)
    try:
        data = orjson.loads(raw) if raw else {}
    except orjson.JSONDecodeError as e:
        raise SerializationFailure(f"Invalid JSON body: {e!s}") from e
    if not isinstance(data, dict) or not isinstance(data.get("body", ""), str):
        raise SerializationFailure('Invalid JSON body: expected {"body": string}')

    current = store.load(title)
    page = store.save(Page(title=title, body=data.get("body", current.body)))
    logger.info(f"Page {title} saved by {auth.username}")
    return page.to_dict()


@page_router.delete("/page/{title}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_page(
    title: str,
    auth: AuthContext = Depends(require_signature(PAGE_METHODS)),
    store: PageStore = Depends(get_page_store),
) -> None:
    store.delete(title)
    logger.info(f"Page {title} deleted by {auth.username}")
