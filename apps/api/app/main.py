from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html

from app.core.config import settings
from app.core.logging_config import configure_logging
from app.routers import (
    admin_families,
    auth,
    comments,
    families,
    health,
    members,
    notifications,
    posts,
    transfer,
    tree,
)

configure_logging()

app = FastAPI(
    title="Family Tree API",
    version="1.0.0",
    description="API for family trees, sub-family lineage membership, and the family social feed.",
    # The API is proxied under a path prefix at the edge; /docs below points Swagger at it.
    docs_url=None,
    root_path=settings.root_path,
)


@app.get("/docs", include_in_schema=False)
def swagger_ui():
    prefix = (settings.root_path or "").rstrip("/")
    openapi_url = f"{prefix}{app.openapi_url}"
    return get_swagger_ui_html(openapi_url=openapi_url, title=f"{app.title} - Docs")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(families.router)
app.include_router(tree.router)
app.include_router(transfer.router)
app.include_router(members.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(notifications.router)
app.include_router(admin_families.router)
