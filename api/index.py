"""
FastAPI wrapper for the WillsX auto-linker - Vercel Serverless Function.

This module exposes keyword auto-linking as a REST API so the content
pipeline can annotate rendered post/page markup before page assembly.
"""

from enum import Enum
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from willsx_autolinker import __version__
from willsx_autolinker.config import LinkerSettings, LinkTarget
from willsx_autolinker.engine import AutoLinker
from willsx_autolinker.keyword_loader import build_dictionary

app = FastAPI(
    title="WillsX Auto-Linker API",
    description="Links configured keyword phrases in rendered content to internal service pages",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class KeywordInput(BaseModel):
    """Single keyword/URL pair."""
    keyword: str
    url: str


class LinkTargetEnum(str, Enum):
    """Where inserted links open."""
    same_window = "same-window"
    new_window = "new-window"


class SettingsInput(BaseModel):
    """Auto-linker settings. Omitted fields keep their defaults."""
    enabled: bool = True
    max_links_per_post: int = Field(5, description="Maximum links per document (0 = unlimited)")
    max_links_per_keyword: int = Field(1, description="Maximum links per keyword")
    link_target: LinkTargetEnum = LinkTargetEnum.same_window
    case_sensitive: bool = False
    excluded_tag_names: Optional[list[str]] = Field(None, description="Defaults to h1-h6")
    exclude_existing_links: bool = True
    eligible_content_scopes: Optional[list[str]] = Field(None, description="Defaults to post and page")
    link_class: Optional[str] = None


class AutoLinkRequest(BaseModel):
    """Request model for auto-linking."""
    content: str = Field(..., description="Rendered content markup")
    keywords: list[KeywordInput] = Field(default_factory=list, description="Keywords in priority order")
    settings: Optional[SettingsInput] = Field(None, description="Settings (defaults if omitted)")
    scope: Optional[str] = Field(None, description="Content type being rendered, e.g. post or page")


class LinkOutput(BaseModel):
    """One inserted link."""
    keyword: str
    url: str
    text: str


class AutoLinkResponse(BaseModel):
    """Response model for auto-linking results."""
    content: str
    links_inserted: int
    links: list[LinkOutput] = Field(default_factory=list)
    skipped_reason: Optional[str] = None
    budget_exhausted: bool = False


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


def build_settings(settings_input: Optional[SettingsInput]) -> LinkerSettings:
    """
    Convert request settings into LinkerSettings.

    Raises:
        ValueError: If a value is out of range.
    """
    if settings_input is None:
        return LinkerSettings()

    values = {
        "enabled": settings_input.enabled,
        "max_links_per_post": settings_input.max_links_per_post,
        "max_links_per_keyword": settings_input.max_links_per_keyword,
        "link_target": LinkTarget(settings_input.link_target.value),
        "case_sensitive": settings_input.case_sensitive,
        "exclude_existing_links": settings_input.exclude_existing_links,
        "link_class": settings_input.link_class,
    }
    if settings_input.excluded_tag_names is not None:
        values["excluded_tag_names"] = frozenset(settings_input.excluded_tag_names)
    if settings_input.eligible_content_scopes is not None:
        values["eligible_content_scopes"] = frozenset(settings_input.eligible_content_scopes)
    return LinkerSettings(**values)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
    )


@app.post("/api/autolink", response_model=AutoLinkResponse)
async def autolink_content(request: AutoLinkRequest):
    """
    Insert keyword links into content.

    Keywords are tried in the order given. Content that cannot be processed
    is returned unchanged with a skipped_reason.
    """
    try:
        settings = build_settings(request.settings)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid settings: {e}")

    dictionary = build_dictionary(
        [(kw.keyword, kw.url) for kw in request.keywords],
        case_sensitive=settings.case_sensitive,
    )

    result = AutoLinker(settings, dictionary).annotate(request.content, scope=request.scope)

    return AutoLinkResponse(
        content=result.markup,
        links_inserted=result.links_inserted,
        links=[LinkOutput(keyword=link.keyword, url=link.url, text=link.text) for link in result.links],
        skipped_reason=result.skipped_reason.value if result.skipped_reason else None,
        budget_exhausted=result.budget_exhausted,
    )


@app.get("/api/info")
async def api_info():
    """Get API information and usage instructions."""
    return {
        "name": "WillsX Auto-Linker API",
        "version": __version__,
        "description": "Keyword auto-linking for rendered post and page content",
        "endpoints": {
            "GET /api/health": "Health check",
            "POST /api/autolink": "Insert keyword links into content",
            "GET /api/info": "This endpoint",
        },
        "documentation": "/docs",
        "openapi": "/openapi.json",
    }
