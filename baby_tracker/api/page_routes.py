"""
Server-rendered pages.

Family pages live under /{slug}. An unknown or inactive slug redirects to
the application root, and a visitor without a login cookie is sent to the
family's login page. The API routes authorize on their own; this guard only
keeps visitors on pages that make sense.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from baby_tracker.api.auth_routes import CARETAKER_COOKIE
from baby_tracker.database import get_db
from baby_tracker.models import Family
from baby_tracker.services import count_families, get_active_families, get_family_by_slug

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["pages"], include_in_schema=False)


def resolve_family(slug: str, db: Session) -> Optional[Family]:
    """Active family for a URL slug, or None."""
    return get_family_by_slug(db, slug)


def _home() -> RedirectResponse:
    return RedirectResponse("/", status_code=302)


@router.get("/")
def root(request: Request, db: Session = Depends(get_db)):
    """
    Application root.

    A fresh install goes to setup, a single family straight to its page,
    otherwise the visitor picks a family.
    """
    families = get_active_families(db)
    if len(families) == 1:
        return RedirectResponse(f"/{families[0].slug}", status_code=302)
    if not families and count_families(db) == 0:
        return RedirectResponse("/setup", status_code=302)

    return templates.TemplateResponse(
        request,
        "family_select.html",
        {"families": families},
    )


@router.get("/setup")
@router.get("/setup/{token}")
def setup_page(request: Request, token: Optional[str] = None):
    return templates.TemplateResponse(request, "setup.html", {"token": token})


@router.get("/{slug}/login")
def login_page(slug: str, request: Request, db: Session = Depends(get_db)):
    family = resolve_family(slug, db)
    if family is None:
        logger.info(f"Unknown family slug '{slug}', redirecting home")
        return _home()
    return templates.TemplateResponse(request, "login.html", {"family": family})


@router.get("/{slug}")
@router.get("/{slug}/{rest:path}")
def family_page(
    slug: str,
    request: Request,
    rest: str = "",
    caretaker_id: Optional[str] = Cookie(None, alias=CARETAKER_COOKIE),
    db: Session = Depends(get_db),
):
    """Family home page behind the slug guard."""
    family = resolve_family(slug, db)
    if family is None:
        logger.info(f"Unknown family slug '{slug}', redirecting home")
        return _home()

    if not caretaker_id:
        return RedirectResponse(f"/{family.slug}/login", status_code=302)

    return templates.TemplateResponse(request, "family_home.html", {"family": family})
