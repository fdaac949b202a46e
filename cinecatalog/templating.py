from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def stars(value) -> str:
    return f"{value or 0:.1f}"


def year(value) -> str:
    return str(value.year) if value else ""


templates.env.filters["stars"] = stars
templates.env.filters["year"] = year


def render(request: Request, name: str, context: dict, status_code: int = 200):
    return templates.TemplateResponse(request, name, context, status_code=status_code)
