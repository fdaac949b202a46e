from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from ..OAuth2 import get_current_user, get_optional_user
from ..templating import render

router = APIRouter(tags=["pages"])


@router.get("/")
async def home(request: Request, user=Depends(get_optional_user)):
    if user:
        return RedirectResponse(url="/movies", status_code=status.HTTP_302_FOUND)
    return render(request, "index.html", {"user": None})


@router.get("/profile")
async def profile(request: Request, user=Depends(get_current_user)):
    return render(request, "profile.html", {"user": user})
