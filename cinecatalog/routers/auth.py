import logging

from beanie.operators import Or
from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from ..models import User
from ..utils import hash, verify
from ..OAuth2 import get_optional_user, set_session_cookie, clear_session_cookie
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])

MIN_PASSWORD_LENGTH = 6


def render_signup(request: Request, error=None, username="", email="", status_code=status.HTTP_200_OK):
    return render(request, "signup.html", {"error": error, "username": username, "email": email}, status_code)


def render_login(request: Request, error=None, email="", status_code=status.HTTP_200_OK):
    return render(request, "login.html", {"error": error, "email": email}, status_code)


@router.get("/login")
async def login_form(request: Request, user=Depends(get_optional_user)):
    if user:
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    return render_login(request)


@router.get("/signup")
@router.get("/register")
async def signup_form(request: Request, user=Depends(get_optional_user)):
    if user:
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    return render_signup(request)


@router.post("/signup")
async def signup(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    username, email = username.strip(), email.strip().lower()

    if not username or not email or not password:
        return render_signup(request, "All fields are required", username, email, status.HTTP_400_BAD_REQUEST)

    if len(password) < MIN_PASSWORD_LENGTH:
        return render_signup(
            request, "Password must be at least 6 characters long", username, email, status.HTTP_400_BAD_REQUEST
        )

    try:
        existing_user = await User.find_one(Or(User.email == email, User.username == username))
        if existing_user:
            return render_signup(
                request, "User with this email or username already exists", username, email,
                status.HTTP_400_BAD_REQUEST,
            )

        new_user = User(username=username, email=email, password=hash(password), role="user")
        await new_user.insert()
    except ValidationError:
        return render_signup(request, "Invalid email address", username, email, status.HTTP_400_BAD_REQUEST)
    except Exception:
        logger.exception("Signup error")
        return render_signup(
            request, "An error occurred during signup. Please try again.", username, email,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("New user registered: %s", new_user.email)
    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, new_user)
    return response


@router.post("/login")
async def login(request: Request, email: str = Form(""), password: str = Form("")):
    email = email.strip().lower()

    if not email or not password:
        return render_login(request, "Email and password are required", email, status.HTTP_400_BAD_REQUEST)

    try:
        user = await User.find_one(User.email == email)
    except Exception:
        logger.exception("Login error")
        return render_login(
            request, "An error occurred during login. Please try again.", email,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if not user or not verify(password, user.password):
        return render_login(request, "Invalid email or password", email, status.HTTP_401_UNAUTHORIZED)

    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, user)
    return response


@router.get("/logout")
async def logout():
    redirect_response = RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)
    clear_session_cookie(redirect_response)
    return redirect_response
