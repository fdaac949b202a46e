from typing import Optional

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from ..models import Director
from ..OAuth2 import get_current_admin, get_current_user
from .. import people

router = APIRouter(prefix="/directors", tags=["directors"])

KIND = "directors"


@router.get("")
async def get_all_directors(request: Request, user=Depends(get_current_user)):
    return await people.list_people(request, Director, KIND, user)


@router.get("/add")
async def show_add_form(request: Request, user=Depends(get_current_admin)):
    return people.render_person_form(request, KIND, user)


@router.post("/add")
async def create_director(
    request: Request,
    name: str = Form(""),
    age: str = Form(""),
    bio: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    user=Depends(get_current_admin),
):
    return await people.create_person(request, Director, KIND, user, name, age, bio, photo)


@router.get("/{director_id}")
async def get_director_detail(request: Request, director_id: PydanticObjectId, user=Depends(get_current_user)):
    return await people.person_detail(request, Director, KIND, director_id, user)
