from typing import Optional

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from ..models import Actor
from ..OAuth2 import get_current_admin, get_current_user
from .. import people

router = APIRouter(prefix="/actors", tags=["actors"])

KIND = "actors"


@router.get("")
async def get_all_actors(request: Request, user=Depends(get_current_user)):
    return await people.list_people(request, Actor, KIND, user)


@router.get("/add")
async def show_add_form(request: Request, user=Depends(get_current_admin)):
    return people.render_person_form(request, KIND, user)


@router.post("/add")
async def create_actor(
    request: Request,
    name: str = Form(""),
    age: str = Form(""),
    bio: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    user=Depends(get_current_admin),
):
    return await people.create_person(request, Actor, KIND, user, name, age, bio, photo)


@router.get("/{actor_id}")
async def get_actor_detail(request: Request, actor_id: PydanticObjectId, user=Depends(get_current_user)):
    return await people.person_detail(request, Actor, KIND, actor_id, user)
