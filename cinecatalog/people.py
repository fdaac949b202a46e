"""Shared handlers for the actor and director pages, which only differ in their document model."""

import logging
from typing import Optional

from beanie import PydanticObjectId
from beanie.operators import In
from fastapi import Request, UploadFile, status
from fastapi.responses import RedirectResponse

from .models import Movie
from .templating import render
from .uploads import UploadRejected, delete_stored_file, save_image

logger = logging.getLogger(__name__)


def parse_age(value: str) -> Optional[int]:
    value = (value or "").strip()
    if not value:
        return None
    age = int(value)
    if age < 0:
        raise ValueError("Age must be positive")
    return age


async def list_people(request: Request, model, kind: str, user):
    try:
        people = await model.find_all().sort(+model.name).to_list()
    except Exception:
        logger.exception("Error fetching %s", kind)
        return render(
            request, "people/list.html", {"people": [], "kind": kind, "user": user},
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return render(request, "people/list.html", {"people": people, "kind": kind, "user": user})


async def person_detail(request: Request, model, kind: str, person_id: PydanticObjectId, user):
    person = await model.get(person_id)
    if not person:
        return RedirectResponse(url=f"/{kind}", status_code=status.HTTP_302_FOUND)

    movies = await Movie.find(In(Movie.id, person.movies_worked_in)).to_list() if person.movies_worked_in else []
    return render(request, "people/detail.html", {"person": person, "movies": movies, "kind": kind, "user": user})


def render_person_form(request: Request, kind: str, user, person=None, error=None, status_code=status.HTTP_200_OK):
    return render(
        request, "people/form.html", {"person": person, "error": error, "kind": kind, "user": user}, status_code
    )


async def create_person(
    request: Request, model, kind: str, user, name: str, age: str, bio: str, photo: Optional[UploadFile]
):
    submitted = {"name": name, "age": age, "bio": bio}
    name = name.strip()

    if not name:
        return render_person_form(request, kind, user, submitted, "Name is required", status.HTTP_400_BAD_REQUEST)

    try:
        parsed_age = parse_age(age)
    except ValueError:
        return render_person_form(
            request, kind, user, submitted, "Age must be a positive number", status.HTTP_400_BAD_REQUEST
        )

    try:
        photo_path = await save_image(photo, kind)
    except UploadRejected as e:
        return render_person_form(request, kind, user, submitted, str(e), status.HTTP_400_BAD_REQUEST)

    try:
        person = model(name=name, age=parsed_age, bio=bio.strip() or None, photo=photo_path)
        await person.insert()
    except Exception:
        logger.exception("Error creating %s entry", kind)
        delete_stored_file(photo_path)
        return render_person_form(
            request, kind, user, submitted, "Error creating entry. Please try again.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return RedirectResponse(url=f"/{kind}", status_code=status.HTTP_302_FOUND)
