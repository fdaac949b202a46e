from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field, EmailStr
from pymongo import ASCENDING, IndexModel
from datetime import datetime, timezone
from typing import Annotated, List, Optional


def utcnow():
    return datetime.now(timezone.utc)


class User(Document):
    username: Annotated[str, Indexed(unique=True)]
    email: Annotated[EmailStr, Indexed(unique=True)]
    password: str
    role: str = Field(default="user")
    watchlist: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Movie(Document):
    title: str
    description: str
    genre: List[str] = Field(default_factory=list)
    release_date: datetime
    rating: float = Field(default=0.0, ge=0, le=10)  # derived from reviews, 10-point scale
    poster: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)
    trailer_url: Optional[str] = None
    director_id: Optional[PydanticObjectId] = None
    actor_ids: List[PydanticObjectId] = Field(default_factory=list)
    views: int = 0
    likes: int = 0
    search_keywords: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "movies"


class Review(Document):
    movie_id: PydanticObjectId
    user_id: PydanticObjectId
    rating: int = Field(..., ge=1, le=5)
    review_content: str = Field(default="", max_length=1000)
    is_deleted: bool = False  # soft delete, kept for audit
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "reviews"
        indexes = [
            IndexModel([("movie_id", ASCENDING), ("user_id", ASCENDING)], unique=True),
        ]


class Actor(Document):
    name: str = Field(..., min_length=1)
    age: Optional[int] = Field(default=None, ge=0)
    photo: Optional[str] = None
    bio: Optional[str] = None
    movies_worked_in: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "actors"


class Director(Document):
    name: str = Field(..., min_length=1)
    age: Optional[int] = Field(default=None, ge=0)
    photo: Optional[str] = None
    bio: Optional[str] = None
    movies_worked_in: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "directors"


DOCUMENT_MODELS = [User, Movie, Review, Actor, Director]
