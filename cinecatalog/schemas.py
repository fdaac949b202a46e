from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from beanie import PydanticObjectId


class TokenResponseData(BaseModel):
    id: PydanticObjectId
    email: EmailStr
    role: str = "user"


class ReviewCreateModel(BaseModel):
    movie_id: PydanticObjectId
    rating: int = Field(..., ge=1, le=5, description="Rating must be between 1 and 5")
    review_content: str = Field(default="", max_length=1000)


class ReviewItemResponseModel(BaseModel):
    id: PydanticObjectId
    movie_id: PydanticObjectId
    user_id: PydanticObjectId
    username: Optional[str] = None
    rating: int
    review_content: str
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime


class ReviewMutationResponse(BaseModel):
    success: bool = True
    review: ReviewItemResponseModel


class WatchlistToggleModel(BaseModel):
    movie_id: PydanticObjectId


class WatchlistToggleResponse(BaseModel):
    success: bool = True
    in_watchlist: bool


class TrendingMovieModel(BaseModel):
    id: PydanticObjectId
    title: str
    genre: List[str]
    release_date: datetime
    poster: Optional[str] = None
    views: int
    rating: float
    reviews_count: int
    average_rating: float
    trending_score: float
