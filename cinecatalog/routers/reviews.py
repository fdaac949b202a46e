import logging

from beanie import PydanticObjectId
from beanie.operators import In
from fastapi import APIRouter, status, HTTPException, Depends
from pymongo.errors import DuplicateKeyError
from ..schemas import ReviewCreateModel, ReviewItemResponseModel, ReviewMutationResponse
from ..OAuth2 import get_current_user, get_current_admin
from ..models import Movie, Review, User, utcnow
from ..ratings import persist_rating_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["review"])


def to_response(review: Review, username=None) -> ReviewItemResponseModel:
    return ReviewItemResponseModel(
        id=review.id,
        movie_id=review.movie_id,
        user_id=review.user_id,
        username=username,
        rating=review.rating,
        review_content=review.review_content,
        is_deleted=review.is_deleted,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


async def upsert_review(movie_id: PydanticObjectId, user_id: PydanticObjectId, rating: int, content: str) -> Review:
    """Create the user's review for a movie, or overwrite the one they already have."""
    existing_review = await Review.find_one(Review.movie_id == movie_id, Review.user_id == user_id)

    if existing_review is None:
        new_review = Review(movie_id=movie_id, user_id=user_id, rating=rating, review_content=content)
        try:
            await new_review.insert()
            return new_review
        except DuplicateKeyError:
            # a concurrent submission won the insert, overwrite it instead
            existing_review = await Review.find_one(Review.movie_id == movie_id, Review.user_id == user_id)
            if existing_review is None:
                raise

    existing_review.rating = rating
    existing_review.review_content = content
    existing_review.is_deleted = False
    existing_review.updated_at = utcnow()
    await existing_review.save()
    return existing_review


async def soft_delete_review(review: Review) -> Review:
    review.is_deleted = True
    review.updated_at = utcnow()
    await review.save()
    return review


@router.post("", status_code=status.HTTP_200_OK, response_model=ReviewMutationResponse)
async def create_review(review: ReviewCreateModel, user=Depends(get_current_user)):
    movie = await Movie.get(review.movie_id)
    if not movie:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")

    try:
        saved = await upsert_review(review.movie_id, user.id, review.rating, review.review_content)
    except Exception:
        logger.exception("Error creating review")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error creating review")

    await persist_rating_update(review.movie_id)

    return ReviewMutationResponse(review=to_response(saved, user.username))


@router.get("/{movie_id}", response_model=list[ReviewItemResponseModel], status_code=status.HTTP_200_OK)
async def get_movie_reviews(movie_id: PydanticObjectId, user=Depends(get_current_user)):
    try:
        reviews = await Review.find(
            Review.movie_id == movie_id, Review.is_deleted == False  # noqa: E712
        ).sort(-Review.created_at).to_list()
        usernames = await usernames_for(reviews)
    except Exception:
        logger.exception("Error fetching reviews")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error fetching reviews")

    return [to_response(review, usernames.get(review.user_id)) for review in reviews]


@router.delete("/{review_id}", status_code=status.HTTP_200_OK)
async def delete_review(review_id: PydanticObjectId, admin=Depends(get_current_admin)):
    review = await Review.get(review_id)
    if not review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")

    try:
        await soft_delete_review(review)
    except Exception:
        logger.exception("Error deleting review")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error deleting review")

    await persist_rating_update(review.movie_id)

    return {"success": True}


async def usernames_for(reviews) -> dict:
    user_ids = list({review.user_id for review in reviews})
    if not user_ids:
        return {}
    users = await User.find(In(User.id, user_ids)).to_list()
    return {user.id: user.username for user in users}
