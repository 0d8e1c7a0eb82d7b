from datetime import datetime
from pydantic import BaseModel, Field

MAX_COMMENT_LENGTH = 500


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=3, max_length=MAX_COMMENT_LENGTH)


class ReviewOut(BaseModel):
    id: str
    userId: str
    cruiseId: str
    rating: int
    comment: str
    createdAt: datetime


def review_out(review) -> ReviewOut:
    return ReviewOut(
        id=review.id,
        userId=review.user_id,
        cruiseId=review.cruise_id,
        rating=review.rating,
        comment=review.comment,
        createdAt=review.created_at,
    )
