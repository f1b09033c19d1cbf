"""Domain model for users referenced by product reviews.

Users are owned by the account service; the catalog only reads the
public fields it shows next to a review.
"""
from typing import Optional
from pydantic import BaseModel


class UserSummary(BaseModel):
    """Public view of a review author.

    Attributes:
        id: User identifier
        name: Display name
        email: Contact email, if on record
        image: Avatar URL, if on record
    """
    id: str
    name: str = ""
    email: Optional[str] = None
    image: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "65f0c2a9e4b0a1b2c3d4e5f6",
                "name": "Jane Smith",
                "email": "jane@example.com",
                "image": "https://cdn.example.com/avatars/jane.png"
            }
        }
