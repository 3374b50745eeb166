from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ClassifyPhotoRequest(BaseModel):
    photo_id: str = Field(..., min_length=1)
    restaurant_id: str = Field(..., min_length=1)
    image_url: Optional[str] = Field(None, description="Readable URL of the photo")
    file_path: Optional[str] = Field(None, description="Storage key, signed server-side when no URL is given")


class ClassifyPhotoAccepted(BaseModel):
    photo_id: str
    status: Literal["accepted"] = "accepted"
