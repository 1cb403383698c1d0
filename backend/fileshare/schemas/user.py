from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel
from datetime import datetime

class UserBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    fullname: str
    email: EmailStr

class UserCreate(UserBase):
    pass

class User(UserBase):
    id: int
    total_uploads: int = 0
    total_downloads: int = 0
    image_count: int = 0
    video_count: int = 0
    document_count: int = 0
    created_at: Optional[datetime] = None
