from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    username: str
    email: str
    profile_image: Optional[str] = Field("", alias="profileImage")
    bio: Optional[str] = ""
    location: Optional[str] = ""
    phone: Optional[str] = ""
    date_joined: Optional[datetime] = Field(None, alias="dateJoined")
