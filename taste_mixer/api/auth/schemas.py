from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AuthUrlResponse(BaseModel):
    auth_url: str


class AuthStatusResponse(BaseModel):
    authenticated: bool
    state: str
    expires_at: Optional[datetime] = None


class ProfileResponse(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None
