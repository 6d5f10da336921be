"""
Pydantic schemas shared by the connector layer and the API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TokenGrant(BaseModel):
    """
    Body of a successful answer from the Nuvemshop token endpoint.

    ``user_id`` is the store id; it is absent from some refresh answers.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None
    user_id: Optional[int] = None


class StoredToken(BaseModel):
    """A credential row, tokens already decrypted."""

    model_config = ConfigDict(from_attributes=True)

    store_id: int
    access_token: str
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None
    created_at: datetime


class RefreshResult(BaseModel):
    status: str = "refreshed"
    store_id: int
