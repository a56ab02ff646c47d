"""
Profile response model for `/api/profile`.

Why:
    The resolved actor profile is the one piece of identity data the browser
    may read. A Pydantic model pins its JSON shape so internal fields never
    leak by accident.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from identity_access.domain import Role, role_display_name
from identity_access.profiles import ActorProfile


class ProfileOut(BaseModel):
    """Public view of an ActorProfile"""
    id: str
    email: str
    full_name: str
    role: Role
    role_label: str = Field(..., description="Human readable role name")
    player_id: Optional[str] = None

    model_config = {
        # Use enum values in JSON
        "use_enum_values": True,
        "json_schema_extra": {
            "example": {
                "id": "user-coach",
                "email": "coach@test.com",
                "full_name": "Chris Coach",
                "role": "coach",
                "role_label": "Coach",
                "player_id": None,
            }
        },
    }

    @classmethod
    def from_profile(cls, profile: ActorProfile) -> "ProfileOut":
        return cls(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
            role_label=role_display_name(profile.role),
            player_id=profile.player_id,
        )
