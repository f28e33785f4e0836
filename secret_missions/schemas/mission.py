# secret_missions/schemas/mission.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MissionSubmit(BaseModel):
    """POST /api/missions/submit 用"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    game_id: str
    player_id: str
    mission_text: str = Field(min_length=1)

    @field_validator("mission_text")
    @classmethod
    def _strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Mission text is required")
        return v


class MissionOut(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    game_id: str
    entered_by: str
    assigned_to: Optional[str] = None
    mission_text: str
    is_revealed: bool
    created_at: datetime


class MissionEnvelope(BaseModel):
    mission: Optional[MissionOut] = None


class MissionAssignment(BaseModel):
    """missions_distributed イベントの1件分"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    player_id: str
    mission_id: str
