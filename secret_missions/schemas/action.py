# secret_missions/schemas/action.py

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ActionLiteral = Literal[
    "eliminate",
    "subtract_life",
    "add_point",
    "mission_completed",
]


class PlayerActionRequest(BaseModel):
    """POST /api/players/{player_id}/action 用"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: ActionLiteral
    value: Optional[int] = None  # 受け取るだけで未使用
    guessing_player_id: Optional[str] = None
