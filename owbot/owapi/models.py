"""Response models for the OWAPI ``u/<tag>/stats`` endpoint.

Numeric fields are validated strictly, but a field whose value has the
wrong type does not fail the whole document: the field is left at its zero
value and a warning is logged. Partial stats are more useful to a chat user
than none.
"""

import logging
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

logger = logging.getLogger(__name__)


class _TolerantModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("*", mode="wrap")
    @classmethod
    def _zero_on_type_error(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError as e:
            logger.warning(
                f"Ignoring type error for {cls.__name__}.{info.field_name}: {e}"
            )
            return cls.model_fields[info.field_name].get_default(
                call_default_factory=True
            )


class OverallStats(_TolerantModel):
    comprank: StrictInt = 0
    games: StrictInt = 0
    level: StrictInt = 0
    losses: StrictInt = 0
    prestige: StrictInt = 0
    wins: StrictInt = 0
    win_rate: StrictFloat = 0.0


class GameStats(_TolerantModel):
    deaths: StrictFloat = 0.0
    eliminations: StrictFloat = 0.0
    solo_kills: StrictFloat = 0.0
    kpd: StrictFloat = 0.0
    time_played: StrictFloat = 0.0
    medals: StrictFloat = 0.0
    medals_gold: StrictFloat = 0.0
    medals_silver: StrictFloat = 0.0
    medals_bronze: StrictFloat = 0.0


class UserStats(_TolerantModel):
    """Competitive stats for one BattleTag in one region.

    ``battle_tag`` and ``region`` are not part of the API payload; the client
    fills them in after picking a region.
    """

    battle_tag: str = ""
    region: str = ""
    overall_stats: OverallStats = Field(default_factory=OverallStats)
    game_stats: GameStats = Field(default_factory=GameStats)


class GameModes(_TolerantModel):
    competitive: UserStats | None = None


class RegionStats(_TolerantModel):
    """One region's entry of a stats response."""

    stats: GameModes = Field(default_factory=GameModes)

    @property
    def competitive(self) -> UserStats | None:
        return self.stats.competitive

    @property
    def games(self) -> int:
        if self.competitive is None:
            return 0
        return self.competitive.overall_stats.games
