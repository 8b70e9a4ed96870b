"""
Upstream payload schemas.

Only the fields the tracker needs are declared; everything else in the
upstream documents is ignored.
"""

from pydantic import BaseModel, ConfigDict

from arenagod.models.match import MatchParticipant


class RiotAccountPayload(BaseModel):
    """Account lookup response."""

    model_config = ConfigDict(extra="ignore")

    puuid: str
    gameName: str
    tagLine: str


class RiotErrorStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status_code: int
    message: str


class RiotErrorPayload(BaseModel):
    """Error body returned with non-success statuses."""

    model_config = ConfigDict(extra="ignore")

    status: RiotErrorStatus


class MatchParticipantPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    puuid: str
    championName: str
    placement: int

    def to_participant(self) -> MatchParticipant:
        return MatchParticipant(
            puuid=self.puuid,
            champion_name=self.championName,
            placement=self.placement,
        )


class MatchInfoBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    participants: list[MatchParticipantPayload]


class MatchInfoPayload(BaseModel):
    """Match detail response (the `info` section only)."""

    model_config = ConfigDict(extra="ignore")

    info: MatchInfoBody

    def to_participants(self) -> list[MatchParticipant]:
        return [p.to_participant() for p in self.info.participants]
