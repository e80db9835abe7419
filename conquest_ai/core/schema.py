"""
JSON snapshot format for game states.

Snapshots mirror the state the game UI keeps: lists of countries, players
and continents, the current player (either a name or a player object) and
the stage. Validation happens here, at the boundary; the engine itself only
ever sees well-typed dataclasses.
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator

from conquest_ai.core.constants import Phase
from conquest_ai.core.state import Country, Continent, Player, GameState


class CountryModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    owner: Optional[str] = None
    army: int = Field(default=0, ge=0)
    neighbours: List[str] = Field(default_factory=list)


class ContinentModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    areas: List[str] = Field(default_factory=list)
    bonus: int = 0


class PlayerModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    areas: List[str] = Field(default_factory=list)
    reserve: int = 0
    target_areas: Optional[int] = Field(default=None, alias="targetAreas")


class GameStateModel(BaseModel):
    """Validated snapshot of a game."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    countries: List[CountryModel] = Field(default_factory=list)
    players: List[PlayerModel] = Field(default_factory=list)
    current_player: Optional[str] = Field(default=None, alias="currentPlayer")
    continents: List[ContinentModel] = Field(default_factory=list)
    phase: Phase = Field(default=Phase.REINFORCEMENT, alias="stage")

    @field_validator("current_player", mode="before")
    @classmethod
    def _player_name(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("name")
        return value

    @field_validator("phase", mode="before")
    @classmethod
    def _parse_phase(cls, value: Any) -> Any:
        if value is None:
            return Phase.REINFORCEMENT
        phase = Phase.parse(value)
        if phase is None:
            raise ValueError(f"Unknown phase: {value!r}")
        return phase

    def to_state(self) -> GameState:
        return GameState(
            countries={
                c.name: Country(c.name, c.owner, c.army, list(c.neighbours))
                for c in self.countries
            },
            players=[
                Player(p.name, list(p.areas), p.reserve, p.target_areas) for p in self.players
            ],
            current_player=self.current_player,
            continents=[
                Continent(c.name, list(c.areas), c.bonus) for c in self.continents
            ],
            phase=self.phase,
        )


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """
    Validate a snapshot dictionary and build a GameState.

    Both "phase" and "stage" keys are accepted.

    Raises:
        pydantic.ValidationError: If the snapshot is malformed
    """
    return GameStateModel.model_validate(data).to_state()


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Serialize a GameState into the snapshot format."""
    return {
        "countries": [
            {"name": c.name, "owner": c.owner, "army": c.army, "neighbours": list(c.neighbours)}
            for c in state.countries.values()
        ],
        "players": [
            {
                "name": p.name,
                "areas": list(p.areas),
                "reserve": p.reserve,
                "targetAreas": p.target_areas,
            }
            for p in state.players
        ],
        "currentPlayer": state.current_player,
        "continents": [
            {"name": c.name, "areas": list(c.areas), "bonus": c.bonus}
            for c in state.continents
        ],
        "stage": state.phase.value,
    }


def read_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a raw, unvalidated snapshot from a JSON file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a JSON object
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be a JSON object, got {type(data).__name__}")
    return data


def snapshot_stage(data: Dict[str, Any]) -> Any:
    """The raw stage of a snapshot ("stage" or "phase" key), if any."""
    return data.get("stage", data.get("phase"))


def load_state(path: Union[str, Path]) -> GameState:
    """
    Load a snapshot from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        GameState object
    """
    return state_from_dict(read_snapshot(path))


def save_state(state: GameState, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(state), f, indent=2)
