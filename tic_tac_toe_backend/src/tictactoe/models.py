from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
class GameSnapshot(BaseModel):
    """Read-only view of a game session, rendered by the frontend."""

    model_config = ConfigDict(frozen=True)

    cells: List[Optional[Literal["X", "O"]]] = Field(..., description="9 cells in row-major order: X, O, or null.")
    turn: Literal["X", "O"] = Field(..., description="Player to move next.")
    mode: Literal["unselected", "pvp", "ai"] = Field(..., description="Selected game mode.")
    phase: Literal["mode_select", "in_progress", "game_over"] = Field(..., description="Controller state.")
    outcome: Literal["in_progress", "win", "draw"] = Field(..., description="Result derived from the board.")
    winner: Optional[Literal["X", "O"]] = Field(None, description="Winning player, if any.")
    score: Dict[str, int] = Field(..., description="Games won per player in this mode.")
    status: str = Field("", description="Human readable status line.")
    playable: List[bool] = Field(..., description="Cells a human may click right now.")
    automated_player: Optional[Literal["X", "O"]] = Field(None, description="Side played by the AI, if any.")


# PUBLIC_INTERFACE
class ModeRequest(BaseModel):
    """Request model to select a game mode."""
    mode: Literal["pvp", "ai"] = Field(..., description="Play against another human (pvp) or the AI (ai).")


# PUBLIC_INTERFACE
class MoveRequest(BaseModel):
    """Request model for making a move."""
    index: int = Field(..., ge=0, le=8, description="Cell index in row-major order (0-8).")


# PUBLIC_INTERFACE
class CommandResponse(BaseModel):
    """Result of a command. Ignored commands report accepted=false."""
    accepted: bool
    game: GameSnapshot


# PUBLIC_INTERFACE
class TokenResponse(BaseModel):
    """Returned session token after creating a game session."""
    access_token: str = Field(..., description="JWT access token for future requests.")
    token_type: str = Field(default="bearer", description="Type of the token.")
