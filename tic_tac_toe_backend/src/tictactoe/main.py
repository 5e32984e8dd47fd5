import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import jwt
from fastapi import Depends, FastAPI, HTTPException, Response, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordBearer

from .config import Settings, get_settings
from .controller import GameController
from .models import CommandResponse, GameSnapshot, ModeRequest, MoveRequest, TokenResponse
from .remote import RemoteMoveStrategy

ALGORITHM = "HS256"

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# In-memory session store: session_id -> {controller, expires_at}. Nothing survives a restart.
sessions_db: Dict[str, Dict[str, Any]] = {}

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="sessions")

app = FastAPI(
    title="Tic Tac Toe API",
    description="Game sessions for the Tic Tac Toe frontend: mode selection, moves, restarts and live updates.",
    version="0.2.0",
    openapi_tags=[
        {"name": "session", "description": "Create a game session"},
        {"name": "game", "description": "Read and play the current game"},
        {"name": "ws", "description": "Websockets for real-time updates"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


##---- Utility Functions ----##
def create_controller(config: Settings) -> GameController:
    return GameController(remote=RemoteMoveStrategy(config), move_delay=config.ai_move_delay)


# PUBLIC_INTERFACE
def create_access_token(data: dict, config: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token with optional expiry."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.secret_key, algorithm=ALGORITHM)


def decode_session_id(token: str, config: Settings) -> str:
    """Return the session id carried by `token`. Raises jwt.PyJWTError on a bad token."""
    payload = jwt.decode(token, config.secret_key, algorithms=[ALGORITHM])
    session_id = payload.get("sub")
    if not session_id:
        raise jwt.InvalidTokenError("Token has no subject")
    return session_id


# PUBLIC_INTERFACE
def prune_expired_sessions(now: Optional[datetime] = None) -> int:
    """Drop sessions whose token has expired. Returns how many were removed."""
    now = now or datetime.now(timezone.utc)
    expired = [sid for sid, rec in sessions_db.items() if rec["expires_at"] <= now]
    for sid in expired:
        del sessions_db[sid]
    if expired:
        logger.info("Pruned %d expired session(s)", len(expired))
    return len(expired)


def find_session(session_id: str) -> Optional[GameController]:
    prune_expired_sessions()
    session_rec = sessions_db.get(session_id)
    return session_rec["controller"] if session_rec else None


async def get_current_session_id(
    token: str = Depends(oauth2_scheme), config: Settings = Depends(get_settings)
) -> str:
    """Decode JWT into a session id. Raises on error."""
    try:
        return decode_session_id(token, config)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")


async def get_current_session(session_id: str = Depends(get_current_session_id)) -> GameController:
    """Load the caller's controller. Raises 404 for unknown or expired sessions."""
    controller = find_session(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return controller


@app.get("/", tags=["health"])
def health_check():
    """Health check route for backend"""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@app.post("/sessions", response_model=TokenResponse, tags=["session"], summary="Create game session")
async def create_session(config: Settings = Depends(get_settings)):
    """Create a new session in mode selection. Returns the JWT that identifies it."""
    prune_expired_sessions()
    session_id = uuid.uuid4().hex
    lifetime = timedelta(minutes=config.token_expire_minutes)
    sessions_db[session_id] = {
        "controller": create_controller(config),
        "expires_at": datetime.now(timezone.utc) + lifetime,
    }
    logger.info("Session %s created", session_id)
    token = create_access_token({"sub": session_id}, config, expires_delta=lifetime)
    return TokenResponse(access_token=token, token_type="bearer")


# PUBLIC_INTERFACE
@app.delete("/sessions", status_code=204, tags=["session"], summary="End game session")
async def end_session(session_id: str = Depends(get_current_session_id)):
    """Forget the caller's session. Unknown sessions give 404."""
    if sessions_db.pop(session_id, None) is None:
        raise HTTPException(status_code=404, detail="Session not found")
    logger.info("Session %s ended", session_id)
    return Response(status_code=204)


# PUBLIC_INTERFACE
@app.get("/game", response_model=GameSnapshot, tags=["game"], summary="Get current game state")
async def get_game(controller: GameController = Depends(get_current_session)):
    """Board, turn, outcome and score of the caller's session."""
    return controller.snapshot()


# PUBLIC_INTERFACE
@app.post("/mode", response_model=CommandResponse, tags=["game"], summary="Select game mode")
async def select_mode(request: ModeRequest, controller: GameController = Depends(get_current_session)):
    """Start playing in pvp or ai mode. Resets board and score."""
    accepted = controller.select_mode(request.mode)
    return CommandResponse(accepted=accepted, game=controller.snapshot())


# PUBLIC_INTERFACE
@app.post("/move", response_model=CommandResponse, tags=["game"], summary="Make a move")
async def make_move(request: MoveRequest, controller: GameController = Depends(get_current_session)):
    """Play a cell. Occupied cells, finished games and the AI's turn are ignored."""
    accepted = controller.play_at(request.index)
    return CommandResponse(accepted=accepted, game=controller.snapshot())


# PUBLIC_INTERFACE
@app.post("/restart", response_model=CommandResponse, tags=["game"], summary="Restart game")
async def restart_game(controller: GameController = Depends(get_current_session)):
    """Start a new game but keep scores and mode."""
    accepted = controller.restart()
    return CommandResponse(accepted=accepted, game=controller.snapshot())


# PUBLIC_INTERFACE
@app.post("/new_game", response_model=CommandResponse, tags=["game"], summary="New game")
async def new_game(controller: GameController = Depends(get_current_session)):
    """Go back to mode selection, clearing scores."""
    accepted = controller.new_game()
    return CommandResponse(accepted=accepted, game=controller.snapshot())


# PUBLIC_INTERFACE
@app.websocket("/ws/game")
async def websocket_game_updates(websocket: WebSocket, token: str, config: Settings = Depends(get_settings)):
    """
    WebSocket for pushing game snapshots. Usage: connect to ws://host/ws/game?token=<session token>.
    Sends the current snapshot on connect and one snapshot after every change.
    Send 'ping' for a pong.
    """
    try:
        controller = find_session(decode_session_id(token, config))
    except jwt.PyJWTError:
        controller = None
    if controller is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    # Single outbox: only push_updates writes to the socket.
    outbox: "asyncio.Queue[Union[GameSnapshot, str]]" = asyncio.Queue()
    outbox.put_nowait(controller.snapshot())
    unsubscribe = controller.subscribe(outbox.put_nowait)

    async def push_updates() -> None:
        while True:
            message = await outbox.get()
            if isinstance(message, GameSnapshot):
                await websocket.send_json(message.model_dump())
            else:
                await websocket.send_text(message)

    pusher = asyncio.create_task(push_updates())
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                outbox.put_nowait("pong")
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        pusher.cancel()


# Misc: Docs route for websocket usage notes
@app.get("/websocket_info", tags=["ws"], summary="Get websocket usage instructions")
def websocket_info():
    """Instructions for real-time connection via websocket."""
    return {
        "usage":
            "Connect using WebSocket at ws://HOST/ws/game?token=<session token> to receive game snapshots "
            "in real-time. The current snapshot is sent on connect, then one per change."
    }
