from __future__ import annotations

import json
from typing import Any, Callable, Dict, Union

from ..battleship.model import (
    AddShip,
    Adding,
    Command,
    GameState,
    GuessPos,
    Guessing,
    Location,
    MAX_BOARD_SIZE,
    Player,
    Ship,
    ShipDirection,
    Waiting,
    Won,
)
from ..errors import DecodeError

# Message types exchanged over the wire
# All messages are JSON objects with a 'type' field, one per text frame.
# Client -> server:
# - AddShip: { type: 'AddShip', loc: {x: int, y: int}, dir: 'Horz'|'Vert' }
# - GuessPos: { type: 'GuessPos', loc: {x: int, y: int} }
# Server -> client (full snapshots, each replaces the previous one):
# - Waiting: { type: 'Waiting' }
# - Adding: { type: 'Adding', ships: [[{x, y}, ...], ...], size: int }
# - Guessing: { type: 'Guessing', ... }
# - Won: { type: 'Won', who: 'Player1'|'Player2' }
# There is no version field and no heartbeat.

_SEPARATORS = (",", ":")


# --------------------------- Encoding ---------------------------

def location_to_wire(loc: Location) -> Dict[str, int]:
    return {"x": loc.x, "y": loc.y}


def command_to_wire(command: Command) -> Dict[str, Any]:
    if isinstance(command, AddShip):
        return {"type": AddShip.TAG, "loc": location_to_wire(command.loc), "dir": command.dir.value}
    if isinstance(command, GuessPos):
        return {"type": GuessPos.TAG, "loc": location_to_wire(command.loc)}
    raise TypeError(f"not a command: {command!r}")


def encode_command(command: Command) -> str:
    return json.dumps(command_to_wire(command), separators=_SEPARATORS)


def state_to_wire(state: GameState) -> Dict[str, Any]:
    if isinstance(state, Waiting):
        return {"type": Waiting.TAG}
    if isinstance(state, Adding):
        return {
            "type": Adding.TAG,
            "ships": [[location_to_wire(c) for c in ship] for ship in state.ships],
            "size": state.size,
        }
    if isinstance(state, Guessing):
        return {**state.fields, "type": Guessing.TAG}
    if isinstance(state, Won):
        return {"type": Won.TAG, "who": state.who.value}
    raise TypeError(f"not a game state: {state!r}")


def encode_state(state: GameState) -> str:
    return json.dumps(state_to_wire(state), separators=_SEPARATORS)


# --------------------------- Decoding ---------------------------

def _load_object(frame: Union[str, bytes]) -> Dict[str, Any]:
    if isinstance(frame, bytes):
        try:
            text = frame.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"frame is not UTF-8 ({exc.reason})", frame) from exc
    else:
        text = frame
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError) as exc:
        # RecursionError: nesting deeper than the decoder can follow
        raise DecodeError(f"frame is not JSON ({type(exc).__name__}: {exc})", frame) from exc
    if not isinstance(obj, dict):
        raise DecodeError("frame is not a JSON object", frame)
    if "type" not in obj:
        raise DecodeError("frame has no 'type' tag", frame)
    return obj


def _int(obj: Dict[str, Any], key: str) -> int:
    value = obj.get(key)
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    return value


def location_from_wire(obj: Any) -> Location:
    if not isinstance(obj, dict):
        raise ValueError(f"location must be an object, got {obj!r}")
    return Location(_int(obj, "x"), _int(obj, "y"))


def _ship_from_wire(obj: Any) -> Ship:
    if not isinstance(obj, list):
        raise ValueError(f"ship must be a list of locations, got {obj!r}")
    return Ship(tuple(location_from_wire(c) for c in obj))


def _decode_waiting(obj: Dict[str, Any]) -> Waiting:
    return Waiting()


def _decode_adding(obj: Dict[str, Any]) -> Adding:
    ships = obj.get("ships")
    if not isinstance(ships, list):
        raise ValueError(f"'ships' must be a list, got {ships!r}")
    size = _int(obj, "size")
    if not 0 < size <= MAX_BOARD_SIZE:
        raise ValueError(f"'size' must be between 1 and {MAX_BOARD_SIZE}, got {size}")
    return Adding(tuple(_ship_from_wire(s) for s in ships), size)


def _decode_guessing(obj: Dict[str, Any]) -> Guessing:
    return Guessing({k: v for k, v in obj.items() if k != "type"})


def _decode_won(obj: Dict[str, Any]) -> Won:
    return Won(Player(obj.get("who")))


_STATE_DECODERS: Dict[str, Callable[[Dict[str, Any]], GameState]] = {
    Waiting.TAG: _decode_waiting,
    Adding.TAG: _decode_adding,
    Guessing.TAG: _decode_guessing,
    Won.TAG: _decode_won,
}


def decode_state(frame: Union[str, bytes]) -> GameState:
    """Decode one server frame into a snapshot.

    Raises DecodeError for anything that is not a well-formed snapshot with a
    known tag. The caller must leave its current state untouched in that case.
    """
    obj = _load_object(frame)
    tag = obj["type"]
    decoder = _STATE_DECODERS.get(tag) if isinstance(tag, str) else None
    if decoder is None:
        raise DecodeError(f"unknown game state tag {tag!r}", frame)
    try:
        return decoder(obj)
    except ValueError as exc:
        raise DecodeError(f"malformed {tag} snapshot ({exc})", frame) from exc


def _decode_add_ship(obj: Dict[str, Any]) -> AddShip:
    return AddShip(location_from_wire(obj.get("loc")), ShipDirection(obj.get("dir")))


def _decode_guess_pos(obj: Dict[str, Any]) -> GuessPos:
    return GuessPos(location_from_wire(obj.get("loc")))


_COMMAND_DECODERS: Dict[str, Callable[[Dict[str, Any]], Command]] = {
    AddShip.TAG: _decode_add_ship,
    GuessPos.TAG: _decode_guess_pos,
}


def decode_command(frame: Union[str, bytes]) -> Command:
    obj = _load_object(frame)
    tag = obj["type"]
    decoder = _COMMAND_DECODERS.get(tag) if isinstance(tag, str) else None
    if decoder is None:
        raise DecodeError(f"unknown command tag {tag!r}", frame)
    try:
        return decoder(obj)
    except ValueError as exc:
        raise DecodeError(f"malformed {tag} command ({exc})", frame) from exc
