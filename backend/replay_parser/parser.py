"""
League of Legends .rofl replay header reader.

Only the fixed 32-byte header is decoded:
┌──────────────────────────────────────┐
│ [0:4]   magic "ROFL" / "RIOT"        │
│ [4:8]   format version (uint32 LE)   │
│ [8:12]  file length                  │
│ [12:16] metadata offset              │
│ [16:20] metadata length              │
│ [20:24] payload header offset        │
│ [24:28] payload header length        │
│ [28:32] payload offset               │
└──────────────────────────────────────┘

Nothing past the header is decoded: no signature check, no metadata JSON,
no chunk/keyframe payload. Match statistics in a ReplayRecord are
synthesized by `backend.replay_parser.generator`, and every record says
whether its numbers came from a readable header or from the size-only
fallback.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, asdict
from typing import Any

HEADER_FORMAT = "<4s7I"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 32
ROFL_MAGICS = (b"ROFL", b"RIOT")


class RoflHeaderError(ValueError):
    """The buffer does not start with a readable .rofl header."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


@dataclass
class RoflHeader:
    magic: str
    version: int
    file_length: int
    metadata_offset: int
    metadata_length: int
    payload_header_offset: int
    payload_header_length: int
    payload_offset: int

    @property
    def has_metadata(self) -> bool:
        return self.metadata_length > 0

    def payload_length(self, file_size: int) -> int:
        return max(0, file_size - self.payload_offset)


@dataclass
class Participant:
    id: int
    champion: str
    team: int  # 100 = blue, 200 = red
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    cs: int = 0
    level: int = 1
    rank: int = 0
    evaluation: str = ""
    score: int = 0


@dataclass
class GameEvent:
    timestamp: int  # ms
    type: str
    participant_id: int
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ReplayRecord:
    """Match record produced for an uploaded replay."""

    file_name: str
    file_size: int
    duration: int  # seconds
    game_mode: str = "CLASSIC"
    map_id: int = 11
    map_name: str = "소환사의 협곡"
    game_version: str = ""
    participants: list[Participant] = field(default_factory=list)
    events: list[GameEvent] = field(default_factory=list)
    analysis: dict[str, Any] = field(default_factory=dict)
    # "header" when the 32-byte header was readable, "fallback" otherwise
    source: str = "header"
    fallback_reason: str | None = None
    header: RoflHeader | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RoflParser:
    """Reads the fixed .rofl header."""

    def parse_header(self, data: bytes) -> RoflHeader:
        if len(data) < HEADER_SIZE:
            raise RoflHeaderError(
                "truncated_header",
                f"File too small for a .rofl header ({len(data)} < {HEADER_SIZE} bytes)",
            )

        fields = struct.unpack_from(HEADER_FORMAT, data, 0)
        magic = fields[0]
        if magic not in ROFL_MAGICS:
            raise RoflHeaderError("bad_magic", f"Invalid .rofl file: unexpected magic {magic!r}")

        return RoflHeader(magic.decode("ascii"), *fields[1:])
