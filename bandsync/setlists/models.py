"""Data models for the setlists blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bandsync.core.collection import GroupRecord
from bandsync.core.documents import as_int, require_str
from bandsync.errors import DecodeError, ValidationError


@dataclass
class Song:
    """One song of a setlist."""

    title: str
    duration_seconds: int = 0
    bpm: int = 0

    @property
    def formatted_duration(self) -> str:
        """Return the duration as m:ss."""
        minutes, seconds = divmod(self.duration_seconds, 60)
        return f"{minutes}:{seconds:02d}"


@dataclass
class Setlist(GroupRecord):
    """A setlist document in Firestore."""

    id: str
    group_id: str
    name: str
    songs: list[Song] = field(default_factory=list)

    @property
    def total_duration(self) -> int:
        """Return the running time of all songs in seconds."""
        return sum(song.duration_seconds for song in self.songs)

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = DecodeError) -> Setlist:
        raw_songs = data.get("songs") or []
        if not isinstance(raw_songs, list):
            raise error("Field 'songs' must be a list.")
        songs = []
        for raw in raw_songs:
            if not isinstance(raw, dict):
                raise error("Songs must be objects.")
            songs.append(
                Song(
                    title=require_str(raw, "title", error=error),
                    duration_seconds=as_int(
                        raw, "durationSeconds", default=0, error=error
                    ),
                    bpm=as_int(raw, "bpm", default=0, error=error),
                )
            )
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            name=require_str(data, "name", error=error),
            songs=songs,
        )

    def validate(self) -> None:
        for song in self.songs:
            if song.duration_seconds < 0 or song.bpm < 0:
                raise ValidationError("Song duration and BPM cannot be negative.")

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "name": self.name,
            "songs": [
                {
                    "title": song.title,
                    "durationSeconds": song.duration_seconds,
                    "bpm": song.bpm,
                }
                for song in self.songs
            ],
        }

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["totalDuration"] = self.total_duration
        return data
