from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .rules import GameConfig
from .shapes import MAX_LEVEL, get_piece, piece_sort_key

logger = logging.getLogger(__name__)


@dataclass
class HandPiece:
    piece_type: str
    expiry: Optional[int] = None

    @property
    def level(self) -> int:
        return get_piece(self.piece_type).level

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.piece_type}
        if self.expiry is not None:
            data["expiry"] = self.expiry
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HandPiece":
        expiry = data.get("expiry")
        return cls(piece_type=str(data["type"]), expiry=int(expiry) if expiry is not None else None)


class Hand:
    """The player's pieces. Order is insertion order; `sorted()` is for display."""

    def __init__(self, config: GameConfig, pieces: Optional[Iterable[HandPiece]] = None) -> None:
        self.config = config
        self.pieces: List[HandPiece] = list(pieces or [])

    def __len__(self) -> int:
        return len(self.pieces)

    def __getitem__(self, index: int) -> HandPiece:
        return self.pieces[index]

    def __iter__(self):
        return iter(self.pieces)

    def types(self) -> List[str]:
        return [p.piece_type for p in self.pieces]

    @property
    def is_full(self) -> bool:
        limit = self.config.hand_limit
        return limit is not None and len(self.pieces) >= limit

    def add(self, piece_type: str) -> bool:
        """Append a new piece; False if the hand limit rejects it."""
        get_piece(piece_type)
        if self.is_full:
            logger.info("Hand full, discarding %s", piece_type)
            return False
        expiry = self.config.piece_expiry_turns
        self.pieces.append(HandPiece(piece_type, expiry))
        return True

    def restore(self, piece: HandPiece) -> None:
        # Undo path: the piece came from this hand, so the limit does not apply
        self.pieces.append(piece)

    def remove(self, index: int) -> HandPiece:
        return self.pieces.pop(index)

    def tick(self) -> int:
        """Count down expiries; drop pieces reaching 0. Returns how many were dropped."""
        kept: List[HandPiece] = []
        dropped = 0
        for piece in self.pieces:
            if piece.expiry is not None:
                piece.expiry -= 1
                if piece.expiry <= 0:
                    dropped += 1
                    continue
            kept.append(piece)
        self.pieces = kept
        return dropped

    def rewind(self) -> None:
        for piece in self.pieces:
            if piece.expiry is not None:
                piece.expiry += 1

    def sorted(self) -> List[HandPiece]:
        return sorted(self.pieces, key=lambda p: piece_sort_key(p.piece_type))

    def can_sacrifice(self, indices: Sequence[int]) -> bool:
        if len(indices) != 3 or len(set(indices)) != 3:
            return False
        if any(i < 0 or i >= len(self.pieces) for i in indices):
            return False
        levels = {self.pieces[i].level for i in indices}
        return len(levels) == 1 and levels.pop() < MAX_LEVEL

    def take(self, indices: Sequence[int]) -> List[HandPiece]:
        taken = [self.pieces[i] for i in indices]
        for i in sorted(indices, reverse=True):
            self.pieces.pop(i)
        return taken
