from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, List, Tuple

Symbol = str  # 'heart', 'star', ...
TileId = int


class TileStatus(str, Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED = "matched"


@dataclass(frozen=True)
class Tile:
    """One card on the board. The symbol never changes once dealt."""
    id: TileId
    symbol: Symbol
    status: TileStatus = TileStatus.HIDDEN

    @property
    def is_hidden(self) -> bool:
        return self.status is TileStatus.HIDDEN

    @property
    def is_matched(self) -> bool:
        return self.status is TileStatus.MATCHED

    def with_status(self, status: TileStatus) -> 'Tile':
        return replace(self, status=status)


@dataclass(frozen=True)
class Board:
    """Represents the dealt board: an ordered, immutable sequence of tiles."""
    tiles: Tuple[Tile, ...]

    @classmethod
    def from_symbols(cls, symbols: Iterable[Symbol]) -> 'Board':
        """Builds an all-hidden board, numbering tiles by position."""
        return cls(tiles=tuple(Tile(id=i, symbol=s) for i, s in enumerate(symbols)))

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def at(self, tile_id: TileId) -> Tile:
        """Gets a tile by id. Ids outside the board are a caller bug and raise IndexError."""
        if not isinstance(tile_id, int) or isinstance(tile_id, bool):
            raise IndexError(f"tile id must be an int, got {tile_id!r}")
        if not 0 <= tile_id < len(self.tiles):
            raise IndexError(f"tile id {tile_id} out of range 0..{len(self.tiles) - 1}")
        return self.tiles[tile_id]

    def symbols(self) -> Tuple[Symbol, ...]:
        return tuple(t.symbol for t in self.tiles)

    def with_status(self, tile_ids: Iterable[TileId], status: TileStatus) -> 'Board':
        """Returns a copy of the board with the given tiles set to status."""
        ids = set(tile_ids)
        return Board(tiles=tuple(t.with_status(status) if t.id in ids else t for t in self.tiles))

    def ids_with_status(self, status: TileStatus) -> List[TileId]:
        return [t.id for t in self.tiles if t.status is status]

    def matched_count(self) -> int:
        return len(self.ids_with_status(TileStatus.MATCHED))

    def all_matched(self) -> bool:
        return bool(self.tiles) and all(t.is_matched for t in self.tiles)

    def pretty(self, columns: int = 4) -> str:
        """Generates a human-readable grid: '·' hidden, symbol initial revealed, '*' matched."""
        lines: List[str] = []
        row: List[str] = []
        width = len(str(max(len(self.tiles) - 1, 0)))
        for tile in self.tiles:
            if tile.status is TileStatus.MATCHED:
                face = "*"
            elif tile.status is TileStatus.REVEALED:
                face = tile.symbol[:1].upper()
            else:
                face = "·"
            row.append(f"{tile.id:>{width}}:{face}")
            if len(row) == columns:
                lines.append("  ".join(row))
                row = []
        if row:
            lines.append("  ".join(row))
        return "\n".join(lines)
