from __future__ import annotations

from dataclasses import dataclass

from worldstream.blocks import IMMOVABLE_BLOCKS, TOPSOIL
from worldstream.constants import BLOCK_SIZE


@dataclass(frozen=True)
class Block:
    x: float
    y: float
    kind: str
    size: int = BLOCK_SIZE

    @property
    def immovable(self) -> bool:
        return self.kind in IMMOVABLE_BLOCKS

    @property
    def is_topsoil(self) -> bool:
        return self.kind == TOPSOIL

    def key(self) -> tuple[float, float, str]:
        return self.x, self.y, self.kind
