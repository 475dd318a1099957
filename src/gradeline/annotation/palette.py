"""Highlight colour assignment for new annotations."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from gradeline.config import DEFAULT_PALETTE

if TYPE_CHECKING:
    from collections.abc import Sequence


class PaletteAssigner:
    """Hands out display colours from a fixed palette.

    Without a seed, colours cycle in palette order. With a seed, colours are
    sampled from a private ``random.Random`` so runs are reproducible.
    """

    def __init__(
        self, palette: Sequence[str] = DEFAULT_PALETTE, seed: int | None = None
    ) -> None:
        if not palette:
            raise ValueError("palette must contain at least one colour")
        self._palette = tuple(palette)
        self._seed = seed
        self._rng = random.Random(seed) if seed is not None else None
        self._next_index = 0

    @property
    def palette(self) -> tuple[str, ...]:
        return self._palette

    def next_color(self) -> str:
        """Get the colour for the next annotation."""
        if self._rng is not None:
            return self._rng.choice(self._palette)
        color = self._palette[self._next_index % len(self._palette)]
        self._next_index += 1
        return color

    def reset(self) -> None:
        """Restart the sequence from the beginning."""
        self._next_index = 0
        if self._seed is not None:
            self._rng = random.Random(self._seed)
