from __future__ import annotations

from dataclasses import dataclass

import pygame  # type: ignore[import-not-found]

# Tried in order; pygame falls back to its default font when none exist.
EMOJI_FONTS = "notocoloremoji,segoeuiemoji,applecoloremoji,symbola"


@dataclass
class Fonts:
    ui: pygame.font.Font
    small: pygame.font.Font
    big: pygame.font.Font
    timer: pygame.font.Font
    symbol: pygame.font.Font


class AssetManager:
    def __init__(self) -> None:
        self._symbol_cache: dict[tuple[str, int], pygame.Surface] = {}

        pygame.font.init()
        self.fonts = Fonts(
            ui=pygame.font.SysFont(None, 26),
            small=pygame.font.SysFont(None, 20),
            big=pygame.font.SysFont(None, 44),
            timer=pygame.font.SysFont("monospace", 34, bold=True),
            symbol=pygame.font.SysFont(EMOJI_FONTS, 48),
        )

    def symbol_image(self, symbol: str, size: int) -> pygame.Surface:
        key = (symbol, size)
        if key in self._symbol_cache:
            return self._symbol_cache[key]
        img = self.fonts.symbol.render(symbol, True, (20, 20, 20))
        if img.get_height() > 0 and img.get_height() != size:
            scale = size / img.get_height()
            img = pygame.transform.smoothscale(
                img, (max(1, int(img.get_width() * scale)), size)
            )
        self._symbol_cache[key] = img
        return img
