from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pygame  # type: ignore[import-not-found]


Color = tuple[int, int, int]


def draw_text(
    screen: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: tuple[int, int],
    color: Color = (240, 240, 240),
) -> None:
    img = font.render(text, True, color)
    screen.blit(img, pos)


def draw_text_centered(
    screen: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    center: tuple[int, int],
    color: Color = (240, 240, 240),
) -> int:
    """Draw each line of `text` centered on `center`; returns the height used."""
    lines = text.splitlines() or [""]
    line_h = font.get_linesize()
    top = center[1] - (line_h * len(lines)) // 2
    for i, line in enumerate(lines):
        img = font.render(line, True, color)
        r = img.get_rect(center=(center[0], top + i * line_h + line_h // 2))
        screen.blit(img, r.topleft)
    return line_h * len(lines)


def wrap_text(font: pygame.font.Font, text: str, width: int) -> list[str]:
    out: list[str] = []
    for para in text.splitlines():
        line = ""
        for word in para.split():
            trial = f"{line} {word}".strip()
            if font.size(trial)[0] <= width or not line:
                line = trial
            else:
                out.append(line)
                line = word
        out.append(line)
    return out


@dataclass
class Button:
    rect: pygame.Rect
    text: str
    on_click: Callable[[], None]
    enabled: bool = True
    selected: bool = False
    color: Color = (60, 60, 60)

    def handle_event(self, event: pygame.event.Event) -> bool:
        if not self.enabled:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.on_click()
                return True
        return False

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        bg = self.color if self.enabled else (30, 30, 30)
        pygame.draw.rect(screen, bg, self.rect, border_radius=8)
        edge = (240, 240, 240) if self.selected else (0, 0, 0)
        pygame.draw.rect(screen, edge, self.rect, width=2, border_radius=8)
        img = font.render(self.text, True, (240, 240, 240))
        r = img.get_rect(center=self.rect.center)
        screen.blit(img, r.topleft)


@dataclass
class Toggle:
    rect: pygame.Rect
    label: str
    value: bool
    on_change: Callable[[bool], None]

    def handle_event(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.value = not self.value
                self.on_change(self.value)
                return True
        return False

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        pygame.draw.rect(screen, (40, 40, 40), self.rect, border_radius=8)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=2, border_radius=8)
        box = pygame.Rect(self.rect.x + 10, self.rect.y + 10, 22, 22)
        pygame.draw.rect(screen, (220, 220, 220), box, width=2)
        if self.value:
            pygame.draw.line(screen, (220, 220, 220), (box.x + 4, box.y + 12), (box.x + 10, box.y + 18), 3)
            pygame.draw.line(screen, (220, 220, 220), (box.x + 10, box.y + 18), (box.x + 18, box.y + 6), 3)
        txt = font.render(self.label, True, (240, 240, 240))
        screen.blit(txt, (box.right + 10, self.rect.y + 8))
