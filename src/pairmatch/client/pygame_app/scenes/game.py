from __future__ import annotations

import math

import pygame  # type: ignore[import-not-found]

from pairmatch.engine.session import GameSession
from pairmatch.engine.timer import format_clock
from pairmatch.engine.types import CardView, TimerDisplay

from ..app import GameContext
from ..scene_base import Navigates, SceneTransition
from ..ui import Button, Color, draw_text_centered

COLUMNS = 3
GAP = 10
TOP_BAR = 70

URGENCY_COLORS: dict[str, Color] = {
    "normal": (240, 240, 240),
    "warning": (240, 160, 40),
    "critical": (240, 70, 70),
}


class GameScene(Navigates):
    def __init__(self, ctx: GameContext) -> None:
        assert ctx.session is not None and ctx.game_content is not None
        self.ctx = ctx
        self.session: GameSession = ctx.session
        self._clock = 0.0
        self._rects: list[pygame.Rect] = []
        self._layout_key: tuple[int, int] | None = None
        self._reported_phase = self.session.get_phase()
        self._seen_generation = self.session.board_generation
        self._flash = 0.0

        w, h = ctx.screen.get_size()
        self.btn_back = Button(pygame.Rect(16, 16, 60, 40), "<", self._on_back)
        self.btn_reset = Button(pygame.Rect(w - 76, 16, 60, 40), "Reset", self._on_reset)
        self.btn_again = Button(pygame.Rect(w // 2 - 110, h // 2 + 90, 220, 52), "Play Again", self._on_back)

    def _on_back(self) -> None:
        from .setup import SetupScene

        self.session.abandon()
        self._go(SetupScene(self.ctx))

    def _on_reset(self) -> None:
        self.session.reset()

    def _layout(self, count: int) -> list[pygame.Rect]:
        w, h = self.ctx.screen.get_size()
        key = (count, w * 10000 + h)
        if key == self._layout_key:
            return self._rects
        rows = max(1, math.ceil(count / COLUMNS))
        cell_w = (w - 2 * GAP - (COLUMNS - 1) * GAP) // COLUMNS
        cell_h = (h - TOP_BAR - GAP - (rows - 1) * GAP) // rows
        side = max(24, min(cell_w, int(cell_h * 1.4)))
        card_w, card_h = side, min(cell_h, int(side / 1.4))
        grid_w = COLUMNS * card_w + (COLUMNS - 1) * GAP
        x0 = (w - grid_w) // 2
        self._rects = [
            pygame.Rect(
                x0 + (i % COLUMNS) * (card_w + GAP),
                TOP_BAR + (i // COLUMNS) * (card_h + GAP),
                card_w,
                card_h,
            )
            for i in range(count)
        ]
        self._layout_key = key
        return self._rects

    def handle_event(self, event: pygame.event.Event) -> None:
        phase = self.session.get_phase()
        if phase in ("won", "lost"):
            self.btn_again.handle_event(event)
            return
        if self.btn_back.handle_event(event) or self.btn_reset.handle_event(event):
            return
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self._on_back()
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            cards = self.session.get_board_snapshot()
            for i, r in enumerate(self._layout(len(cards))):
                if r.collidepoint(event.pos):
                    self.session.tap_card(i)
                    return

    def update(self, dt: float) -> SceneTransition | None:
        self._clock += dt
        self._flash = max(0.0, self._flash - dt)
        generation = self.session.board_generation
        if generation != self._seen_generation:
            self._seen_generation = generation
            # Mid-game rebuilds come from Impossible/Genie misses; a reset also lands here.
            self._flash = 0.8
        phase = self.session.get_phase()
        if phase != self._reported_phase:
            self._reported_phase = phase
            if phase in ("won", "lost"):
                t = self.session.get_timer_display()
                self.ctx.telemetry.log("game_over", {"phase": phase, "elapsed": t.elapsed, "remaining": t.remaining})
        return self._take_transition()

    def _timer_text(self, t: TimerDisplay) -> tuple[str, Color]:
        if t.has_countdown:
            return format_clock(t.remaining), URGENCY_COLORS[t.urgency]
        return format_clock(t.elapsed), URGENCY_COLORS["normal"]

    def _draw_card(self, screen: pygame.Surface, card: CardView, rect: pygame.Rect, shake: int) -> None:
        r = rect.move(shake, 0) if not card.matched else rect
        if not card.face_up:
            pygame.draw.rect(screen, (50, 90, 170), r, border_radius=10)
            pygame.draw.rect(screen, (20, 40, 90), r, width=3, border_radius=10)
            return
        if card.matched:
            bg: Color = (70, 160, 90)
        elif card.mismatched:
            bg = (200, 70, 70)
        else:
            bg = (235, 235, 235)
        pygame.draw.rect(screen, bg, r, border_radius=10)
        img = self.ctx.assets.symbol_image(card.content, max(16, int(r.height * 0.55)))
        screen.blit(img, img.get_rect(center=r.center).topleft)

    def _draw_overlay(self, screen: pygame.Surface) -> None:
        mode = self.session.get_mode()
        content = self.ctx.game_content
        if mode is None or content is None:
            return
        copy = content.copy_for(mode)
        w, h = screen.get_size()
        shade = pygame.Surface((w, h), pygame.SRCALPHA)
        shade.fill((0, 0, 0, 140))
        screen.blit(shade, (0, 0))
        fonts = self.ctx.assets.fonts
        if self.session.get_phase() == "won":
            title, subtitle = copy.win_title, copy.win_text(self.session.get_timer_display())
            self.btn_again.text = "Play Again"
        else:
            title, subtitle = copy.lose_title, copy.lose_subtitle
            icon = self.ctx.assets.symbol_image(copy.lose_emoji, 72)
            screen.blit(icon, icon.get_rect(center=(w // 2, h // 2 - 120)).topleft)
            self.btn_again.text = "Try Again"
        draw_text_centered(screen, fonts.big, title, (w // 2, h // 2 - 40))
        draw_text_centered(screen, fonts.ui, subtitle, (w // 2, h // 2 + 30), color=(220, 220, 220))
        self.btn_again.draw(screen, fonts.ui)

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((24, 24, 30))
        w, _ = screen.get_size()
        fonts = self.ctx.assets.fonts
        mode = self.session.get_mode()
        content = self.ctx.game_content
        if mode is not None and content is not None:
            draw_text_centered(screen, fonts.small, content.copy_for(mode).title, (w // 2 - 120, 36), color=(170, 170, 170))
        text, color = self._timer_text(self.session.get_timer_display())
        draw_text_centered(screen, fonts.timer, text, (w // 2 + 40, 36), color=color)
        self.btn_back.draw(screen, fonts.ui)
        self.btn_reset.draw(screen, fonts.ui)

        cards = self.session.get_board_snapshot()
        shake = int(6 * math.sin(self._clock * 40)) if self.session.is_shaking() else 0
        for card, rect in zip(cards, self._layout(len(cards))):
            self._draw_card(screen, card, rect, shake)

        if self._flash > 0 and self.session.get_phase() == "playing":
            _, h = screen.get_size()
            draw_text_centered(screen, fonts.ui, "Shuffled!", (w // 2, h - 24), color=(240, 200, 80))

        if self.session.get_phase() in ("won", "lost"):
            self._draw_overlay(screen)
