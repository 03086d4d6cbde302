from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from pairmatch.engine.timer import format_clock
from pairmatch.engine.types import ConfigError, ModeKey, mode_from_key
from pairmatch.services.content import MODE_KEYS

from ..app import GameContext
from ..scene_base import Navigates, SceneTransition
from ..ui import Button, Color, Toggle, draw_text, draw_text_centered, wrap_text

MODE_COLORS: dict[ModeKey, Color] = {
    "free_play": (46, 140, 70),
    "challenge": (200, 110, 30),
    "impossible": (180, 40, 40),
    "genie": (120, 60, 170),
}
SECONDS_STEP = 1


def step_duration(minutes: int, seconds: int, delta: int) -> tuple[int, int]:
    """Move the min/sec picker by `delta` seconds; whole minutes step the minute wheel."""
    if abs(delta) >= 60:
        return max(0, min(59, minutes + delta // 60)), seconds
    return minutes, max(0, min(59, seconds + delta))


class SetupScene(Navigates):
    """Pair-count picker, mode buttons and the per-mode start prompt."""

    def __init__(self, ctx: GameContext) -> None:
        assert ctx.game_content is not None
        self.ctx = ctx
        self.content = ctx.game_content
        self.pairs = self.content.default_pairs
        self.minutes, self.seconds = divmod(self.content.default_duration_seconds, 60)
        self.genie_uses_timer = False
        self._prompt: ModeKey | None = None
        self._error = ""
        self._buttons: list[Button] = []
        self._toggle: Toggle | None = None
        self._build_ui()

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    def _needs_timer(self, key: ModeKey) -> bool:
        if key in ("challenge", "impossible"):
            return True
        return key == "genie" and self.genie_uses_timer

    def _build_ui(self) -> None:
        w, _ = self.ctx.screen.get_size()
        self._toggle = None
        if self._prompt is None:
            self._build_menu(w)
        else:
            self._build_prompt(w, self._prompt)

    def _build_menu(self, w: int) -> None:
        options = self.content.pair_options
        seg_w = 64
        x0 = (w - seg_w * len(options)) // 2
        buttons: list[Button] = []
        for i, n in enumerate(options):
            buttons.append(
                Button(
                    rect=pygame.Rect(x0 + i * seg_w, 230, seg_w - 4, 40),
                    text=str(n),
                    on_click=lambda n=n: self._pick_pairs(n),
                    selected=n == self.pairs,
                )
            )
        y = 310
        for key in MODE_KEYS:
            buttons.append(
                Button(
                    rect=pygame.Rect(w // 2 - 180, y, 360, 56),
                    text=self.content.modes[key].title,
                    on_click=lambda key=key: self._open_prompt(key),
                    color=MODE_COLORS[key],
                )
            )
            y += 70
        self._buttons = buttons

    def _build_prompt(self, w: int, key: ModeKey) -> None:
        copy = self.content.modes[key]
        cx = w // 2
        buttons: list[Button] = []
        if key == "genie":
            self._toggle = Toggle(
                rect=pygame.Rect(cx - 120, 330, 240, 42),
                label="Use a Timer",
                value=self.genie_uses_timer,
                on_change=self._set_genie_timer,
            )
        if self._needs_timer(key):
            buttons += [
                Button(pygame.Rect(cx - 170, 400, 44, 40), "-", lambda: self._step(-60)),
                Button(pygame.Rect(cx - 70, 400, 44, 40), "+", lambda: self._step(60)),
                Button(pygame.Rect(cx + 30, 400, 44, 40), "-", lambda: self._step(-SECONDS_STEP)),
                Button(pygame.Rect(cx + 130, 400, 44, 40), "+", lambda: self._step(SECONDS_STEP)),
            ]
        start_enabled = not self._needs_timer(key) or self.total_seconds > 0
        buttons.append(
            Button(
                rect=pygame.Rect(cx - 150, 500, 300, 56),
                text=copy.start_label,
                on_click=self._start,
                enabled=start_enabled,
                color=MODE_COLORS[key],
            )
        )
        buttons.append(Button(pygame.Rect(cx - 80, 570, 160, 40), "Cancel", self._close_prompt))
        self._buttons = buttons

    def _pick_pairs(self, n: int) -> None:
        self.pairs = n
        self._build_ui()

    def _open_prompt(self, key: ModeKey) -> None:
        self._prompt = key
        self._error = ""
        self._build_ui()

    def _close_prompt(self) -> None:
        self._prompt = None
        self._build_ui()

    def _set_genie_timer(self, value: bool) -> None:
        self.genie_uses_timer = value
        self._build_ui()

    def _step(self, delta: int) -> None:
        self.minutes, self.seconds = step_duration(self.minutes, self.seconds, delta)
        self._build_ui()

    def _start(self) -> None:
        from .game import GameScene

        key = self._prompt
        session = self.ctx.session
        if key is None or session is None:
            return
        seconds = self.total_seconds if self._needs_timer(key) else None
        try:
            mode = mode_from_key(key, seconds)
            session.start_game(mode, self.pairs)
        except ConfigError as e:
            self._error = str(e)
            return
        self.ctx.telemetry.log("game_start", {"mode": key, "pairs": self.pairs, "seconds": seconds})
        self._go(GameScene(self.ctx))

    def handle_event(self, event: pygame.event.Event) -> None:
        if self._toggle is not None and self._toggle.handle_event(event):
            return
        for b in list(self._buttons):
            if b.handle_event(event):
                return
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE and self._prompt is not None:
            self._close_prompt()

    def update(self, dt: float) -> SceneTransition | None:
        return self._take_transition()

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((24, 24, 30))
        w, _ = screen.get_size()
        fonts = self.ctx.assets.fonts
        if self._prompt is None:
            draw_text_centered(screen, fonts.big, "Memory Game", (w // 2, 120))
            draw_text_centered(screen, fonts.ui, "Card Pairs", (w // 2, 205), color=(170, 170, 170))
        else:
            copy = self.content.modes[self._prompt]
            draw_text_centered(screen, fonts.big, copy.title, (w // 2, 80))
            y = 130
            for line in wrap_text(fonts.ui, copy.blurb, min(560, w - 80)):
                draw_text_centered(screen, fonts.ui, line, (w // 2, y), color=(190, 190, 190))
                y += fonts.ui.get_linesize()
            if self._needs_timer(self._prompt):
                draw_text(screen, fonts.ui, f"{self.minutes:2d} min", (w // 2 - 120, 410))
                draw_text(screen, fonts.ui, f"{self.seconds:02d} sec", (w // 2 + 80, 410))
                total = self.total_seconds
                hint = f"Total: {format_clock(total)}" if total > 0 else "Pick a time above"
                draw_text_centered(screen, fonts.small, hint, (w // 2, 465), color=(170, 170, 170))
            if self._error:
                draw_text_centered(screen, fonts.small, self._error, (w // 2, 630), color=(240, 80, 80))
        for b in self._buttons:
            b.draw(screen, fonts.ui)
        if self._prompt is None:
            for i, key in enumerate(MODE_KEYS):
                icon = self.ctx.assets.symbol_image(self.content.modes[key].emoji, 32)
                screen.blit(icon, icon.get_rect(midleft=(w // 2 - 168, 310 + i * 70 + 28)).topleft)
        if self._toggle is not None:
            self._toggle.draw(screen, fonts.ui)
