from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pygame  # type: ignore[import-not-found]

from pairmatch.engine.scheduler import ManualScheduler
from pairmatch.engine.session import GameSession
from pairmatch.paths import Paths
from pairmatch.services.content import ContentService, GameContent
from pairmatch.services.telemetry import TelemetryService

from .asset_manager import AssetManager
from .scene_base import Scene


@dataclass
class GameContext:
    screen: pygame.Surface
    clock: pygame.time.Clock
    paths: Paths
    assets: AssetManager
    content: ContentService
    telemetry: TelemetryService
    scheduler: ManualScheduler
    seed: int | None = None

    # Loaded at boot
    game_content: Optional[GameContent] = None
    session: Optional[GameSession] = None


class App:
    def __init__(self, ctx: GameContext, initial_scene: Scene) -> None:
        self.ctx = ctx
        self.scene: Scene = initial_scene
        self.running = True

    def run(self) -> int:
        while self.running:
            dt = self.ctx.clock.tick(60) / 1000.0
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                    break
                self.scene.handle_event(event)

            # Engine time only moves here, once per frame.
            self.ctx.scheduler.advance(dt)

            tr = self.scene.update(dt)
            if tr is not None:
                self.scene = tr.next_scene

            self.scene.render(self.ctx.screen)
            pygame.display.flip()

        if self.ctx.session is not None and self.ctx.session.get_phase() != "setup":
            self.ctx.session.abandon()
        return 0
