from __future__ import annotations

import argparse

import pygame  # type: ignore[import-not-found]

from pairmatch.engine.scheduler import ManualScheduler
from pairmatch.paths import get_paths
from pairmatch.services.content import ContentService
from pairmatch.services.telemetry import TelemetryService

from .app import App, GameContext
from .asset_manager import AssetManager
from .scenes.boot import BootScene


def main() -> int:
    parser = argparse.ArgumentParser(prog="pairmatch")
    parser.add_argument("--width", type=int, default=540)
    parser.add_argument("--height", type=int, default=820)
    parser.add_argument("--seed", type=int, default=None, help="fix the shuffle for reproducible boards")
    parser.add_argument("--no-telemetry", action="store_true")
    args = parser.parse_args()

    pygame.init()
    screen = pygame.display.set_mode((args.width, args.height))
    pygame.display.set_caption("Memory Game")

    clock = pygame.time.Clock()
    paths = get_paths()

    ctx = GameContext(
        screen=screen,
        clock=clock,
        paths=paths,
        assets=AssetManager(),
        content=ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir),
        telemetry=TelemetryService(paths.userdata_dir / "telemetry.jsonl", enabled=not args.no_telemetry),
        scheduler=ManualScheduler(),
        seed=args.seed,
    )

    app = App(ctx, BootScene(ctx))
    try:
        return app.run()
    finally:
        pygame.quit()


if __name__ == "__main__":
    raise SystemExit(main())
