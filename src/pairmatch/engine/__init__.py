"""Deterministic, headless game engine for pairmatch.

IMPORTANT: This package must never import pygame.
"""

from .actions import AbandonAction, AdvanceClockAction, ResetAction, StartGameAction, TapCardAction
from .board import Board, deal
from .match import MatchEngine, SessionConfig
from .scheduler import ManualScheduler, Scheduler
from .session import GameSession, apply_action, replay
from .timer import TimerController, format_clock
from .types import (
    Card,
    CardView,
    Challenge,
    ConfigError,
    FreePlay,
    Genie,
    Impossible,
    Mode,
    Phase,
    TimerDisplay,
    mode_from_key,
)

__all__ = [
    "AbandonAction",
    "AdvanceClockAction",
    "Board",
    "Card",
    "CardView",
    "Challenge",
    "ConfigError",
    "FreePlay",
    "GameSession",
    "Genie",
    "Impossible",
    "ManualScheduler",
    "MatchEngine",
    "Mode",
    "Phase",
    "ResetAction",
    "Scheduler",
    "SessionConfig",
    "StartGameAction",
    "TapCardAction",
    "TimerController",
    "TimerDisplay",
    "apply_action",
    "deal",
    "format_clock",
    "mode_from_key",
    "replay",
]
