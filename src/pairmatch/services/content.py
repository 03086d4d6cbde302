from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from pairmatch.engine.timer import format_clock
from pairmatch.engine.types import Mode, ModeKey, TimerDisplay

MODE_KEYS: tuple[ModeKey, ...] = ("free_play", "challenge", "impossible", "genie")


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _optional_str(obj: Mapping[str, object], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


@dataclass(frozen=True)
class ModeCopy:
    title: str
    emoji: str
    blurb: str
    start_label: str
    win_title: str
    win_subtitle: str
    lose_emoji: str
    lose_title: str
    lose_subtitle: str
    win_subtitle_untimed: str | None = None

    def win_text(self, timer: TimerDisplay) -> str:
        template = self.win_subtitle
        if not timer.has_countdown and self.win_subtitle_untimed is not None:
            template = self.win_subtitle_untimed
        return template.format(
            elapsed=format_clock(timer.elapsed),
            remaining=format_clock(timer.remaining),
        )


@dataclass(frozen=True)
class GameContent:
    symbols: tuple[str, ...]
    pair_options: tuple[int, ...]
    default_pairs: int
    default_duration_seconds: int
    modes: dict[ModeKey, ModeCopy]

    def copy_for(self, mode: Mode) -> ModeCopy:
        return self.modes[mode.key]


def _parse_mode_copy(raw: Mapping[str, object]) -> ModeCopy:
    return ModeCopy(
        title=_require_str(raw, "title"),
        emoji=_require_str(raw, "emoji"),
        blurb=_require_str(raw, "blurb"),
        start_label=_require_str(raw, "start_label"),
        win_title=_require_str(raw, "win_title"),
        win_subtitle=_require_str(raw, "win_subtitle"),
        win_subtitle_untimed=_optional_str(raw, "win_subtitle_untimed"),
        lose_emoji=_require_str(raw, "lose_emoji"),
        lose_title=_require_str(raw, "lose_title"),
        lose_subtitle=_require_str(raw, "lose_subtitle"),
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_content(self) -> GameContent:
        path = self._data_dir / "content.json"
        schema = _load_json(self._schema_dir / "content.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("content.json must be an object")

        symbols = tuple(s for s in raw.get("symbols", []) if isinstance(s, str))
        pair_options = tuple(sorted(p for p in raw.get("pair_options", []) if isinstance(p, int)))
        default_pairs = raw.get("default_pairs")
        default_duration = raw.get("default_duration_seconds")
        if not isinstance(default_pairs, int) or not isinstance(default_duration, int):
            raise ContentError("default_pairs and default_duration_seconds must be ints")

        # Cross-field rules the schema cannot express.
        if default_pairs not in pair_options:
            raise ContentError(f"default_pairs {default_pairs} is not one of {list(pair_options)}")
        if pair_options and pair_options[-1] > len(symbols):
            raise ContentError(
                f"pair option {pair_options[-1]} needs more symbols than the {len(symbols)} provided"
            )

        raw_modes = raw.get("modes")
        if not isinstance(raw_modes, dict):
            raise ContentError("content.json.modes must be an object")
        modes: dict[ModeKey, ModeCopy] = {}
        for key in MODE_KEYS:
            item = raw_modes.get(key)
            if not isinstance(item, dict):
                raise ContentError(f"Missing copy for mode {key}")
            modes[key] = _parse_mode_copy(item)

        return GameContent(
            symbols=symbols,
            pair_options=pair_options,
            default_pairs=default_pairs,
            default_duration_seconds=default_duration,
            modes=modes,
        )

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_content()
