from __future__ import annotations

from datetime import datetime, timezone
import math
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, field_serializer, field_validator

from neurodrive.controller.network import Controller, ControllerSnapshot
from neurodrive.evolution.config import EvolutionConfig
from neurodrive.evolution.engine.core import EvolutionEngine
from neurodrive.exceptions import DimensionMismatchError, PersistenceError

MODEL_FORMAT_VERSION = 2


class SavedModel(BaseModel):
    """Best controller of a run together with the records that go with it."""

    version: int = Field(default=MODEL_FORMAT_VERSION, description="File format")
    generation: int = Field(ge=1, description="Generation the model was saved at")
    best_fitness: float = Field(default=0.0)
    best_laps: int = Field(default=0, ge=0)
    best_lap_time: float = Field(
        default=math.inf, description="Fastest lap (null in JSON when none)"
    )
    brain: ControllerSnapshot
    config: EvolutionConfig | None = Field(
        default=None, description="Configuration the model was trained with"
    )
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("best_lap_time")
    def _serialize_lap_time(self, value: float) -> float | None:
        return value if math.isfinite(value) else None

    @field_validator("best_lap_time", mode="before")
    @classmethod
    def _validate_lap_time(cls, value):
        return math.inf if value is None else value


def snapshot_engine(engine: EvolutionEngine) -> SavedModel:
    brain = engine.all_time_best or engine.best_controller
    if brain is None:
        raise PersistenceError("No model to save: no generation has been selected yet")
    return SavedModel(
        generation=engine.generation,
        best_fitness=engine.best_fitness,
        best_laps=engine.best_laps,
        best_lap_time=engine.best_lap_time,
        brain=brain.to_snapshot(),
        config=engine.config,
    )


def save_model(model: SavedModel, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(model.model_dump_json(indent=2), encoding="utf-8")
    logger.info(
        "[persistence] Model saved to {} (generation {}, best={:.1f})",
        path,
        model.generation,
        model.best_fitness,
    )
    return path


def load_model(path: str | Path) -> SavedModel:
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise PersistenceError(f"Cannot read model file {path}: {exc}") from exc
    try:
        model = SavedModel.model_validate_json(raw)
    except ValueError as exc:
        raise PersistenceError(f"Invalid model file {path}: {exc}") from exc
    logger.info(
        "[persistence] Model loaded from {} (generation {})", path, model.generation
    )
    return model


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def config_differences(
    saved: EvolutionConfig, current: EvolutionConfig
) -> list[tuple[str, Any, Any]]:
    """Dotted ``(field, saved, current)`` triples where the two configs disagree.

    The random seed is ignored: a resumed run never replays the saved stream.
    """
    saved_flat = _flatten(saved.model_dump(exclude={"seed"}))
    current_flat = _flatten(current.model_dump(exclude={"seed"}))
    return [
        (name, saved_flat.get(name), current_flat.get(name))
        for name in sorted(saved_flat.keys() | current_flat.keys())
        if saved_flat.get(name) != current_flat.get(name)
    ]


def saved_settings(model: SavedModel) -> dict[str, Any]:
    """Training settings stored with *model*, minus derived sizes and the seed.

    The result is accepted by ``EvolutionConfig.from_dict`` and can be merged
    over a run configuration. Empty when the model carries no configuration.
    """
    if model.config is None:
        return {}
    return model.config.model_dump(
        exclude={"seed": True, "network": {"input_size", "output_size"}}
    )


def restore_engine(engine: EvolutionEngine, model: SavedModel) -> bool:
    """Seed *engine* from *model* and restore its best-ever records.

    Every setting that differs from the configuration the model was trained
    with is logged as a warning. Returns False (leaving the engine untouched)
    when the saved network does not fit the engine's configured shape; training
    then starts fresh.
    """
    if model.config is not None:
        for name, saved, current in config_differences(model.config, engine.config):
            logger.warning(
                "[persistence] Saved model used {}={}, running with {}",
                name,
                saved,
                current,
            )

    controller = Controller.from_snapshot(model.brain)
    try:
        engine.seed(controller)
    except DimensionMismatchError as exc:
        logger.warning("[persistence] Discarding saved model: {}", exc)
        return False

    engine.best_fitness = model.best_fitness
    engine.best_laps = model.best_laps
    engine.best_lap_time = model.best_lap_time
    logger.info(
        "[persistence] Restored model from generation {} (best={:.1f})",
        model.generation,
        model.best_fitness,
    )
    return True
