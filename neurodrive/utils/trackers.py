from __future__ import annotations

from abc import ABC, abstractmethod
import math
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from tensorboardX import SummaryWriter


def _sanitize(s: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in str(s))


class LogWriter(ABC):
    """Sink for per-generation training metrics."""

    @abstractmethod
    def scalar(self, metric: str, value: float, step: int) -> None:
        pass

    @abstractmethod
    def hist(self, metric: str, values: list[float], step: int) -> None:
        pass

    @abstractmethod
    def text(self, tag: str, text: str, step: int) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def scalars(self, values: dict[str, Any], step: int) -> None:
        """Write every finite numeric entry of *values*."""
        for name, value in values.items():
            if isinstance(value, (int, float)) and math.isfinite(value):
                self.scalar(name, float(value), step)


class NullWriter(LogWriter):
    def scalar(self, metric: str, value: float, step: int) -> None:
        pass

    def hist(self, metric: str, values: list[float], step: int) -> None:
        pass

    def text(self, tag: str, text: str, step: int) -> None:
        pass

    def close(self) -> None:
        pass


class TBConfig(BaseModel):
    logdir: Path
    prefix: str = Field(default="training", description="Tag prefix for every series")
    summary_writer_kwargs: dict[str, Any] = Field(default_factory=dict)


class TensorBoardWriter(LogWriter):
    """tensorboardX-backed writer; tags are rendered as ``prefix/metric``."""

    def __init__(self, cfg: TBConfig):
        self.cfg = cfg
        logdir = Path(cfg.logdir).resolve()
        logdir.mkdir(parents=True, exist_ok=True)
        self._writer: SummaryWriter | None = SummaryWriter(
            str(logdir), **cfg.summary_writer_kwargs
        )
        logger.info("[TensorBoardWriter] Writing to {}", logdir)

    @classmethod
    def from_logdir(cls, logdir: str | Path, prefix: str = "training") -> TensorBoardWriter:
        return cls(TBConfig(logdir=Path(logdir), prefix=prefix))

    def _tag(self, metric: str) -> str:
        return "/".join(_sanitize(x) for x in (self.cfg.prefix, metric) if x)

    def scalar(self, metric: str, value: float, step: int) -> None:
        if self._writer is not None:
            self._writer.add_scalar(self._tag(metric), value, global_step=step)

    def hist(self, metric: str, values: list[float], step: int) -> None:
        if self._writer is not None and values:
            self._writer.add_histogram(self._tag(metric), values, global_step=step)

    def text(self, tag: str, text: str, step: int) -> None:
        if self._writer is not None:
            self._writer.add_text(self._tag(tag), text, global_step=step)

    def close(self) -> None:
        if self._writer is None:
            return
        try:
            self._writer.flush()
        finally:
            self._writer.close()
            self._writer = None
