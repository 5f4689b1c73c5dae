from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ModelParameters(BaseModel):
    """Hyperparameters of one log-periodic fit sweep.

    Immutable once a run task holds them. ``t_crit`` is the offset, in
    trading days, from the most recent day of a window to the critical time.
    """

    model_config = ConfigDict(frozen=True)

    omega: float = Field(gt=0.0)
    m_coeff: float = Field(gt=0.0, lt=1.0)
    t_crit: float
    window: int = Field(gt=0)


class ModelConfig(BaseModel):
    omega: float = 6.28
    m_coeff: float = 0.38
    t_crit: float = 21.0
    windows: list[int] = Field(default_factory=lambda: [52, 104, 153, 256, 512])

    @model_validator(mode="after")
    def check_model(self) -> "ModelConfig":
        if self.omega <= 0:
            raise ValueError("omega must be positive")
        if not 0.0 < self.m_coeff < 1.0:
            raise ValueError("m_coeff must lie in (0, 1)")
        if not self.windows:
            raise ValueError("at least one window is required")
        if any(w <= 0 for w in self.windows):
            raise ValueError("windows must be positive")
        if len(set(self.windows)) != len(self.windows):
            raise ValueError("windows must be unique")
        return self

    def parameters(self) -> list[ModelParameters]:
        return [
            ModelParameters(omega=self.omega, m_coeff=self.m_coeff, t_crit=self.t_crit, window=w)
            for w in self.windows
        ]


class ContextConfig(BaseModel):
    force_host: bool = False
    thread_count: int = 4
    headless: bool = True
    accelerator_device: str = "cuda"

    @field_validator("thread_count")
    @classmethod
    def check_threads(cls, v: int) -> int:
        if v < 1:
            raise ValueError("thread_count must be >= 1")
        return v


class DataConfig(BaseModel):
    root: str = "ProgramData"
    price_suffix: str = "dailydata.csv"
    output_suffix: str = "days.csv"


class GridConfig(BaseModel):
    mode: Literal["sequential", "threads"] = "sequential"
    workers: int = 2

    @field_validator("workers")
    @classmethod
    def check_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("workers must be >= 1")
        return v


class SelectionConfig(BaseModel):
    category: str
    names: list[str]

    @model_validator(mode="after")
    def check_names(self) -> "SelectionConfig":
        if not self.names:
            raise ValueError(f"selection {self.category!r} lists no instruments")
        return self


class RunConfig(BaseModel):
    run_name: str = Field(default_factory=lambda: "bubble_index")
    model: ModelConfig = Field(default_factory=ModelConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    selections: list[SelectionConfig] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return json.loads(self.model_dump_json())


def load_config_from_yaml(path: str | Path) -> RunConfig:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return RunConfig.model_validate(raw or {})


def make_run_id(run_name: str, now: Optional[datetime] = None) -> str:
    ts = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    return f"{run_name}_{ts}"
