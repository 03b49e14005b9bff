from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from .analysis.gen_kill import DEFAULT_OBSERVERS
from .analysis.solver import DEFAULT_MAX_PASSES


@dataclass(frozen=True)
class AnalysisConfig:
    """Knobs of the analysis pipeline."""

    # Calls whose bare identifier arguments count as reads.
    observers: tuple[str, ...] = field(default_factory=lambda: DEFAULT_OBSERVERS)
    max_passes: int = DEFAULT_MAX_PASSES

    def __post_init__(self) -> None:
        if self.max_passes < 1:
            raise ValueError("max_passes must be at least 1.")
        if not all(isinstance(name, str) and name for name in self.observers):
            raise ValueError("observers must be non-empty call names.")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AnalysisConfig":
        """Read JSLIVE_OBSERVERS (comma separated) and JSLIVE_MAX_PASSES."""
        environ = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        raw_observers = environ.get("JSLIVE_OBSERVERS", "").strip()
        if raw_observers:
            kwargs["observers"] = tuple(
                name.strip() for name in raw_observers.split(",") if name.strip()
            )
        raw_passes = environ.get("JSLIVE_MAX_PASSES", "").strip()
        if raw_passes:
            try:
                kwargs["max_passes"] = int(raw_passes)
            except ValueError as exc:
                raise ValueError(
                    f"JSLIVE_MAX_PASSES must be an integer, got {raw_passes!r}."
                ) from exc
        return cls(**kwargs)
