"""YAML configuration for scenes and link budgets.

A scene file lists beams and, optionally, the estimator to use::

    estimator:
      method: stochastic      # closed_form (default), stochastic or bounds
      samples: 5000
      seed: 7
      parallel_threshold: 0.99
    beams:
      - id: A
        origin: [0, 0, 0]
        direction: [0, 0, 1]
        radius: 1
        length: 5
      - id: B
        start: [1.5, 0, 0]
        end: [1.5, 0, 5]
        radius: 1

A link-budget file overrides calculator defaults by field name::

    fso:
      distance_m: 10
      pointing_loss_db: 7
    thz:
      ambient_temperature_k: 300

Environment Variables:
    BEAMOVERLAP_SAMPLES: default Monte Carlo sample count when a scene
                         file does not set ``estimator.samples``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from beamoverlap.beam import Beam
from beamoverlap.errors import ConfigError, GeometryError
from beamoverlap.linkbudget import FSOParameters, THzParameters, parameters_from_mapping
from beamoverlap.overlap import (
    DEFAULT_SAMPLES,
    PARALLEL_THRESHOLD,
    Estimator,
    OverlapMethod,
    make_estimator,
)

BEAMOVERLAP_SAMPLES = "BEAMOVERLAP_SAMPLES"


@dataclass
class EstimatorConfig:
    method: OverlapMethod = OverlapMethod.CLOSED_FORM
    samples: int = DEFAULT_SAMPLES
    seed: Optional[int] = None
    parallel_threshold: Optional[float] = PARALLEL_THRESHOLD

    def build(self) -> Estimator:
        return make_estimator(self.method, sample_count=self.samples, rng=self.seed,
                              parallel_threshold=self.parallel_threshold)


@dataclass
class SceneConfig:
    beams: List[Tuple[str, Beam]] = field(default_factory=list)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    path: Optional[Path] = None


@dataclass
class LinkBudgetConfig:
    fso: FSOParameters = field(default_factory=FSOParameters)
    thz: THzParameters = field(default_factory=THzParameters)
    path: Optional[Path] = None


def _load_yaml(path: Path | str) -> Tuple[Path, Dict[str, Any]]:
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"configuration file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fp:
        try:
            data = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML: {exc}", cfg_path) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"configuration must be a mapping, got {type(data).__name__}", cfg_path)
    return cfg_path, data


def _check_keys(data: Dict[str, Any], allowed, where: str, path: Path) -> None:
    unknown = sorted(str(k) for k in set(data) - set(allowed))
    if unknown:
        raise ConfigError(f"unknown keys in {where}: {', '.join(unknown)}", path)


def _default_samples() -> int:
    raw = os.environ.get(BEAMOVERLAP_SAMPLES)
    if raw is None or not raw.strip():
        return DEFAULT_SAMPLES
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{BEAMOVERLAP_SAMPLES} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{BEAMOVERLAP_SAMPLES} must be non-negative, got {value}")
    return value


def parse_estimator(raw: Any, path: Path) -> EstimatorConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("'estimator' must be a mapping", path)
    _check_keys(raw, {"method", "samples", "seed", "parallel_threshold"}, "estimator", path)
    if "samples" not in raw:
        raw = dict(raw, samples=_default_samples())
    try:
        method = OverlapMethod.parse(raw.get("method", OverlapMethod.CLOSED_FORM))
        samples = int(raw["samples"])
        seed = raw.get("seed")
        seed = int(seed) if seed is not None else None
        threshold = raw.get("parallel_threshold", PARALLEL_THRESHOLD)
        threshold = float(threshold) if threshold is not None else None
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"bad estimator settings: {exc}", path) from exc
    if samples < 0:
        raise ConfigError(f"estimator.samples must be non-negative, got {samples}", path)
    return EstimatorConfig(method=method, samples=samples, seed=seed,
                           parallel_threshold=threshold)


def parse_beams(raw: Any, path: Path) -> List[Tuple[str, Beam]]:
    if not isinstance(raw, list):
        raise ConfigError("'beams' must be a list", path)
    beams: List[Tuple[str, Beam]] = []
    seen = set()
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigError(f"beam #{index} must be a mapping", path)
        _check_keys(entry, {"id", "name", "origin", "direction", "radius", "length",
                            "start", "end"}, f"beam #{index}", path)
        beam_id = str(entry.get("id", entry.get("name", f"beam{index}")))
        if beam_id in seen:
            raise ConfigError(f"duplicate beam id {beam_id!r}", path)
        seen.add(beam_id)
        try:
            beam = Beam.from_dict(entry, name=beam_id)
        except GeometryError as exc:
            raise ConfigError(f"beam {beam_id!r}: {exc}", path) from exc
        beams.append((beam_id, beam))
    return beams


def load_scene(path: Path | str) -> SceneConfig:
    """Load a YAML scene file and return the parsed ``SceneConfig``."""

    cfg_path, data = _load_yaml(path)
    _check_keys(data, {"beams", "estimator"}, "scene", cfg_path)
    if "beams" not in data:
        raise ConfigError("scene is missing required key 'beams'", cfg_path)
    return SceneConfig(
        beams=parse_beams(data["beams"], cfg_path),
        estimator=parse_estimator(data.get("estimator"), cfg_path),
        path=cfg_path,
    )


def load_link_budget(path: Path | str) -> LinkBudgetConfig:
    """Load FSO/THz parameter overrides from a YAML file."""

    cfg_path, data = _load_yaml(path)
    _check_keys(data, {"fso", "thz"}, "link budget", cfg_path)
    config = LinkBudgetConfig(path=cfg_path)
    for key, cls in (("fso", FSOParameters), ("thz", THzParameters)):
        section = data.get(key)
        if section is None:
            continue
        if not isinstance(section, dict):
            raise ConfigError(f"'{key}' must be a mapping", cfg_path)
        try:
            params = parameters_from_mapping(cls, section)
        except KeyError as exc:
            raise ConfigError(str(exc.args[0]), cfg_path) from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"bad {key} parameter: {exc}", cfg_path) from exc
        setattr(config, key, params)
    return config


__all__ = [
    "BEAMOVERLAP_SAMPLES",
    "EstimatorConfig",
    "SceneConfig",
    "LinkBudgetConfig",
    "parse_estimator",
    "parse_beams",
    "load_scene",
    "load_link_budget",
]
