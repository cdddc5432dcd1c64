"""Point-to-point link budgets for free-space optical (FSO) and terahertz links.

Both calculators are stateless: a parameter dataclass goes in, a result
dataclass comes out.  Powers are in dBm, gains and losses in dB, and
capacities in Gbit/s (Shannon bound).  A link whose post-modulation SNR
falls below 0 dB is reported as unusable with zero capacity and a
logged warning; nothing here raises for that condition.

Parameter dataclasses reject physically meaningless inputs (zero
temperature, zero lens radius and the like) with ``ValueError`` when
constructed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from math import isfinite, log2, log10, pi
from typing import Any, Dict, Mapping, Type, TypeVar

from loguru import logger

SPEED_OF_LIGHT = 299792458.0  # m/s
BOLTZMANN_CONSTANT = 1.380649e-23  # J/K

# smallest beam radius used for the FSO geometric loss, in meters
MIN_BEAM_RADIUS = 1e-9

P = TypeVar("P")


def db_to_linear(value_db: float) -> float:
    return 10.0 ** (value_db / 10.0)


def watts_to_dbm(watts: float) -> float:
    return 10.0 * log10(watts / 0.001)


def shannon_capacity_gbps(bandwidth_hz: float, snr_linear: float) -> float:
    """``bandwidth * log2(1 + snr)`` in Gbit/s; ``0.0`` for non-positive SNR."""
    if snr_linear <= 0:
        logger.warning("SNR must be greater than 0 for log2 calculation (got {})", snr_linear)
        return 0.0
    return bandwidth_hz * log2(1.0 + snr_linear) / 1e9


def _link_capacity(label: str, bandwidth_hz: float, snr_db: float):
    if snr_db < 0.0:
        logger.warning("{} link unusable: post-modulation SNR {:.2f} dB is below the noise floor",
                       label, snr_db)
        return 0.0, False
    return shannon_capacity_gbps(bandwidth_hz, db_to_linear(snr_db)), True


def _check_ranges(params, positive=(), non_negative=()) -> None:
    for f in fields(params):
        value = getattr(params, f.name)
        if not isfinite(value):
            raise ValueError(f"{f.name} must be finite, got {value}")
    for name in positive:
        if getattr(params, name) <= 0.0:
            raise ValueError(f"{name} must be positive, got {getattr(params, name)}")
    for name in non_negative:
        if getattr(params, name) < 0.0:
            raise ValueError(f"{name} must be non-negative, got {getattr(params, name)}")


def parameters_from_mapping(cls: Type[P], data: Mapping[str, Any]) -> P:
    """Build a parameter dataclass, overriding defaults with ``data``.

    Raises ``KeyError`` for names that are not fields of ``cls`` and
    ``ValueError`` for values that are not numbers or that the
    parameter class rejects (non-positive distance, bandwidth, frequency,
    temperature or lens radius).
    """
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise KeyError(f"unknown {cls.__name__} fields: {', '.join(unknown)}")
    values = {}
    for key, value in data.items():
        if isinstance(value, bool):
            raise ValueError(f"{key} must be a number, got {value!r}")
        values[key] = float(value)
    return cls(**values)


## free-space optical
## ------------------

@dataclass
class FSOParameters:
    distance_m: float = 2.0
    bandwidth_ghz: float = 30.0
    carrier_frequency_thz: float = 193.55
    transmit_power_dbm: float = 23.01
    receive_lens_radius_mm: float = 12.0
    beam_divergence_mrad: float = 0.28
    atmospheric_loss_db: float = 0.0
    pointing_loss_db: float = 5.0
    nep_db: float = -21.45
    noise_figure_db: float = 15.0
    modulation_loss_db: float = 3.0

    def __post_init__(self) -> None:
        _check_ranges(self,
                      positive=("bandwidth_ghz", "carrier_frequency_thz", "receive_lens_radius_mm"),
                      non_negative=("distance_m", "beam_divergence_mrad"))


@dataclass
class FSOResult:
    geometric_loss_db: float
    received_power_dbm: float
    total_noise_dbm: float
    snr_db: float
    snr_post_modulation_db: float
    capacity_gbps: float
    usable: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_fso_link_budget(params: FSOParameters | None = None) -> FSOResult:
    """Compute the FSO link budget.

    The geometric loss compares the receive lens aperture with the beam
    footprint at the receiver, whose radius is ``divergence * distance / 2``.
    It is negative (a gain) when the lens is wider than the footprint.
    """
    p = params if params is not None else FSOParameters()

    lens_radius_m = p.receive_lens_radius_mm * 1e-3
    divergence_rad = p.beam_divergence_mrad * 1e-3
    bandwidth_hz = p.bandwidth_ghz * 1e9

    beam_radius_m = divergence_rad * p.distance_m / 2.0
    if beam_radius_m <= 0:
        beam_radius_m = MIN_BEAM_RADIUS

    area_ratio = (pi * lens_radius_m ** 2) / (pi * beam_radius_m ** 2)
    geometric_loss_db = -10.0 * log10(area_ratio)

    received_dbm = (p.transmit_power_dbm - geometric_loss_db
                    - p.atmospheric_loss_db - p.pointing_loss_db)
    noise_dbm = p.nep_db + p.noise_figure_db
    snr_db = received_dbm - noise_dbm
    snr_post_db = snr_db - p.modulation_loss_db
    capacity, usable = _link_capacity("FSO", bandwidth_hz, snr_post_db)

    result = FSOResult(
        geometric_loss_db=geometric_loss_db,
        received_power_dbm=received_dbm,
        total_noise_dbm=noise_dbm,
        snr_db=snr_db,
        snr_post_modulation_db=snr_post_db,
        capacity_gbps=capacity,
        usable=usable,
    )
    logger.info("FSO link: {:.2f} dB SNR, {:.2f} Gbps", snr_post_db, capacity)
    return result


def format_fso_report(result: FSOResult) -> str:
    return "\n".join([
        "--- FSO Link Budget ---",
        f"Received Power:   {result.received_power_dbm:.2f} dBm",
        f"Geometric Loss:   {result.geometric_loss_db:.2f} dB",
        f"Total Noise:      {result.total_noise_dbm:.2f} dBm",
        f"Raw SNR:          {result.snr_db:.2f} dB",
        f"Mod Loss SNR:     {result.snr_post_modulation_db:.2f} dB",
        f"Capacity:         {result.capacity_gbps:.2f} Gbps",
    ])


## terahertz
## ---------

@dataclass
class THzParameters:
    distance_m: float = 2.0
    bandwidth_ghz: float = 30.0
    ambient_temperature_k: float = 293.0
    carrier_frequency_thz: float = 0.30
    transmit_power_dbm: float = 13.0
    transmit_gain_dbi: float = 32.1
    receive_gain_dbi: float = 32.1
    atmospheric_loss_db: float = 0.008
    noise_figure_db: float = 12.0
    modulation_loss_db: float = 3.6

    def __post_init__(self) -> None:
        _check_ranges(self, positive=("distance_m", "bandwidth_ghz", "ambient_temperature_k",
                                      "carrier_frequency_thz"))


@dataclass
class THzResult:
    path_loss_db: float
    received_power_dbm: float
    thermal_noise_dbm: float
    total_noise_dbm: float
    snr_db: float
    snr_post_modulation_db: float
    capacity_gbps: float
    usable: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def free_space_path_loss_db(frequency_hz: float, distance_m: float) -> float:
    """Friis free-space path loss, ``20 log10(4 pi f d / c)``."""
    return 20.0 * log10(4.0 * pi * frequency_hz * distance_m / SPEED_OF_LIGHT)


def thermal_noise_dbm(temperature_k: float, bandwidth_hz: float) -> float:
    """``k T B`` expressed in dBm."""
    return watts_to_dbm(BOLTZMANN_CONSTANT * temperature_k * bandwidth_hz)


def compute_thz_link_budget(params: THzParameters | None = None) -> THzResult:
    p = params if params is not None else THzParameters()

    frequency_hz = p.carrier_frequency_thz * 1e12
    bandwidth_hz = p.bandwidth_ghz * 1e9

    path_loss_db = free_space_path_loss_db(frequency_hz, p.distance_m)
    received_dbm = (p.transmit_power_dbm + p.transmit_gain_dbi + p.receive_gain_dbi
                    - path_loss_db - p.atmospheric_loss_db)
    thermal_dbm = thermal_noise_dbm(p.ambient_temperature_k, bandwidth_hz)
    noise_dbm = thermal_dbm + p.noise_figure_db
    snr_db = received_dbm - noise_dbm
    snr_post_db = snr_db - p.modulation_loss_db
    capacity, usable = _link_capacity("THz", bandwidth_hz, snr_post_db)

    result = THzResult(
        path_loss_db=path_loss_db,
        received_power_dbm=received_dbm,
        thermal_noise_dbm=thermal_dbm,
        total_noise_dbm=noise_dbm,
        snr_db=snr_db,
        snr_post_modulation_db=snr_post_db,
        capacity_gbps=capacity,
        usable=usable,
    )
    logger.info("THz link: {:.2f} dB SNR, {:.2f} Gbps", snr_post_db, capacity)
    return result


def format_thz_report(result: THzResult) -> str:
    return "\n".join([
        "--- THz Link Budget ---",
        f"Path Loss:      {result.path_loss_db:.2f} dB",
        f"Received Power: {result.received_power_dbm:.2f} dBm",
        f"Thermal Noise:  {result.thermal_noise_dbm:.2f} dBm",
        f"Total Noise:    {result.total_noise_dbm:.2f} dBm",
        f"Raw SNR:        {result.snr_db:.2f} dB",
        f"Mod Loss SNR:   {result.snr_post_modulation_db:.2f} dB",
        f"Capacity:       {result.capacity_gbps:.2f} Gbps",
    ])


__all__ = [
    "SPEED_OF_LIGHT",
    "BOLTZMANN_CONSTANT",
    "FSOParameters",
    "FSOResult",
    "THzParameters",
    "THzResult",
    "db_to_linear",
    "watts_to_dbm",
    "shannon_capacity_gbps",
    "free_space_path_loss_db",
    "thermal_noise_dbm",
    "parameters_from_mapping",
    "compute_fso_link_budget",
    "compute_thz_link_budget",
    "format_fso_report",
    "format_thz_report",
]
