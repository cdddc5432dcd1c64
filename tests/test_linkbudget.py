import math

import pytest
from loguru import logger

from beamoverlap.linkbudget import (
    FSOParameters,
    THzParameters,
    compute_fso_link_budget,
    compute_thz_link_budget,
    db_to_linear,
    format_fso_report,
    format_thz_report,
    free_space_path_loss_db,
    parameters_from_mapping,
    shannon_capacity_gbps,
    thermal_noise_dbm,
)


@pytest.fixture
def warnings_log():
    messages = []
    handler = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler)


def test_shannon_capacity():
    assert shannon_capacity_gbps(1e9, 1.0) == pytest.approx(1.0)
    assert shannon_capacity_gbps(30e9, 3.0) == pytest.approx(60.0)


def test_shannon_capacity_non_positive_snr(warnings_log):
    assert shannon_capacity_gbps(30e9, 0.0) == 0.0
    assert shannon_capacity_gbps(30e9, -2.0) == 0.0
    assert len(warnings_log) == 2


def test_db_to_linear():
    assert db_to_linear(0.0) == 1.0
    assert db_to_linear(30.0) == pytest.approx(1000.0)


class TestFSO:

    def test_default_link(self):
        result = compute_fso_link_budget()
        # lens radius 12 mm against a 0.28 mm footprint radius
        assert math.isfinite(result.geometric_loss_db)
        assert result.geometric_loss_db == pytest.approx(-20.0 * math.log10(12.0 / 0.28))
        assert result.received_power_dbm == pytest.approx(23.01 - result.geometric_loss_db - 5.0)
        assert result.total_noise_dbm == pytest.approx(-6.45)
        assert result.snr_post_modulation_db == pytest.approx(result.snr_db - 3.0)
        assert result.usable
        assert result.capacity_gbps > 0.0
        expected = 30.0 * math.log2(1.0 + db_to_linear(result.snr_post_modulation_db))
        assert result.capacity_gbps == pytest.approx(expected)

    def test_wider_footprint_means_more_loss(self):
        near = compute_fso_link_budget(FSOParameters(distance_m=2.0))
        far = compute_fso_link_budget(FSOParameters(distance_m=2000.0))
        assert far.geometric_loss_db > near.geometric_loss_db
        assert far.geometric_loss_db > 0.0

    def test_negative_snr_gives_zero_capacity(self, warnings_log):
        result = compute_fso_link_budget(FSOParameters(pointing_loss_db=100.0))
        assert result.snr_post_modulation_db < 0.0
        assert result.capacity_gbps == 0.0
        assert not result.usable
        assert any("FSO link unusable" in str(m) for m in warnings_log)

    def test_zero_distance_uses_minimum_footprint(self):
        result = compute_fso_link_budget(FSOParameters(distance_m=0.0))
        assert math.isfinite(result.geometric_loss_db)

    def test_report(self):
        report = format_fso_report(compute_fso_link_budget())
        lines = report.splitlines()
        assert lines[0] == "--- FSO Link Budget ---"
        assert lines[2] == "Geometric Loss:   -32.64 dB"
        assert lines[-1].startswith("Capacity:")


class TestTHz:

    def test_path_loss_and_thermal_noise(self):
        assert free_space_path_loss_db(0.3e12, 2.0) == pytest.approx(88.01, abs=0.02)
        assert thermal_noise_dbm(293.0, 30e9) == pytest.approx(-69.16, abs=0.02)

    def test_default_link(self):
        result = compute_thz_link_budget()
        assert result.received_power_dbm == pytest.approx(
            13.0 + 32.1 + 32.1 - result.path_loss_db - 0.008)
        assert result.total_noise_dbm == pytest.approx(result.thermal_noise_dbm + 12.0)
        assert result.snr_post_modulation_db == pytest.approx(result.snr_db - 3.6)
        assert result.usable
        assert result.capacity_gbps > 0.0

    def test_negative_snr_gives_zero_capacity(self, warnings_log):
        result = compute_thz_link_budget(THzParameters(distance_m=1e9))
        assert result.capacity_gbps == 0.0
        assert not result.usable
        assert warnings_log

    def test_result_to_dict(self):
        data = compute_thz_link_budget().to_dict()
        assert set(data) >= {"path_loss_db", "capacity_gbps", "usable"}

    def test_report(self):
        report = format_thz_report(compute_thz_link_budget())
        assert report.splitlines()[0] == "--- THz Link Budget ---"
        assert "Thermal Noise:  -69.16 dBm" in report


def test_parameters_from_mapping():
    params = parameters_from_mapping(FSOParameters, {"distance_m": 10, "pointing_loss_db": "7"})
    assert params.distance_m == 10.0
    assert params.pointing_loss_db == 7.0
    assert params.bandwidth_ghz == 30.0
    with pytest.raises(KeyError):
        parameters_from_mapping(THzParameters, {"lens": 1})
    with pytest.raises(ValueError):
        parameters_from_mapping(THzParameters, {"distance_m": True})
    with pytest.raises(ValueError):
        parameters_from_mapping(THzParameters, {"ambient_temperature_k": 0})


@pytest.mark.parametrize("cls, kwargs", [
    (THzParameters, dict(distance_m=0.0)),
    (THzParameters, dict(ambient_temperature_k=0.0)),
    (THzParameters, dict(bandwidth_ghz=-30.0)),
    (THzParameters, dict(carrier_frequency_thz=0.0)),
    (THzParameters, dict(noise_figure_db=math.inf)),
    (FSOParameters, dict(receive_lens_radius_mm=0.0)),
    (FSOParameters, dict(bandwidth_ghz=0.0)),
    (FSOParameters, dict(distance_m=-1.0)),
    (FSOParameters, dict(beam_divergence_mrad=-0.1)),
    (FSOParameters, dict(pointing_loss_db=math.nan)),
])
def test_out_of_range_parameters_are_rejected(cls, kwargs):
    with pytest.raises(ValueError):
        cls(**kwargs)
