import sys
import textwrap

import pytest
from loguru import logger

from beamoverlap.cli import build_parser, main

SCENE = """
    beams:
      - {id: A, origin: [0, 0, 0], direction: [0, 0, 1], radius: 1, length: 5}
      - {id: B, origin: [1.5, 0, 0], direction: [0, 0, 1], radius: 1, length: 5}
      - {id: C, origin: [20, 0, 0], direction: [0, 1, 0], radius: 1, length: 5}
"""


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    # main() replaces the loguru sinks; put a default one back
    logger.remove()
    logger.add(sys.__stderr__)


@pytest.fixture
def scene_file(tmp_path):
    path = tmp_path / "scene.yaml"
    path.write_text(textwrap.dedent(SCENE), encoding="utf-8")
    return path


def test_overlap_command(scene_file, capsys):
    assert main(["overlap", str(scene_file)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "method: closed_form"
    assert "A x B: 3.9270" in out
    assert "A x C: 0.0000" in out
    assert "B x C: 0.0000" in out


def test_overlap_command_with_method_override(scene_file, capsys):
    assert main(["overlap", str(scene_file), "--method", "bounds"]) == 0
    out = capsys.readouterr().out
    assert "method: bounds" in out
    assert "A x B: 7.0000" in out


def test_track_command(scene_file, capsys):
    assert main(["track", str(scene_file)]) == 0
    out = capsys.readouterr().out
    assert "=== Beam A Collision Info ===" in out
    assert "Total overlap volume: 3.93 cubic units" in out
    assert "=== Beam C Collision Info ===\nTotal overlap volume: 0.00 cubic units" in out


def test_linkbudget_commands(tmp_path, capsys):
    assert main(["linkbudget", "fso"]) == 0
    assert "--- FSO Link Budget ---" in capsys.readouterr().out

    cfg = tmp_path / "link.yaml"
    cfg.write_text("thz:\n  distance_m: 4\n", encoding="utf-8")
    assert main(["linkbudget", "thz", "--config", str(cfg)]) == 0
    assert "--- THz Link Budget ---" in capsys.readouterr().out


def test_errors_return_status_2(tmp_path, capsys):
    assert main(["overlap", str(tmp_path / "missing.yaml")]) == 2
    bad = tmp_path / "bad.yaml"
    bad.write_text("beams: 7\n", encoding="utf-8")
    assert main(["track", str(bad)]) == 2
    assert "error:" in capsys.readouterr().err


def test_bad_endpoints_return_status_2(tmp_path, capsys):
    bad = tmp_path / "bad.yaml"
    bad.write_text("beams:\n  - {id: A, start: 5, end: [0, 0, 1], radius: 1}\n",
                   encoding="utf-8")
    assert main(["overlap", str(bad)]) == 2
    assert "error:" in capsys.readouterr().err


@pytest.mark.parametrize("samples", ["-3", "lots"])
def test_bad_sample_count_exits_with_status_2(scene_file, samples):
    with pytest.raises(SystemExit) as info:
        main(["overlap", str(scene_file), "--method", "stochastic", "--samples", samples])
    assert info.value.code == 2


def test_zero_samples_is_accepted(scene_file, capsys):
    assert main(["overlap", str(scene_file), "--method", "stochastic",
                 "--samples", "0", "--seed", "1"]) == 0
    assert "method: stochastic" in capsys.readouterr().out


def test_link_parameters_out_of_range_return_status_2(tmp_path, capsys):
    cfg = tmp_path / "link.yaml"
    cfg.write_text("thz:\n  distance_m: 0\n", encoding="utf-8")
    assert main(["linkbudget", "thz", "--config", str(cfg)]) == 2
    assert "distance_m" in capsys.readouterr().err


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_package_logging_is_disabled_on_import():
    import importlib

    import beamoverlap
    from beamoverlap.linkbudget import compute_fso_link_budget

    messages = []
    handler = logger.add(messages.append, level="INFO", format="{message}")
    try:
        importlib.reload(beamoverlap)
        compute_fso_link_budget()
        assert messages == []
        logger.enable("beamoverlap")
        compute_fso_link_budget()
        assert any("FSO link:" in m for m in messages)
    finally:
        logger.remove(handler)


def test_main_enables_package_logging(capsys):
    logger.disable("beamoverlap")
    assert main(["--log-level", "INFO", "linkbudget", "fso"]) == 0
    assert "FSO link:" in capsys.readouterr().err
