import json

from cli import main


def test_generate_writes_json(tmp_path, capsys):
    out = tmp_path / "world.json"
    rc = main(["generate", "--width", "8", "--height", "6", "--seed", "3", "--out", str(out)])
    assert rc == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["summary"]["seed"] == 3
    assert len(data["cells"]) == 48
    assert '"seed": 3' in capsys.readouterr().out


def test_generate_from_config_file(tmp_path):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({
        "worldSizeX": 6, "worldSizeY": 4, "tileWidth": 1.75, "tileLength": 2.0,
        "waterElevation": 0.2, "sandLevelMin": 0.2, "sandLevelMax": 0.3,
        "noiseVariant": "value", "frequency": 3.0, "amplitude": 1.0,
        "vegetationFrequencyOffset": 1.0, "vegetationAmplitudeOffset": 0.1,
        "vegetationThreshold": 0.5, "placementThreshold": 0.5, "elevationStep": 10.0,
        "seed": 8,
    }), encoding="utf-8")
    out = tmp_path / "world.json"
    assert main(["generate", "--config", str(cfg), "--out", str(out)]) == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["config"]["noise_variant"] == "value"
    assert data["summary"]["seed"] == 8


def test_export_writes_images(tmp_path):
    out = tmp_path / "png"
    rc = main(["export", "--width", "6", "--height", "4", "--seed", "1", "--out-dir", str(out)])
    assert rc == 0
    for name in ("elevation", "heat", "rain", "vegetation", "topdown"):
        assert (out / f"{name}.png").exists()
    assert (out / "layers.npz").exists()


def test_bad_config_exit_code():
    assert main(["generate", "--width", "1", "--seed", "1"]) == 2


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "generate" in capsys.readouterr().out


def test_missing_config_file_exit_code(tmp_path):
    assert main(["generate", "--config", str(tmp_path / "nope.json")]) == 2


def test_non_utf8_config_file_exit_code(tmp_path):
    cfg = tmp_path / "binary.json"
    cfg.write_bytes(b"\xff\xfe{}")
    assert main(["generate", "--config", str(cfg)]) == 2
