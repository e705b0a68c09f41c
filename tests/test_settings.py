import json
import os

from GazeHeatmap.core.settings import SettingsManager


def test_defaults_when_missing(tmp_path):
    s = SettingsManager(str(tmp_path / "settings.json"))
    assert s.regression_algorithm() == "ridge"
    assert s.tracker_algorithm() == "facemesh"
    assert s.buffer_capacity() == 50000
    assert s.retain_count() == 40000
    assert s.pointer_throttle_ms() == 50
    assert s.clicks_per_target() == 5
    assert s.measure_ms() == 5000
    assert s.accuracy_window() == 50
    assert s.log_level() == "INFO"
    assert s.export_directory() == os.path.expanduser("~")


def test_save_and_reload(tmp_path):
    path = str(tmp_path / "settings.json")
    s = SettingsManager(path)
    s.set_camera_index(2)
    s.set_export_directory(str(tmp_path))
    s.save()
    again = SettingsManager(path)
    assert again.camera_index() == 2
    assert again.export_directory() == str(tmp_path)


def test_partial_file_falls_back_per_key(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"capture": {"pointer_throttle_ms": 100}}), encoding="utf-8")
    s = SettingsManager(str(path))
    assert s.pointer_throttle_ms() == 100
    assert s.buffer_capacity() == 50000


def test_corrupt_file_uses_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{oops", encoding="utf-8")
    assert SettingsManager(str(path)).regression_algorithm() == "ridge"


def test_env_path(tmp_path, monkeypatch):
    path = tmp_path / "env.json"
    path.write_text(json.dumps({"engine": {"regression": "mlp"}}), encoding="utf-8")
    monkeypatch.setenv("GAZEHEATMAP_SETTINGS", str(path))
    assert SettingsManager().regression_algorithm() == "mlp"
