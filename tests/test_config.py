import pandas as pd
import pytest
from ballistic_walk.utils import load_cfg, apply_overrides, parse_with_config
from ballistic_walk.anthropometry import params_from_cfg
from ballistic_walk.data.generate import simulate_batch, run_batch, next_filename
from ballistic_walk.dynamics.walker import STATE_NAMES
from ballistic_walk.simulate import Status


def test_default_config_loads(params, config_path):
    cfg = load_cfg(config_path)
    assert cfg["simulation"]["initial_state"] == [14.0, -14.0, -60.0, -50.0, 250.0, -150.0]
    assert cfg["simulation"]["rtol"] == 1e-10
    assert params_from_cfg(cfg) == params


def test_json_config(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text('{"anthropometry": {"body_mass": 70}}')
    assert load_cfg(path)["anthropometry"]["body_mass"] == 70
    with pytest.raises(ValueError):
        load_cfg(tmp_path / "cfg.txt")


def test_apply_overrides():
    cfg = {"simulation": {"rtol": 1e-10}}
    apply_overrides(cfg, ["anthropometry.body_mass=80", "simulation.rtol=1e-8",
                          "simulation.t_span=[0, 0.3]", "simulation.method=DOP853",
                          "simulation.dense_dt=null", "exp=heavy"])
    assert cfg["anthropometry"]["body_mass"] == 80
    assert cfg["simulation"]["rtol"] == 1e-8
    assert cfg["simulation"]["t_span"] == [0, 0.3]
    assert cfg["simulation"]["method"] == "DOP853"
    assert cfg["simulation"]["dense_dt"] is None
    assert cfg["exp"] == "heavy"
    assert apply_overrides(cfg, None) is cfg
    with pytest.raises(ValueError):
        apply_overrides(cfg, ["simulation.rtol"])


def test_parse_with_config(tmp_path, config_path):
    cfg, args = parse_with_config(["--config", str(config_path), "--set", "anthropometry.body_mass=70", "--exp", "test",
                                   "--out", str(tmp_path)])
    assert cfg["anthropometry"]["body_mass"] == 70
    assert cfg["exp"] == "test"
    assert args.out == str(tmp_path)


def test_default_config_is_relative_to_repo_root(config_path, monkeypatch):
    monkeypatch.chdir(config_path.parents[1])
    cfg, args = parse_with_config([])
    assert args.config == "configs/default.yaml"
    assert cfg["simulation"]["t_span"] == [0.0, 0.6]


def test_run_batch_independent_runs(config_path):
    cfg = load_cfg(config_path)
    params, trajectories = run_batch(cfg, show_progress=False)
    assert len(trajectories) == len(cfg["simulation"]["initial_states"])
    for traj in trajectories:
        assert traj.status is not Status.FAILED_NUMERICALLY


def test_simulate_batch_writes_csv(tmp_path, config_path):
    cfg = load_cfg(config_path)
    cfg["exp"] = "batch"
    cfg["simulation"]["initial_states"] = cfg["simulation"]["initial_states"][:2]

    path = simulate_batch(cfg, out_dir=tmp_path, show_progress=False)
    assert path.endswith("traj_000.csv")
    df = pd.read_csv(path)
    assert list(df.columns) == ["traj_id", "t"] + STATE_NAMES + ["total", "kinetic", "potential", "status"]
    assert sorted(df["traj_id"].unique()) == [0, 1]
    assert set(df["status"]) <= {s.value for s in Status}

    path2 = simulate_batch(cfg, out_dir=tmp_path, show_progress=False)
    assert path2.endswith("traj_001.csv")
    assert next_filename(tmp_path / "batch") == "traj_002.csv"


def test_batch_needs_initial_states():
    with pytest.raises(ValueError):
        run_batch({"simulation": {}}, show_progress=False)
    with pytest.raises(ValueError):
        run_batch({"simulation": {"initial_states": [[0.0, 1.0]]}}, show_progress=False)
