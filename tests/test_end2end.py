import os
import subprocess
import sys
from pathlib import Path
import pandas as pd

# Resolve repo root once so we can run everything from a stable CWD
ROOT = Path(__file__).resolve().parents[1]


def sh(*args: str, cwd=ROOT) -> subprocess.CompletedProcess:
    """ Run a repo script with the current interpreter and ``src`` on the path. """
    script = Path(args[0])
    script_abs = script if script.is_absolute() else (ROOT / script)
    cmd = [sys.executable, str(script_abs), *map(str, args[1:])]
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), env.get("PYTHONPATH", "")])
    env["MPLBACKEND"] = "Agg"
    return subprocess.run(cmd, cwd=cwd, env=env, capture_output=True, text=True)


def test_simulate_script(tmp_path):
    p = sh("scripts/simulate.py", "--out", tmp_path, "--exp", "e2e", "--plot")
    assert p.returncode == 0, p.stderr
    assert "terminated_by_event" in p.stdout

    csv = tmp_path / "e2e" / "traj_000.csv"
    df = pd.read_csv(csv)
    assert df["status"].iloc[-1] == "terminated_by_event"
    assert 0.5 < df["t"].iloc[-1] < 0.6
    assert (tmp_path / "e2e" / "configs" / "traj_000.yaml").exists()
    assert (tmp_path / "e2e" / "figures" / "traj_000.png").exists()


def test_sweep_script(tmp_path):
    p = sh("scripts/sweep.py", "--out", tmp_path, "--exp", "sweep")
    assert p.returncode == 0, p.stderr
    df = pd.read_csv(tmp_path / "sweep" / "traj_000.csv")
    assert df["traj_id"].nunique() == 4
    assert "rel_drift" in p.stdout


def test_simulate_script_rejects_bad_config(tmp_path):
    p = sh("scripts/simulate.py", "--out", tmp_path, "--set", "anthropometry.body_mass=-1")
    assert p.returncode != 0
    assert "ConfigurationError" in p.stderr
