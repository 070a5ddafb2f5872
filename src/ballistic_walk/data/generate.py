from pathlib import Path
import pandas as pd
from tqdm import tqdm
from ..anthropometry import params_from_cfg
from ..dynamics.walker import STATE_NAMES
from ..simulate import simulate, initial_state, simulation_kwargs

ENERGY_NAMES = ["total", "kinetic", "potential"]


def _resolve_initial_states(cfg):
    """ Resolve the list of initial states (degrees) from config.

    Args:
        cfg (dict): config dictionary
    Raises:
        ValueError: if initial states are not properly specified
    Returns:
        list: list of initial states as np.ndarrays in radians
    """
    sim_cfg = cfg.get("simulation", {})
    init_states = sim_cfg.get("initial_states")
    if init_states is None:
        if sim_cfg.get("initial_state") is None:
            raise ValueError("No 'initial_states' or 'initial_state' in the simulation section of the config.")
        init_states = [sim_cfg["initial_state"]]

    if not isinstance(init_states, list) or not all(len(s) == len(STATE_NAMES) for s in init_states):
        raise ValueError(f"Initial states must be a list of states of size {len(STATE_NAMES)}. Got: {init_states}")

    return [initial_state(s) for s in init_states]


def next_filename(out_dir):
    """ Generate the next available filename in a directory.

    Args:
        out_dir (Path): output directory

    Returns:
        str: next available filename, e.g. "traj_000.csv"
    """
    existing = [f.name for f in out_dir.glob("traj_*.csv")]
    nums = [int(f[5:8]) for f in existing if f[5:8].isdigit()]
    next_num = max(nums) + 1 if nums else 0
    return f"traj_{next_num:03d}.csv"


def run_batch(cfg, show_progress=True):
    """ Run one independent simulation per initial state, sharing the same parameters.

    Returns:
        tuple: (Params, list of Trajectory)
    """
    params = params_from_cfg(cfg)
    kwargs = simulation_kwargs(cfg.get("simulation", {}))
    init_states = _resolve_initial_states(cfg)

    iterable = tqdm(init_states, desc="swing", leave=False) if show_progress else init_states
    trajectories = [simulate(params, x0, **kwargs) for x0 in iterable]
    return params, trajectories


def trajectories_to_frame(trajectories, params) -> pd.DataFrame:
    """ Stack trajectories into one frame: traj_id, t, states, energies, status. """
    frames = []
    for traj_id, traj in enumerate(trajectories):
        df = traj.to_dataframe(params)
        df.insert(0, "traj_id", traj_id)
        df["status"] = traj.status.value
        frames.append(df)
    col_order = ["traj_id", "t"] + STATE_NAMES + ENERGY_NAMES + ["status"]
    return pd.concat(frames, ignore_index=True)[col_order]


def simulate_batch(cfg, out_dir="data/raw", show_progress=True):
    """ Simulate every configured initial state and save all runs in one CSV.

    Args:
        cfg (dict): configuration dictionary
        out_dir (str, optional): output directory. Defaults to "data/raw".

    Returns:
        str: path to the saved CSV file
    """
    out = Path(out_dir) / (cfg.get("exp") or "walker")
    out.mkdir(parents=True, exist_ok=True)  # ensure output directory exists

    params, trajectories = run_batch(cfg, show_progress=show_progress)

    out_path = out / next_filename(out)
    df = trajectories_to_frame(trajectories, params)
    df.to_csv(out_path, index=False)
    print(f"Saved {len(trajectories)} trajectories to {out_path}")
    return str(out_path)
