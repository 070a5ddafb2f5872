from ballistic_walk.utils import parse_with_config
from ballistic_walk.data.generate import simulate_batch
import pandas as pd


if __name__ == "__main__":
    """ Simulate every initial state listed under simulation.initial_states and summarise the runs. """

    cfg, args = parse_with_config()

    raw_path = simulate_batch(cfg, out_dir=args.out)

    df = pd.read_csv(raw_path)
    summary = df.groupby("traj_id").agg(
        status=("status", "last"),
        t_final=("t", "last"),
        E0=("total", "first"),
        E_min=("total", "min"),
        E_max=("total", "max"),
    )
    summary["rel_drift"] = (summary["E_max"] - summary["E_min"]) / summary["E0"].abs()
    print(summary.to_string())
