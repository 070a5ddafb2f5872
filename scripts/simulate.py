from ballistic_walk.utils import parse_with_config
from ballistic_walk.simulate import run_from_cfg, check_energy_conservation, energy_drift, Status
from ballistic_walk.data.generate import next_filename
from pathlib import Path
import sys, yaml


if __name__ == "__main__":
    """ Simulate one ballistic swing, check energy conservation and save the run. """

    if "--animate" in sys.argv:
        sys.argv.remove("--animate")  # remove it so parse_with_config doesn't get confused
        animate_flag = True
    else:
        animate_flag = False

    if "--plot" in sys.argv:
        sys.argv.remove("--plot")
        plot_flag = True
    else:
        plot_flag = False

    cfg, args = parse_with_config()  # get config from command-line args

    params, traj = run_from_cfg(cfg)

    print(f"Status: {traj.status.value} ({traj.message})")
    print(f"Samples: {len(traj)}, final time: {traj.t_final:.4f} s")
    if traj.status is Status.FAILED_NUMERICALLY:
        print(f"Numerical failure: {traj.failure}")
    else:
        drift = float(energy_drift(traj, params).max())
        print(f"Max relative energy drift: {drift:.3e}")

    # save trajectory to <out>/<exp>/traj_NNN.csv
    out = Path(args.out) / (cfg.get("exp") or "walker")
    out.mkdir(parents=True, exist_ok=True)
    raw_path = out / next_filename(out)
    df = traj.to_dataframe(params)
    df["status"] = traj.status.value
    df.to_csv(raw_path, index=False)
    print(f"Saved trajectory to {raw_path}")

    # save config used for this run next to it
    config_dir = out / "configs"
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / (raw_path.stem + ".yaml")
    with open(config_path, "w") as f:
        yaml.dump(cfg, f)
    print(f"Config used for this run saved to: {config_path}")

    if plot_flag or animate_flag:
        import matplotlib
        matplotlib.use("Agg")
        from ballistic_walk.animate import plot_run, animate

        fig_dir = out / "figures"
        if plot_flag:
            plot_run(traj, params, out_path=fig_dir / (raw_path.stem + ".png"))
            print(f"Figure saved to: {fig_dir / (raw_path.stem + '.png')}")
        if animate_flag:
            animation_path = animate(traj, params, fig_dir / (raw_path.stem + ".mp4"))
            print(f"Animation saved to: {animation_path}")

    if traj.status is Status.FAILED_NUMERICALLY:
        sys.exit(1)

    energy_rtol = float(cfg.get("simulation", {}).get("energy_rtol", 1e-6))
    check_energy_conservation(traj, params, rtol=energy_rtol)
