import argparse, json, yaml
from pathlib import Path

DEFAULT_CONFIG = "configs/default.yaml"  # relative to the repo root, where scripts are run from


def load_cfg(path):
    """ Load configuration from a YAML or JSON file.

    Args:
        path (str | Path): Path to the configuration file.

    Returns:
        dict: Configuration dictionary.
    """
    path = Path(path)
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(path.read_text()) or {}
    elif path.suffix == ".json":
        return json.loads(path.read_text())
    else:
        raise ValueError("Unsupported config file format. Use .yaml, .yml, or .json")


def apply_overrides(cfg: dict, pairs: list[str] | None):
    """ Apply command-line overrides to a configuration dictionary.

    Values are parsed as YAML, so numbers, booleans, null and lists
    (e.g. ``simulation.t_span=[0,0.3]``) keep their types.

    Args:
        cfg (dict): Base configuration dictionary.
        pairs (list[str] | None): List of key-value pairs in the format "key=value" to override.

    Returns:
        dict: Updated configuration dictionary with overrides applied.
    """

    for kv in (pairs or []):  # if pairs is None, do nothing (empty list)
        if "=" not in kv:
            raise ValueError(f"Override '{kv}' should look like key=value")

        k, v = kv.split("=", 1)  # split only on the first '='

        d = cfg

        *ks, last = k.split(".")  # e.g. anthropometry.body_mass -> ks=["anthropometry"], last="body_mass"

        for kk in ks:
            # create nested dicts as needed
            d = d.setdefault(kk, {})

        try:
            val = yaml.safe_load(v)
        except yaml.YAMLError:
            val = v  # keep raw string

        # YAML 1.1 reads "1e-8" as a string
        if isinstance(val, str):
            try:
                val = float(val)
            except ValueError:
                pass

        d[last] = val  # set the final key to the value

    return cfg


def parse_with_config(argv=None):
    """ Parse command-line arguments and load configuration.
    e.g. python scripts/simulate.py --config configs/default.yaml --set anthropometry.body_mass=80 --exp heavy

    Returns:
        tuple: Configuration dictionary and parsed arguments.
    """
    p = argparse.ArgumentParser()
    p.add_argument("--config", default=DEFAULT_CONFIG)
    p.add_argument("--set", nargs="*")  # e.g. simulation.rtol=1e-9 simulation.method=DOP853
    p.add_argument("--exp", default=None)
    p.add_argument("--out", default="data/raw", help="Output directory for trajectories")

    args = p.parse_args(argv)  # parse command-line arguments

    # apply command-line overrides
    cfg = apply_overrides(load_cfg(args.config), args.set)

    if args.exp: cfg["exp"] = args.exp  # set experiment name if provided

    return cfg, args
