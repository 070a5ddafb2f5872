""" Forward simulation of the ballistic swing phase.

The driver steps a scipy ``OdeSolver`` (adaptive Runge-Kutta) one step at a time so
that the knee-extension event can stop integration and a numerical failure can be
reported together with everything integrated up to that point.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional
import numpy as np
import pandas as pd
from scipy.integrate import RK45, DOP853
from scipy.optimize import brentq
from .dynamics.base import NumericalFailure
from .dynamics.walker import Params, STATE_NAMES, N_DOF, f, energies, knee_extension, check_state

METHODS = {"RK45": RK45, "DOP853": DOP853}  # explicit, adaptive, order >= 5(4)
EPS = np.finfo(float).eps


class Status(Enum):
    RUNNING = "running"
    TERMINATED_BY_EVENT = "terminated_by_event"
    COMPLETED_AT_TF = "completed_at_tf"
    FAILED_NUMERICALLY = "failed_numerically"


class EnergyConservationError(AssertionError):
    """ Raised when total energy drifts beyond tolerance over a run. """


@dataclass
class Trajectory:
    """ Time series of states produced by :func:`simulate`.

    Attributes:
        t (np.ndarray): sample times, shape (n,), increasing
        x (np.ndarray): states, shape (n, 6), ordered as STATE_NAMES
        status (Status): how integration ended
        message (str): human readable reason
        t_event (float | None): knee-extension time if the event fired
        failure (NumericalFailure | None): error behind FAILED_NUMERICALLY
        crossings (list): times of every qualifying event crossing, terminal or not
    """
    t: np.ndarray
    x: np.ndarray
    status: Status
    message: str = ""
    t_event: Optional[float] = None
    failure: Optional[NumericalFailure] = None
    crossings: list = field(default_factory=list)

    def __len__(self):
        return len(self.t)

    def __getitem__(self, i):
        return self.t[i], self.x[i]

    @property
    def q(self) -> np.ndarray:
        return self.x[:, :N_DOF]

    @property
    def u(self) -> np.ndarray:
        return self.x[:, N_DOF:]

    @property
    def event_reached(self) -> bool:
        return self.status is Status.TERMINATED_BY_EVENT

    @property
    def t_final(self) -> float:
        return float(self.t[-1])

    @property
    def x_final(self) -> np.ndarray:
        return self.x[-1]

    def to_dataframe(self, params: Params = None) -> pd.DataFrame:
        """ Samples as a DataFrame (t, q1..u3), plus total/kinetic/potential energy when params are given. """
        df = pd.DataFrame(self.x, columns=STATE_NAMES)
        df.insert(0, "t", self.t)
        if params is not None:
            E = energies(self.x, params)
            df["total"], df["kinetic"], df["potential"] = E[:, 0], E[:, 1], E[:, 2]
        return df


def initial_state(deg_state) -> np.ndarray:
    """ Convert a state given in degrees and degrees/s to radians and rad/s.

    This is the only unit conversion; everything downstream works in radians.
    """
    return np.deg2rad(check_state(deg_state))


def _find_event(event, sol, t_old, t_new, direction):
    """ Time and state of the first qualifying event crossing within one step, or None. """
    g_old = event(t_old, sol(t_old))
    g_new = event(t_new, sol(t_new))
    if direction < 0:
        crossed = g_old > 0 >= g_new
    elif direction > 0:
        crossed = g_old < 0 <= g_new
    else:
        crossed = (g_old > 0 >= g_new) or (g_old < 0 <= g_new)
    if not crossed:
        return None
    if g_new == 0:
        t_root = t_new
    else:
        t_root = brentq(lambda s: event(s, sol(s)), t_old, t_new, xtol=4 * EPS, rtol=4 * EPS)
    return t_root, sol(t_root)


def simulate(params: Params, x0, t_span=(0.0, 0.5), event: Optional[Callable] = knee_extension,
             method: str = "RK45", rtol: float = 1e-10, atol: float = 1e-12,
             max_step: float = np.inf, dense_dt: Optional[float] = None,
             dynamics: Callable = f) -> Trajectory:
    """ Integrate the walker from ``x0`` until the event fires or ``t_span[1]`` is reached.

    Args:
        params (Params): walker parameters, shared read-only by every evaluation
        x0 (array-like): initial state in radians, ordered as STATE_NAMES
        t_span (tuple): (t0, tf)
        event (callable, optional): scalar g(t, x) with optional ``direction`` and
            ``terminal`` attributes (scipy convention, so ``terminal`` defaults to
            False and a non-terminal crossing is only recorded). None disables it.
        method (str): "RK45" or "DOP853"
        rtol, atol (float): solver tolerances
        max_step (float): solver maximum step
        dense_dt (float, optional): if set, output is interpolated on a uniform grid
            of this spacing instead of the solver's own steps
        dynamics (callable): state derivative f(t, x, params)

    Raises:
        ValueError: bad time span, state shape or method name

    Returns:
        Trajectory: samples and termination status. On FAILED_NUMERICALLY the
            samples integrated before the failure are kept.
    """
    x0 = check_state(x0)
    t0, tf = float(t_span[0]), float(t_span[1])
    if not tf > t0:
        raise ValueError(f"t_span must be increasing, got {t_span}")
    if method not in METHODS:
        raise ValueError(f"Unknown method '{method}'. Choose from {list(METHODS)}")
    if dense_dt is not None and dense_dt <= 0:
        raise ValueError("dense_dt must be > 0")

    direction = getattr(event, "direction", 0) if event is not None else 0
    terminal = getattr(event, "terminal", False) if event is not None else False

    ts, xs = [t0], [x0.copy()]
    status = Status.RUNNING
    message = ""
    t_event = None
    failure = None
    crossings = []

    def rhs(t, x):
        return dynamics(t, x, params)

    try:
        solver = METHODS[method](rhs, t0, x0, tf, rtol=rtol, atol=atol, max_step=max_step)
    except NumericalFailure as e:
        return Trajectory(np.array(ts), np.array(xs), Status.FAILED_NUMERICALLY, str(e), failure=e)

    next_grid = 1
    while status is Status.RUNNING:
        t_old = solver.t
        try:
            step_message = solver.step()
        except NumericalFailure as e:
            status, message, failure = Status.FAILED_NUMERICALLY, str(e), e
            break
        if solver.status == "failed":
            status, message = Status.FAILED_NUMERICALLY, step_message
            failure = NumericalFailure(step_message, t=solver.t, x=solver.y)
            break

        t_new = solver.t
        sol = solver.dense_output()

        hit = None
        if event is not None:
            hit = _find_event(event, sol, t_old, t_new, direction)
        if hit is not None:
            crossings.append(float(hit[0]))
        t_stop = t_new
        if hit is not None and terminal:
            t_stop = hit[0]

        stopping = (hit is not None and terminal) or solver.status == "finished"
        x_stop = hit[1] if t_stop < t_new else solver.y.copy()

        if dense_dt is None:
            ts.append(t_stop)
            xs.append(x_stop)
        else:
            while t0 + next_grid * dense_dt < t_stop:
                tg = t0 + next_grid * dense_dt
                ts.append(tg)
                xs.append(sol(tg))
                next_grid += 1
            if stopping:
                # terminal sample always closes the grid
                ts.append(t_stop)
                xs.append(x_stop)

        if hit is not None and terminal:
            t_event = hit[0]
            status = Status.TERMINATED_BY_EVENT
            message = f"Event '{getattr(event, '__name__', 'event')}' at t={t_event:.6g}"
        elif solver.status == "finished":
            status = Status.COMPLETED_AT_TF
            message = f"Reached tf={tf:g} without the event"

    return Trajectory(np.array(ts), np.array(xs), status, message, t_event=t_event, failure=failure,
                      crossings=crossings)


def energy_drift(traj: Trajectory, params: Params) -> np.ndarray:
    """ Relative total-energy error of every sample with respect to the first one. """
    E = energies(traj.x, params)[:, 0]
    scale = abs(E[0]) if E[0] != 0 else 1.0
    return np.abs(E - E[0]) / scale


def check_energy_conservation(traj: Trajectory, params: Params, rtol: float = 1e-6) -> float:
    """ Verify that total energy is constant along a run.

    Raises:
        EnergyConservationError: the run failed numerically or drift exceeds ``rtol``

    Returns:
        float: maximum relative drift
    """
    if traj.status is Status.FAILED_NUMERICALLY:
        raise EnergyConservationError(f"Run failed numerically: {traj.message}")
    drift = float(np.max(energy_drift(traj, params)))
    if drift > rtol:
        raise EnergyConservationError(f"Energy drift {drift:.3e} exceeds tolerance {rtol:.1e}")
    return drift


def reverse(traj: Trajectory, params: Params, **kwargs) -> Trajectory:
    """ Integrate back from the terminal state (rates negated) for the same duration.

    With conservative dynamics the final state, rates negated again, returns to
    the initial state of ``traj``. The event is disabled.
    """
    x_back = traj.x_final.copy()
    x_back[N_DOF:] *= -1
    kwargs.setdefault("event", None)
    return simulate(params, x_back, (0.0, traj.t_final - float(traj.t[0])), **kwargs)


def simulation_kwargs(sim_cfg: dict) -> dict:
    """ Solver keyword arguments from the ``simulation`` config section. """
    kwargs = {
        "t_span": tuple(float(v) for v in sim_cfg.get("t_span", (0.0, 0.5))),
        "method": str(sim_cfg.get("method", "RK45")),
        "rtol": float(sim_cfg.get("rtol", 1e-10)),
        "atol": float(sim_cfg.get("atol", 1e-12)),
    }
    if sim_cfg.get("max_step") is not None:
        kwargs["max_step"] = float(sim_cfg["max_step"])
    if sim_cfg.get("dense_dt") is not None:
        kwargs["dense_dt"] = float(sim_cfg["dense_dt"])
    return kwargs


def run_from_cfg(cfg: dict, params: Params = None):
    """ Single run described by a config dictionary.

    Returns:
        tuple: (Params, Trajectory)
    """
    from .anthropometry import params_from_cfg

    if params is None:
        params = params_from_cfg(cfg)
    sim_cfg = cfg.get("simulation", {})
    x0 = initial_state(sim_cfg["initial_state"])
    return params, simulate(params, x0, **simulation_kwargs(sim_cfg))
