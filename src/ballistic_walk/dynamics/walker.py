""" Three-link ballistic walker: stance leg, swing thigh and swing shank.

Segment angles are measured from vertical, counter-clockwise positive, in radians.
Link 1 is the stance leg (ankle to hip, centre of mass ``lc1`` from the ankle),
link 2 the swing thigh (from the hip) and link 3 the swing shank (from the knee).

The equations of motion are the closed forms produced by a symbolic derivation
(mass matrix + right-hand side) and are hardcoded here.
"""
import numpy as np
from dataclasses import dataclass
from .base import NumericalFailure

STATE_NAMES = ["q1", "q2", "q3", "u1", "u2", "u3"]  # angles then rates, fixed order
N_DOF = 3

# Mass matrices above this condition number are treated as singular
COND_LIMIT = 1e12


@dataclass(frozen=True)
class Params:
    M1: float  # stance leg mass (kg)
    M2: float  # swing thigh mass (kg)
    M3: float  # swing shank mass (kg)
    I1: float  # inertia about own com (kg*m^2)
    I2: float
    I3: float
    l1: float  # segment lengths (m)
    l2: float
    l3: float
    lc1: float  # com distance from proximal joint (m), ankle for the stance leg
    lc2: float
    lc3: float
    g: float = 9.81  # gravity (m/s^2)
    lfoot: float = 0.25  # foot length (m), drawing only


def check_state(x) -> np.ndarray:
    """ Return ``x`` as a float array of shape (6,), raising ValueError otherwise. """
    x = np.asarray(x, dtype=float)
    if x.shape != (2 * N_DOF,):
        raise ValueError(f"State must have shape ({2 * N_DOF},) ordered as {STATE_NAMES}, got {x.shape}")
    return x


def mass_matrix(q, params: Params) -> np.ndarray:
    """ Configuration-dependent mass matrix.

    Args:
        q (array-like): segment angles [q1, q2, q3] (rad). A full state is accepted too.
        params (Params): walker parameters

    Returns:
        np.ndarray: symmetric (3, 3) mass matrix
    """
    q1, q2, q3 = float(q[0]), float(q[1]), float(q[2])
    p = params
    c1m2 = np.cos(q1 - q2)
    c1m3 = np.cos(q1 - q3)
    c2m3 = np.cos(q2 - q3)

    MM = np.zeros((3, 3))
    MM[0, 0] = p.I1 + p.M2 * (p.l1 * p.l1) + p.M3 * (p.l1 * p.l1) + p.M1 * (p.lc1 * p.lc1)
    MM[0, 1] = -(c1m2 * p.l1 * p.lc2 * p.M2) - c1m2 * p.l1 * p.l2 * p.M3
    MM[0, 2] = -(c1m3 * p.l1 * p.lc3 * p.M3)
    MM[1, 1] = p.I2 + p.M3 * (p.l2 * p.l2) + p.M2 * (p.lc2 * p.lc2)
    MM[1, 2] = c2m3 * p.l2 * p.lc3 * p.M3
    MM[2, 2] = p.I3 + p.M3 * (p.lc3 * p.lc3)

    # lower triangle mirrors the upper one exactly
    MM[1, 0] = MM[0, 1]
    MM[2, 0] = MM[0, 2]
    MM[2, 1] = MM[1, 2]
    return MM


def forcing(x, params: Params) -> np.ndarray:
    """ Right-hand side of ``MM @ qddot = rhs``: gravity torques and velocity-squared coupling.

    Args:
        x (np.ndarray): state [q1, q2, q3, u1, u2, u3]
        params (Params): walker parameters

    Returns:
        np.ndarray: generalised forces, shape (3,)
    """
    q1, q2, q3, u1, u2, u3 = (float(v) for v in x)
    p = params
    s1, s2, s3 = np.sin(q1), np.sin(q2), np.sin(q3)
    s1m2 = np.sin(q1 - q2)
    s1m3 = np.sin(q1 - q3)
    s2m3 = np.sin(q2 - q3)

    rhs = np.zeros(3)
    rhs[0] = (s1 * p.g * p.lc1 * p.M1 + s1 * p.g * p.l1 * p.M2 + s1 * p.g * p.l1 * p.M3
              + s1m2 * (p.l1 * p.lc2 * p.M2 + p.l1 * p.lc2 * p.M3 - p.l1 * (-p.l2 + p.lc2) * p.M3) * (u2 * u2)
              + s1m3 * p.l1 * p.lc3 * p.M3 * (u3 * u3))
    rhs[1] = (-(s2 * p.g * p.lc2 * p.M2) - s2 * p.g * p.l2 * p.M3
              + s1m2 * (-(p.lc1 * p.lc2 * p.M2) + (-p.l1 + p.lc1) * p.lc2 * p.M2
                        - p.l2 * (p.l1 - p.lc1) * p.M3 - p.l2 * p.lc1 * p.M3) * (u1 * u1)
              - s2m3 * p.l2 * p.lc3 * p.M3 * (u3 * u3))
    rhs[2] = (-(s3 * p.g * p.lc3 * p.M3)
              + s1m3 * (-(p.lc1 * p.lc3 * p.M3) + (-p.l1 + p.lc1) * p.lc3 * p.M3) * (u1 * u1)
              + s2m3 * ((p.l2 - p.lc2) * p.lc3 * p.M3 + p.lc2 * p.lc3 * p.M3) * (u2 * u2))
    return rhs


def f(t: float, state: np.ndarray, params: Params) -> np.ndarray:
    """ Walker continuous-time dynamics (autonomous; ``t`` only labels failures).

    Args:
        t (float): time
        state (np.ndarray): state [q1, q2, q3, u1, u2, u3]
        params (Params): walker parameters

    Raises:
        NumericalFailure: non-finite state, or singular / ill-conditioned mass matrix

    Returns:
        np.ndarray: state derivative [u1, u2, u3, du1, du2, du3]
    """
    x = np.asarray(state, dtype=float)
    if not np.all(np.isfinite(x)):
        raise NumericalFailure("Non-finite state", t=t, x=x)

    MM = mass_matrix(x, params)
    rhs = forcing(x, params)

    with np.errstate(divide="ignore", invalid="ignore"):
        cond = np.linalg.cond(MM)
    if not np.isfinite(cond) or cond > COND_LIMIT:
        raise NumericalFailure(f"Singular mass matrix (cond={cond:.3g})", t=t, x=x)
    try:
        udot = np.linalg.solve(MM, rhs)
    except np.linalg.LinAlgError as e:
        raise NumericalFailure(f"Mass matrix solve failed: {e}", t=t, x=x) from e

    return np.concatenate([x[N_DOF:], udot])


def energy(x, params: Params):
    """ Mechanical energy of one state, or of a stack of states with shape (n, 6).

    The kinetic term equals ``0.5 * u @ mass_matrix(q) @ u``. The potential term keeps
    the published algebraic form so its zero reference matches the kinetic frame.

    Returns:
        tuple: (total, kinetic, potential)
    """
    x = np.asarray(x, dtype=float)
    q1, q2, q3 = x[..., 0], x[..., 1], x[..., 2]
    u1, u2, u3 = x[..., 3], x[..., 4], x[..., 5]
    p = params
    c1m2 = np.cos(q1 - q2)
    c1m3 = np.cos(q1 - q3)
    c2m3 = np.cos(q2 - q3)

    # hip speed along the stance leg and knee speed relative to the hip
    v_hip = -(u1 * (p.l1 - p.lc1)) - u1 * p.lc1
    v_knee = u2 * p.lc2 - u2 * (-p.l2 + p.lc2)

    kinetic = ((p.I1 * (u1 * u1)) / 2. + (p.I2 * (u2 * u2)) / 2. + (p.I3 * (u3 * u3)) / 2.
               + (p.M1 * (u1 * u1) * (p.lc1 * p.lc1)) / 2.
               + (p.M2 * (2 * c1m2 * u2 * v_hip * p.lc2 + v_hip * v_hip + u2 * u2 * (p.lc2 * p.lc2))) / 2.
               + (p.M3 * (2 * c1m2 * v_hip * v_knee + 2 * c1m3 * u3 * v_hip * p.lc3
                          + 2 * c2m3 * u3 * v_knee * p.lc3 + v_hip * v_hip + v_knee * v_knee
                          + u3 * u3 * (p.lc3 * p.lc3))) / 2.)

    potential = (p.g * p.lc1 * p.M1 * np.cos(q1)
                 - p.M2 * (-(p.g * p.l1 * np.cos(q1)) + p.g * p.lc2 * np.cos(q2))
                 - p.M3 * (-(p.g * p.l1 * np.cos(q1)) + p.g * p.l2 * np.cos(q2) + p.g * p.lc3 * np.cos(q3)))

    return kinetic + potential, kinetic, potential


def energies(xs, params: Params) -> np.ndarray:
    """ Energy triple for every sample of a trajectory, shape (n, 3): total, kinetic, potential. """
    return np.stack(energy(np.atleast_2d(xs), params), axis=-1)


def knee_extension(t: float, x: np.ndarray) -> float:
    """ Swing knee angle, zero at full extension (thigh and shank aligned). """
    return x[1] - x[2]


knee_extension.terminal = True
knee_extension.direction = -1  # knee straightening: q2 - q3 going from positive to negative


def leg_points(x, params: Params) -> np.ndarray:
    """ Joint positions for drawing a stick figure of one state.

    The stance toe sits at the origin with the foot pointing along +x.

    Returns:
        np.ndarray: (6, 2) array of points: stance toe, stance ankle, hip,
            swing knee, swing ankle, swing toe
    """
    q1, q2, q3 = float(x[0]), float(x[1]), float(x[2])
    p = params

    xtoe, ytoe = 0.0, 0.0
    xankle, yankle = xtoe - p.lfoot, ytoe
    xhip = xankle - p.l1 * np.sin(q1)
    yhip = yankle + p.l1 * np.cos(q1)
    xknee = xhip + p.l2 * np.sin(q2)
    yknee = yhip - p.l2 * np.cos(q2)
    xswingankle = xknee + p.l3 * np.sin(q3)
    yswingankle = yknee - p.l3 * np.cos(q3)
    # foot perpendicular to the shank
    xswingtoe = xswingankle + p.lfoot * np.cos(q3)
    yswingtoe = yswingankle + p.lfoot * np.sin(q3)

    return np.array([
        [xtoe, ytoe],
        [xankle, yankle],
        [xhip, yhip],
        [xknee, yknee],
        [xswingankle, yswingankle],
        [xswingtoe, yswingtoe],
    ])
