""" Walker parameters from body-mass-normalised anthropometric ratios.

Segment masses are fractions of body mass, lengths are fractions of the leg length,
centre-of-mass locations are fractions of segment length measured from the proximal
end and radii of gyration are taken about the proximal end.

    Leg measurements (stance leg, ankle A to hip)

    A<-------------------------->X<------------------------>Hip
               lcstance               lstance-lcstance

    A<------------->X<--------->K<-------------->X<-------->Hip
      lshank-lcshank   lcshank    lthigh-lcthigh    lcthigh
"""
import numpy as np
from dataclasses import dataclass, field, asdict
from .dynamics.base import validate_params, ConfigurationError
from .dynamics.walker import Params


@dataclass
class MassRatios:
    shank: float = 0.06
    thigh: float = 0.097


@dataclass
class LengthRatios:
    shank: float = 0.5
    thigh: float = 0.5
    foot: float = 0.25


@dataclass
class ComRatios:
    shank: float = 0.437
    thigh: float = 0.433


@dataclass
class GyrationRatios:
    shank: float = 0.735
    thigh: float = 0.54


@dataclass
class Anthropometry:
    body_mass: float = 65.0  # kg, scales every mass and inertia
    leg_length: float = 1.0  # m, scales every length ratio
    gravity: float = 9.81  # m/s^2
    mass_ratios: MassRatios = field(default_factory=MassRatios)
    length_ratios: LengthRatios = field(default_factory=LengthRatios)
    com_ratios: ComRatios = field(default_factory=ComRatios)
    gyration_ratios: GyrationRatios = field(default_factory=GyrationRatios)


def anthropometry_from_cfg(anthro_cfg: dict | None) -> Anthropometry:
    """ Build an Anthropometry from the ``anthropometry`` config section.

    Missing entries keep their default values.

    Raises:
        ConfigurationError: unknown keys or values of the wrong type
    """
    return validate_params(Anthropometry, anthro_cfg or {})


def _require_positive(name, value):
    if not np.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be strictly positive, got {value}")


def derive_params(anthro: Anthropometry) -> Params:
    """ Derive link masses, lengths, com offsets and inertias.

    Args:
        anthro (Anthropometry): body mass and segment ratios

    Raises:
        ConfigurationError: non-positive mass or length, com outside its segment,
            or a negative inertia after parallel-axis composition

    Returns:
        Params: immutable walker parameters
    """
    _require_positive("body_mass", anthro.body_mass)
    _require_positive("leg_length", anthro.leg_length)
    _require_positive("gravity", anthro.gravity)
    for group in ("mass_ratios", "length_ratios", "com_ratios", "gyration_ratios"):
        for name, value in asdict(getattr(anthro, group)).items():
            _require_positive(f"{group}.{name}", value)

    mshank, mthigh = anthro.mass_ratios.shank, anthro.mass_ratios.thigh
    lshank = anthro.length_ratios.shank * anthro.leg_length
    lthigh = anthro.length_ratios.thigh * anthro.leg_length
    lfoot = anthro.length_ratios.foot * anthro.leg_length

    lcshank = anthro.com_ratios.shank * lshank
    lcthigh = anthro.com_ratios.thigh * lthigh

    lstance = lshank + lthigh
    # stance com measured from the ankle
    lcstance = (mshank * (lshank - lcshank) + mthigh * (lshank + lthigh - lcthigh)) / (mshank + mthigh)

    etashank = anthro.gyration_ratios.shank * lshank
    etathigh = anthro.gyration_ratios.thigh * lthigh
    Ishank = mshank * etashank**2 - mshank * lcshank**2
    Ithigh = mthigh * etathigh**2 - mthigh * lcthigh**2
    Istance = (Ishank + mshank * (lcstance - (lshank - lcshank))**2
               + Ithigh + mthigh * (-lcstance + lstance - lcthigh)**2)

    for name, inertia in (("shank", Ishank), ("thigh", Ithigh), ("stance", Istance)):
        if inertia < 0:
            raise ConfigurationError(f"Negative {name} inertia ({inertia:.4g}): radius of gyration "
                                     f"about the proximal end is smaller than the com offset")

    body_mass = anthro.body_mass
    params = Params(
        M1=(mshank + mthigh) * body_mass,
        M2=mthigh * body_mass,
        M3=mshank * body_mass,
        I1=Istance * body_mass,
        I2=Ithigh * body_mass,
        I3=Ishank * body_mass,
        l1=lstance, l2=lthigh, l3=lshank,
        lc1=lcstance, lc2=lcthigh, lc3=lcshank,
        g=anthro.gravity,
        lfoot=lfoot,
    )

    for i, (l, lc) in enumerate(((params.l1, params.lc1), (params.l2, params.lc2), (params.l3, params.lc3)), start=1):
        if not 0 < lc < l:
            raise ConfigurationError(f"lc{i}={lc:.4g} must lie strictly inside link {i} (0, {l:.4g})")

    return params


def params_from_cfg(cfg: dict) -> Params:
    """ Walker parameters from a full configuration dictionary. """
    return derive_params(anthropometry_from_cfg(cfg.get("anthropometry")))
