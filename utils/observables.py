import logging

import awkward as ak
import numpy as np
import vector

from utils.units import PI, TWOPI

logger = logging.getLogger(__name__)

# -----------------------------
# Register backends
# -----------------------------
vector.register_awkward()

# Placeholder values for quantities of missing leptons
MISSING_VALUE = -1.0
MISSING_ETA = -15.0


def phi_zero_2pi(phi):
    """Map azimuthal angles onto [0, 2pi)."""
    return np.mod(phi, TWOPI)


def delta_phi(phi_1, phi_2):
    """Absolute azimuthal separation, mapped onto [0, pi]."""
    return np.abs(np.mod(phi_1 - phi_2 + PI, TWOPI) - PI)


def transverse_energy(particles: ak.Array) -> ak.Array:
    """Transverse energy E * sin(theta) = E * pT / |p|, zero at rest."""
    p = particles.p
    with np.errstate(divide="ignore", invalid="ignore"):
        et = particles.energy * particles.pt / p
    return ak.where(p > 0, et, 0.0)


def acoplanarity(phi_1, phi_2):
    """
    Acoplanarity ``|1 - (phi_1 - phi_2) / pi|`` of two directions.

    The raw difference of the [0, 2pi) angles is used, without reducing it
    onto [-pi, pi], so values range over [0, 3).
    """
    return np.abs(1.0 - (phi_zero_2pi(phi_1) - phi_zero_2pi(phi_2)) / PI)


def leading_value(values: ak.Array, index: int, default: float) -> ak.Array:
    """
    Per-event value of the ``index``-th entry of a jagged array.

    Events with fewer than ``index + 1`` entries get ``default``.
    """
    padded = ak.pad_none(values, index + 1, axis=1, clip=True)
    return ak.fill_none(padded[:, index], default)


def four_momenta(px, py, pz, energy) -> ak.Array:
    """Zip Cartesian components into ``Momentum4D`` vectors."""
    return ak.zip(
        {"px": px, "py": py, "pz": pz, "E": energy}, with_name="Momentum4D"
    )


def dilepton_kinematics(leptons: ak.Array) -> ak.Array:
    """
    Kinematics of the two leading leptons and of the dilepton system.

    Parameters
    ----------
    leptons : ak.Array
        Dressed leptons per event, sorted by pT.

    Returns
    -------
    ak.Array
        One record per event with the fields ``pt_l1``, ``pt_l2``, ``eta_l1``,
        ``eta_l2``, ``mll``, ``ptll``, ``dphill`` and ``acoll``. Quantities of
        missing leptons default to -1 (-15 for eta), never NaN.
    """
    n_leptons = ak.num(leptons, axis=1)
    has_two = n_leptons > 1

    # leading pair as plain four-vectors, zero where missing
    l1, l2 = (
        four_momenta(
            leading_value(leptons.px, i, 0.0),
            leading_value(leptons.py, i, 0.0),
            leading_value(leptons.pz, i, 0.0),
            leading_value(leptons.E, i, 0.0),
        )
        for i in (0, 1)
    )
    dilepton = l1 + l2

    phi_l1 = leading_value(leptons.phi, 0, 0.0)
    phi_l2 = leading_value(leptons.phi, 1, 0.0)

    return ak.zip(
        {
            "pt_l1": leading_value(leptons.pt, 0, MISSING_VALUE),
            "pt_l2": leading_value(leptons.pt, 1, MISSING_VALUE),
            "eta_l1": leading_value(leptons.eta, 0, MISSING_ETA),
            "eta_l2": leading_value(leptons.eta, 1, MISSING_ETA),
            "mll": ak.where(has_two, dilepton.mass, MISSING_VALUE),
            "ptll": ak.where(has_two, dilepton.pt, MISSING_VALUE),
            "dphill": ak.where(has_two, delta_phi(phi_l1, phi_l2), MISSING_VALUE),
            "acoll": ak.where(has_two, acoplanarity(phi_l1, phi_l2), MISSING_VALUE),
        }
    )
