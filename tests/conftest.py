import logging

import awkward as ak
import pytest

from utils.input_files import build_events
from utils.schema import Config

MUON_MASS = 0.10566
ELECTRON_MASS = 0.000511
PION_MASS = 0.13957


def particle(pt, eta, phi, pdgId, charge, mass=0.0, status=1, isDirect=True, fromTau=False):
    return {
        "pt": float(pt),
        "eta": float(eta),
        "phi": float(phi),
        "mass": float(mass),
        "pdgId": int(pdgId),
        "charge": int(charge),
        "status": int(status),
        "isDirect": bool(isDirect),
        "fromTau": bool(fromTau),
    }


def muon(pt, eta, phi, charge=-1, **kwargs):
    return particle(pt, eta, phi, 13 * -charge, charge, mass=MUON_MASS, **kwargs)


def electron(pt, eta, phi, charge=-1, **kwargs):
    return particle(pt, eta, phi, 11 * -charge, charge, mass=ELECTRON_MASS, **kwargs)


def photon(pt, eta, phi, **kwargs):
    return particle(pt, eta, phi, 22, 0, **kwargs)


def pion(pt, eta, phi, charge=1, **kwargs):
    return particle(pt, eta, phi, 211 * charge, charge, mass=PION_MASS, **kwargs)


def make_events(particle_lists, weights=None, cross_section=None):
    return build_events(
        ak.Array(particle_lists),
        None if weights is None else ak.Array(weights),
        None if cross_section is None else ak.Array(cross_section),
    )


def make_config(**general):
    return Config(general=general, input={"files": ["unused.root"]})


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def dilepton_event():
    """mu- mu+ pair with a charged pion and a photon."""
    return [
        muon(40.0, 0.5, 1.0, charge=-1),
        muon(30.0, -0.7, -2.0, charge=+1),
        pion(5.0, 1.5, 0.3),
        photon(2.0, -3.0, 2.5),
    ]


@pytest.fixture
def single_lepton_event():
    return [
        electron(25.0, 1.2, 0.1, charge=-1),
        pion(3.0, -0.4, 2.0, charge=-1),
    ]


@pytest.fixture
def same_charge_event():
    return [
        electron(35.0, 0.2, 0.5, charge=+1),
        electron(22.0, -1.0, 2.5, charge=+1),
        pion(4.0, 0.1, -1.0),
    ]
