import awkward as ak
import numpy as np
import pytest

from conftest import electron, make_events, muon, particle, photon, pion
from utils.cuts import abseta_below, abspid_in, all_of, pt_above
from utils.projections import (
    ELECTRON,
    MUON,
    PHOTON,
    ChargedFinalState,
    DirectFinalState,
    DressedLeptons,
    FastJets,
    FinalState,
    MissingMomentum,
    VetoedFinalState,
)

LEPTON_CUTS = all_of(abseta_below(2.5), pt_above(10.0))


def dressed_leptons(bare=None):
    photons = DirectFinalState(abspid_in(PHOTON))
    if bare is None:
        bare = DirectFinalState(abspid_in(ELECTRON, MUON))
    return DressedLeptons(photons, bare, 0.1, LEPTON_CUTS)


def test_final_state_keeps_stable_particles():
    events = make_events([
        [
            pion(2.0, 0.5, 0.0),
            pion(2.0, 0.5, 0.0, status=2),
            pion(0.3, 0.1, 0.0),
            pion(2.0, 5.5, 0.0),
        ],
    ])
    fs = FinalState(all_of(abseta_below(5.0), pt_above(0.5))).project(events)
    assert ak.num(fs, axis=1).tolist() == [1]


def test_charged_final_state():
    events = make_events([[pion(2.0, 0.0, 0.0), photon(2.0, 0.0, 1.0), pion(1.0, 1.0, 1.0, charge=-1)]])
    cfs = ChargedFinalState(FinalState()).project(events)
    assert ak.num(cfs, axis=1).tolist() == [2]
    assert ak.all(cfs.charge != 0)


def test_direct_final_state_drops_hadron_decay_products():
    events = make_events([[photon(5.0, 0.0, 0.0), photon(5.0, 1.0, 0.0, isDirect=False)]])
    photons = DirectFinalState(abspid_in(PHOTON)).project(events)
    assert photons.eta.tolist() == [[0.0]]


def test_dressing_attaches_close_direct_photons():
    events = make_events([
        [
            muon(20.0, 0.0, 0.0),
            photon(5.0, 0.05, 0.0),
            # too far away
            photon(3.0, 0.0, 0.5),
            # not direct
            photon(4.0, 0.02, 0.0, isDirect=False),
        ],
    ])
    leptons = dressed_leptons().project(events)
    assert ak.num(leptons, axis=1).tolist() == [1]
    assert leptons.pt[0, 0] == pytest.approx(25.0)
    assert leptons.charge[0, 0] == -1
    assert leptons.pdgId[0, 0] == 13


def test_dressing_can_lift_lepton_above_threshold():
    events = make_events([
        [muon(9.0, 0.0, 1.0), photon(2.0, 0.01, 1.0)],
        [muon(9.0, 0.0, 1.0), photon(2.0, 0.5, 1.0)],
    ])
    leptons = dressed_leptons().project(events)
    assert ak.num(leptons, axis=1).tolist() == [1, 0]
    assert leptons.pt[0, 0] == pytest.approx(11.0, rel=1e-3)


def test_photon_goes_to_closest_lepton_only():
    events = make_events([
        [
            electron(50.0, 0.0, 0.0),
            muon(30.0, 0.08, 0.0, charge=+1),
            photon(4.0, 0.06, 0.0),
        ],
    ])
    leptons = dressed_leptons().project(events)
    assert leptons.pt.tolist()[0] == pytest.approx([50.0, 34.0])
    assert leptons.pdgId.tolist() == [[11, -13]]


def test_dressed_leptons_sorted_by_pt():
    events = make_events([
        [muon(15.0, 0.0, 0.0), electron(45.0, 1.0, 2.0, charge=+1), muon(30.0, -1.0, -2.0)],
    ])
    leptons = dressed_leptons().project(events)
    assert leptons.pt.tolist()[0] == pytest.approx([45.0, 30.0, 15.0])


def test_dressing_without_photons_or_leptons():
    events = make_events([
        [pion(5.0, 0.0, 0.0)],
        [muon(20.0, 0.3, 0.0)],
        [photon(20.0, 0.3, 0.0)],
    ])
    leptons = dressed_leptons().project(events)
    assert ak.num(leptons, axis=1).tolist() == [0, 1, 0]
    assert leptons.pt[1, 0] == pytest.approx(20.0)


def test_veto_charged_leptons_inside_acceptance():
    events = make_events([
        [
            muon(20.0, 0.0, 0.0),
            # below the lepton threshold
            muon(5.0, 0.5, 1.0, charge=+1),
            # outside the lepton acceptance
            electron(15.0, 3.0, 2.0),
            pion(2.0, 1.0, 1.0),
        ],
    ])
    vetoed = VetoedFinalState(ChargedFinalState(FinalState()))
    vetoed.add_veto_pair(ELECTRON, LEPTON_CUTS).add_veto_pair(MUON, LEPTON_CUTS)
    kept = vetoed.project(events)
    assert sorted(np.abs(kept.pdgId[0]).tolist()) == [11, 13, 211]


def test_veto_pair_without_cut():
    events = make_events([[electron(20.0, 0.0, 0.0), electron(3.0, 4.0, 0.0, charge=+1), pion(2.0, 0.0, 1.0)]])
    kept = VetoedFinalState(FinalState()).add_veto_pair(ELECTRON).project(events)
    assert kept.pdgId.tolist() == [[211]]


def test_veto_tau_decay_products():
    events = make_events([
        [muon(20.0, 0.0, 0.0, fromTau=True), muon(25.0, 1.0, 2.0, charge=+1)],
    ])
    bare = VetoedFinalState(DirectFinalState(abspid_in(ELECTRON, MUON))).veto_tau_decay_products()
    leptons = dressed_leptons(bare).project(events)
    assert leptons.pt.tolist()[0] == pytest.approx([25.0])


def test_missing_momentum_ignores_neutrinos():
    events = make_events([
        [
            pion(10.0, 0.0, np.pi / 2),
            particle(7.0, 0.0, 0.0, 14, 0),
        ],
    ])
    met = MissingMomentum(FinalState()).project(events)
    assert met.pt[0] == pytest.approx(10.0)
    assert met.phi[0] == pytest.approx(-np.pi / 2)
    assert met.sum_et[0] == pytest.approx(10.0, rel=1e-3)


def test_anti_kt_jets():
    events = make_events([
        [
            pion(20.0, 0.0, 0.0),
            pion(10.0, 0.1, 0.1, charge=-1),
            muon(30.0, 2.0, 2.0),
            particle(15.0, -1.0, -2.0, 12, 0),
        ],
        [pion(8.0, 0.0, 0.0), pion(12.0, 1.0, 3.0)],
    ])
    jets = FastJets(FinalState(), radius=0.4).project(events)
    assert ak.num(jets, axis=1).tolist() == [1, 2]
    assert jets.pt[0, 0] == pytest.approx(29.9, abs=0.2)
    assert jets.pt[1].tolist() == pytest.approx([12.0, 8.0], rel=1e-3)


def test_missing_momentum_with_particle_at_rest():
    events = make_events([[pion(0.0, 0.0, 0.0), pion(4.0, 0.0, 0.0)]])
    met = MissingMomentum(FinalState()).project(events)
    assert met.pt[0] == pytest.approx(4.0)
    assert np.isfinite(met.sum_et[0])
    assert met.sum_et[0] == pytest.approx(4.0, rel=1e-3)
