import awkward as ak

from conftest import electron, make_events, muon, pion
from utils.cuts import abseta_below, abspid_in, all_of, any_of, dilepton_selection, pt_above


def test_particle_cuts():
    particles = make_events([
        [pion(5.0, 0.5, 0.0), electron(20.0, -3.0, 1.0), muon(0.4, 1.0, 2.0)],
    ]).particles

    assert pt_above(1.0)(particles).tolist() == [[True, True, False]]
    assert abseta_below(2.5)(particles).tolist() == [[True, False, True]]
    assert abspid_in(11, 13)(particles).tolist() == [[False, True, True]]
    assert all_of(pt_above(1.0), abseta_below(2.5))(particles).tolist() == [[True, False, False]]
    assert any_of(abspid_in(211), abseta_below(0.1))(particles).tolist() == [[True, False, False]]


def test_dilepton_selection():
    leptons = ak.Array([
        [],
        [{"pt": 30.0, "charge": 1}],
        [{"pt": 30.0, "charge": 1}, {"pt": 20.0, "charge": -1}],
        [{"pt": 30.0, "charge": -1}, {"pt": 20.0, "charge": -1}],
        [{"pt": 30.0, "charge": 1}, {"pt": 20.0, "charge": -1}, {"pt": 15.0, "charge": 1}],
    ])
    selection = dilepton_selection(leptons)

    assert selection.all("exactly_2_leptons").tolist() == [False, False, True, True, False]
    assert selection.all("opposite_charge").tolist() == [False, False, True, False, True]
    assert selection.all("dilepton").tolist() == [False, False, True, False, False]
