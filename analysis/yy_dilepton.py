import logging

import awkward as ak
import numpy as np

from analysis.base import Analysis
from utils.cuts import (
    abseta_below,
    abspid_in,
    all_of,
    dilepton_selection,
    pt_above,
)
from utils.observables import (
    dilepton_kinematics,
    phi_zero_2pi,
    transverse_energy,
)
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
from utils.units import GeV, MeV, TWOPI

logger = logging.getLogger("YYDileptonAnalysis")

# Histograms scaled to cross-section / sum of weights
ABSOLUTE_HISTOGRAMS = [
    "mll", "ptll", "Dphill", "Acoll",
    "ptlepton1", "ptlepton2", "etalepton1", "etalepton2",
    "MultCh ", "PtCh ", "EtaCh ",
]

# Histograms normalised to unit area
SHAPE_HISTOGRAMS = [
    "Mult", "Eta", "Rapidity", "Pt", "E", "Phi",
    "MultCh", "EtaCh", "RapidityCh", "PtCh", "ECh", "PhiCh",
]

# (numerator, denominator, ratio)
FORWARD_BACKWARD_RATIOS = [
    ("TMP/EtaPlus", "TMP/EtaMinus", "EtaPMRatio"),
    ("TMP/EtaChPlus", "TMP/EtaChMinus", "EtaChPMRatio"),
    ("TMP/RapPlus", "TMP/RapMinus", "RapidityPMRatio"),
    ("TMP/RapChPlus", "TMP/RapChMinus", "RapidityChPMRatio"),
]


class YYDileptonAnalysis(Analysis):
    """
    Generator-level study of exclusive dilepton production.

    Inclusive final-state spectra are filled for every event; dilepton
    spectra and the charged-particle activity away from the leptons only
    for events with exactly two opposite-charge dressed leptons.
    """

    name = "YY_DILEPTON"

    def init(self) -> None:
        # ---------------------
        # Projections
        # ---------------------
        fs = self.declare(FinalState(all_of(abseta_below(5.0), pt_above(500 * MeV))), "FS")

        # direct photons and bare electrons/muons
        photons = DirectFinalState(abspid_in(PHOTON))
        bare_leptons = DirectFinalState(abspid_in(ELECTRON, MUON))

        lepton_cuts = all_of(abseta_below(2.5), pt_above(10 * GeV))
        self.declare(DressedLeptons(photons, bare_leptons, 0.1, lepton_cuts), "leptons")

        bare_leptons_no_tau = self.declare(
            VetoedFinalState(bare_leptons).veto_tau_decay_products(), "leps_no_tau"
        )
        self.declare(
            DressedLeptons(photons, bare_leptons_no_tau, 0.1, lepton_cuts),
            "dressed_leptons_no_tau",
        )

        cfs = self.declare(ChargedFinalState(fs), "CFS")

        # charged tracks without the lepton candidates
        cfs_no_leptons = VetoedFinalState(cfs)
        cfs_no_leptons.add_veto_pair(ELECTRON, lepton_cuts)
        cfs_no_leptons.add_veto_pair(MUON, lepton_cuts)
        self.declare(cfs_no_leptons, "CFS_NL")

        self.declare(FastJets(fs, radius=0.4), "jets")
        self.declare(MissingMomentum(fs), "MET")

        # ---------------------
        # Inclusive final state
        # ---------------------
        self.book("Mult", 100, -0.5, 99.5)
        self.book("MultCh", 100, -0.5, 99.5)

        self.book("Pt", 300, 0, 300)
        self.book("PtCh", 300, 0, 300)

        self.book("E", 100, 0, 200)
        self.book("ECh", 100, 0, 200)

        self.book_profile("EtaSumEt", 25, 0, 5)

        self.book("Eta", 50, -5, 5)
        self.book("EtaCh", 50, -5, 5)
        for name in ["EtaPlus", "EtaMinus", "EtaChPlus", "EtaChMinus"]:
            self.book(f"TMP/{name}", 25, 0, 5)

        self.book("Rapidity", 50, -5, 5)
        self.book("RapidityCh", 50, -5, 5)
        for name in ["RapPlus", "RapMinus", "RapChPlus", "RapChMinus"]:
            self.book(f"TMP/{name}", 25, 0, 5)

        self.book("Phi", 50, 0, TWOPI)
        self.book("PhiCh", 50, 0, TWOPI)

        for _, _, ratio in FORWARD_BACKWARD_RATIOS:
            self.book_scatter(ratio)

        # ---------------------
        # Leptons
        # ---------------------
        self.book("ptlepton1", 100, 0, 100)
        self.book("ptlepton2", 100, 0, 100)
        self.book("etalepton1", 50, -2.5, 2.5)
        self.book("etalepton2", 50, -2.5, 2.5)

        # ---------------------
        # Dilepton system
        # ---------------------
        self.book("mll", 500, 0, 500)
        self.book("ptll", 500, 0, 500)
        self.book("Dphill", 64, -3.2, 3.2)
        self.book("Acoll", 100, 0, 1.0)

        # ---------------------
        # Charged particles without leptons
        # ---------------------
        self.book("MultCh ", 50, -0.5, 49.5)
        self.book("PtCh ", 500, 0, 500)
        self.book("EtaCh ", 100, -5.0, 5.0)

    def _fill_inclusive(self, particles: ak.Array, weights: ak.Array, suffix: str) -> None:
        """Multiplicity and single-particle spectra of a final state."""
        h = self.histogram
        eta, rapidity = particles.eta, particles.rapidity
        rap_prefix = "TMP/RapCh" if suffix else "TMP/Rap"

        self.fill(h(f"Mult{suffix}"), ak.num(particles, axis=1), weights)
        self.fill(h(f"Eta{suffix}"), eta, weights)
        self.fill(h(f"TMP/Eta{suffix}Plus"), np.abs(eta[eta > 0]), weights)
        self.fill(h(f"TMP/Eta{suffix}Minus"), np.abs(eta[eta <= 0]), weights)
        self.fill(h(f"Rapidity{suffix}"), rapidity, weights)
        self.fill(h(f"{rap_prefix}Plus"), np.abs(rapidity[rapidity > 0]), weights)
        self.fill(h(f"{rap_prefix}Minus"), np.abs(rapidity[rapidity <= 0]), weights)
        self.fill(h(f"Pt{suffix}"), particles.pt / GeV, weights)
        self.fill(h(f"E{suffix}"), particles.energy / GeV, weights)
        self.fill(h(f"Phi{suffix}"), phi_zero_2pi(particles.phi), weights)

    def analyze(self, events: ak.Array) -> None:
        h = self.histogram
        weights = self.event_weights(events)

        # dressed leptons, sorted by pT
        leptons = self.apply(events, "leptons")

        fs = self.apply(events, "FS")
        cfs = self.apply(events, "CFS")
        cfs_no_leptons = self.apply(events, "CFS_NL")

        kinematics = dilepton_kinematics(leptons)

        # ---------------------
        # All final-state particles
        # ---------------------
        logger.debug(f"Total multiplicity = {ak.sum(ak.num(fs, axis=1))}")
        self._fill_inclusive(fs, weights, "")
        self.fill_profile(
            h("EtaSumEt"), np.abs(fs.eta), transverse_energy(fs) / GeV, weights
        )

        # ---------------------
        # Charged final-state particles
        # ---------------------
        logger.debug(f"Total charged multiplicity = {ak.sum(ak.num(cfs, axis=1))}")
        self._fill_inclusive(cfs, weights, "Ch")

        # ---------------------
        # Selection: exactly two opposite-charge leptons
        # ---------------------
        selection = dilepton_selection(leptons)
        passed = self.select_events(
            selection, weights, "exactly_2_leptons", "opposite_charge"
        )
        if not np.any(passed):
            return

        kinematics = kinematics[passed]
        selected_weights = weights[passed]
        cfs_no_leptons = cfs_no_leptons[passed]

        self.fill(h("mll"), kinematics.mll / GeV, selected_weights)
        self.fill(h("ptll"), kinematics.ptll / GeV, selected_weights)
        self.fill(h("Dphill"), kinematics.dphill, selected_weights)
        self.fill(h("Acoll"), kinematics.acoll, selected_weights)

        self.fill(h("ptlepton1"), kinematics.pt_l1 / GeV, selected_weights)
        self.fill(h("ptlepton2"), kinematics.pt_l2 / GeV, selected_weights)
        self.fill(h("etalepton1"), kinematics.eta_l1, selected_weights)
        self.fill(h("etalepton2"), kinematics.eta_l2, selected_weights)

        self.fill(h("MultCh "), ak.num(cfs_no_leptons, axis=1), selected_weights)
        self.fill(h("EtaCh "), cfs_no_leptons.eta, selected_weights)
        self.fill(h("PtCh "), cfs_no_leptons.pt / GeV, selected_weights)

    def finalize(self) -> None:
        normfac = self.cross_section / self.sum_of_weights if self.sum_of_weights else float("nan")
        logger.info(
            f"Cross-section {self.cross_section:.6g} pb, sum of weights "
            f"{self.sum_of_weights:.6g}, scale factor {normfac:.6g}"
        )

        for name in ABSOLUTE_HISTOGRAMS:
            self.scale(self.histogram(name), normfac)

        for name in SHAPE_HISTOGRAMS:
            self.normalize(self.histogram(name))

        for numerator, denominator, ratio in FORWARD_BACKWARD_RATIOS:
            self.divide(
                self.histogram(numerator),
                self.histogram(denominator),
                self.histogram(ratio),
            )
