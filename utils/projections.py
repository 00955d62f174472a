"""
Projections: named computations that extract particle collections, or
quantities derived from them, from a batch of events.

Every projection works columnar on an awkward array of events with a jagged
``particles`` field and returns one entry (or one list of entries) per event.
Composite projections hold a reference to the projection they are built on.
"""
import logging
from typing import Optional

import awkward as ak
import fastjet
import numpy as np
import vector

from utils.cuts import Cut, abspid_in
from utils.observables import four_momenta, transverse_energy

logger = logging.getLogger(__name__)

# -----------------------------
# Register backends
# -----------------------------
vector.register_awkward()

PHOTON = 22
ELECTRON = 11
MUON = 13
TAU = 15
NEUTRINOS = (12, 14, 16)

is_invisible = abspid_in(*NEUTRINOS)


class Projection:
    """Base class for projections."""

    def project(self, events: ak.Array) -> ak.Array:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class FinalState(Projection):
    """Stable (status 1) particles passing an optional cut."""

    def __init__(self, cut: Optional[Cut] = None) -> None:
        self.cut = cut

    def project(self, events: ak.Array) -> ak.Array:
        particles = events.particles
        particles = particles[particles.status == 1]
        if self.cut is not None:
            particles = particles[self.cut(particles)]
        return particles


class DirectFinalState(FinalState):
    """Final-state particles that do not originate from hadron decays."""

    def project(self, events: ak.Array) -> ak.Array:
        particles = super().project(events)
        return particles[particles.isDirect]


class ChargedFinalState(Projection):
    """Charged subset of another final state."""

    def __init__(self, base: Projection) -> None:
        self.base = base

    def project(self, events: ak.Array) -> ak.Array:
        particles = self.base.project(events)
        return particles[particles.charge != 0]


class VetoedFinalState(Projection):
    """Another final state with some particles removed."""

    def __init__(self, base: Projection) -> None:
        self.base = base
        self.veto_pairs: list[tuple[int, Optional[Cut]]] = []
        self.veto_tau_decays = False

    def add_veto_pair(self, pdg_id: int, cut: Optional[Cut] = None) -> "VetoedFinalState":
        """Veto a particle and its antiparticle, optionally only inside ``cut``."""
        self.veto_pairs.append((abs(pdg_id), cut))
        return self

    def veto_tau_decay_products(self) -> "VetoedFinalState":
        """Veto every particle descending from a tau decay."""
        self.veto_tau_decays = True
        return self

    def project(self, events: ak.Array) -> ak.Array:
        particles = self.base.project(events)
        vetoed = ak.zeros_like(particles.pt, dtype=bool)
        for abspid, cut in self.veto_pairs:
            matched = np.abs(particles.pdgId) == abspid
            if cut is not None:
                matched = matched & cut(particles)
            vetoed = vetoed | matched
        if self.veto_tau_decays:
            vetoed = vetoed | particles.fromTau
        return particles[~vetoed]


class DressedLeptons(Projection):
    """
    Bare leptons dressed with the photons around them.

    Each photon is attached to its closest bare lepton if their separation
    in (eta, phi) is below ``dr_max``. The dressed momentum is the sum of
    the bare lepton and its attached photons; the cut is applied to the
    dressed leptons, which are returned sorted by pT in descending order.
    """

    def __init__(
        self,
        photons: Projection,
        bare_leptons: Projection,
        dr_max: float,
        cut: Optional[Cut] = None,
    ) -> None:
        self.photons = photons
        self.bare_leptons = bare_leptons
        self.dr_max = dr_max
        self.cut = cut

    def project(self, events: ak.Array) -> ak.Array:
        photons = self.photons.project(events)
        leptons = self.bare_leptons.project(events)

        # closest bare lepton of each photon, -1 if none within dr_max
        pairs = ak.cartesian(
            {"photon": photons, "lepton": leptons}, axis=1, nested=True
        )
        dr = pairs.photon.deltaR(pairs.lepton)
        closest = ak.fill_none(ak.argmin(dr, axis=2), -1)
        attached = ak.fill_none(ak.min(dr, axis=2) < self.dr_max, False)
        owner = ak.where(attached, closest, -1)

        # [event][lepton][photon] grids
        lepton_index = ak.local_index(leptons, axis=1)
        owned = ak.cartesian(
            {"index": lepton_index, "owner": owner}, axis=1, nested=True
        )
        owned = owned.index == owned.owner
        photon_grid = ak.cartesian(
            {"index": lepton_index, "photon": photons}, axis=1, nested=True
        ).photon[owned]

        dressed = ak.zip(
            {
                "px": leptons.px + ak.sum(photon_grid.px, axis=2),
                "py": leptons.py + ak.sum(photon_grid.py, axis=2),
                "pz": leptons.pz + ak.sum(photon_grid.pz, axis=2),
                "E": leptons.E + ak.sum(photon_grid.E, axis=2),
                "pdgId": leptons.pdgId,
                "charge": leptons.charge,
            },
            with_name="Momentum4D",
        )
        if self.cut is not None:
            dressed = dressed[self.cut(dressed)]
        return dressed[ak.argsort(dressed.pt, axis=1, ascending=False)]


class FastJets(Projection):
    """Jets clustered with the anti-kT algorithm from another final state."""

    def __init__(
        self,
        base: Projection,
        radius: float = 0.4,
        include_muons: bool = False,
        include_invisibles: bool = False,
        min_pt: float = 0.0,
    ) -> None:
        self.base = base
        self.radius = radius
        self.include_muons = include_muons
        self.include_invisibles = include_invisibles
        self.min_pt = min_pt
        self.jet_definition = fastjet.JetDefinition(fastjet.antikt_algorithm, radius)

    def project(self, events: ak.Array) -> ak.Array:
        particles = self.base.project(events)
        keep = ak.ones_like(particles.pt, dtype=bool)
        if not self.include_muons:
            keep = keep & (np.abs(particles.pdgId) != MUON)
        if not self.include_invisibles:
            keep = keep & ~is_invisible(particles)
        particles = particles[keep]

        inputs = four_momenta(particles.px, particles.py, particles.pz, particles.E)
        cluster = fastjet.ClusterSequence(inputs, self.jet_definition)
        jets = ak.with_name(cluster.inclusive_jets(min_pt=self.min_pt), "Momentum4D")
        return jets[ak.argsort(jets.pt, axis=1, ascending=False)]


class MissingMomentum(Projection):
    """Missing transverse momentum recoiling against the visible particles."""

    def __init__(self, base: Projection) -> None:
        self.base = base

    def project(self, events: ak.Array) -> ak.Array:
        particles = self.base.project(events)
        visible = particles[~is_invisible(particles)]
        px = ak.sum(visible.px, axis=1)
        py = ak.sum(visible.py, axis=1)
        return ak.zip(
            {
                "pt": np.hypot(px, py),
                "phi": np.arctan2(-py, -px),
                "sum_et": ak.sum(transverse_energy(visible), axis=1),
            }
        )
