import operator
from functools import reduce
from typing import Callable

import awkward as ak
import numpy as np
from coffea.analysis_tools import PackedSelection

# A cut maps a (jagged) particle array onto a boolean mask of the same layout
Cut = Callable[[ak.Array], ak.Array]


#===================
# Particle-level cuts
#===================
def pt_above(threshold: float) -> Cut:
    """Select particles with transverse momentum strictly above ``threshold``."""
    return lambda particles: particles.pt > threshold


def abseta_below(limit: float) -> Cut:
    """Select particles with |eta| strictly below ``limit``."""
    return lambda particles: np.abs(particles.eta) < limit


def abspid_in(*pdg_ids: int) -> Cut:
    """Select particles whose |PDG id| is one of ``pdg_ids``."""
    def _cut(particles: ak.Array) -> ak.Array:
        abspid = np.abs(particles.pdgId)
        return reduce(operator.or_, [abspid == pid for pid in pdg_ids])
    return _cut


def all_of(*cuts: Cut) -> Cut:
    """Logical AND of several cuts."""
    return lambda particles: reduce(operator.and_, [cut(particles) for cut in cuts])


def any_of(*cuts: Cut) -> Cut:
    """Logical OR of several cuts."""
    return lambda particles: reduce(operator.or_, [cut(particles) for cut in cuts])


#===================
# Event selection
#===================
def dilepton_selection(leptons: ak.Array) -> PackedSelection:
    """
    Exclusive opposite-charge dilepton selection.

    Parameters
    ----------
    leptons : ak.Array
        Dressed leptons per event, sorted by pT.

    Returns
    -------
    PackedSelection
        Selection with the cuts ``exactly_2_leptons``, ``opposite_charge`` and
        the composite ``dilepton``.
    """
    selections = PackedSelection(dtype="uint64")

    # ---------------------
    # Require exactly 2 leptons
    # ---------------------
    n_leptons = ak.num(leptons, axis=1)
    selections.add("exactly_2_leptons", ak.to_numpy(n_leptons == 2))

    # ---------------------
    # Opposite electric charge of the two leading leptons
    # ---------------------
    charges = ak.pad_none(leptons.charge, 2, axis=1, clip=True)
    opposite = ak.fill_none(charges[:, 0] != charges[:, 1], False)
    selections.add("opposite_charge", ak.to_numpy(opposite))

    selections.add(
        "dilepton", selections.all("exactly_2_leptons", "opposite_charge")
    )

    return selections
