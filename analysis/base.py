import logging
from typing import Any, Dict, Optional, Union

import awkward as ak
import hist
import numpy as np
from coffea.analysis_tools import PackedSelection
from tabulate import tabulate

from utils import histograms as histo
from utils.histograms import Scatter2D
from utils.logging import _banner
from utils.projections import Projection

# -----------------------------
# Logging Configuration
# -----------------------------
logger = logging.getLogger("BaseAnalysis")

AnalysisObject = Union[hist.Hist, Scatter2D]


class Analysis:
    """
    Base class for event-by-event physics analyses.

    Subclasses implement three hooks which the host calls in a fixed order:

    - ``init()`` declares projections and books histograms (via ``setup()``),
    - ``analyze(events)`` fills histograms for a batch of events (via
      ``process()``),
    - ``finalize()`` scales, normalizes and divides (via ``finish()``).
    """

    name = "Analysis"

    def __init__(self, config: Optional[Any] = None) -> None:
        """
        Parameters
        ----------
        config : Config, optional
            Validated analysis configuration. Only ``general.cross_section``
            is read by the base class.
        """
        self.config = config
        self.projections: Dict[str, Projection] = {}
        self.histograms: Dict[str, AnalysisObject] = {}
        self.cutflow: Dict[str, list] = {}
        self.n_events = 0
        self.sum_of_weights = 0.0
        self._event_cross_section: Optional[float] = None
        self._projection_cache: Dict[str, ak.Array] = {}
        self._booking_open = False
        self._initialised = False
        self._finalised = False

    # -----------------------------
    # Hooks
    # -----------------------------
    def init(self) -> None:
        raise NotImplementedError

    def analyze(self, events: ak.Array) -> None:
        raise NotImplementedError

    def finalize(self) -> None:
        pass

    # -----------------------------
    # Lifecycle driven by the host
    # -----------------------------
    def setup(self) -> None:
        """Run ``init()``; histograms can only be booked during this call."""
        if self._initialised:
            raise RuntimeError(f"{self.name} has already been initialised")
        logger.info(_banner(f"Initialising {self.name}"))
        self._booking_open = True
        try:
            self.init()
        finally:
            self._booking_open = False
        self._initialised = True
        logger.info(
            f"{self.name}: declared {len(self.projections)} projections, "
            f"booked {len(self.histograms)} objects"
        )

    def process(self, events: ak.Array) -> None:
        """Account the event weights of a batch and run ``analyze()`` on it."""
        if not self._initialised:
            raise RuntimeError("setup() must be called before process()")
        if self._finalised:
            raise RuntimeError(f"{self.name} has already been finalised")

        event_cross_section = None
        if "crossSection" in events.fields and len(events) > 0:
            event_cross_section = float(events.crossSection[-1])
            if not np.isfinite(event_cross_section) or event_cross_section <= 0:
                raise ValueError(
                    f"Invalid cross-section {event_cross_section} in the events. "
                    "Must be > 0 pb."
                )

        weights = self.event_weights(events)
        self.n_events += len(events)
        self.sum_of_weights += float(ak.sum(weights))
        if event_cross_section is not None:
            self._event_cross_section = event_cross_section

        logger.debug(f"Processing batch of {len(events)} events")
        self._projection_cache = {}
        try:
            self.analyze(events)
        finally:
            self._projection_cache = {}

    def finish(self) -> None:
        """Run ``finalize()`` once and log a summary of the run."""
        if not self._initialised:
            raise RuntimeError("setup() must be called before finish()")
        if self._finalised:
            raise RuntimeError(f"{self.name} has already been finalised")
        logger.info(_banner(f"Finalising {self.name}"))
        self.finalize()
        self._finalised = True
        self._log_summary()

    # -----------------------------
    # Event weights and normalisation
    # -----------------------------
    @staticmethod
    def event_weights(events: ak.Array) -> ak.Array:
        if "weight" in events.fields:
            return events.weight
        return ak.Array(np.ones(len(events)))

    @property
    def cross_section(self) -> float:
        """
        Cross-section in pb: the configured value if any, else the last
        value delivered with the events.
        """
        general = getattr(self.config, "general", None)
        if general is not None and general.cross_section is not None:
            return general.cross_section
        if self._event_cross_section is not None:
            return self._event_cross_section
        raise ValueError(
            "Cross-section not set: configure general.cross_section or "
            "provide a cross-section branch with the events"
        )

    # -----------------------------
    # Projections
    # -----------------------------
    def declare(self, projection: Projection, name: str) -> Projection:
        if name in self.projections:
            raise ValueError(f"Projection '{name}' already declared in {self.name}")
        self.projections[name] = projection
        return projection

    def apply(self, events: ak.Array, name: str) -> ak.Array:
        """Result of the declared projection ``name`` for the current batch."""
        if name not in self.projections:
            logger.error(f"Projection '{name}' was never declared in {self.name}")
            raise KeyError(f"Unknown projection: {name}")
        if name not in self._projection_cache:
            self._projection_cache[name] = self.projections[name].project(events)
        return self._projection_cache[name]

    # -----------------------------
    # Booking
    # -----------------------------
    def _register(self, name: str, obj: AnalysisObject) -> AnalysisObject:
        if not self._booking_open:
            raise RuntimeError(
                f"Cannot book '{name}' outside of init() in {self.name}"
            )
        if name in self.histograms:
            raise ValueError(f"Object '{name}' already booked in {self.name}")
        self.histograms[name] = obj
        return obj

    def book(self, name: str, nbins: int, low: float, high: float) -> hist.Hist:
        return self._register(name, histo.book_histogram(name, nbins, low, high))

    def book_profile(self, name: str, nbins: int, low: float, high: float) -> hist.Hist:
        return self._register(name, histo.book_profile(name, nbins, low, high))

    def book_scatter(self, name: str) -> Scatter2D:
        return self._register(name, Scatter2D(name))

    def histogram(self, name: str) -> AnalysisObject:
        try:
            return self.histograms[name]
        except KeyError:
            logger.error(f"Object '{name}' was never booked in {self.name}")
            raise

    # -----------------------------
    # Filling
    # -----------------------------
    def fill(self, histogram: hist.Hist, values: ak.Array, weights: ak.Array) -> None:
        """
        Fill per-event or per-particle values, each weighted with the
        weight of its event.
        """
        values, weights = ak.broadcast_arrays(values, weights)
        histogram.fill(
            ak.to_numpy(ak.flatten(values, axis=None)),
            weight=ak.to_numpy(ak.flatten(weights, axis=None)),
        )

    def fill_profile(
        self,
        profile: hist.Hist,
        values: ak.Array,
        samples: ak.Array,
        weights: ak.Array,
    ) -> None:
        values, samples, weights = ak.broadcast_arrays(values, samples, weights)
        profile.fill(
            ak.to_numpy(ak.flatten(values, axis=None)),
            sample=ak.to_numpy(ak.flatten(samples, axis=None)),
            weight=ak.to_numpy(ak.flatten(weights, axis=None)),
        )

    def select_events(
        self, selection: PackedSelection, weights: ak.Array, *cuts: str
    ) -> np.ndarray:
        """
        Mask of the events surviving all ``cuts``; the others are vetoed.

        The cut-flow is updated cut by cut with raw and weighted counts.
        """
        passed = np.ones(len(weights), dtype=bool)
        for cut in cuts:
            passed = passed & selection.all(cut)
            raw, weighted = self.cutflow.get(cut, [0, 0.0])
            self.cutflow[cut] = [
                raw + int(passed.sum()),
                weighted + float(ak.sum(weights[passed])),
            ]
        return passed

    # -----------------------------
    # Finalisation helpers
    # -----------------------------
    def scale(self, histogram: hist.Hist, factor: float) -> None:
        histo.scale(histogram, factor)

    def normalize(self, histogram: hist.Hist, norm: float = 1.0) -> None:
        histo.normalize(histogram, norm)

    def divide(self, numerator: hist.Hist, denominator: hist.Hist, target: Scatter2D) -> Scatter2D:
        return histo.divide(numerator, denominator, target)

    # -----------------------------
    # Results
    # -----------------------------
    def outputs(self, include_temporaries: bool = False) -> Dict[str, AnalysisObject]:
        """Final analysis objects; TMP/ helpers only on request."""
        return {
            name: obj
            for name, obj in self.histograms.items()
            if include_temporaries or not name.startswith("TMP/")
        }

    def _log_summary(self) -> None:
        cutflow_rows = [["all events", self.n_events, f"{self.sum_of_weights:.4g}"]]
        for cut, (raw, weighted) in self.cutflow.items():
            cutflow_rows.append([cut, raw, f"{weighted:.4g}"])
        logger.info(
            "Cut-flow:\n"
            + tabulate(
                cutflow_rows,
                headers=["Cut", "Events", "Sum of weights"],
                tablefmt="grid",
            )
        )

        summary_rows = []
        for name, obj in self.outputs().items():
            if isinstance(obj, Scatter2D):
                summary_rows.append([name, "Scatter2D", len(obj)])
            elif histo.is_profile(obj):
                summary_rows.append([name, "Profile1D", obj.axes[0].size])
            else:
                summary_rows.append([name, "Histo1D", f"{histo.integral(obj):.4g}"])
        logger.debug(
            "Output objects:\n"
            + tabulate(
                summary_rows,
                headers=["Name", "Type", "Integral / points"],
                tablefmt="grid",
            )
        )
