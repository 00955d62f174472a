"""
Histogram primitives built on ``hist``.

One-dimensional histograms use ``Weight`` storage so that sums of squared
weights are tracked alongside the contents, profiles use ``WeightedMean``
storage. Ratios of histograms are stored as :class:`Scatter2D` point sets.
"""
import logging
import math
from dataclasses import dataclass, field

import hist
import numpy as np

logger = logging.getLogger(__name__)


def _regular_axis(nbins: int, low: float, high: float, label: str) -> hist.axis.Regular:
    if int(nbins) != nbins or nbins <= 0:
        raise ValueError(f"Invalid number of bins {nbins} for '{label}'. Must be > 0.")
    if low >= high:
        raise ValueError(
            f"Invalid range [{low}, {high}) for '{label}'. Low must be < high."
        )
    return hist.axis.Regular(int(nbins), low, high, name="x", label=label)


def book_histogram(name: str, nbins: int, low: float, high: float) -> hist.Hist:
    """Create an empty weighted 1D histogram with regular binning."""
    return hist.Hist(
        _regular_axis(nbins, low, high, name),
        storage=hist.storage.Weight(),
        name=name,
    )


def book_profile(name: str, nbins: int, low: float, high: float) -> hist.Hist:
    """Create an empty weighted 1D profile with regular binning."""
    return hist.Hist(
        _regular_axis(nbins, low, high, name),
        storage=hist.storage.WeightedMean(),
        name=name,
    )


@dataclass
class Scatter2D:
    """A named set of 2D points with symmetric errors."""

    name: str
    x: np.ndarray = field(default_factory=lambda: np.zeros(0))
    xerr: np.ndarray = field(default_factory=lambda: np.zeros(0))
    y: np.ndarray = field(default_factory=lambda: np.zeros(0))
    yerr: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __len__(self) -> int:
        return len(self.x)

    def set_points(self, x, xerr, y, yerr) -> None:
        arrays = [np.asarray(a, dtype=float) for a in (x, xerr, y, yerr)]
        if len({len(a) for a in arrays}) != 1:
            raise ValueError(f"Inconsistent point arrays for scatter '{self.name}'")
        self.x, self.xerr, self.y, self.yerr = arrays

    def to_dict(self) -> dict:
        return {"x": self.x, "xerr": self.xerr, "y": self.y, "yerr": self.yerr}


def integral(histogram: hist.Hist, include_overflow: bool = True) -> float:
    """Sum of weights of a 1D histogram, optionally including the flow bins."""
    total = histogram.sum(flow=include_overflow)
    return float(getattr(total, "value", total))


def scale(histogram: hist.Hist, factor: float) -> None:
    """
    Scale a histogram in place.

    Contents are multiplied by ``factor`` and variances by ``factor**2``.
    A non-finite factor leaves the histogram untouched.
    """
    if not math.isfinite(factor):
        logger.warning(
            f"Failed to scale histogram '{histogram.name}' by non-finite factor {factor}"
        )
        return
    histogram *= factor


def normalize(histogram: hist.Hist, norm: float = 1.0, include_overflow: bool = True) -> None:
    """Scale a histogram in place so that its area equals ``norm``."""
    area = integral(histogram, include_overflow=include_overflow)
    if area == 0:
        logger.warning(
            f"Failed to normalize histogram '{histogram.name}': zero area"
        )
        return
    scale(histogram, norm / area)


def divide(numerator: hist.Hist, denominator: hist.Hist, target: Scatter2D) -> Scatter2D:
    """
    Fill ``target`` with the bin-wise ratio ``numerator / denominator``.

    Points sit at the bin centres with half the bin width as x error. The
    y error adds the relative errors of both histograms in quadrature.
    Bins with an empty denominator, or an empty numerator with a non-zero
    error, yield NaN.
    """
    edges_num = numerator.axes[0].edges
    edges_den = denominator.axes[0].edges
    if len(edges_num) != len(edges_den) or not np.allclose(edges_num, edges_den):
        raise ValueError(
            f"Cannot divide '{numerator.name}' by '{denominator.name}': "
            "incompatible binning"
        )

    sumw_1, sumw_2 = numerator.values(), denominator.values()
    err_1, err_2 = np.sqrt(numerator.variances()), np.sqrt(denominator.variances())

    invalid = (sumw_2 == 0) | ((sumw_1 == 0) & (err_1 != 0))
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(invalid, np.nan, sumw_1 / sumw_2)
        relerr_1 = np.where(err_1 != 0, err_1 / sumw_1, 0.0)
        relerr_2 = np.where(err_2 != 0, err_2 / sumw_2, 0.0)
        ratio_err = np.where(
            invalid, np.nan, ratio * np.sqrt(relerr_1**2 + relerr_2**2)
        )

    target.set_points(
        numerator.axes[0].centers,
        numerator.axes[0].widths / 2,
        ratio,
        ratio_err,
    )
    return target


def is_profile(histogram: hist.Hist) -> bool:
    return issubclass(histogram.storage_type, hist.storage.WeightedMean)
