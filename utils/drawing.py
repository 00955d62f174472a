import logging
from pathlib import Path
from typing import Dict, List, Union

import hist
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import mplhep as hep  # noqa: E402
import numpy as np  # noqa: E402

from utils.histograms import Scatter2D, is_profile  # noqa: E402

logger = logging.getLogger(__name__)

# Axis labels of the known output objects
LABELS = {
    "Mult": r"$N_{\mathrm{particles}}$",
    "MultCh": r"$N_{\mathrm{ch}}$",
    "MultCh ": r"$N_{\mathrm{ch}}$ (no leptons)",
    "Pt": r"$p_{T}$ [GeV]",
    "PtCh": r"$p_{T}^{\mathrm{ch}}$ [GeV]",
    "PtCh ": r"$p_{T}^{\mathrm{ch}}$ (no leptons) [GeV]",
    "E": r"$E$ [GeV]",
    "ECh": r"$E^{\mathrm{ch}}$ [GeV]",
    "Eta": r"$\eta$",
    "EtaCh": r"$\eta^{\mathrm{ch}}$",
    "EtaCh ": r"$\eta^{\mathrm{ch}}$ (no leptons)",
    "EtaSumEt": r"$|\eta|$",
    "Rapidity": r"$y$",
    "RapidityCh": r"$y^{\mathrm{ch}}$",
    "Phi": r"$\phi$",
    "PhiCh": r"$\phi^{\mathrm{ch}}$",
    "EtaPMRatio": r"$|\eta|$",
    "EtaChPMRatio": r"$|\eta^{\mathrm{ch}}|$",
    "RapidityPMRatio": r"$|y|$",
    "RapidityChPMRatio": r"$|y^{\mathrm{ch}}|$",
    "ptlepton1": r"$p_{T}(\ell_{1})$ [GeV]",
    "ptlepton2": r"$p_{T}(\ell_{2})$ [GeV]",
    "etalepton1": r"$\eta(\ell_{1})$",
    "etalepton2": r"$\eta(\ell_{2})$",
    "mll": r"$m_{\ell\ell}$ [GeV]",
    "ptll": r"$p_{T}^{\ell\ell}$ [GeV]",
    "Dphill": r"$\Delta\phi_{\ell\ell}$",
    "Acoll": r"$A_{\phi}^{\ell\ell}$",
}


class Draw:
    def __init__(self, output_dir: Path = Path("plots"), file_format: str = "pdf", style: str = "CMS"):
        self.output_dir = Path(output_dir)
        self.file_format = file_format
        self.output_dir.mkdir(parents=True, exist_ok=True)
        hep.style.use(style)

    def _parse_name(self, name: str) -> str:
        return name.replace("/", "_").replace(" ", "_")

    def _save_fig(self, fig: plt.Figure, name: str) -> Path:
        path = self.output_dir / f"{self._parse_name(name)}.{self.file_format}"
        fig.savefig(path, bbox_inches="tight")
        plt.close(fig)
        return path

    def plot_histogram(self, histogram: hist.Hist, name: str) -> Path:
        fig, ax = plt.subplots(figsize=(10, 8))
        if is_profile(histogram):
            hep.histplot(histogram.values(), histogram.axes[0].edges, ax=ax, yerr=False)
            ax.set_ylabel(r"$\langle E_{T} \rangle$ [GeV]")
        else:
            hep.histplot(
                histogram.values(),
                histogram.axes[0].edges,
                yerr=np.sqrt(histogram.variances()),
                ax=ax,
            )
            ax.set_ylabel("Entries")
        ax.set_xlabel(LABELS.get(name, name))
        return self._save_fig(fig, name)

    def plot_scatter(self, scatter: Scatter2D, name: str) -> Path:
        fig, ax = plt.subplots(figsize=(10, 8))
        ax.errorbar(
            scatter.x, scatter.y, xerr=scatter.xerr, yerr=scatter.yerr,
            fmt="o", color="black",
        )
        ax.axhline(1.0, color="grey", ls="--")
        ax.set_xlabel(LABELS.get(name, name))
        ax.set_ylabel("Forward / backward")
        return self._save_fig(fig, name)

    def plot_all(self, objects: Dict[str, Union[hist.Hist, Scatter2D]]) -> List[Path]:
        """Draw every object into its own file."""
        paths = []
        for name, obj in objects.items():
            if isinstance(obj, Scatter2D):
                paths.append(self.plot_scatter(obj, name))
            else:
                paths.append(self.plot_histogram(obj, name))
        logger.info(f"Saved {len(paths)} figures to {self.output_dir}")
        return paths
