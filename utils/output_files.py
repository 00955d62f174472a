import logging
import pickle
from pathlib import Path
from typing import Any, Dict, Union

import uproot

from utils.histograms import Scatter2D

# Configure module-level logger
logger = logging.getLogger(__name__)


def save_histograms_to_pickle(
    histograms: Dict[str, Any],
    pickle_path: Union[str, Path]
) -> None:
    """
    Save a mapping of analysis objects to a pickle file.

    Parameters
    ----------
    histograms : dict
        Mapping from object names to histograms, profiles and scatters.
    pickle_path : str or Path
        Path to the output pickle file. The directory will be
        created if it does not exist.

    Raises
    ------
    IOError
        If writing to the pickle file fails.
    """
    path = Path(pickle_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as file:
            pickle.dump(histograms, file)
        logger.info(f"Histograms successfully pickled to {path}")
    except Exception as exc:
        logger.error(f"Failed to pickle histograms to {path}: {exc}")
        raise


def load_histograms_from_pickle(
    pickle_path: Union[str, Path]
) -> Dict[str, Any]:
    """
    Load a mapping of analysis objects from a pickle file.

    Raises
    ------
    FileNotFoundError
        If the specified pickle file does not exist.
    """
    path = Path(pickle_path)
    if not path.exists():
        raise FileNotFoundError(f"Pickle file not found: {path}")

    try:
        with path.open("rb") as file:
            histograms = pickle.load(file)
        logger.info(f"Histograms successfully loaded from {path}")
        return histograms
    except Exception as exc:
        logger.error(f"Failed to load histograms from {path}: {exc}")
        raise


def save_histograms_to_root(
    histograms: Dict[str, Any],
    root_path: Union[str, Path],
) -> None:
    """
    Save analysis objects to a ROOT file using uproot.

    Parameters
    ----------
    histograms : dict
        Mapping from object names to analysis objects.
    root_path : str or Path
        Path to the output ROOT (.root) file. The directory will be
        created if it does not exist.

    Notes
    -----
    - 1D histograms are written as TH1D and profiles as TProfile.
    - Scatters are written as TTrees with the branches x, xerr, y, yerr.
    - Names containing "/" end up in the corresponding ROOT directory.
    """
    path = Path(root_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with uproot.recreate(str(path)) as root_file:
            for name, obj in histograms.items():
                if isinstance(obj, Scatter2D):
                    root_file[name] = obj.to_dict()
                else:
                    root_file[name] = obj
                logger.debug(f"Saved ROOT object: {name}")
        logger.info(f"Histograms successfully written to ROOT file {path}")
    except Exception as exc:
        logger.error(f"Failed to write ROOT file {path}: {exc}")
        raise
