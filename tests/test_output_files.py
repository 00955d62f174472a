import numpy as np
import pytest
import uproot

from utils.histograms import Scatter2D, book_histogram, book_profile
from utils.output_files import (
    load_histograms_from_pickle,
    save_histograms_to_pickle,
    save_histograms_to_root,
)


@pytest.fixture
def objects():
    mll = book_histogram("mll", 10, 0, 100)
    mll.fill([15.0, 25.0, 25.0], weight=[1.0, 2.0, 0.5])
    mult = book_histogram("MultCh ", 5, -0.5, 4.5)
    mult.fill([1, 2])
    profile = book_profile("EtaSumEt", 5, 0, 5)
    profile.fill([0.5, 1.5], sample=[2.0, 4.0], weight=[1.0, 1.0])
    ratio = Scatter2D("EtaPMRatio")
    ratio.set_points([0.5, 1.5], [0.5, 0.5], [1.0, np.nan], [0.1, np.nan])
    return {"mll": mll, "MultCh ": mult, "EtaSumEt": profile, "EtaPMRatio": ratio}


def test_pickle_round_trip(objects, tmp_path):
    path = tmp_path / "nested" / "histograms.pkl"
    save_histograms_to_pickle(objects, path)
    loaded = load_histograms_from_pickle(path)

    assert set(loaded) == set(objects)
    np.testing.assert_allclose(loaded["mll"].values(), objects["mll"].values())
    np.testing.assert_allclose(loaded["mll"].variances(), objects["mll"].variances())
    np.testing.assert_array_equal(loaded["EtaPMRatio"].y, objects["EtaPMRatio"].y)


def test_load_missing_pickle(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_histograms_from_pickle(tmp_path / "missing.pkl")


def test_save_to_root(objects, tmp_path):
    path = tmp_path / "histograms.root"
    save_histograms_to_root(objects, path)

    with uproot.open(path) as f:
        keys = set(f.keys(cycle=False))
        assert {"mll", "MultCh ", "EtaSumEt", "EtaPMRatio"} <= keys
        np.testing.assert_allclose(f["mll"].values(), objects["mll"].values())
        assert f["EtaSumEt"].classname == "TProfile"
        assert f["EtaPMRatio"]["x"].array(library="np").tolist() == [0.5, 1.5]
