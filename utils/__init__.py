from . import cuts as cuts
from . import histograms as histograms
from . import input_files as input_files
from . import observables as observables
from . import output_files as output_files
from . import projections as projections
from . import schema as schema
from . import units as units

__all__ = [
    "cuts",
    "histograms",
    "input_files",
    "observables",
    "output_files",
    "projections",
    "schema",
    "units",
]


def __dir__():
    return __all__
