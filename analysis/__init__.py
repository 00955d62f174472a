from typing import Dict, Type

from . import base as base
from . import yy_dilepton as yy_dilepton
from .base import Analysis
from .yy_dilepton import YYDileptonAnalysis

ANALYSES: Dict[str, Type[Analysis]] = {
    YYDileptonAnalysis.name: YYDileptonAnalysis,
}


def get_analysis(name: str) -> Type[Analysis]:
    """Look up a registered analysis class by name."""
    try:
        return ANALYSES[name]
    except KeyError:
        raise KeyError(
            f"Unknown analysis '{name}'. Available: {', '.join(sorted(ANALYSES))}"
        ) from None


__all__ = [
    "ANALYSES",
    "Analysis",
    "YYDileptonAnalysis",
    "base",
    "get_analysis",
    "yy_dilepton",
]


def __dir__():
    return __all__
