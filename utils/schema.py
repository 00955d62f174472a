"""
Pydantic schemas for validating the analysis configuration.

The models mirror the structure of the configuration dictionary in
``user/configuration.py``. Validation happens once, before the run starts, so
that a malformed setting fails fast with a readable message instead of in
the middle of the event loop.
"""

import copy
from typing import Annotated, List, Literal, Optional

from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, Field, model_validator


class SubscriptableModel(BaseModel):
    """A Pydantic BaseModel that supports dictionary-style item access."""

    def __getitem__(self, key):
        """Allows dictionary-style `model[key]` access."""
        return getattr(self, key)

    def __setitem__(self, key, value):
        """Allows dictionary-style `model[key] = value` assignment."""
        return setattr(self, key, value)

    def __contains__(self, key):
        """Allows `key in model` checks."""
        return hasattr(self, key)

    def get(self, key, default=None):
        """Allows `.get(key, default)` method."""
        return getattr(self, key, default)


# ------------------------
# General configuration
# ------------------------
class GeneralConfig(SubscriptableModel):
    analysis: Annotated[
        str,
        Field(
            default="YY_DILEPTON",
            description="Registered name of the analysis to run.",
        ),
    ]
    output_dir: Annotated[
        str,
        Field(
            default="output/",
            description="Root directory for all analysis outputs "
            "(histograms, plots).",
        ),
    ]
    cross_section: Annotated[
        Optional[float],
        Field(
            default=None,
            description="Generator cross-section in pb. If None, the value "
            "stored with the events is used.",
        ),
    ]
    write_temporaries: Annotated[
        bool,
        Field(
            default=False,
            description="If True, also write the TMP/ helper histograms.",
        ),
    ]
    run_plotting: Annotated[
        bool,
        Field(
            default=False,
            description="If True, draw every output object after the run.",
        ),
    ]
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"],
        Field(default="INFO", description="Root logging level."),
    ]

    @model_validator(mode="after")
    def validate_general(self) -> "GeneralConfig":
        """Validate the general configuration settings."""
        if self.cross_section is not None and self.cross_section <= 0:
            raise ValueError(
                f"Invalid cross-section {self.cross_section}. Must be > 0 pb."
            )
        return self


# ------------------------
# Input configuration
# ------------------------
class InputConfig(SubscriptableModel):
    files: Annotated[
        List[str],
        Field(description="ROOT files or glob patterns with the events."),
    ]
    tree: Annotated[
        str, Field(default="events", description="Name of the event TTree.")
    ]
    particles: Annotated[
        str,
        Field(
            default="GenPart",
            description="Branch prefix of the particle collection, "
            "e.g. 'GenPart' for GenPart_pt, GenPart_eta, ...",
        ),
    ]
    weight_branch: Annotated[
        Optional[str],
        Field(default="genWeight", description="Branch with the event weight."),
    ]
    cross_section_branch: Annotated[
        Optional[str],
        Field(
            default=None,
            description="Branch with the generator cross-section estimate in pb.",
        ),
    ]
    step_size: Annotated[
        int,
        Field(default=100_000, description="Number of events per chunk."),
    ]
    max_files: Annotated[
        int,
        Field(
            default=-1,
            description="Maximum number of files to process. "
            "Use -1 for no limit.",
        ),
    ]

    @model_validator(mode="after")
    def validate_input(self) -> "InputConfig":
        """Validate the input settings."""
        if not self.files:
            raise ValueError("At least one input file must be given.")
        if not self.tree:
            raise ValueError("The tree name must not be empty.")
        if self.step_size <= 0:
            raise ValueError(
                f"Invalid step_size {self.step_size}. Must be > 0."
            )
        if self.max_files < -1:
            raise ValueError(
                f"max_files must be -1 or non-negative; got {self.max_files}"
            )
        return self


# ------------------------
# Plotting configuration
# ------------------------
class PlottingConfig(SubscriptableModel):
    output_dir: Annotated[
        Optional[str],
        Field(
            default=None,
            description="Directory for the figures. Defaults to "
            "<general.output_dir>/plots.",
        ),
    ]
    format: Annotated[
        Literal["pdf", "png", "svg"],
        Field(default="pdf", description="File format of the figures."),
    ]
    style: Annotated[
        str, Field(default="CMS", description="mplhep style name.")
    ]


class Config(SubscriptableModel):
    general: Annotated[
        GeneralConfig, Field(description="Global settings for the analysis")
    ]
    input: Annotated[InputConfig, Field(description="Event input settings")]
    plotting: Annotated[
        Optional[PlottingConfig],
        Field(
            default=None,
            description="Plotting configuration (all keys are optional)",
        ),
    ]

    @model_validator(mode="after")
    def validate_config(self) -> "Config":
        if self.plotting is None:
            self.plotting = PlottingConfig()
        if self.plotting.output_dir is None:
            self.plotting.output_dir = f"{self.general.output_dir}/plots"
        return self


ALLOWED_CLI_TOPLEVEL_KEYS = {"general", "input", "plotting"}


def load_config_with_restricted_cli(
    base_cfg: dict, cli_args: list[str]
) -> dict:
    """
    Override settings of the base config with CLI arguments in dotlist form.

    Only keys below ``general``, ``input`` and ``plotting`` may be overridden,
    and only if they already exist in the base config.

    Parameters
    ----------
    base_cfg : dict
        The full Python config.
    cli_args : list of str
        CLI args in OmegaConf dotlist format (e.g. general.cross_section=12.5)

    Returns
    -------
    dict
        Full merged config (with overrides applied).

    Raises
    ------
    ValueError
        If an argument is malformed or targets a disallowed section
    KeyError
        If attempting to override a non-existent setting
    """
    merged = copy.deepcopy(base_cfg)
    if not cli_args:
        return merged

    sections = {
        k: v for k, v in merged.items() if k in ALLOWED_CLI_TOPLEVEL_KEYS
    }
    sections_oc = OmegaConf.create(sections)

    valid_keys = set()
    for section, content in sections_oc.items():
        if isinstance(content, DictConfig):
            valid_keys.update(f"{section}.{key}" for key in content.keys())

    for arg in cli_args:
        if "=" not in arg:
            raise ValueError(
                f"Invalid CLI argument format: {arg}. Expected 'key=value'"
            )
        key = arg.split("=", 1)[0]
        top_key = key.split(".", 1)[0]
        if top_key not in ALLOWED_CLI_TOPLEVEL_KEYS:
            raise ValueError(
                f"Override of top-level key `{top_key}` is not allowed. "
                f"Allowed keys: {', '.join(sorted(ALLOWED_CLI_TOPLEVEL_KEYS))}"
            )
        if key not in valid_keys:
            raise KeyError(
                f"Cannot override non-existent setting: {key}. "
                f"Valid settings in section '{top_key}': "
                f"{', '.join(sorted(k for k in valid_keys if k.startswith(top_key + '.')))}"
            )

    cli_cfg = OmegaConf.from_dotlist(cli_args)
    merged_oc = OmegaConf.merge(sections_oc, cli_cfg)
    merged.update(OmegaConf.to_container(merged_oc, resolve=True))
    return merged
