#!/usr/bin/env python3

"""
Driver for the generator-level yy -> ll analysis: reads particle-level events
from ROOT files, runs the registered analysis over them and writes the
resulting histograms, profiles and ratio scatters.

Settings of the Python configuration can be overridden on the command line in
OmegaConf dotlist form, e.g. ``general.cross_section=12.5``.
"""
import logging
import sys
from pathlib import Path

from analysis import get_analysis
from user.configuration import config as YYConfig
from utils.drawing import Draw
from utils.input_files import construct_fileset, iterate_events
from utils.logging import _banner, configure_logging
from utils.output_files import save_histograms_to_pickle, save_histograms_to_root
from utils.schema import Config, load_config_with_restricted_cli

logger = logging.getLogger("AnalysisDriver")


# -----------------------------
# Main Driver
# -----------------------------
def main(cli_args=None):
    """
    Load the configuration, run the analysis lifecycle over every event chunk
    and save the outputs.
    """
    cli_args = sys.argv[1:] if cli_args is None else cli_args
    full_config = load_config_with_restricted_cli(YYConfig, cli_args)
    config = Config(**full_config)  # Pydantic validation
    configure_logging(config.general.log_level)

    analysis_class = get_analysis(config.general.analysis)
    fileset = construct_fileset(config.input)

    analysis = analysis_class(config)
    analysis.setup()

    logger.info(_banner(f"Running {analysis.name}"))
    for events in iterate_events(fileset, config.input):
        analysis.process(events)
    logger.info(
        f"✅ Processed {analysis.n_events:,} events, "
        f"sum of weights {analysis.sum_of_weights:.6g}"
    )

    analysis.finish()

    output_dir = Path(config.general.output_dir)
    outputs = analysis.outputs(include_temporaries=config.general.write_temporaries)
    save_histograms_to_pickle(outputs, output_dir / "histograms" / f"{analysis.name}.pkl")
    save_histograms_to_root(outputs, output_dir / "histograms" / f"{analysis.name}.root")

    if config.general.run_plotting:
        logger.info(_banner("Plotting"))
        drawer = Draw(
            output_dir=Path(config.plotting.output_dir),
            file_format=config.plotting.format,
            style=config.plotting.style,
        )
        drawer.plot_all(outputs)

    return analysis


if __name__ == "__main__":
    main()
