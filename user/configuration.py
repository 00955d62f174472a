# ==============================================================================
#  General Configuration
# ==============================================================================

general_config = {
    "analysis": "YY_DILEPTON",
    "output_dir": "outputs/yy_dilepton/",
    # generator cross-section in pb; None takes it from the events
    "cross_section": None,
    "write_temporaries": False,
    "run_plotting": True,
    "log_level": "INFO",
}

# ==============================================================================
#  Input Configuration
# ==============================================================================

input_config = {
    "files": ["./data/yy_ll/*.root"],
    "tree": "events",
    "particles": "GenPart",
    "weight_branch": "genWeight",
    "cross_section_branch": "crossSection",
    "step_size": 100_000,
    "max_files": -1,
}

# ==============================================================================
#  Plotting Configuration
# ==============================================================================

plotting_config = {
    "output_dir": None,
    "format": "pdf",
    "style": "CMS",
}

config = {
    "general": general_config,
    "input": input_config,
    "plotting": plotting_config,
}
