import io
import logging

from utils.logging import ColoredFormatter, _banner, configure_logging


def test_banner_is_upper_case():
    banner = _banner("Finalising yy_dilepton")
    assert "FINALISING YY_DILEPTON" in banner
    assert "=" * 80 in banner


def test_colored_formatter_prefix():
    record = logging.LogRecord(
        "YYDileptonAnalysis", logging.WARNING, __file__, 12, "\nzero area", None, None, func="finalize"
    )
    text = ColoredFormatter().format(record)
    assert "[WARNING:YYDileptonAnalysis:finalize:L.12]" in text
    assert text.endswith("zero area")


def test_configure_logging():
    stream = io.StringIO()
    configure_logging("DEBUG", stream=stream)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("matplotlib").level == logging.WARNING
    logging.getLogger("AnalysisDriver").debug("hello")
    assert "hello" in stream.getvalue()
