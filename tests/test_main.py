import logging
import sys

import pytest

import main


@pytest.fixture
def run_main(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "hg38.chrom.sizes").write_text("chr1\t100000\n")

    def run(*argv):
        monkeypatch.setattr(sys, "argv", ["main.py", "--chrom-sizes", "hg38.chrom.sizes", *argv])
        return main.main()

    return run


def test_missing_region_file_returns_error(run_main, caplog):
    with caplog.at_level(logging.ERROR, logger="dmr_explore"):
        code = run_main(
            "--skip-pca", "--skip-density",
            "--sig-regions", "sigDMRs.csv", "--regions", "backgroundRegions.csv",
        )

    assert code == 1
    assert "Could not load regions" in caplog.text


def test_missing_methylation_file_returns_error(run_main, caplog):
    with caplog.at_level(logging.ERROR, logger="dmr_explore"):
        code = run_main("--skip-annotation", "--methylation", "smoothed.csv")

    assert code == 1
    assert "Could not load methylation data" in caplog.text


def test_missing_chrom_sizes_returns_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["main.py", "--chrom-sizes", "nope.sizes"])
    assert main.main() == 1


def test_set_level_quiets_plotting_loggers():
    logger = main.setup_logger("dmr_explore.test_level", console=True)
    main.set_level(logger, logging.DEBUG)

    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    assert logging.getLogger("matplotlib").level == logging.WARNING
