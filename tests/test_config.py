import pytest

from dmr_explore.utils import Config, load_config, setup_logger


def test_defaults(tmp_path):
    config = load_config(genome="mm10", base_dir=tmp_path)

    assert config.analysis_params["tile_width"] == 20000
    assert config.annotation_params["shore_width"] == 2000
    assert config.extra_dir == tmp_path / "Extra" / "GAT"
    assert config.get_output_path("a.pdf") == tmp_path / "results" / "plots" / "a.pdf"
    assert config.get_output_path("a.bed", "extra") == tmp_path / "Extra" / "GAT" / "a.bed"
    assert config.get_data_path("cpg_islands") is None


def test_yaml_overrides(tmp_path):
    (tmp_path / "analysis.yaml").write_text(
        "analysis_params:\n"
        "  test_covariate: Diagnosis\n"
        "  pca:\n"
        "    ellipse_prob: 0.95\n"
        "genome:\n"
        "  files:\n"
        "    cpg_islands: annotation/cpgIslandExt.txt\n"
        "output_dir: out\n"
    )
    config = Config(config_file="analysis.yaml", genome="hg38", base_dir=tmp_path)

    assert config.analysis_params["test_covariate"] == "Diagnosis"
    assert config.analysis_params["tile_width"] == 20000
    assert config.analysis_params["pca"]["ellipse_prob"] == 0.95
    assert config.analysis_params["pca"]["scale"] is True
    assert config.get_data_path("cpg_islands") == tmp_path / "annotation" / "cpgIslandExt.txt"
    assert config.figures_dir == tmp_path / "out" / "plots"


def test_genome_file_overrides(tmp_path):
    genomes = tmp_path / "configs" / "genomes"
    genomes.mkdir(parents=True)
    (genomes / "rn6.yaml").write_text("files:\n  chrom_sizes: rn6.chrom.sizes\n")

    config = Config(genome="rn6", base_dir=tmp_path)
    assert config.genome == {"files": {"chrom_sizes": "rn6.chrom.sizes"}}
    assert config.get_data_path("chrom_sizes") == tmp_path / "rn6.chrom.sizes"


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config(config_file="nope.yaml", base_dir=tmp_path)


def test_ensure_output_dirs(tmp_path):
    config = Config(base_dir=tmp_path)
    config.ensure_output_dirs()
    assert config.figures_dir.is_dir()
    assert config.tables_dir.is_dir()


def test_setup_logger_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logger("dmr_explore.test", log_file=str(log_file), console=False)
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "dmr_explore.test - INFO - hello" in log_file.read_text()


def test_unsupported_genome_settings_are_reported(tmp_path, caplog):
    (tmp_path / "analysis.yaml").write_text(
        "genome:\n"
        "  fantom_enhancers: false\n"
        "  n_autosomes: 2\n"
        "  files:\n"
        "    genes: genes.gtf\n"
    )
    with caplog.at_level("WARNING", logger="dmr_explore.utils.config"):
        config = Config(config_file="analysis.yaml", genome="hg38", base_dir=tmp_path)

    assert config.genome == {"files": {"genes": "genes.gtf"}}
    assert "fantom_enhancers, n_autosomes" in caplog.text
