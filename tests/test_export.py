import pandas as pd
import pytest

from dmr_explore.annotation import annotations_to_bed, df_to_bed


@pytest.fixture
def regions():
    return pd.DataFrame({
        "Chromosome": ["chr1", "chr2", "chr3"],
        "Start": [100, 2000, 30000],
        "End": [200, 2500, 30100],
        "name": ["dmr1", "dmr2", "dmr3"],
    })


def test_df_to_bed_one_line_per_row(tmp_path, regions):
    path = df_to_bed(regions, tmp_path / "out" / "regions.bed")

    lines = path.read_text().splitlines()
    assert path.parent.is_dir()
    assert len(lines) == len(regions)
    assert lines[0] == "chr1\t100\t200\tdmr1"


def test_df_to_bed_column_order(tmp_path, regions):
    path = df_to_bed(regions, tmp_path / "regions.bed", columns=["Chromosome", "Start", "End"])
    fields = [line.split("\t") for line in path.read_text().splitlines()]
    assert fields[1] == ["chr2", "2000", "2500"]


def test_df_to_bed_no_quoting(tmp_path):
    df = pd.DataFrame({"Chromosome": ["chr1"], "Start": [1], "End": [5], "type": ["hg38_cpg_islands"]})
    text = df_to_bed(df, tmp_path / "x.bed").read_text()
    assert '"' not in text
    assert not text.startswith("Chromosome")


def test_annotations_to_bed_filters_type_and_contigs(tmp_path):
    annotations = pd.DataFrame({
        "Chromosome": ["chr1", "chr1", "chr1_KI270706v1_random"],
        "Start": [0, 500, 0],
        "End": [100, 900, 100],
        "strand": ["*", "*", "*"],
        "id": ["promoter:1", "exon:1", "promoter:2"],
        "type": ["hg38_genes_promoters", "hg38_genes_exons", "hg38_genes_promoters"],
    })
    path = annotations_to_bed(annotations, tmp_path / "promoters.bed",
                              annotation_type="hg38_genes_promoters")
    assert path.read_text().splitlines() == ["chr1\t0\t100\thg38_genes_promoters"]
