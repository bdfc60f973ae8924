import numpy as np
import pandas as pd
import pytest

from dmr_explore.annotation import (
    AnnotationBuilder,
    annotate_regions,
    load_cpg_islands,
    summarize_categorical,
)
from dmr_explore.annotation.builder import ANNOTATION_COLS

CHROM_SIZES = {"chr1": 100000, "chr2": 100000, "chr5_random": 5000}


def _spans(annotations, type_name):
    rows = annotations[annotations["type"] == type_name].sort_values(["Chromosome", "Start"])
    return list(zip(rows["Chromosome"], rows["Start"], rows["End"]))


@pytest.fixture
def builder():
    return AnnotationBuilder("hg38", CHROM_SIZES)


@pytest.fixture
def islands():
    return pd.DataFrame({
        "Chromosome": ["chr1", "chr5_random"],
        "Start": [10000, 100],
        "End": [11000, 600],
    })


@pytest.fixture
def gene_models():
    """One plus-strand transcript on chr1, one minus-strand transcript on chr2."""
    records = [
        ("chr1", "transcript", 10000, 20000, "+", "NM_1", "G1", "GENE1"),
        ("chr1", "exon", 10000, 11000, "+", "NM_1", "G1", "GENE1"),
        ("chr1", "exon", 15000, 16000, "+", "NM_1", "G1", "GENE1"),
        ("chr1", "exon", 19000, 20000, "+", "NM_1", "G1", "GENE1"),
        ("chr1", "five_prime_utr", 10000, 10500, "+", "NM_1", "G1", "GENE1"),
        ("chr1", "three_prime_utr", 19500, 20000, "+", "NM_1", "G1", "GENE1"),
        ("chr2", "transcript", 30000, 40000, "-", "NM_2", "G2", "GENE2"),
        ("chr2", "exon", 30000, 32000, "-", "NM_2", "G2", "GENE2"),
        ("chr2", "exon", 38000, 40000, "-", "NM_2", "G2", "GENE2"),
    ]
    return pd.DataFrame(records, columns=["Chromosome", "Feature", "Start", "End", "Strand",
                                          "transcript_id", "gene_id", "gene_name"])


def test_cpg_annotations_shores_and_shelves(builder, islands):
    annotations = builder.build_cpg_annotations(islands)

    assert list(annotations.columns) == ANNOTATION_COLS
    assert _spans(annotations, "hg38_cpg_islands")[0] == ("chr1", 10000, 11000)
    assert ("chr1", 8000, 10000) in _spans(annotations, "hg38_cpg_shores")
    assert ("chr1", 11000, 13000) in _spans(annotations, "hg38_cpg_shores")
    assert ("chr1", 6000, 8000) in _spans(annotations, "hg38_cpg_shelves")
    assert ("chr1", 13000, 15000) in _spans(annotations, "hg38_cpg_shelves")
    assert ("chr1", 0, 6000) in _spans(annotations, "hg38_cpg_inter")
    assert ("chr1", 15000, 100000) in _spans(annotations, "hg38_cpg_inter")
    assert ("chr2", 0, 100000) in _spans(annotations, "hg38_cpg_inter")


def test_cpg_annotations_partition_chromosome(builder, islands):
    annotations = builder.build_cpg_annotations(islands)
    chr1 = annotations[annotations["Chromosome"] == "chr1"]
    assert (chr1["End"] - chr1["Start"]).sum() == CHROM_SIZES["chr1"]


def test_cpg_annotation_ids(builder, islands):
    annotations = builder.build_cpg_annotations(islands)
    shores = annotations[annotations["type"] == "hg38_cpg_shores"]
    assert shores["id"].str.startswith("shore:").all()
    assert (annotations["strand"] == "*").all()


def test_build_annotations_prunes_nonstandard(builder, islands):
    annotations = builder.build_annotations(["hg38_cpgs"], cpg_islands=islands)
    assert set(annotations["Chromosome"]) == {"chr1", "chr2"}
    assert set(annotations["type"]) == {
        "hg38_cpg_islands", "hg38_cpg_shores", "hg38_cpg_shelves", "hg38_cpg_inter"
    }


def test_build_annotations_single_category(builder, islands):
    annotations = builder.build_annotations(["hg38_cpg_islands"], cpg_islands=islands)
    assert set(annotations["type"]) == {"hg38_cpg_islands"}
    assert len(annotations) == 1


def test_build_annotations_rejects_other_genome(builder, islands):
    with pytest.raises(ValueError):
        builder.build_annotations(["mm10_cpgs"], cpg_islands=islands)


def test_build_annotations_requires_sources(builder):
    with pytest.raises(ValueError, match="CpG islands"):
        builder.build_annotations(["hg38_cpgs"])


def test_gene_annotations_plus_strand(builder, gene_models):
    annotations = builder.build_gene_annotations(gene_models)

    assert ("chr1", 9000, 10000) in _spans(annotations, "hg38_genes_promoters")
    assert ("chr1", 5000, 9000) in _spans(annotations, "hg38_genes_1to5kb")
    assert _spans(annotations, "hg38_genes_introns")[:2] == [("chr1", 11000, 15000),
                                                             ("chr1", 16000, 19000)]
    assert ("chr1", 10800, 11200) in _spans(annotations, "hg38_genes_intronexonboundaries")
    assert _spans(annotations, "hg38_genes_5UTRs") == [("chr1", 10000, 10500)]
    assert _spans(annotations, "hg38_genes_3UTRs") == [("chr1", 19500, 20000)]


def test_gene_annotations_minus_strand(builder, gene_models):
    annotations = builder.build_gene_annotations(gene_models)

    assert ("chr2", 40000, 41000) in _spans(annotations, "hg38_genes_promoters")
    assert ("chr2", 41000, 45000) in _spans(annotations, "hg38_genes_1to5kb")
    assert ("chr2", 32000, 38000) in _spans(annotations, "hg38_genes_introns")


def test_gene_annotations_intergenic(builder, gene_models):
    annotations = builder.build_gene_annotations(gene_models)
    intergenic = _spans(annotations, "hg38_genes_intergenic")

    assert ("chr1", 0, 5000) in intergenic
    assert ("chr1", 20000, 100000) in intergenic
    assert ("chr2", 0, 30000) in intergenic
    assert ("chr2", 45000, 100000) in intergenic


def test_gene_annotations_carry_gene_ids(builder, gene_models):
    annotations = builder.build_gene_annotations(gene_models)
    exons = annotations[annotations["type"] == "hg38_genes_exons"]
    assert set(exons["tx_id"]) == {"NM_1", "NM_2"}
    assert set(exons["symbol"]) == {"GENE1", "GENE2"}


def test_enhancers_unavailable_for_rat():
    enhancers = pd.DataFrame({"Chromosome": ["chr1"], "Start": [0], "End": [100]})
    with pytest.raises(ValueError):
        AnnotationBuilder("rn6", CHROM_SIZES).build_enhancer_annotations(enhancers)


def test_load_cpg_islands_ucsc_table(tmp_path):
    path = tmp_path / "cpgIslandExt.txt"
    path.write_text(
        "585\tchr1\t28735\t29737\tCpG: 111\t1002\t111\t731\t22.2\t72.9\t0.85\n"
        "586\tchr1\t135124\t135563\tCpG: 30\t439\t30\t295\t13.7\t67.2\t0.64\n"
    )
    islands = load_cpg_islands(path)
    assert list(islands.columns) == ["Chromosome", "Start", "End"]
    assert list(islands["Start"]) == [28735, 135124]


def test_load_cpg_islands_bed(tmp_path):
    path = tmp_path / "islands.bed"
    path.write_text("chr1\t100\t600\tCpG: 40\n")
    islands = load_cpg_islands(path)
    assert islands.iloc[0].tolist() == ["chr1", 100, 600]


@pytest.fixture
def cpg_annotations(builder, islands):
    return builder.build_annotations(["hg38_cpgs"], cpg_islands=islands)


def test_annotate_regions_one_row_per_overlap(cpg_annotations):
    regions = pd.DataFrame({
        "Chromosome": ["chr1", "chr1"],
        "Start": [9500, 50000],
        "End": [10500, 50100],
        "direction": ["Hypermethylated", "Hypomethylated"],
    })
    annotated = annotate_regions(regions, cpg_annotations)

    first = annotated[annotated["Start"] == 9500]
    assert set(first["annot.type"]) == {"hg38_cpg_shores", "hg38_cpg_islands"}
    second = annotated[annotated["Start"] == 50000]
    assert list(second["annot.type"]) == ["hg38_cpg_inter"]
    assert list(annotated.columns[:4]) == ["Chromosome", "Start", "End", "direction"]
    assert {"annot.start", "annot.end", "annot.id", "annot.type"} <= set(annotated.columns)


def test_annotate_regions_drops_unannotated(cpg_annotations):
    regions = pd.DataFrame({"Chromosome": ["chr9"], "Start": [0], "End": [10]})
    annotated = annotate_regions(regions, cpg_annotations, quiet=True)
    assert annotated.empty
    assert "annot.type" in annotated.columns


def _annotated(rows):
    return pd.DataFrame(rows, columns=["Chromosome", "Start", "End", "direction", "annot.type"])


def test_summarize_categorical_proportions():
    dmrs = _annotated([
        ("chr1", 0, 10, "Hypermethylated", "islands"),
        ("chr1", 0, 10, "Hypermethylated", "shores"),
        ("chr1", 0, 10, "Hypermethylated", "shores"),
        ("chr1", 50, 60, "Hypomethylated", "inter"),
    ])
    background = _annotated([
        ("chr1", 0, 10, None, "islands"),
        ("chr1", 20, 30, None, "inter"),
        ("chr1", 40, 45, None, "inter"),
        ("chr1", 70, 80, None, "other"),
    ])

    summary = summarize_categorical(
        dmrs, background,
        x_order=["Hypermethylated", "Hypomethylated"],
        fill_order=["islands", "shores", "inter"],
    )

    assert list(summary["direction"].cat.categories) == [
        "All", "Hypermethylated", "Hypomethylated", "Background"
    ]
    assert list(summary["annot.type"].cat.categories) == ["islands", "shores", "inter"]

    counts = summary.set_index(["direction", "annot.type"])["count"]
    assert counts[("All", "shores")] == 1
    assert counts[("Hypermethylated", "islands")] == 1
    assert counts[("Hypomethylated", "shores")] == 0
    assert counts[("Background", "inter")] == 2

    totals = summary.groupby("direction", observed=False)["proportion"].sum()
    np.testing.assert_allclose(totals.to_numpy(), 1.0)
    props = summary.set_index(["direction", "annot.type"])["proportion"]
    assert props[("Background", "inter")] == pytest.approx(2 / 3)


def test_summarize_categorical_without_background():
    dmrs = _annotated([("chr1", 0, 10, "Hypermethylated", "islands")])
    summary = summarize_categorical(dmrs, x_order=["Hypermethylated", "Hypomethylated"])

    assert "Background" not in list(summary["direction"].cat.categories)
    hypo = summary[summary["direction"] == "Hypomethylated"]
    assert (hypo["proportion"] == 0).all()
