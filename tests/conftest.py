"""
Shared fixtures: a small smoothed methylation data set over one chromosome.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from dmr_explore.data_loaders.methylation import MethylationData

SAMPLES = ["s1", "s2", "s3", "s4", "s5", "s6"]
GROUPS = ["Control", "Control", "Control", "Case", "Case", "Case"]


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def chrom_sizes():
    return pd.Series({"chr1": 100000, "chr2": 50000, "chr1_random": 3000})


@pytest.fixture
def sample_info():
    return pd.DataFrame(
        {"group": GROUPS, "batch": ["a", "b", "a", "b", "a", "b"]},
        index=pd.Index(SAMPLES, name="sample"),
    )


@pytest.fixture
def methylation(sample_info):
    """Three CpGs in every 20 kb window of chr1, none on chr2."""
    rng = np.random.default_rng(7)
    starts = np.concatenate([np.arange(w, w + 3000, 1000) + 500 for w in range(0, 100000, 20000)])
    loci = pd.DataFrame({"Chromosome": "chr1", "Start": starts, "End": starts + 1})

    meth = pd.DataFrame(rng.uniform(0.05, 0.95, size=(len(loci), len(SAMPLES))), columns=SAMPLES)
    # cases hypermethylated in the first window
    meth.loc[:2, ["s4", "s5", "s6"]] += 0.04
    return MethylationData(loci, meth, sample_info)
