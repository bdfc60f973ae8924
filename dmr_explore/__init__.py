"""
DMR Exploratory Analysis

Exploratory plots and annotation summaries for differentially methylated
region (DMR) analyses: PCA and density plots of smoothed methylation, and
CpG / gene context proportions of significant vs. background regions.
"""

__version__ = "1.0.0"
__author__ = "DMR Exploration Contributors"
