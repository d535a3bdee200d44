"""Functions to compute the log-likelihood of a pair of haploid genotypes under a two-state IBD HMM."""

from .api import check_inputs, forwards, loglikelihood, loglikelihood_status, simulate
