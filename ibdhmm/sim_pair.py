"""Simulate genotype calls for a pair of haploid individuals under the IBD HMM."""

import numpy as np

from ibdhmm import core
from ibdhmm import fb_ibd


def _call_allele(rng, true_allele, num_alleles, epsilon):
    """Call a true allele, miscalling it uniformly as one of the other alleles with probability (num_alleles - 1) * epsilon."""
    if rng.random() < 1 - (num_alleles - 1) * epsilon:
        return true_allele
    other_alleles = np.delete(np.arange(num_alleles), true_allele)
    return rng.choice(other_alleles)


def simulate_genotypes(frequencies, distances, k, r, epsilon, rho, seed=None):
    """
    Simulate genotype calls for a pair of haploid individuals, and return them.

    The IBD state at the first site is drawn from its stationary distribution,
    and at each later site from the transition probabilities for the distance
    to the previous site. True alleles are drawn from the active allele
    classes of each site; when IBD, the second individual copies the allele
    of the first. Each true allele is then called with genotyping error.

    The simulated calls are an array of size (m, 2), where m = number of sites.

    :param numpy.ndarray frequencies: Allele frequencies per site.
    :param numpy.ndarray distances: Distance from each site to the next.
    :param float k: Switch rate parameter.
    :param float r: Relatedness parameter.
    :param float epsilon: Probability of miscalling one specific allele for another.
    :param float rho: Recombination rate.
    :param int seed: Seed for the random number generator.
    :return: Simulated genotype calls.
    :rtype: numpy.ndarray
    """
    if not fb_ibd.is_feasible(k, r):
        err_msg = "Cannot simulate with r outside [0, 1] or negative k."
        raise ValueError(err_msg)

    rng = np.random.default_rng(seed)
    num_sites = frequencies.shape[0]
    num_alleles = core.get_num_alleles(frequencies)
    Ys = np.zeros((num_sites, 2), dtype=np.int32)

    is_ibd = rng.random() < r
    for l in range(num_sites):
        if l > 0:
            a01, a11 = core.get_transition_probabilities(k, r, rho, distances[l - 1])
            is_ibd = rng.random() < (a11 if is_ibd else a01)

        n = num_alleles[l]
        probs = frequencies[l, :n] / np.sum(frequencies[l, :n])
        g_i = rng.choice(n, p=probs)
        g_j = g_i if is_ibd else rng.choice(n, p=probs)

        Ys[l, 0] = _call_allele(rng, g_i, n, epsilon)
        Ys[l, 1] = _call_allele(rng, g_j, n, epsilon)

    return Ys
