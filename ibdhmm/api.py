"""External API definitions."""

import warnings

import numpy as np

from . import core
from .fb_ibd import (
    forwards_ibd,
    is_feasible,
    loglikelihood_ibd,
)
from .sim_pair import simulate_genotypes


def check_model_inputs(
    frequencies,
    distances,
    epsilon,
    rho,
):
    """
    Check that the allele frequencies, distances and model constants are
    valid, and return data shared by the HMM algorithms and the simulator.

    The frequencies and distances are arrays of size (m, k) and (m,),
    respectively, where:
        m = number of sites.
        k = maximum number of allele classes over all sites.

    At each site, the active allele classes are the leading entries of the
    frequency row above core.NONZERO_FREQUENCY_THRESHOLD, and all remaining
    entries must be absent.

    The distance at index i is the distance from site i to site i + 1.
    The last distance is not used.

    :param numpy.ndarray frequencies: Allele frequencies per site.
    :param numpy.ndarray distances: Distance from each site to the next.
    :param float epsilon: Probability of miscalling one specific allele for another.
    :param float rho: Recombination rate.
    :return: Num. sites, checked frequencies, checked distances, num. alleles.
    :rtype: tuple
    """
    frequencies = np.asarray(frequencies, dtype=np.float64)
    distances = np.asarray(distances, dtype=np.float64)

    # Check the dimensions.
    if frequencies.ndim != 2:
        err_msg = "Frequency array has incorrect dimensions."
        raise ValueError(err_msg)

    if distances.ndim != 1:
        err_msg = "Distance array has incorrect dimensions."
        raise ValueError(err_msg)

    num_sites = frequencies.shape[0]
    if num_sites == 0:
        err_msg = "There must be at least one site."
        raise ValueError(err_msg)

    if len(distances) != num_sites:
        err_msg = "Number of sites in the frequencies and distances don't match."
        raise ValueError(err_msg)

    # Check the frequencies.
    if np.any(np.isnan(frequencies)) or np.any(frequencies < 0) or np.any(frequencies > 1):
        err_msg = "Some frequencies are not in [0, 1]."
        raise ValueError(err_msg)

    num_alleles = core.get_num_alleles(frequencies)
    is_active = frequencies > core.NONZERO_FREQUENCY_THRESHOLD
    for i in range(num_sites):
        if np.any(is_active[i, num_alleles[i] :]):
            err_msg = "Disordered frequencies at site " + str(i) + ". "
            err_msg += "All non-zero frequencies should precede all zero frequencies."
            raise ValueError(err_msg)

    max_dev = np.max(np.abs(np.sum(frequencies, axis=1) - 1))
    if max_dev > core.FREQUENCY_SUM_TOLERANCE:
        err_msg = f"Some sites have frequencies whose sum deviates from one by up to {max_dev}."
        raise ValueError(err_msg)
    elif max_dev > 0:
        warn_msg = f"Some sites have frequencies whose sum deviates from one by up to {max_dev}."
        warnings.warn(warn_msg)

    if np.any(frequencies == 1):
        warn_msg = "Some sites are uninformative (have an allele frequency equal to one)."
        warnings.warn(warn_msg)

    # Check the distances, ignoring the last one.
    used_distances = distances[:-1]
    if np.any(np.isnan(used_distances)) or np.any(used_distances < 0):
        err_msg = "Distances between sites must be non-negative."
        raise ValueError(err_msg)

    # Check the model constants.
    if not 0 <= epsilon < 1:
        err_msg = "Genotyping error probability must be in [0, 1)."
        raise ValueError(err_msg)

    if np.any((num_alleles - 1) * epsilon > 1):
        err_msg = "Genotyping error probability is too large for the number of alleles at some sites."
        raise ValueError(err_msg)

    if not rho > 0:
        err_msg = "Recombination rate must be positive."
        raise ValueError(err_msg)

    return (
        num_sites,
        np.ascontiguousarray(frequencies),
        np.ascontiguousarray(distances),
        num_alleles,
    )


def check_inputs(
    genotypes,
    frequencies,
    distances,
    epsilon,
    rho,
):
    """
    Check that the input data and model constants are valid, and return data
    to run the HMM algorithms.

    The genotypes are an array of size (m, 2), where m = number of sites.
    Genotype calls must index an active allele class at their site, or be
    MISSING. The frequencies, distances and constants are checked by
    check_model_inputs.

    :param numpy.ndarray genotypes: Genotype calls of a pair of individuals.
    :param numpy.ndarray frequencies: Allele frequencies per site.
    :param numpy.ndarray distances: Distance from each site to the next.
    :param float epsilon: Probability of miscalling one specific allele for another.
    :param float rho: Recombination rate.
    :return: Num. sites, checked genotypes, frequencies, distances, num. alleles, emission prob. matrix.
    :rtype: tuple
    """
    genotypes = np.asarray(genotypes)

    # Check the genotype dimensions.
    if not (genotypes.ndim == 2 and genotypes.shape[1] == 2):
        err_msg = "Genotype array must have one row per site and two columns."
        raise ValueError(err_msg)

    if not np.issubdtype(genotypes.dtype, np.integer):
        err_msg = "Genotype array must contain integer allele indices."
        raise ValueError(err_msg)

    num_sites, frequencies, distances, num_alleles = check_model_inputs(
        frequencies=frequencies,
        distances=distances,
        epsilon=epsilon,
        rho=rho,
    )

    if genotypes.shape[0] != num_sites:
        err_msg = "Number of sites in the genotypes and frequencies don't match."
        raise ValueError(err_msg)

    # Check the genotype calls.
    is_missing = genotypes == core.MISSING
    is_in_range = (genotypes >= 0) & (genotypes < num_alleles[:, np.newaxis])
    if not np.all(is_missing | is_in_range):
        err_msg = "Genotypes have illegal alleles. "
        err_msg += "Calls must index an active allele class at each site, or be MISSING."
        raise ValueError(err_msg)

    emission_matrix = core.get_emission_matrix(
        epsilon=epsilon,
        num_sites=num_sites,
        num_alleles=num_alleles,
    )

    return (
        num_sites,
        np.ascontiguousarray(genotypes, dtype=np.int64),
        frequencies,
        distances,
        num_alleles,
        emission_matrix,
    )


def _get_model_constants(epsilon, rho):
    if epsilon is None:
        epsilon = core.DEFAULT_EPSILON
    if rho is None:
        rho = core.DEFAULT_RHO
    return float(epsilon), float(rho)


def loglikelihood(
    k,
    r,
    genotypes,
    frequencies,
    distances,
    *,
    epsilon=None,
    rho=None,
):
    """
    Compute the natural log-likelihood of the genotype calls of a pair of
    individuals under the IBD HMM with switch rate k and relatedness r.

    Infeasible parameters return -inf before any input is checked.
    """
    if not is_feasible(k, r):
        return -np.inf

    epsilon, rho = _get_model_constants(epsilon, rho)
    _, genotypes_checked, frequencies_checked, distances_checked, num_alleles, emission_matrix = (
        check_inputs(
            genotypes=genotypes,
            frequencies=frequencies,
            distances=distances,
            epsilon=epsilon,
            rho=rho,
        )
    )

    log_lik = loglikelihood_ibd(
        float(k),
        float(r),
        genotypes_checked,
        frequencies_checked,
        distances_checked,
        num_alleles,
        emission_matrix,
        rho,
        core.get_emission_probability,
    )

    return log_lik


def loglikelihood_status(
    k,
    r,
    genotypes,
    frequencies,
    distances,
    *,
    epsilon=None,
    rho=None,
):
    """
    Compute the natural log-likelihood as in loglikelihood, and return it with
    a status telling a feasible value from the two ways of getting -inf.
    """
    if not is_feasible(k, r):
        return -np.inf, core.INFEASIBLE_PARAMETERS

    log_lik = loglikelihood(
        k,
        r,
        genotypes,
        frequencies,
        distances,
        epsilon=epsilon,
        rho=rho,
    )

    if log_lik == -np.inf:
        return log_lik, core.ZERO_LIKELIHOOD
    return log_lik, core.FEASIBLE


def forwards(
    k,
    r,
    genotypes,
    frequencies,
    distances,
    *,
    epsilon=None,
    rho=None,
):
    """Run the forward algorithm on the genotype calls of a pair of individuals."""
    epsilon, rho = _get_model_constants(epsilon, rho)
    _, genotypes_checked, frequencies_checked, distances_checked, num_alleles, emission_matrix = (
        check_inputs(
            genotypes=genotypes,
            frequencies=frequencies,
            distances=distances,
            epsilon=epsilon,
            rho=rho,
        )
    )

    (
        filtering_array,
        predictive_array,
        normalisation_factor,
        log_lik,
    ) = forwards_ibd(
        float(k),
        float(r),
        genotypes_checked,
        frequencies_checked,
        distances_checked,
        num_alleles,
        emission_matrix,
        rho,
        core.get_emission_probability,
    )

    return filtering_array, predictive_array, normalisation_factor, log_lik


def simulate(
    frequencies,
    distances,
    k,
    r,
    *,
    epsilon=None,
    rho=None,
    seed=None,
):
    """Simulate the genotype calls of a pair of individuals under the IBD HMM."""
    epsilon, rho = _get_model_constants(epsilon, rho)
    _, frequencies_checked, distances_checked, _ = check_model_inputs(
        frequencies=frequencies,
        distances=distances,
        epsilon=epsilon,
        rho=rho,
    )

    return simulate_genotypes(
        frequencies=frequencies_checked,
        distances=distances_checked,
        k=k,
        r=r,
        epsilon=epsilon,
        rho=rho,
        seed=seed,
    )
