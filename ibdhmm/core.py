import numpy as np

from ibdhmm import jit


MISSING = -1

# Frequencies at or below this value mark an allele class as absent at a site.
NONZERO_FREQUENCY_THRESHOLD = 1e-20
FREQUENCY_SUM_TOLERANCE = 1e-5

DEFAULT_EPSILON = 0.001
# Probability of a crossover per base pair, an average rate for P. falciparum.
DEFAULT_RHO = 7.4e-7

# Outcomes of a log-likelihood evaluation.
FEASIBLE = 0
INFEASIBLE_PARAMETERS = 1
ZERO_LIKELIHOOD = 2


# Functions to describe the allele classes at each site.
@jit.numba_njit
def get_num_alleles(frequencies):
    """
    Count the active allele classes at each site, and return the counts.

    The frequency matrix is of size (m, k), where:
        m = number of sites.
        k = maximum number of allele classes over all sites.

    The active allele classes at a site are the leading entries of its row
    whose frequency exceeds NONZERO_FREQUENCY_THRESHOLD. Scanning stops at the
    first entry at or below the threshold; all trailing entries are treated as
    absent, even if some of them are positive.

    :param numpy.ndarray frequencies: Allele frequencies per site.
    :return: An array of counts of active allele classes at the m sites.
    :rtype: numpy.ndarray
    """
    assert frequencies.ndim == 2, "Frequency array has incorrect dimensions."
    num_sites = frequencies.shape[0]
    max_num_alleles = frequencies.shape[1]
    num_alleles = np.zeros(num_sites, dtype=np.int32)
    for i in range(num_sites):
        j = 0
        while j < max_num_alleles and frequencies[i, j] > NONZERO_FREQUENCY_THRESHOLD:
            j += 1
        num_alleles[i] = j
    return num_alleles


def get_cardinalities(frequencies):
    """Return the number of allele classes with a positive frequency at each site."""
    return np.sum(frequencies > 0, axis=1)


def get_effective_cardinalities(frequencies):
    """
    Return the effective number of allele classes at each site,
    the inverse of the probability that two draws share an allele.
    """
    return 1 / np.sum(frequencies**2, axis=1)


def get_diversities(frequencies):
    """Return the probability that two draws at each site carry different alleles."""
    return 1 - np.sum(frequencies**2, axis=1)


# Functions to assign emission probabilities.
@jit.numba_njit
def get_emission_matrix(epsilon, num_sites, num_alleles):
    """
    Compute an emission probability matrix for genotype calls, and return it.

    The emission probability matrix is of size (num_sites, 2). The first entry
    of each row is the probability of calling one specific wrong allele, and
    the second entry is the probability of calling the true allele.

    The error probability epsilon is the probability of miscalling the true
    allele as **any given one** of the other alleles, so the overall error
    probability at a site is (num_alleles - 1) * epsilon, spread uniformly
    over the other alleles.

    :param float epsilon: Probability of miscalling one specific allele for another.
    :param int num_sites: Number of sites.
    :param numpy.ndarray num_alleles: Number of active allele classes per site.
    :return: Emission probability matrix.
    :rtype: numpy.ndarray
    """
    assert (
        len(num_alleles) == num_sites
    ), "Array of number of alleles is not equal in length to number of sites."
    emission_matrix = np.zeros((num_sites, 2), dtype=np.float64) - np.inf
    for i in range(num_sites):
        emission_matrix[i, 0] = epsilon
        emission_matrix[i, 1] = 1 - (num_alleles[i] - 1) * epsilon
    return emission_matrix


@jit.numba_njit
def get_emission_probability(true_allele, observed_allele, site, emission_matrix):
    """
    Return the probability of a genotype call given the true allele at a site.

    A MISSING call carries no information and has probability 1 whatever the
    true allele. Any other call that differs from the true allele, including
    a call outside the range of active alleles, gets the error probability.

    :param int true_allele: True (latent) allele.
    :param int observed_allele: Called allele.
    :param int site: Site index.
    :param numpy.ndarray emission_matrix: Emission probability matrix.
    :return: Emission probability.
    :rtype: float
    """
    if observed_allele == MISSING:
        return 1.0
    elif observed_allele == true_allele:
        return emission_matrix[site, 1]
    else:
        return emission_matrix[site, 0]


@jit.numba_njit
def get_pair_likelihoods(
    y0, y1, frequencies, num_alleles, site, emission_matrix, emission_func
):
    """
    Compute the likelihoods of a pair of genotype calls at a site conditional
    on the two IBD states, marginalising over the true alleles, and return them.

    Given IBD = 1, both calls come from one true allele g drawn from the
    allele frequencies. Given IBD = 0, the calls come from two independently
    drawn true alleles g and g'. The sums run over the active allele classes
    and are exact.

    The emission function maps (true_allele, observed_allele, site,
    emission_matrix) to a probability, so other error models can be used.

    :param int y0: Genotype call of the first individual.
    :param int y1: Genotype call of the second individual.
    :param numpy.ndarray frequencies: Allele frequencies per site.
    :param numpy.ndarray num_alleles: Number of active allele classes per site.
    :param int site: Site index.
    :param numpy.ndarray emission_matrix: Emission probability matrix.
    :param emission_func: Function returning the probability of a call.
    :return: Likelihoods given IBD = 0 and given IBD = 1.
    :rtype: tuple
    """
    lk0 = 0.0
    lk1 = 0.0
    for g in range(num_alleles[site]):
        emission_y0 = emission_func(
            true_allele=g,
            observed_allele=y0,
            site=site,
            emission_matrix=emission_matrix,
        )
        emission_y1 = emission_func(
            true_allele=g,
            observed_allele=y1,
            site=site,
            emission_matrix=emission_matrix,
        )
        lk1 += frequencies[site, g] * emission_y0 * emission_y1
        for g_prime in range(num_alleles[site]):
            emission_y1_prime = emission_func(
                true_allele=g_prime,
                observed_allele=y1,
                site=site,
                emission_matrix=emission_matrix,
            )
            lk0 += (
                frequencies[site, g]
                * frequencies[site, g_prime]
                * emission_y0
                * emission_y1_prime
            )
    return lk0, lk1


# Functions to assign transition probabilities.
@jit.numba_njit
def get_transition_probabilities(k, r, rho, distance):
    """
    Compute the probabilities of moving into the IBD state between two sites,
    and return them.

    The probability of no switch over a distance d is exp(-k * rho * d). With
    probability one minus that, the IBD state is redrawn from its stationary
    distribution (1 - r, r). If k * rho or the distance is zero the chain
    never switches, so an infinite k is allowed at coincident sites and a zero
    k over an infinite distance.

    :param float k: Switch rate parameter.
    :param float r: Relatedness parameter.
    :param float rho: Recombination rate.
    :param float distance: Distance between the two sites.
    :return: Transition probabilities from state 0 to 1 and from state 1 to 1.
    :rtype: tuple
    """
    rate = k * rho
    if rate == 0 or distance == 0:
        decay = 1.0
    else:
        decay = np.exp(-rate * distance)
    a01 = r * (1 - decay)
    a11 = r + (1 - r) * decay
    return a01, a11
