"""
Implementations of the forward algorithm for the two-state IBD HMM on a pair
of haploid genotypes, where the data is structured as sites x individuals.
"""

import numpy as np

from ibdhmm import core
from ibdhmm import jit


@jit.numba_njit
def is_feasible(k, r):
    """Check that the switch rate k is non-negative and the relatedness r lies in [0, 1]."""
    return r >= 0 and r <= 1 and k >= 0


@jit.numba_njit
def get_initial_predictive(r):
    """Stationary distribution of the IBD state, used before the first site."""
    return (1.0 - r, 1.0 * r)


@jit.numba_njit
def update_filter(predictive, lk0, lk1, normalise):
    """
    Combine a predictive distribution with the likelihoods of the calls at a
    site, and return the filtering distribution and the marginal likelihood
    of the calls given all previous calls.

    The filtering distribution is left unnormalised if normalise is False or
    if the marginal likelihood is zero.
    """
    u0 = predictive[0] * lk0
    u1 = predictive[1] * lk1
    lik = u0 + u1
    if normalise and lik > 0:
        return (u0 / lik, u1 / lik), lik
    return (u0, u1), lik


@jit.numba_njit
def predict_next(filtering, a01, a11):
    """
    Advance a filtering distribution through the transition matrix, and
    return the predictive distribution at the next site.

    The probability of state 0 is taken as the complement of state 1, so the
    pair always sums to one.
    """
    p1 = filtering[0] * a01 + filtering[1] * a11
    return (1 - p1, p1)


@jit.numba_njit
def forwards_ibd(
    k,
    r,
    Ys,
    f,
    gendist,
    num_alleles,
    e,
    rho,
    emission_func,
):
    """
    Run the forward algorithm, keeping the distributions at every site.

    Returns the predictive distributions P, the filtering distributions F,
    the marginal likelihood of the calls at each site given previous calls c,
    and the natural log-likelihood ll. The last row of F is left unnormalised,
    so that F[m - 1].sum() == c[m - 1].

    If the parameters are infeasible, ll is -inf and the arrays are all NaN.
    If the calls at a site have zero likelihood, ll is -inf and the rows of
    later sites are NaN.
    """
    m = Ys.shape[0]
    F = np.full((m, 2), np.nan)
    P = np.full((m, 2), np.nan)
    c = np.full(m, np.nan)

    if not is_feasible(k, r):
        return F, P, c, -np.inf

    ll = 0.0
    predictive = get_initial_predictive(r)
    for l in range(m):
        P[l, 0] = predictive[0]
        P[l, 1] = predictive[1]
        lk0, lk1 = core.get_pair_likelihoods(
            y0=Ys[l, 0],
            y1=Ys[l, 1],
            frequencies=f,
            num_alleles=num_alleles,
            site=l,
            emission_matrix=e,
            emission_func=emission_func,
        )
        filtering, lik = update_filter(predictive, lk0, lk1, l < m - 1)
        F[l, 0] = filtering[0]
        F[l, 1] = filtering[1]
        c[l] = lik

        if lik == 0:
            ll = -np.inf
            break
        ll += np.log(lik)

        if l < m - 1:
            a01, a11 = core.get_transition_probabilities(k, r, rho, gendist[l])
            predictive = predict_next(filtering, a01, a11)

    return F, P, c, ll


@jit.numba_njit
def loglikelihood_ibd(
    k,
    r,
    Ys,
    f,
    gendist,
    num_alleles,
    e,
    rho,
    emission_func,
):
    """
    Run the forward algorithm, and return only the natural log-likelihood.

    This is exposed via the API.
    """
    if not is_feasible(k, r):
        return -np.inf

    m = Ys.shape[0]
    ll = 0.0
    predictive = get_initial_predictive(r)
    for l in range(m):
        lk0, lk1 = core.get_pair_likelihoods(
            y0=Ys[l, 0],
            y1=Ys[l, 1],
            frequencies=f,
            num_alleles=num_alleles,
            site=l,
            emission_matrix=e,
            emission_func=emission_func,
        )
        # No normalisation or prediction after the last site.
        filtering, lik = update_filter(predictive, lk0, lk1, l < m - 1)
        if lik == 0:
            return -np.inf
        ll += np.log(lik)

        if l < m - 1:
            a01, a11 = core.get_transition_probabilities(k, r, rho, gendist[l])
            predictive = predict_next(filtering, a01, a11)

    return ll
