import numpy as np
import pytest

from . import ibdbase
import ibdhmm.core as core


class TestAlleleClasses(ibdbase.IBDBase):
    def test_num_alleles(self):
        f = np.array(
            [
                [0.5, 0.5, 0.0],
                [1.0, 0.0, 0.0],
                [0.2, 0.3, 0.5],
                [0.5, 1e-21, 0.5],
            ]
        )
        # Scanning stops at the first absent class.
        np.testing.assert_array_equal(core.get_num_alleles(f), [2, 1, 3, 1])

    def test_num_alleles_threshold(self):
        f = np.array([[1 - 1e-19, 1e-19], [1.0, 1e-20]])
        np.testing.assert_array_equal(core.get_num_alleles(f), [2, 1])

    def test_marker_summaries(self):
        f = np.array([[0.5, 0.5, 0.0], [0.2, 0.3, 0.5]])
        np.testing.assert_array_equal(core.get_cardinalities(f), [2, 3])
        self.assertAllClose(core.get_effective_cardinalities(f), [2.0, 1 / 0.38])
        self.assertAllClose(core.get_diversities(f), [0.5, 0.62])


class TestEmission(ibdbase.IBDBase):
    def test_emission_matrix(self):
        e = core.get_emission_matrix(
            epsilon=0.01,
            num_sites=3,
            num_alleles=np.array([2, 1, 3], dtype=np.int32),
        )
        self.assertAllClose(e, [[0.01, 0.99], [0.01, 1.0], [0.01, 0.98]])

    @pytest.mark.parametrize("epsilon", [0.0, 0.001, 0.1])
    def test_emission_probability(self, epsilon):
        num_alleles = np.array([3], dtype=np.int32)
        e = core.get_emission_matrix(epsilon, 1, num_alleles)
        assert core.get_emission_probability(1, 1, 0, e) == 1 - 2 * epsilon
        assert core.get_emission_probability(1, 2, 0, e) == epsilon
        # Calls outside the active classes never match.
        assert core.get_emission_probability(1, 7, 0, e) == epsilon
        assert core.get_emission_probability(1, core.MISSING, 0, e) == 1.0

    def get_pair_likelihoods(self, y0, y1, freqs, epsilon):
        f = np.array([freqs])
        num_alleles = core.get_num_alleles(f)
        e = core.get_emission_matrix(epsilon, 1, num_alleles)
        return core.get_pair_likelihoods(
            y0=y0,
            y1=y1,
            frequencies=f,
            num_alleles=num_alleles,
            site=0,
            emission_matrix=e,
            emission_func=core.get_emission_probability,
        )

    def test_pair_likelihoods_equal_calls(self):
        lk0, lk1 = self.get_pair_likelihoods(0, 0, [0.6, 0.4], 0.001)
        self.assertAllClose(lk0, 0.5998**2)
        self.assertAllClose(lk1, 0.6 * 0.999**2 + 0.4 * 0.001**2)

    def test_pair_likelihoods_unequal_calls(self):
        lk0, lk1 = self.get_pair_likelihoods(0, 1, [0.6, 0.4], 0.001)
        self.assertAllClose(lk0, 0.5998 * 0.4002)
        self.assertAllClose(lk1, 0.999 * 0.001)

    def test_pair_likelihoods_no_error(self):
        lk0, lk1 = self.get_pair_likelihoods(0, 1, [0.6, 0.4], 0.0)
        assert lk1 == 0.0
        self.assertAllClose(lk0, 0.24)
        lk0, lk1 = self.get_pair_likelihoods(0, 0, [0.5, 0.5], 0.0)
        self.assertAllClose(lk0, 0.25)
        self.assertAllClose(lk1, 0.5)

    def test_pair_likelihoods_out_of_range_call(self):
        # Every candidate true allele is a mismatch for the out-of-range call.
        lk0, lk1 = self.get_pair_likelihoods(5, 0, [0.6, 0.4, 0.0], 0.001)
        self.assertAllClose(lk0, 0.001 * 0.5998)
        self.assertAllClose(lk1, 0.001 * 0.5998)
        lk0, lk1 = self.get_pair_likelihoods(2, 0, [0.6, 0.4, 0.0], 0.0)
        assert lk0 == 0.0
        assert lk1 == 0.0

    def test_pair_likelihoods_missing_call(self):
        lk0, lk1 = self.get_pair_likelihoods(core.MISSING, 0, [0.6, 0.4], 0.001)
        self.assertAllClose(lk0, 0.5998)
        self.assertAllClose(lk1, 0.5998)
        lk0, lk1 = self.get_pair_likelihoods(
            core.MISSING, core.MISSING, [0.2, 0.3, 0.5], 0.01
        )
        self.assertAllClose(lk0, 1.0)
        self.assertAllClose(lk1, 1.0)

    @pytest.mark.parametrize("epsilon", [0.0, 0.001, 0.05])
    def test_pair_likelihoods_brute_force(self, epsilon):
        freqs = [0.1, 0.2, 0.3, 0.4]
        for y0 in range(-1, 4):
            for y1 in range(-1, 4):
                lk0, lk1 = self.get_pair_likelihoods(y0, y1, freqs, epsilon)
                y = (y0, y1)
                self.assertAllClose(
                    lk0, self.get_site_likelihood_brute_force(y, freqs, 0, epsilon)
                )
                self.assertAllClose(
                    lk1, self.get_site_likelihood_brute_force(y, freqs, 1, epsilon)
                )

    @pytest.mark.parametrize("epsilon", [0.0, 0.01])
    def test_pair_likelihoods_sum_to_one(self, epsilon):
        # Summing over all pairs of calls marginalises the calls out.
        freqs = [0.2, 0.3, 0.5]
        lk0_total = 0.0
        lk1_total = 0.0
        for y0 in range(3):
            for y1 in range(3):
                lk0, lk1 = self.get_pair_likelihoods(y0, y1, freqs, epsilon)
                lk0_total += lk0
                lk1_total += lk1
        self.assertAllClose(lk0_total, 1.0)
        self.assertAllClose(lk1_total, 1.0)


class TestTransition(ibdbase.IBDBase):
    @pytest.mark.parametrize("r", [0.0, 0.3, 1.0])
    def test_no_switching(self, r):
        for distance in [0.0, 1e6, np.inf]:
            a01, a11 = core.get_transition_probabilities(0.0, r, core.DEFAULT_RHO, distance)
            assert a01 == 0.0
            self.assertAllClose(a11, 1.0)
        a01, a11 = core.get_transition_probabilities(5.0, r, core.DEFAULT_RHO, 0.0)
        assert a01 == 0.0
        self.assertAllClose(a11, 1.0)

    @pytest.mark.parametrize("r", [0.0, 0.3, 1.0])
    def test_infinite_distance(self, r):
        a01, a11 = core.get_transition_probabilities(2.0, r, core.DEFAULT_RHO, np.inf)
        self.assertAllClose(a01, r)
        self.assertAllClose(a11, r)

    @pytest.mark.parametrize("r", [0.0, 0.3, 1.0])
    def test_infinite_switch_rate(self, r):
        a01, a11 = core.get_transition_probabilities(np.inf, r, core.DEFAULT_RHO, 0.0)
        assert a01 == 0.0
        assert a11 == 1.0
        for distance in [1e-3, 1e6, np.inf]:
            a01, a11 = core.get_transition_probabilities(np.inf, r, core.DEFAULT_RHO, distance)
            self.assertAllClose(a01, r)
            self.assertAllClose(a11, r)

    def test_half_decay(self):
        r = 0.2
        a01, a11 = core.get_transition_probabilities(1.0, r, 1.0, np.log(2))
        self.assertAllClose(a01, 0.5 * r)
        self.assertAllClose(a11, r + 0.5 * (1 - r))

    def test_monotone_in_distance(self):
        r = 0.3
        distances = [1e3, 1e4, 1e5, 3e5, 1e6]
        probs = [
            core.get_transition_probabilities(10.0, r, core.DEFAULT_RHO, d)
            for d in distances
        ]
        a01s = np.array([a01 for a01, _ in probs])
        a11s = np.array([a11 for _, a11 in probs])
        assert np.all(np.diff(a01s) > 0)
        assert np.all(np.diff(a11s) < 0)
        assert np.all(a01s < r)
        assert np.all(a11s > r)
