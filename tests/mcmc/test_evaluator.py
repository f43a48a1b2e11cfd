"""Test the building blocks shared by the slice samplers"""
import chex
import jax
import jax.numpy as jnp
import numpy as np
from absl.testing import absltest, parameterized

from slicejax.mcmc import evaluator
from slicejax.target import density_target, logdensity_target


def unit_box_density(x):
    return jnp.where((x < 0.0) | (x > 1.0), 0.0, 1.0)


class StepEvaluatorTest(chex.TestCase):
    def setUp(self):
        super().setUp()
        self.evaluator = evaluator.StepEvaluator(density_target(unit_box_density))
        self.zero = jnp.zeros((), dtype=jnp.int32)

    def test_counts_every_call(self):
        fx, num_evals = self.evaluator(0.5, self.zero)
        fx, num_evals = self.evaluator(0.5, num_evals)
        self.assertEqual(fx, 1.0)
        self.assertEqual(num_evals, 2)

    def test_is_above(self):
        above, num_evals = self.evaluator.is_above(0.5, 0.3, self.zero)
        self.assertTrue(above)
        above, num_evals = self.evaluator.is_above(2.0, 0.3, num_evals)
        self.assertFalse(above)
        self.assertEqual(num_evals, 2)

    @parameterized.parameters(
        # left, right, expected, expected number of evaluations
        (0.5, 2.0, True, 1),
        (-1.0, 0.5, True, 2),
        (-1.0, 2.0, False, 2),
    )
    def test_either_above_short_circuits(self, left, right, expected, expected_evals):
        above, num_evals = self.evaluator.either_above(left, right, 0.3, self.zero)
        self.assertEqual(bool(above), expected)
        self.assertEqual(num_evals, expected_evals)

    @parameterized.parameters(
        (0.5, 0.7, True, 2),
        (0.5, 2.0, False, 2),
        (-1.0, 0.5, False, 1),
    )
    def test_both_above_short_circuits(self, left, right, expected, expected_evals):
        above, num_evals = self.evaluator.both_above(left, right, 0.3, self.zero)
        self.assertEqual(bool(above), expected)
        self.assertEqual(num_evals, expected_evals)

    @parameterized.parameters(
        (-1.0, 2.0, True, 2),
        (-1.0, 0.5, False, 2),
        (0.5, 2.0, False, 1),
    )
    def test_both_below_short_circuits(self, left, right, expected, expected_evals):
        below, num_evals = self.evaluator.both_below(left, right, 0.3, self.zero)
        self.assertEqual(bool(below), expected)
        self.assertEqual(num_evals, expected_evals)


class SliceHeightTest(chex.TestCase):
    def setUp(self):
        super().setUp()
        self.key = jax.random.key(0)

    def test_density_scale(self):
        u = jax.random.uniform(self.key)
        y = evaluator.slice_height(self.key, jnp.array(2.0), on_log_scale=False)
        np.testing.assert_allclose(y, 2.0 * u)

    def test_log_scale(self):
        u = jax.random.uniform(self.key)
        y = evaluator.slice_height(self.key, jnp.array(-1.5), on_log_scale=True)
        np.testing.assert_allclose(y, jnp.log(u) - 1.5, rtol=1e-6)

    def test_zero_density_gives_zero_height(self):
        y = evaluator.slice_height(self.key, jnp.array(0.0), on_log_scale=False)
        self.assertEqual(y, 0.0)

    def test_heights_below_value(self):
        keys = jax.random.split(self.key, 1_000)
        heights = jax.vmap(evaluator.slice_height, in_axes=(0, None, None))(
            keys, jnp.array(0.0), True
        )
        self.assertTrue(jnp.all(heights < 0.0))
        # E[log(U)] = -1 for U~Uniform(0,1)
        chex.assert_trees_all_close(jnp.mean(heights), -1.0, atol=0.1)

    def test_draw_slice_starts_counter(self):
        target = logdensity_target(lambda x: -0.5 * x**2)
        y, num_evals = evaluator.draw_slice(
            self.key, evaluator.StepEvaluator(target), jnp.array(1.0)
        )
        self.assertEqual(num_evals, 1)
        self.assertLess(y, -0.5)


class BracketTest(chex.TestCase):
    def test_initial_bracket_contains_position(self):
        keys = jax.random.split(jax.random.key(1), 500)
        x = jnp.array(3.0)
        left, right = jax.vmap(evaluator.initial_bracket, in_axes=(0, None, None))(
            keys, x, 0.5
        )
        self.assertTrue(jnp.all(left <= x))
        self.assertTrue(jnp.all(right >= x))
        np.testing.assert_allclose(right - left, 0.5, rtol=1e-5)

    @parameterized.parameters([0.0, -1.0, -jnp.inf])
    def test_non_positive_width_is_clamped(self, width):
        dtype = jnp.result_type(float)
        w = evaluator.effective_width(width, dtype)
        self.assertEqual(w, jnp.finfo(dtype).tiny)
        self.assertGreater(w, 0.0)

    def test_positive_width_is_kept(self):
        w = evaluator.effective_width(2.5, jnp.result_type(float))
        self.assertEqual(w, 2.5)

    def test_negative_budget_raises(self):
        with self.assertRaises(ValueError):
            evaluator.check_budget("max_number_of_steps", -1)
        self.assertEqual(evaluator.check_budget("max_number_of_steps", 3), 3)

    def test_init(self):
        state = evaluator.init(1)
        self.assertEqual(state.position.dtype, jnp.result_type(float))
        self.assertEqual(state.position, 1.0)


if __name__ == "__main__":
    absltest.main()
