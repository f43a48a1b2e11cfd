"""Test the shrinkage procedure"""
import chex
import jax
import jax.numpy as jnp
import numpy as np
from absl.testing import absltest

from slicejax.mcmc import shrinkage
from slicejax.mcmc.evaluator import StepEvaluator
from slicejax.target import density_target, logdensity_target

NUM_STEPS = 8


def always_outside(key, x, left, right):
    """Run a few shrinkage iterations on a target that rejects every candidate."""
    evaluator = StepEvaluator(density_target(lambda t: jnp.zeros_like(t)))
    one_step = shrinkage.build_shrinkage_step(evaluator, x, 0.5)
    state = shrinkage.init(key, x, left, right, jnp.zeros((), dtype=jnp.int32))

    def body_fn(state, _):
        state = one_step(state)
        return state, (state.left, state.right, state.accepted)

    state, trace = jax.lax.scan(body_fn, state, None, length=NUM_STEPS)
    return state.num_evals, trace


class ShrinkageStepTest(chex.TestCase):
    def setUp(self):
        super().setUp()
        left_key, width_key, position_key, self.run_key = jax.random.split(
            jax.random.key(17), 4
        )
        num_brackets = 200
        self.left = jax.random.uniform(
            left_key, (num_brackets,), minval=-5.0, maxval=0.0
        )
        self.right = self.left + jax.random.uniform(
            width_key, (num_brackets,), minval=0.5, maxval=5.0
        )
        u = jax.random.uniform(position_key, (num_brackets,), minval=0.05, maxval=0.95)
        self.x = self.left + u * (self.right - self.left)
        self.keys = jax.random.split(self.run_key, num_brackets)

    def test_bracket_contains_position(self):
        _, (lefts, rights, _) = jax.vmap(always_outside)(
            self.keys, self.x, self.left, self.right
        )
        self.assertTrue(jnp.all(lefts <= self.x[:, None]))
        self.assertTrue(jnp.all(rights >= self.x[:, None]))

    def test_rejections_shrink_the_bracket(self):
        num_evals, (lefts, rights, accepted) = jax.vmap(always_outside)(
            self.keys, self.x, self.left, self.right
        )
        widths = jnp.concatenate(
            [(self.right - self.left)[:, None], rights - lefts], axis=1
        )
        self.assertTrue(jnp.all(jnp.diff(widths, axis=1) < 0))
        self.assertFalse(jnp.any(accepted))
        np.testing.assert_array_equal(num_evals, NUM_STEPS)


class ShrinkTest(chex.TestCase):
    def setUp(self):
        super().setUp()
        self.key = jax.random.key(3)
        self.zero = jnp.zeros((), dtype=jnp.int32)
        self.x = jnp.array(0.2)

    @chex.variants(with_jit=True, without_jit=True)
    def test_first_candidate_in_slice_is_accepted(self):
        evaluator = StepEvaluator(logdensity_target(lambda t: jnp.zeros_like(t)))

        def run(key):
            return shrinkage.shrink(key, evaluator, self.x, -1.0, -1.0, 1.0, self.zero)

        x1, num_evals = self.variant(run)(self.key)
        self.assertEqual(num_evals, 1)
        self.assertGreaterEqual(x1, -1.0)
        self.assertLess(x1, 1.0)

    def test_candidates_outside_slice_are_rejected(self):
        evaluator = StepEvaluator(
            density_target(lambda t: jnp.where(jnp.abs(t) < 0.25, 1.0, 0.0))
        )

        def run(key):
            return shrinkage.shrink(key, evaluator, self.x, 0.5, -3.0, 3.0, self.zero)

        keys = jax.random.split(self.key, 500)
        x1, num_evals = jax.vmap(run)(keys)
        self.assertTrue(jnp.all(jnp.abs(x1) < 0.25))
        self.assertTrue(jnp.all(num_evals >= 1))
        # the slice covers 1/12th of the bracket
        self.assertTrue(jnp.any(num_evals > 1))

    def test_extra_acceptance_test(self):
        evaluator = StepEvaluator(logdensity_target(lambda t: jnp.zeros_like(t)))

        def only_left_of_position(x1, num_evals):
            return x1 < self.x, num_evals

        def run(key):
            return shrinkage.shrink(
                key,
                evaluator,
                self.x,
                -1.0,
                -2.0,
                2.0,
                self.zero,
                only_left_of_position,
            )

        keys = jax.random.split(self.key, 500)
        x1, _ = jax.vmap(run)(keys)
        self.assertTrue(jnp.all(x1 < self.x))
        self.assertTrue(jnp.all(x1 >= -2.0))


if __name__ == "__main__":
    absltest.main()
