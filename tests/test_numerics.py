import unittest
import math
import numpy as np
from sphere_testdata.numerics.spectral import lgl_nodes_weights, lg_nodes_weights, lagrange_basis
from sphere_testdata.numerics.triangle import triangular_quadrature

class TestNumerics(unittest.TestCase):
    def test_lgl_endpoints_and_weights(self):
        """LGL nodes include the endpoints and weights sum to the interval length."""
        x, w = lgl_nodes_weights(0.0, 1.0, 5)
        self.assertAlmostEqual(x[0], 0.0, places=14)
        self.assertAlmostEqual(x[-1], 1.0, places=14)
        self.assertAlmostEqual(np.sum(w), 1.0, places=14)
        np.testing.assert_allclose(x, 1.0 - x[::-1], atol=1e-14)

    def test_lgl_polynomial_exactness(self):
        """N-point LGL integrates polynomials of degree 2N-3 exactly."""
        N = 6
        x, w = lgl_nodes_weights(-1.0, 1.0, N)
        for k in range(2 * N - 2):
            exact = 0.0 if k % 2 else 2.0 / (k + 1)
            self.assertAlmostEqual(np.sum(w * x**k), exact, places=13)

    def test_lgl_single_node(self):
        x, w = lgl_nodes_weights(2.0, 4.0, 1)
        np.testing.assert_allclose(x, [3.0])
        np.testing.assert_allclose(w, [2.0])

    def test_lg_maps_interval(self):
        x, w = lg_nodes_weights(0.0, 1.0, 10)
        self.assertTrue(np.all((x > 0.0) & (x < 1.0)))
        self.assertAlmostEqual(np.sum(w), 1.0, places=14)
        self.assertAlmostEqual(np.sum(w * x**19), 1.0 / 20.0, places=14)

    def test_lagrange_kronecker(self):
        """Cardinal polynomials are 1 at their own node and 0 at the others."""
        g, _ = lgl_nodes_weights(0.0, 1.0, 5)
        L = lagrange_basis(g, g)
        np.testing.assert_allclose(L, np.eye(5), atol=1e-14)

    def test_lagrange_partition_of_unity(self):
        g, _ = lgl_nodes_weights(0.0, 1.0, 4)
        x = np.linspace(0.0, 1.0, 23).reshape(-1, 1)
        L = lagrange_basis(g, x)
        self.assertEqual(L.shape, (23, 1, 4))
        np.testing.assert_allclose(np.sum(L, axis=-1), 1.0, atol=1e-13)

    def test_lagrange_reproduces_cubic(self):
        g, _ = lgl_nodes_weights(0.0, 1.0, 4)
        x = np.linspace(0.0, 1.0, 11)
        f = lambda t: 1.0 - 2.0 * t + 3.0 * t**3
        np.testing.assert_allclose(lagrange_basis(g, x) @ f(g), f(x), atol=1e-13)

    def test_triangle_rule_moments(self):
        """Monomials x^a y^b up to the requested order integrate exactly."""
        G, W = triangular_quadrature(10)
        self.assertEqual(G.shape[1], 3)
        np.testing.assert_allclose(np.sum(G, axis=1), 1.0, atol=1e-15)
        self.assertAlmostEqual(np.sum(W), 1.0, places=14)

        x, y = G[:, 1], G[:, 2]
        for a in range(11):
            for b in range(11 - a):
                exact = 2.0 * math.factorial(a) * math.factorial(b) / math.factorial(a + b + 2)
                self.assertAlmostEqual(np.sum(W * x**a * y**b), exact, places=13,
                                       msg=f"x^{a} y^{b}")

    def test_triangle_rule_low_order(self):
        G, W = triangular_quadrature(0)
        self.assertEqual(G.shape, (1, 3))
        np.testing.assert_allclose(W, [1.0])

if __name__ == "__main__":
    unittest.main()
