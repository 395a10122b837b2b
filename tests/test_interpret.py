from __future__ import annotations

import unittest

import numpy as np

from epipe import UNDEF, Cast, Const, DType, Param, Variable, evaluate


class TestEvaluate(unittest.TestCase):
    def test_const_uses_storage_type(self) -> None:
        v = evaluate(Const(DType.U8, 3))
        self.assertEqual(v, 3)
        self.assertIsInstance(v, np.uint8)

    def test_reads_current_value(self) -> None:
        p = Param(np.float32, "gain", 0.5)
        e = p * 4.0
        self.assertEqual(evaluate(e), np.float32(2.0))
        p.set(1.0)
        self.assertEqual(evaluate(e), np.float32(4.0))

    def test_cast_truncates_and_wraps(self) -> None:
        self.assertEqual(evaluate(Cast(DType.I32, Const(DType.F32, -2.5))), -2)
        self.assertEqual(evaluate(Cast(DType.U8, Const(DType.I32, 300))), 44)

    def test_integer_arithmetic(self) -> None:
        n = Param(np.int32, "n", 7)
        self.assertEqual(evaluate(n / 2), 3)
        self.assertEqual(evaluate(n / 0), 0)
        self.assertEqual(evaluate(n - 10), -3)
        u = Param(np.uint8, "u", 250)
        self.assertEqual(evaluate(u + 10), 4)

    def test_float_division(self) -> None:
        x = Param(np.float64, "x", 1.0)
        np.testing.assert_allclose(evaluate(x / 4.0), 0.25)

    def test_errors(self) -> None:
        with self.assertRaises(ValueError):
            evaluate(UNDEF)
        with self.assertRaises(ValueError):
            evaluate(Variable(DType.I32, "free"))
        p = Param(np.int32, "n")
        with self.assertRaises(TypeError):
            evaluate(Variable(DType.F32, "n", p.param))


if __name__ == "__main__":
    unittest.main()
