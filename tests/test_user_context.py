from __future__ import annotations

import unittest

import numpy as np

import epipe
from epipe import DType, Param, Variable, user_context_value


class TestUserContext(unittest.TestCase):
    def test_value_is_handle_variable(self) -> None:
        e = user_context_value()
        self.assertIsInstance(e, Variable)
        self.assertEqual(e.dtype, DType.HANDLE)
        self.assertEqual(e.name, "__user_context")
        self.assertTrue(e.param.is_explicit_name)

    def test_single_record(self) -> None:
        a = user_context_value()
        b = user_context_value()
        self.assertEqual(a, b)
        self.assertIs(a.param, b.param)

    def test_not_declarable(self) -> None:
        with self.assertRaises(epipe.ReservedNameError):
            Param(DType.HANDLE, epipe.USER_CONTEXT_NAME)

    def test_omitted_from_inferred_arguments(self) -> None:
        n = Param(np.int32, "n")
        args = epipe.infer_arguments(n, epipe.ExternArg(user_context_value()))
        self.assertEqual([a.name for a in args], ["n"])

    def test_only_the_implicit_record_is_omitted(self) -> None:
        lookalike = epipe.Parameter(DType.HANDLE, name=epipe.USER_CONTEXT_NAME)
        var = Variable(DType.HANDLE, lookalike.name, lookalike)
        args = epipe.infer_arguments(var, user_context_value())
        self.assertEqual(len(args), 1)
        self.assertEqual(args[0].name, epipe.USER_CONTEXT_NAME)
        self.assertEqual(args[0].dtype, DType.HANDLE)
        self.assertEqual(epipe.collect_params(var), (lookalike,))


if __name__ == "__main__":
    unittest.main()
