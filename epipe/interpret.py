# filename: epipe/interpret.py

from __future__ import annotations

from typing import Any

import numpy as np

from .ir import BinOp, Cast, Const, DType, Undef, Variable, to_expr


def _cast_scalar(dtype: DType, v: Any) -> Any:
    out = np.asarray(v).astype(dtype.np_dtype)[()]
    if dtype.is_handle():
        return int(out)
    return out


def evaluate(expr: Any) -> Any:
    """
    Evaluate an expression against the current parameter values.

    Integer arithmetic wraps and integer division floors, as in generated code.
    Only meaningful when jitting: parameters read whatever was last `set`.
    """
    e = to_expr(expr)
    if isinstance(e, Undef):
        raise ValueError("cannot evaluate an undefined expression")
    if isinstance(e, Const):
        return _cast_scalar(e.dtype, e.value)
    if isinstance(e, Variable):
        if e.param is None:
            raise ValueError(f"variable {e.name!r} is not bound to a parameter")
        if e.param.dtype != e.dtype:
            raise TypeError(
                f"variable {e.name!r} dtype mismatch: {e.dtype.value} vs {e.param.dtype.value}"
            )
        return e.param.get_scalar()
    if isinstance(e, Cast):
        return _cast_scalar(e.dtype, evaluate(e.value))
    if isinstance(e, BinOp):
        return _eval_binop(e)
    raise TypeError(f"cannot evaluate {type(e).__name__}")


def _eval_binop(e: BinOp) -> Any:
    a = evaluate(e.a)
    b = evaluate(e.b)
    operand = e.a.dtype
    with np.errstate(all="ignore"):
        if e.op == "add":
            out = a + b
        elif e.op == "sub":
            out = a - b
        elif e.op == "mul":
            out = a * b
        elif e.op == "div":
            if operand.is_float():
                out = a / b
            elif b == 0:
                out = 0
            else:
                out = a // b
        elif e.op == "lt":
            return np.bool_(a < b)
        elif e.op == "le":
            return np.bool_(a <= b)
        elif e.op == "gt":
            return np.bool_(a > b)
        elif e.op == "ge":
            return np.bool_(a >= b)
        else:
            raise ValueError(f"unknown op: {e.op!r}")
    return _cast_scalar(e.dtype, out)
