from __future__ import annotations

from typing import Any

from .ir import Argument, BinOp, Cast, Expr, ExternArg, Variable, to_expr
from .param import _user_context_param
from .parameter import Parameter, scalar_argument


def _children(e: Expr) -> tuple[Expr, ...]:
    if isinstance(e, Cast):
        return (e.value,)
    if isinstance(e, BinOp):
        return (e.a, e.b)
    return ()


def collect_params(*exprs: Any) -> tuple[Parameter, ...]:
    """Parameters referenced by `exprs`, in first-use order, one per record."""
    seen: set[int] = set()
    out: list[Parameter] = []
    stack: list[Expr] = []
    for x in reversed(exprs):
        stack.append(x.expr if isinstance(x, ExternArg) else to_expr(x))
    while stack:
        e = stack.pop()
        if isinstance(e, Variable) and e.param is not None:
            if id(e.param) not in seen:
                seen.add(id(e.param))
                out.append(e.param)
            continue
        stack.extend(reversed(_children(e)))
    return tuple(out)


def infer_arguments(*exprs: Any) -> tuple[Argument, ...]:
    """Signature entries for the parameters `exprs` use, minus the user context."""
    context = _user_context_param()
    by_name: dict[str, Parameter] = {}
    args: list[Argument] = []
    for p in collect_params(*exprs):
        if p is context:
            continue
        if p.name in by_name:
            raise ValueError(f"two distinct parameters share the name {p.name!r}")
        by_name[p.name] = p
        args.append(scalar_argument(p))
    return tuple(args)
