# filename: epipe/param.py

from __future__ import annotations

import ctypes
import logging
import os
from typing import Any

from .errors import ReservedNameError
from .ir import Argument, BinOp, Cast, DType, Expr, ExternArg, Variable, to_expr, type_of
from .naming import make_entity_name
from .parameter import USER_CONTEXT_NAME, Parameter, scalar_argument

logger = logging.getLogger(__name__)

__all__ = ["Param", "USER_CONTEXT_NAME", "user_context_value"]

_UNSET = object()

_BOUND_CAST_POLICIES = ("always", "lossless")


def _bound_cast_policy() -> str:
    policy = os.environ.get("EPIPE_BOUND_CASTS", "always").lower()
    if policy not in _BOUND_CAST_POLICIES:
        raise ValueError(
            f"unsupported EPIPE_BOUND_CASTS: {policy!r} (expected 'always'|'lossless')"
        )
    return policy


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise ValueError(f"parameter name must be a non-empty str, got {name!r}")
    if name == USER_CONTEXT_NAME:
        raise ReservedNameError(
            name,
            f'Param(handle, "{USER_CONTEXT_NAME}") is no longer used to control whether '
            "compiled pipelines take an explicit user_context argument. "
            "Use set_custom_user_context() when jitting, or add the user_context "
            "feature to the target when compiling ahead of time.",
        )
    return name


def _split_args(
    dtype: DType, args: tuple[Any, ...]
) -> tuple[str | None, Any, tuple[Any, Any] | None]:
    n = len(args)
    if n == 0:
        return None, _UNSET, None
    if n == 1:
        if isinstance(args[0], str):
            return args[0], _UNSET, None
        # A lone value would be ambiguous with a handle's own value space.
        if dtype.is_handle():
            raise TypeError(
                "Param(handle, value) is not available for handle parameters; "
                "use Param(handle, name, value)"
            )
        return None, args[0], None
    if n == 2:
        if not isinstance(args[0], str):
            raise TypeError(
                f"Param(dtype, name, value) expects a str name, got {type(args[0])!r}"
            )
        return args[0], args[1], None
    if n == 3:
        if isinstance(args[0], str):
            raise TypeError("Param(dtype, name, value, min, max) requires both bounds")
        return None, args[0], (args[1], args[2])
    if n == 4:
        if not isinstance(args[0], str):
            raise TypeError(
                f"Param(dtype, name, value, min, max) expects a str name, got {type(args[0])!r}"
            )
        return args[0], args[1], (args[2], args[3])
    raise TypeError(f"Param() takes at most 5 positional arguments ({n + 1} given)")


class Param:
    """
    A scalar input to a pipeline.

    When jitting, bind it to a value with `set` before the pipeline runs. When
    compiling ahead of time, pass it in the argument list; `to_argument()`
    describes it in the function signature.

    Forms::

        Param(dtype)
        Param(dtype, name)
        Param(dtype, value)              # not for handle dtypes
        Param(dtype, name, value)
        Param(dtype, value, min, max)
        Param(dtype, name, value, min, max)
        Param(other)                     # shares other's state

    Copies share one underlying `Parameter`; `==` compares that identity.
    """

    __slots__ = ("_param",)

    def __init__(self, dtype: Any, *args: Any) -> None:
        if isinstance(dtype, Param):
            if args:
                raise TypeError("Param(other) takes no further arguments")
            self._param: Parameter = dtype._param
            return

        t = type_of(dtype)
        name, value, bounds = _split_args(t, args)
        if name is None:
            name = make_entity_name(self, f"Param<{t.value}>", "p")
            self._param = Parameter(t, False, 0, name, is_explicit_name=False)
        else:
            self._param = Parameter(t, False, 0, _check_name(name), is_explicit_name=True)
        # Bounds first: consumers may read them as soon as a value exists.
        if bounds is not None:
            self.set_range(*bounds)
        if value is not _UNSET:
            self.set(value)

    @property
    def name(self) -> str:
        return self._param.name

    @property
    def is_explicit_name(self) -> bool:
        return self._param.is_explicit_name

    @property
    def dtype(self) -> DType:
        return self._param.dtype

    @property
    def param(self) -> Parameter:
        return self._param

    def type(self) -> DType:
        """The fixed dtype of this parameter; same as `dtype`."""
        return self._param.dtype

    def get(self) -> Any:
        """Current value. Only meaningful when jitting."""
        return self._param.get_scalar()

    def set(self, value: Any) -> None:
        """Set the current value. Only meaningful when jitting."""
        self._param.set_scalar(value)

    def get_address(self) -> Any:
        """A ctypes pointer to the slot holding the current value."""
        return ctypes.cast(self._param.get_scalar_address(), ctypes.POINTER(self.dtype.ctype))

    def set_range(self, min_value: Any, max_value: Any) -> None:
        """Use None (or UNDEF) for an unbounded side."""
        self.set_min_value(min_value)
        self.set_max_value(max_value)

    def set_min_value(self, min_value: Any) -> None:
        self._param.set_min_value(self._coerce_bound(min_value, "min"))

    def set_max_value(self, max_value: Any) -> None:
        self._param.set_max_value(self._coerce_bound(max_value, "max"))

    def get_min_value(self) -> Expr:
        return self._param.get_min_value()

    def get_max_value(self) -> Expr:
        return self._param.get_max_value()

    def set_default_value(self, value: Any) -> None:
        self._param.set_default(value)

    def _coerce_bound(self, bound: Any, which: str) -> Expr:
        e = to_expr(bound)
        if not e.defined or e.dtype == self.dtype:
            return e
        if _bound_cast_policy() == "lossless" and not self.dtype.can_represent(e.dtype):
            raise TypeError(
                f"{which} bound of {self.name!r} has dtype {e.dtype.value}, which "
                f"{self.dtype.value} cannot represent (EPIPE_BOUND_CASTS=lossless)"
            )
        logger.debug(
            "casting %s bound of %r from %s to %s",
            which,
            self.name,
            e.dtype.value,
            self.dtype.value,
        )
        return Cast(self.dtype, e)

    def to_expr(self) -> Variable:
        return Variable(self.dtype, self.name, self._param)

    def to_extern_arg(self) -> ExternArg:
        return ExternArg(self.to_expr())

    def to_argument(self) -> Argument:
        return scalar_argument(self._param)

    def __copy__(self) -> "Param":
        return Param(self)

    def __deepcopy__(self, memo: dict[int, Any]) -> "Param":
        return Param(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Param):
            return NotImplemented
        return self._param is other._param

    def __hash__(self) -> int:
        return hash(id(self._param))

    def __repr__(self) -> str:
        return f"Param({self.dtype.value}, {self.name!r})"

    def __add__(self, other: Any) -> BinOp:
        return self.to_expr() + other

    def __radd__(self, other: Any) -> BinOp:
        return other + self.to_expr()

    def __sub__(self, other: Any) -> BinOp:
        return self.to_expr() - other

    def __rsub__(self, other: Any) -> BinOp:
        return other - self.to_expr()

    def __mul__(self, other: Any) -> BinOp:
        return self.to_expr() * other

    def __rmul__(self, other: Any) -> BinOp:
        return other * self.to_expr()

    def __truediv__(self, other: Any) -> BinOp:
        return self.to_expr() / other

    def __rtruediv__(self, other: Any) -> BinOp:
        return other / self.to_expr()

    def __lt__(self, other: Any) -> BinOp:
        return self.to_expr() < other

    def __le__(self, other: Any) -> BinOp:
        return self.to_expr() <= other

    def __gt__(self, other: Any) -> BinOp:
        return self.to_expr() > other

    def __ge__(self, other: Any) -> BinOp:
        return self.to_expr() >= other


_user_context: Parameter | None = None


def _user_context_param() -> Parameter:
    global _user_context
    if _user_context is None:
        _user_context = Parameter(
            DType.HANDLE, False, 0, USER_CONTEXT_NAME, is_explicit_name=True
        )
        logger.debug("created implicit %s parameter", USER_CONTEXT_NAME)
    return _user_context


def user_context_value() -> Variable:
    """
    The user context passed to a compiled pipeline, as an expression.

    Rarely needed directly; mostly useful to forward the context to an extern
    stage written in C.
    """
    p = _user_context_param()
    return Variable(DType.HANDLE, p.name, p)
