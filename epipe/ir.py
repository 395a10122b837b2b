# filename: epipe/ir.py

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Literal, TypeAlias

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .parameter import Parameter


class DType(str, Enum):
    BOOL = "bool"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    F16 = "f16"
    F32 = "f32"
    F64 = "f64"
    HANDLE = "handle"

    @property
    def np_dtype(self) -> np.dtype:
        """Storage type of a scalar slot holding this dtype."""
        return _NUMPY_DTYPES[self]

    @property
    def ctype(self) -> Any:
        return _CTYPES[self]

    @property
    def bits(self) -> int:
        if self == DType.BOOL:
            return 1
        return int(self.np_dtype.itemsize) * 8

    def is_bool(self) -> bool:
        return self == DType.BOOL

    def is_int(self) -> bool:
        return self in (DType.I8, DType.I16, DType.I32, DType.I64)

    def is_uint(self) -> bool:
        return self in (DType.U8, DType.U16, DType.U32, DType.U64)

    def is_float(self) -> bool:
        return self in (DType.F16, DType.F32, DType.F64)

    def is_handle(self) -> bool:
        return self == DType.HANDLE

    def can_represent(self, other: DType) -> bool:
        """True iff every value of `other` survives a cast to this dtype."""
        if self == other:
            return True
        if self.is_handle() or other.is_handle():
            return False
        if other.is_bool():
            return True
        if self.is_bool():
            return False
        if self.is_float():
            if other.is_float():
                return other.bits <= self.bits
            return other.bits <= _FLOAT_PRECISION[self]
        if other.is_float():
            return False
        if self.is_int():
            return other.bits < self.bits if other.is_uint() else other.bits <= self.bits
        return other.is_uint() and other.bits <= self.bits


_NUMPY_DTYPES: dict[DType, np.dtype] = {
    DType.BOOL: np.dtype(np.bool_),
    DType.I8: np.dtype(np.int8),
    DType.I16: np.dtype(np.int16),
    DType.I32: np.dtype(np.int32),
    DType.I64: np.dtype(np.int64),
    DType.U8: np.dtype(np.uint8),
    DType.U16: np.dtype(np.uint16),
    DType.U32: np.dtype(np.uint32),
    DType.U64: np.dtype(np.uint64),
    DType.F16: np.dtype(np.float16),
    DType.F32: np.dtype(np.float32),
    DType.F64: np.dtype(np.float64),
    DType.HANDLE: np.dtype(np.uintp),
}

# ctypes has no half type; f16 slots are addressed as their raw bits.
_CTYPES: dict[DType, Any] = {
    DType.BOOL: ctypes.c_bool,
    DType.I8: ctypes.c_int8,
    DType.I16: ctypes.c_int16,
    DType.I32: ctypes.c_int32,
    DType.I64: ctypes.c_int64,
    DType.U8: ctypes.c_uint8,
    DType.U16: ctypes.c_uint16,
    DType.U32: ctypes.c_uint32,
    DType.U64: ctypes.c_uint64,
    DType.F16: ctypes.c_uint16,
    DType.F32: ctypes.c_float,
    DType.F64: ctypes.c_double,
    DType.HANDLE: ctypes.c_void_p,
}

_FLOAT_PRECISION: dict[DType, int] = {DType.F16: 11, DType.F32: 24, DType.F64: 53}

_FROM_NUMPY: dict[np.dtype, DType] = {
    dt: tag for tag, dt in _NUMPY_DTYPES.items() if tag != DType.HANDLE
}


_BUILTIN_NAMES: dict[str, DType] = {"bool": DType.BOOL, "int": DType.I32, "float": DType.F32}


def type_of(t: Any) -> DType:
    """Map a type-like value (DType, name, numpy/builtin type) to its DType."""
    if isinstance(t, DType):
        return t
    if t is None:
        raise TypeError("unsupported scalar type: None")
    if t is bool:
        return DType.BOOL
    if t is int:
        return DType.I32
    if t is float:
        return DType.F32
    if t is ctypes.c_void_p:
        return DType.HANDLE
    if isinstance(t, str):
        name = t.lower()
        # Builtin names map like the builtins themselves, not like numpy.
        if name in _BUILTIN_NAMES:
            return _BUILTIN_NAMES[name]
        try:
            return DType(name)
        except ValueError:
            pass
    try:
        dt = np.dtype(t)
    except TypeError:
        dt = None
    if dt is not None and dt in _FROM_NUMPY:
        return _FROM_NUMPY[dt]
    raise TypeError(f"unsupported scalar type: {t!r}")


def _literal_dtype(v: Any) -> DType:
    if isinstance(v, (bool, np.bool_)):
        return DType.BOOL
    if isinstance(v, np.generic):
        return type_of(v.dtype)
    if isinstance(v, int):
        # Integers outside the i32 range widen to i64 rather than wrap.
        info = np.iinfo(np.int32)
        return DType.I32 if info.min <= v <= info.max else DType.I64
    if isinstance(v, float):
        return DType.F32
    raise TypeError(f"unsupported literal: {type(v)!r}")


BinOpKind: TypeAlias = Literal["add", "sub", "mul", "div", "lt", "le", "gt", "ge"]

_COMPARISONS = frozenset({"lt", "le", "gt", "ge"})


@dataclass(frozen=True, slots=True)
class Expr:
    @property
    def defined(self) -> bool:
        return True

    def __add__(self, other: Any) -> "BinOp":
        return _binop("add", self, other)

    def __radd__(self, other: Any) -> "BinOp":
        return _binop("add", other, self)

    def __sub__(self, other: Any) -> "BinOp":
        return _binop("sub", self, other)

    def __rsub__(self, other: Any) -> "BinOp":
        return _binop("sub", other, self)

    def __mul__(self, other: Any) -> "BinOp":
        return _binop("mul", self, other)

    def __rmul__(self, other: Any) -> "BinOp":
        return _binop("mul", other, self)

    def __truediv__(self, other: Any) -> "BinOp":
        return _binop("div", self, other)

    def __rtruediv__(self, other: Any) -> "BinOp":
        return _binop("div", other, self)

    def __lt__(self, other: Any) -> "BinOp":
        return _binop("lt", self, other)

    def __le__(self, other: Any) -> "BinOp":
        return _binop("le", self, other)

    def __gt__(self, other: Any) -> "BinOp":
        return _binop("gt", self, other)

    def __ge__(self, other: Any) -> "BinOp":
        return _binop("ge", self, other)


@dataclass(frozen=True, slots=True)
class Undef(Expr):
    dtype: DType | None = None

    @property
    def defined(self) -> bool:
        return False


UNDEF = Undef()


@dataclass(frozen=True, slots=True)
class Const(Expr):
    dtype: DType
    value: Any


@dataclass(frozen=True, slots=True)
class Variable(Expr):
    dtype: DType
    name: str
    param: Parameter | None = None


@dataclass(frozen=True, slots=True)
class Cast(Expr):
    dtype: DType
    value: Expr


@dataclass(frozen=True, slots=True)
class BinOp(Expr):
    dtype: DType
    op: BinOpKind
    a: Expr
    b: Expr


def _is_expr_like(x: Any) -> bool:
    return isinstance(x, Expr) or callable(getattr(x, "to_expr", None))


def to_expr(x: Any) -> Expr:
    if isinstance(x, Expr):
        return x
    if x is None:
        return UNDEF
    conv = getattr(x, "to_expr", None)
    if callable(conv):
        out = conv()
        if not isinstance(out, Expr):
            raise TypeError(f"{type(x).__name__}.to_expr() must return an Expr, got {type(out)!r}")
        return out
    return _const(_literal_dtype(x), x)


def _const(dtype: DType, v: Any) -> Const:
    """A literal converted to `dtype`; refuses values the dtype cannot hold."""
    if dtype.is_handle():
        raise TypeError(f"literal {v!r} cannot be a handle operand")
    if dtype.is_bool() and not isinstance(v, (bool, np.bool_)):
        raise TypeError(f"literal {v!r} cannot be a bool operand")
    if isinstance(v, (float, np.floating)) and not dtype.is_float():
        raise TypeError(f"float literal {v!r} cannot be an {dtype.value} operand")
    if dtype.is_int() or dtype.is_uint():
        info = np.iinfo(dtype.np_dtype)
        if not info.min <= int(v) <= info.max:
            raise TypeError(f"literal {v!r} does not fit {dtype.value}")
    return Const(dtype, np.array(v, dtype=dtype.np_dtype)[()].item())


def _literal(v: Any, dtype: DType | None) -> Const:
    _literal_dtype(v)
    if dtype is None:
        raise ValueError("cannot infer a literal type from an undefined expression")
    return _const(dtype, v)


def _binop(op: BinOpKind, a: Any, b: Any) -> BinOp:
    if _is_expr_like(a):
        av = to_expr(a)
        bv = to_expr(b) if _is_expr_like(b) else _literal(b, av.dtype)
    else:
        bv = to_expr(b)
        av = _literal(a, bv.dtype)
    if not av.defined or not bv.defined:
        raise ValueError(f"{op} of an undefined expression")
    if av.dtype != bv.dtype:
        raise TypeError(f"{op} dtype mismatch: {av.dtype.value} vs {bv.dtype.value}")
    if av.dtype.is_handle():
        raise TypeError(f"{op} does not accept handle operands")
    out = DType.BOOL if op in _COMPARISONS else av.dtype
    return BinOp(out, op, av, bv)


@dataclass(frozen=True, slots=True)
class ExternArg:
    """An argument to an extern (foreign) stage; scalars pass as expressions."""

    expr: Expr

    @property
    def defined(self) -> bool:
        return self.expr.defined


ArgKind: TypeAlias = Literal["input_scalar", "input_buffer", "output_buffer"]


@dataclass(frozen=True, slots=True)
class Argument:
    name: str
    kind: ArgKind
    dtype: DType
    dimensions: int = 0
    default: Expr = UNDEF
    min_value: Expr = UNDEF
    max_value: Expr = UNDEF

    def is_scalar(self) -> bool:
        return self.kind == "input_scalar"

    def is_buffer(self) -> bool:
        return self.kind in ("input_buffer", "output_buffer")

    def is_input(self) -> bool:
        return self.kind in ("input_scalar", "input_buffer")


def validate_arguments(args: Iterable[Argument]) -> None:
    seen: set[str] = set()

    def require(cond: bool, msg: str) -> None:
        if not cond:
            raise ValueError(f"invalid signature: {msg}")

    for arg in args:
        require(isinstance(arg, Argument), f"expected an Argument, got {type(arg)!r}")
        require(bool(arg.name), "argument name must be non-empty")
        require(arg.name not in seen, f"duplicate argument name: {arg.name!r}")
        seen.add(arg.name)
        require(
            arg.kind in ("input_scalar", "input_buffer", "output_buffer"),
            f"unknown argument kind for {arg.name!r}: {arg.kind!r}",
        )
        require(isinstance(arg.dtype, DType), f"invalid dtype for {arg.name!r}: {arg.dtype!r}")
        if arg.is_scalar():
            require(arg.dimensions == 0, f"scalar {arg.name!r} must have 0 dimensions")
        else:
            require(arg.dimensions > 0, f"buffer {arg.name!r} must have >= 1 dimension")
        for what, e in (("default", arg.default), ("min", arg.min_value), ("max", arg.max_value)):
            if not e.defined:
                continue
            require(arg.is_scalar(), f"buffer {arg.name!r} cannot carry a {what} value")
            require(
                e.dtype == arg.dtype,
                f"{what} of {arg.name!r} has dtype {e.dtype.value}, expected {arg.dtype.value}",
            )
