# filename: epipe/parameter.py

from __future__ import annotations

import ctypes
import logging
from typing import Any

import numpy as np

from .ir import UNDEF, Argument, Const, DType, Expr, type_of
from .naming import make_entity_name

logger = logging.getLogger(__name__)

USER_CONTEXT_NAME = "__user_context"


def _to_storage(dtype: DType, value: Any) -> np.generic:
    if dtype.is_handle():
        if value is None:
            value = 0
        elif isinstance(value, ctypes.c_void_p):
            value = value.value or 0
        elif not isinstance(value, (int, np.integer)):
            raise TypeError(f"handle values must be ints or c_void_p, got {type(value)!r}")
    return np.array(value, dtype=dtype.np_dtype)[()]


class Parameter:
    """
    Shared state behind a declared scalar parameter.

    Every handle copy holds a reference to the same record, so a value or bound
    written through one handle is seen by all of them. `dtype` and `name` are
    fixed at construction.
    """

    __slots__ = (
        "_dtype",
        "_name",
        "_is_explicit_name",
        "_is_buffer",
        "_dimensions",
        "_slot",
        "_has_value",
        "_default",
        "_min_value",
        "_max_value",
        "__weakref__",
    )

    def __init__(
        self,
        dtype: Any,
        is_buffer: bool = False,
        dimensions: int = 0,
        name: str | None = None,
        is_explicit_name: bool = False,
    ) -> None:
        dtype = type_of(dtype)
        if is_buffer:
            raise ValueError("buffer parameters are not supported (scalar parameters only)")
        if dimensions != 0:
            raise ValueError(f"scalar parameters have 0 dimensions, got {dimensions!r}")
        if name is None:
            if is_explicit_name:
                raise ValueError("is_explicit_name=True requires a name")
            name = make_entity_name(self, f"Parameter<{dtype.value}>", "p")
        elif not isinstance(name, str) or not name:
            raise ValueError(f"parameter name must be a non-empty str, got {name!r}")

        self._dtype = dtype
        self._name = name
        self._is_explicit_name = bool(is_explicit_name)
        self._is_buffer = False
        self._dimensions = 0
        # 0-d array: its data pointer stays put for the record's lifetime.
        self._slot = np.zeros((), dtype=dtype.np_dtype)
        self._has_value = False
        self._default: np.generic | None = None
        self._min_value: Expr = UNDEF
        self._max_value: Expr = UNDEF
        logger.debug(
            "created %s parameter %r (explicit_name=%s)",
            dtype.value,
            name,
            self._is_explicit_name,
        )

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_explicit_name(self) -> bool:
        return self._is_explicit_name

    @property
    def is_buffer(self) -> bool:
        return self._is_buffer

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def has_value(self) -> bool:
        return self._has_value

    def same_as(self, other: Any) -> bool:
        return self is other

    def set_scalar(self, value: Any) -> None:
        self._slot[()] = _to_storage(self._dtype, value)
        self._has_value = True

    def get_scalar(self) -> Any:
        """Current value; only meaningful when the pipeline is run directly."""
        v = self._slot[()]
        if self._dtype.is_handle():
            return int(v)
        return v

    def scalar_slot(self) -> np.ndarray:
        return self._slot

    def get_scalar_address(self) -> int:
        return int(self._slot.ctypes.data)

    def set_min_value(self, e: Expr) -> None:
        self._min_value = e

    def set_max_value(self, e: Expr) -> None:
        self._max_value = e

    def get_min_value(self) -> Expr:
        return self._min_value

    def get_max_value(self) -> Expr:
        return self._max_value

    def set_default(self, value: Any) -> None:
        self._default = _to_storage(self._dtype, value)

    def get_default(self) -> Any:
        return self._default

    def get_scalar_expr(self) -> Expr:
        """The default value as a literal, or UNDEF if none was set."""
        if self._default is None:
            return UNDEF
        return Const(self._dtype, self._default.item())

    def __repr__(self) -> str:
        return f"Parameter({self._dtype.value}, {self._name!r})"


def scalar_argument(param: Parameter) -> Argument:
    return Argument(
        param.name,
        "input_scalar",
        param.dtype,
        0,
        param.get_scalar_expr(),
        param.get_min_value(),
        param.get_max_value(),
    )
