# filename: epipe/__init__.py

from __future__ import annotations

from .analysis import collect_params, infer_arguments
from .errors import ReservedNameError
from .interpret import evaluate
from .ir import (
    UNDEF,
    Argument,
    BinOp,
    Cast,
    Const,
    DType,
    Expr,
    ExternArg,
    Undef,
    Variable,
    to_expr,
    type_of,
    validate_arguments,
)
from .param import USER_CONTEXT_NAME, Param, user_context_value
from .parameter import Parameter

__all__ = [
    "Argument",
    "BinOp",
    "Cast",
    "Const",
    "DType",
    "Expr",
    "ExternArg",
    "Param",
    "Parameter",
    "ReservedNameError",
    "UNDEF",
    "USER_CONTEXT_NAME",
    "Undef",
    "Variable",
    "collect_params",
    "evaluate",
    "infer_arguments",
    "to_expr",
    "type_of",
    "user_context_value",
    "validate_arguments",
]
