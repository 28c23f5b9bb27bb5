"""Sandbox - compiles foreign source into an isolated namespace.

Foreign objects are defined by module source executed here. Two modes:
- unrestricted: standard ``compile`` with full builtins
- restricted: RestrictedPython's AST transformer with guarded builtins

In both modes ``print`` is rebound so foreign output goes to a writer the
runtime chooses instead of the host's ``sys.stdout``.
"""

import builtins
import io
import operator
from typing import Any, Callable

from RestrictedPython import compile_restricted, safe_builtins
from RestrictedPython.Eval import default_guarded_getattr, default_guarded_getitem
from RestrictedPython.Guards import (
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
)

from capadapt.core.errors import ForeignRuntimeError


# Augmented assignments RestrictedPython routes through _inplacevar_
_INPLACE_OPERATORS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
}


class SandboxError(ForeignRuntimeError):
    """Raised when foreign source cannot be compiled or executed."""
    pass


class SecurityViolation(SandboxError):
    """Raised when foreign code attempts a forbidden operation."""
    pass


def _format_print(objects: tuple, kwargs: dict) -> str:
    buffer = io.StringIO()
    print(
        *objects,
        sep=kwargs.get("sep", " "),
        end=kwargs.get("end", "\n"),
        file=buffer,
    )
    return buffer.getvalue()


def _make_print_collector(write: Callable[[str], None]) -> type:
    """Build a RestrictedPython ``_print_`` factory bound to ``write``."""

    class SinkPrintCollector:
        def __init__(self, _getattr_=None):
            self._getattr_ = _getattr_

        def write(self, text):
            write(text)

        def __call__(self):
            # Output already left through the writer; nothing to collect
            return ""

        def _call_print(self, *objects, **kwargs):
            write(_format_print(objects, kwargs))

    return SinkPrintCollector


class Sandbox:
    """Compiles and executes foreign module source.

    Each ``create_namespace`` call yields a fresh global namespace; the
    runtime keeps one per object space.
    """

    # Modules that are safe to import inside restricted foreign code
    WHITELISTED_MODULES = {
        "json": __import__("json"),
        "re": __import__("re"),
        "math": __import__("math"),
        "datetime": __import__("datetime"),
    }

    # Builtins allowed in restricted mode
    SAFE_BUILTINS = {
        **safe_builtins,
        "len": len,
        "range": range,
        "enumerate": enumerate,
        "zip": zip,
        "map": map,
        "filter": filter,
        "sorted": sorted,
        "reversed": reversed,
        "list": list,
        "dict": dict,
        "set": set,
        "tuple": tuple,
        "str": str,
        "int": int,
        "float": float,
        "bool": bool,
        "abs": abs,
        "all": all,
        "any": any,
        "max": max,
        "min": min,
        "sum": sum,
        "round": round,
        "isinstance": isinstance,
        "hasattr": hasattr,
        "getattr": getattr,
    }

    @classmethod
    def _safe_import(cls, name, *args, **kwargs):
        """Safe import function that only allows whitelisted modules."""
        if name in cls.WHITELISTED_MODULES:
            return cls.WHITELISTED_MODULES[name]
        raise SecurityViolation(f"Module '{name}' is not allowed in the sandbox")

    def __init__(self, restricted: bool = False):
        self.restricted = restricted

    def compile(self, source_code: str, filename: str = "<foreign>") -> Any:
        """Compile source code.

        Args:
            source_code: Python source code to compile
            filename: Name for error messages

        Returns:
            Compiled code object
        """
        if not self.restricted:
            try:
                return compile(source_code, filename, "exec")
            except SyntaxError as e:
                raise SandboxError(f"Syntax error at line {e.lineno}: {e.msg}") from e

        try:
            result = compile_restricted(source_code, filename=filename, mode="exec")
        except SyntaxError as e:
            # Raised both for real syntax errors and for rejected constructs
            raise SandboxError(f"Compilation errors:\n{e}") from e

        if hasattr(result, "errors") and result.errors:
            errors = "\n".join(result.errors)
            raise SandboxError(f"Compilation errors:\n{errors}")
        if hasattr(result, "code"):
            return result.code
        return result

    def create_namespace(self, write: Callable[[str], None]) -> dict[str, Any]:
        """Create the global namespace foreign code runs in."""
        if not self.restricted:
            foreign_builtins = dict(vars(builtins))
            foreign_builtins["print"] = lambda *objects, **kwargs: write(_format_print(objects, kwargs))
            return {"__builtins__": foreign_builtins, "__name__": "foreign"}

        def _write_(obj):
            return obj

        def _inplacevar_(op, x, y):
            if op not in _INPLACE_OPERATORS:
                raise SecurityViolation(f"Operation '{op}' is not allowed")
            return _INPLACE_OPERATORS[op](x, y)

        namespace = {
            "__builtins__": {**self.SAFE_BUILTINS, "__import__": self._safe_import},
            "__name__": "foreign",
            "__metaclass__": type,
            "_getattr_": default_guarded_getattr,
            "_getitem_": default_guarded_getitem,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_unpack_sequence_": guarded_unpack_sequence,
            "_getiter_": iter,
            "_write_": _write_,
            "_inplacevar_": _inplacevar_,
            "_print_": _make_print_collector(write),
        }
        namespace.update(self.WHITELISTED_MODULES)
        return namespace

    def execute(self, source_code: str, namespace: dict[str, Any], filename: str = "<foreign>") -> None:
        """Execute module source into ``namespace``."""
        code = self.compile(source_code, filename)
        try:
            exec(code, namespace)
        except SandboxError:
            raise
        except Exception as e:
            raise SandboxError(f"Execution error: {type(e).__name__}: {e}") from e

    def validate_code(self, source_code: str) -> tuple[bool, list[str]]:
        """Validate code without executing it."""
        issues = []
        try:
            self.compile(source_code, "<validation>")
        except SandboxError as e:
            issues.append(e.message)
        return len(issues) == 0, issues
