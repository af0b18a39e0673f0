"""
Sandboxed interpreter for strategy scripts.

Scripts are a restricted Python subset compiled with RestrictedPython. The
policy rejects names starting with an underscore, imports, exec/eval and
attribute writes on arbitrary objects; every attribute read, item read and
iteration goes through the guards installed here.

Augmented assignment to an item or attribute (``state["n"] += 1``) is
rewritten to a guarded read, ``_inplacevar_`` and a guarded write. The
target expression is evaluated twice, so targets containing calls are
rejected with a hint to spell the assignment out.
"""

import ast
import copy
import operator
from dataclasses import dataclass
from types import CodeType
from typing import Any, Callable, Dict, Optional

from RestrictedPython import RestrictingNodeTransformer, compile_restricted, safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.transformer import IOPERATOR_TO_STR
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

# Python builtins scripts may use on top of RestrictedPython's safe set
EXTRA_BUILTINS = {
    "min": min,
    "max": max,
    "sum": sum,
    "any": any,
    "all": all,
    "enumerate": enumerate,
    "reversed": reversed,
    "list": list,
    "dict": dict,
    "set": set,
    "map": map,
    "filter": filter,
}

_INPLACE_OPS = {
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


def _inplacevar(op: str, target: Any, value: Any) -> Any:
    try:
        fn = _INPLACE_OPS[op]
    except KeyError:
        raise SyntaxError(f"unsupported augmented assignment {op}")
    return fn(target, value)


def _apply(fn: Callable, *args, **kwargs) -> Any:
    return fn(*args, **kwargs)


class _PrintRouter:
    """Receives script print() calls and forwards them to a write callable."""

    def __init__(self, write: Callable[..., None], _getattr_=None):
        self._write = write

    def _call_print(self, *objects, **kwargs):
        self._write(*objects, sep=kwargs.get("sep"))

    def __call__(self) -> str:
        return ""


def _discard(*args, **kwargs) -> None:
    return None


def _has_side_effects(node: ast.AST) -> bool:
    return any(
        isinstance(child, (ast.Call, ast.NamedExpr, ast.Yield, ast.YieldFrom, ast.Await))
        for child in ast.walk(node)
    )


class StrategyPolicy(RestrictingNodeTransformer):
    """
    RestrictedPython policy for strategy scripts.

    Identical to the default policy except that ``x[k] op= v`` and
    ``x.a op= v`` compile to ``x[k] = _inplacevar_(op, x[k], v)`` with the
    usual read and write guards around ``x[k]``.
    """

    def visit_AugAssign(self, node: ast.AugAssign) -> ast.AST:
        target = node.target
        if not isinstance(target, (ast.Subscript, ast.Attribute)):
            return super().visit_AugAssign(node)

        if _has_side_effects(target):
            op = IOPERATOR_TO_STR[type(node.op)]
            self.error(
                node,
                f"Augmented assignment to an item or attribute whose target calls a "
                f"function is not allowed. Spell it out, e.g. "
                f"state['n'] = state['n'] {op[:-1]} 1",
            )
            return node

        load_target = copy.deepcopy(target)
        load_target.ctx = ast.Load()
        store_target = copy.deepcopy(target)
        store_target.ctx = ast.Store()

        new_node = ast.Assign(
            targets=[self.visit(store_target)],
            value=ast.Call(
                func=ast.Name("_inplacevar_", ast.Load()),
                args=[
                    ast.Constant(IOPERATOR_TO_STR[type(node.op)]),
                    self.visit(load_target),
                    self.visit(node.value),
                ],
                keywords=[],
            ),
        )
        ast.copy_location(new_node, node)
        return ast.fix_missing_locations(new_node)


@dataclass(frozen=True)
class Program:
    """Compiled strategy script."""
    name: str
    code: CodeType
    filename: str


class Sandbox:
    """
    Compile and run strategy scripts under the RestrictedPython policy.

    ``load`` compiles source to a Program, ``execute`` runs a Program's
    module body against a globals mapping and returns the resulting
    bindings, ``call`` invokes a function the script defined.
    """

    def load(self, name: str, source: str, filename: Optional[str] = None) -> Program:
        """
        Compile a script.

        Raises:
            SyntaxError: If the source is invalid or violates the policy
        """
        filename = filename or f"<{name}>"
        code = compile_restricted(source, filename=filename, mode="exec", policy=StrategyPolicy)
        return Program(name=name, code=code, filename=filename)

    def build_globals(self, names: Dict[str, Any]) -> Dict[str, Any]:
        """
        Globals for one execution.

        ``names`` carries a ``__builtins__`` mapping with the script builtins
        plus the bound data names; the guard functions are added here.
        """
        script_builtins = dict(names.get("__builtins__", {}))
        builtins = dict(safe_builtins)
        builtins.update(EXTRA_BUILTINS)
        builtins.update(script_builtins)

        write = script_builtins.get("print", _discard)

        glb = {k: v for k, v in names.items() if k != "__builtins__"}
        glb.update({
            "__builtins__": builtins,
            "__name__": "strategy",
            "_getattr_": safer_getattr,
            "_getitem_": default_guarded_getitem,
            "_getiter_": default_guarded_getiter,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_unpack_sequence_": guarded_unpack_sequence,
            "_write_": full_write_guard,
            "_inplacevar_": _inplacevar,
            "_apply_": _apply,
            "_print_": lambda _getattr_=None: _PrintRouter(write, _getattr_),
        })
        return glb

    def execute(self, program: Program, names: Dict[str, Any]) -> Dict[str, Any]:
        """Run the module body; returns the globals after execution."""
        glb = self.build_globals(names)
        exec(program.code, glb)
        return glb

    def call(self, fn: Callable, *args) -> Any:
        """Invoke a script-defined function."""
        return fn(*args)
