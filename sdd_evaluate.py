#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Static evaluation of JavaScript and TypeScript modules that export default values.

Defaults objects and configuration files are ordinary JS/TS modules. Rather than executing them, this module parses them
with Tree-sitter and folds the literal parts of their exports into Python values: objects become dicts, arrays become
lists, and strings, numbers, booleans and `null` map across directly. Whatever cannot be folded statically (a function,
a call, an unresolved identifier) becomes a `JsExpression` holding its source text.

# Highlights of Internal Workings

1. **Tree-sitter Setup**: The JavaScript, TypeScript and TSX grammars are loaded on first use, handling different
   `tree_sitter` API versions.
2. **Bindings**: Top-level `const`, `let` and `var` declarators (exported or not) are recorded by name and evaluated
   lazily, so exports may refer to bindings declared further down. A binding that refers back to itself evaluates to a
   `JsExpression` instead of recursing.
3. **Exports**: ES module exports (`export const`, `export { a as b }`, `export default`) and CommonJS assignments
   (`module.exports = ...`, `module.exports.x = ...`, `exports.x = ...`) are collected into a single dict. The
   CommonJS `module.exports` object doubles as the default export.
4. **Expressions**: Literals, object and array spreads, member access, `Object.freeze(...)`, unary and arithmetic
   operators and template strings are folded. TypeScript `as`, `satisfies`, `!` and `<T>` wrappers are transparent.
"""

from __future__ import annotations

from sdd_literal import format_literal
from sdd_log import warn
from tree_sitter import Language, Parser
from typing import Any, Dict, List, Optional, Set, Tuple
import math
import re
import tree_sitter_javascript
import tree_sitter_typescript


# ---- Tree-sitter setup ------------------------------------------------------


_GRAMMARS = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}

_PARSERS: Dict[str, Parser] = {}


def _load_language_and_parser(name: str) -> Tuple[Language, Parser]:
    """
    Load a grammar and a parser for it.

    Parameters:
    - `name`: One of "javascript", "typescript" or "tsx".

    Returns:
    - A tuple containing the loaded `Language` instance and the initialised `Parser` instance.
    """

    ptr_or_lang: Any = _GRAMMARS[name]()

    # Wrap capsule -> Language, or accept Language directly.
    lang = ptr_or_lang if isinstance(ptr_or_lang, Language) else Language(ptr_or_lang)

    try:
        p = Parser()
        p.set_language(lang)
    except AttributeError:
        p = Parser(lang)

    return lang, p


def _parser_for(name: str) -> Parser:
    if name not in _PARSERS:
        _PARSERS[name] = _load_language_and_parser(name)[1]
    return _PARSERS[name]


def language_for_path(path: str) -> str:
    """Return the grammar name used for a module file, judged by its extension."""

    lower = path.lower()
    if lower.endswith(".tsx"):
        return "tsx"
    if lower.endswith((".ts", ".mts", ".cts")):
        return "typescript"
    return "javascript"


# ---- Values -----------------------------------------------------------------


class JsExpression:
    """
    An expression that could not be reduced to plain data.

    `str()` returns the expression's source text with runs of whitespace collapsed, which is what ends up in a
    documentation comment if such a value is used as a default.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def __str__(self) -> str:
        return " ".join(self.source.split())

    def __repr__(self) -> str:
        return f"JsExpression({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, JsExpression) and other.source == self.source

    def __hash__(self) -> int:
        return hash(self.source)


_ESCAPE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    # Line continuations
    "\n": "",
    "\r": "",
    "\r\n": "",
    "\u2028": "",
    "\u2029": "",
}


def unescape_js(body: str) -> str:
    """
    Decode the escape sequences of a JavaScript string literal body.

    Handles the single-character escapes, `\\xHH`, `\\uHHHH`, `\\u{H...}` and line continuations. Any other escaped
    character stands for itself. Surrogate pairs written as two `\\u` escapes are merged into one code point.

    Parameters:
    - `body`: The literal's text without its quotes.

    Returns:
    - The decoded string.
    """

    def repl(m: re.Match) -> str:
        e = m.group(1)
        if e.startswith("u{"):
            return chr(int(e[2:-1], 16))
        if e[0] in "ux" and len(e) > 1:
            return chr(int(e[1:], 16))
        return _SIMPLE_ESCAPES.get(e, e)

    out = _ESCAPE.sub(repl, body)
    try:
        return out.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeDecodeError:
        return out


_LEGACY_OCTAL = re.compile(r"0[0-7]+")
_LEADING_ZERO = re.compile(r"0\d+")


def parse_js_number(text: str) -> Any:
    """
    Convert a JavaScript numeric literal to an `int` or `float`.

    Accepts decimal, exponent, hex (`0x`), octal (`0o` and legacy `017`), binary (`0b`), numeric separators and BigInt
    (`10n`) forms.
    """

    t = text.replace("_", "")
    if t.endswith("n"):
        return int(t[:-1], 0)
    if t[:2].lower() in ("0x", "0o", "0b"):
        return int(t, 0)
    if _LEGACY_OCTAL.fullmatch(t):
        return int(t, 8)
    if _LEADING_ZERO.fullmatch(t):
        return int(t, 10)
    if "." not in t and "e" not in t.lower():
        return int(t)
    return float(t)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _to_js_string(v: Any) -> Optional[str]:
    """String conversion as JavaScript's `String(v)` would do it, for primitive values only."""

    if isinstance(v, str):
        return v
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "true" if v else "false"
    if _is_number(v):
        return format_literal(v)
    return None


def _arith(op: str, a: Any, b: Any) -> Any:
    """Apply a JavaScript arithmetic operator to two numbers; `None` when the operator is not supported."""

    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "**":
        try:
            result = a ** b
        except (OverflowError, ZeroDivisionError):
            return math.inf
        return math.nan if isinstance(result, complex) else result
    if op == "/":
        if b == 0:
            if a == 0 or (isinstance(a, float) and math.isnan(a)):
                return math.nan
            return math.inf if (a > 0) == (math.copysign(1.0, b) > 0) else -math.inf
        return a / b
    if op == "%":
        if b == 0:
            return math.nan
        r = math.fmod(a, b)
        return int(r) if isinstance(a, int) and isinstance(b, int) else r
    return None


# ---- Evaluator --------------------------------------------------------------


_DECLARATION_TYPES = ("lexical_declaration", "variable_declaration")
_TRANSPARENT_TS = ("as_expression", "satisfies_expression", "non_null_expression")


class _ModuleEvaluator:
    """
    Folds one parsed module into Python values.

    Attributes:
        src (bytes): The module source as UTF-8 bytes; Tree-sitter offsets are byte offsets into it.
        bindings (Dict[str, Any]): Top-level binding name to the node of its initialiser.
        values (Dict[str, Any]): Memoised binding values.
        resolving (Set[str]): Bindings currently being evaluated, to break reference cycles.
    """

    def __init__(self, src: bytes, root) -> None:
        self.src = src
        self.root = root
        self.bindings: Dict[str, Any] = {}
        self.values: Dict[str, Any] = {}
        self.resolving: Set[str] = set()

        for stmt in self._children(root):
            decl = stmt
            if stmt.type == "export_statement":
                decl = stmt.child_by_field_name("declaration")
            if decl is not None and decl.type in _DECLARATION_TYPES:
                for name, value in self._declarators(decl):
                    self.bindings.setdefault(name, value)

    # ---- Node helpers ----

    def text(self, n) -> str:
        return self.src[n.start_byte:n.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _children(n) -> List[Any]:
        return [c for c in n.named_children if c.type != "comment"]

    def _declarators(self, decl) -> List[Tuple[str, Any]]:
        out = []
        for d in self._children(decl):
            if d.type != "variable_declarator":
                continue
            name = d.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                out.append((self.text(name), d.child_by_field_name("value")))
        return out

    # ---- Bindings ----

    def lookup(self, name: str, n=None) -> Any:
        """
        Return the value of a top-level binding.

        Well-known globals (`undefined`, `NaN`, `Infinity`) are recognised. Unknown names, and bindings that refer back
        to themselves, become a `JsExpression`.
        """

        if name in self.values:
            return self.values[name]
        if name not in self.bindings or name in self.resolving:
            if name == "NaN":
                return math.nan
            if name == "Infinity":
                return math.inf
            return JsExpression(self.text(n) if n is not None else name)

        value_node = self.bindings[name]
        if value_node is None:
            return JsExpression("undefined")

        self.resolving.add(name)
        try:
            value = self.evaluate(value_node)
        finally:
            self.resolving.discard(name)
        self.values[name] = value
        return value

    # ---- Expressions ----

    def evaluate(self, n) -> Any:
        """
        Evaluate an expression node.

        Parameters:
        - `n`: A Tree-sitter expression node.

        Returns:
        - A dict, list, str, int, float, bool or `None`, or a `JsExpression` for anything that is not plain data.
        """

        t = n.type

        if t == "object":
            return self._object(n)
        if t == "array":
            return self._array(n)
        if t == "string":
            return unescape_js(self.text(n)[1:-1])
        if t == "template_string":
            return self._template(n)
        if t == "number":
            try:
                return parse_js_number(self.text(n))
            except ValueError:
                return JsExpression(self.text(n))
        if t == "true":
            return True
        if t == "false":
            return False
        if t == "null":
            return None
        if t == "undefined":
            return JsExpression("undefined")
        if t == "identifier":
            return self.lookup(self.text(n), n)
        if t == "parenthesized_expression":
            inner = self._children(n)
            return self.evaluate(inner[-1]) if inner else JsExpression(self.text(n))
        if t in _TRANSPARENT_TS:
            inner = self._children(n)
            return self.evaluate(inner[0]) if inner else JsExpression(self.text(n))
        if t == "type_assertion":
            inner = self._children(n)
            return self.evaluate(inner[-1]) if inner else JsExpression(self.text(n))
        if t == "member_expression":
            return self._member(n)
        if t == "subscript_expression":
            return self._subscript(n)
        if t == "unary_expression":
            return self._unary(n)
        if t == "binary_expression":
            return self._binary(n)
        if t == "call_expression":
            return self._call(n)

        return JsExpression(self.text(n))

    def _object(self, n) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for c in self._children(n):
            if c.type == "pair":
                key = self._key(c.child_by_field_name("key"))
                value_node = c.child_by_field_name("value")
                out[key] = self.evaluate(value_node) if value_node is not None else None
            elif c.type == "shorthand_property_identifier":
                name = self.text(c)
                out[name] = self.lookup(name, c)
            elif c.type == "spread_element":
                inner = self._children(c)
                spread = self.evaluate(inner[0]) if inner else None
                if isinstance(spread, dict):
                    out.update(spread)
            elif c.type == "method_definition":
                name = c.child_by_field_name("name")
                out[self._key(name) if name is not None else self.text(c)] = JsExpression(self.text(c))
        return out

    def _key(self, k) -> str:
        if k is None:
            return ""
        if k.type == "string":
            return unescape_js(self.text(k)[1:-1])
        if k.type == "number":
            return _to_js_string(parse_js_number(self.text(k))) or self.text(k)
        if k.type == "computed_property_name":
            inner = self._children(k)
            value = self.evaluate(inner[0]) if inner else None
            s = _to_js_string(value)
            return s if s is not None else str(value)
        return self.text(k)

    def _array(self, n) -> List[Any]:
        out: List[Any] = []
        for c in self._children(n):
            if c.type == "spread_element":
                inner = self._children(c)
                spread = self.evaluate(inner[0]) if inner else None
                if isinstance(spread, (list, str)):
                    out.extend(spread)
                else:
                    out.append(JsExpression(self.text(c)))
            else:
                out.append(self.evaluate(c))
        return out

    def _template(self, n) -> Any:
        parts: List[str] = []
        pos = n.start_byte + 1
        for c in n.named_children:
            if c.type != "template_substitution":
                continue
            parts.append(unescape_js(self.src[pos:c.start_byte].decode("utf-8", errors="replace")))
            inner = self._children(c)
            s = _to_js_string(self.evaluate(inner[0])) if inner else None
            if s is None:
                return JsExpression(self.text(n))
            parts.append(s)
            pos = c.end_byte
        parts.append(unescape_js(self.src[pos:n.end_byte - 1].decode("utf-8", errors="replace")))
        return "".join(parts)

    def _member(self, n) -> Any:
        obj_node = n.child_by_field_name("object")
        prop_node = n.child_by_field_name("property")
        if obj_node is None or prop_node is None:
            return JsExpression(self.text(n))

        obj = self.evaluate(obj_node)
        prop = self.text(prop_node)
        if isinstance(obj, dict) and prop in obj:
            return obj[prop]
        if isinstance(obj, (list, str)) and prop == "length":
            return len(obj)
        return JsExpression(self.text(n))

    def _subscript(self, n) -> Any:
        obj_node = n.child_by_field_name("object")
        index_node = n.child_by_field_name("index")
        if obj_node is None or index_node is None:
            return JsExpression(self.text(n))

        obj = self.evaluate(obj_node)
        index = self.evaluate(index_node)
        if isinstance(obj, dict):
            key = _to_js_string(index)
            if key is not None and key in obj:
                return obj[key]
        elif isinstance(obj, (list, str)) and _is_number(index) and float(index).is_integer():
            i = int(index)
            if 0 <= i < len(obj):
                return obj[i]
        return JsExpression(self.text(n))

    def _unary(self, n) -> Any:
        op_node = n.child_by_field_name("operator")
        arg_node = n.child_by_field_name("argument")
        if op_node is None or arg_node is None:
            return JsExpression(self.text(n))

        op = self.text(op_node)
        arg = self.evaluate(arg_node)
        if op == "-" and _is_number(arg):
            return -arg
        if op == "+" and _is_number(arg):
            return arg
        if op == "!" and isinstance(arg, bool):
            return not arg
        return JsExpression(self.text(n))

    def _binary(self, n) -> Any:
        left_node = n.child_by_field_name("left")
        op_node = n.child_by_field_name("operator")
        right_node = n.child_by_field_name("right")
        if left_node is None or op_node is None or right_node is None:
            return JsExpression(self.text(n))

        op = self.text(op_node)
        left = self.evaluate(left_node)
        right = self.evaluate(right_node)

        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            ls, rs = _to_js_string(left), _to_js_string(right)
            if ls is not None and rs is not None:
                return ls + rs
        elif _is_number(left) and _is_number(right):
            result = _arith(op, left, right)
            if result is not None:
                return result
        return JsExpression(self.text(n))

    def _call(self, n) -> Any:
        fn = n.child_by_field_name("function")
        args = n.child_by_field_name("arguments")
        if fn is not None and args is not None and "".join(self.text(fn).split()) == "Object.freeze":
            inner = self._children(args)
            if len(inner) == 1:
                return self.evaluate(inner[0])
        return JsExpression(self.text(n))

    # ---- Module exports ----

    def exports(self) -> Dict[str, Any]:
        """
        Collect the module's exports.

        Returns:
        - Export name to value. The default export, if any, is stored under "default".
        """

        out: Dict[str, Any] = {}
        cjs: Any = None
        cjs_set = False

        for stmt in self._children(self.root):
            if stmt.type == "export_statement":
                self._export_statement(stmt, out)
                continue

            if stmt.type != "expression_statement":
                continue
            inner = self._children(stmt)
            if not inner or inner[0].type != "assignment_expression":
                continue

            left = inner[0].child_by_field_name("left")
            right = inner[0].child_by_field_name("right")
            if left is None or right is None:
                continue

            target = "".join(self.text(left).split())
            if target == "module.exports":
                cjs = self.evaluate(right)
                cjs_set = True
            elif target.startswith(("module.exports.", "exports.")):
                name = target.split(".")[-1]
                if not cjs_set:
                    cjs, cjs_set = {}, True
                if isinstance(cjs, dict):
                    cjs[name] = self.evaluate(right)

        if cjs_set:
            if isinstance(cjs, dict):
                for k, v in cjs.items():
                    out.setdefault(k, v)
            out.setdefault("default", cjs)

        return out

    def _export_statement(self, stmt, out: Dict[str, Any]) -> None:
        is_default = any(c.type == "default" for c in stmt.children)

        decl = stmt.child_by_field_name("declaration")
        if decl is not None:
            if decl.type in _DECLARATION_TYPES:
                for name, _ in self._declarators(decl):
                    out[name] = self.lookup(name)
            else:
                # Functions and classes cannot be folded; types and interfaces have no runtime value
                name = decl.child_by_field_name("name")
                if decl.type in ("function_declaration", "generator_function_declaration", "class_declaration"):
                    value = JsExpression(self.text(decl))
                    if name is not None:
                        out[self.text(name)] = value
                    if is_default:
                        out["default"] = value
            return

        value = stmt.child_by_field_name("value")
        if value is not None:
            out["default"] = self.evaluate(value)
            return

        # export { a, b as c } from a local scope; re-exports from other modules are not followed
        if stmt.child_by_field_name("source") is not None:
            return
        for clause in self._children(stmt):
            if clause.type != "export_clause":
                continue
            for specifier in self._children(clause):
                if specifier.type != "export_specifier":
                    continue
                name_node = specifier.child_by_field_name("name")
                if name_node is None:
                    continue
                alias_node = specifier.child_by_field_name("alias")
                local = self.text(name_node)
                out[self.text(alias_node) if alias_node is not None else local] = self.lookup(local, name_node)


# ---- Public entry points ----------------------------------------------------


def _parse(source: str, language: str):
    src = source.encode("utf-8", errors="replace")
    tree = _parser_for(language).parse(src)
    return src, tree.root_node


def evaluate_module(source: str, language: str = "javascript") -> Dict[str, Any]:
    """
    Statically evaluate a module's exports.

    Parameters:
    - `source`: The module source code.
    - `language`: The grammar to parse with: "javascript", "typescript" or "tsx".

    Returns:
    - Export name to value, with the default export (or CommonJS `module.exports`) under "default".

    Notes:
    Syntax errors do not abort evaluation; Tree-sitter recovers and whatever parsed cleanly is still evaluated.
    """

    src, root = _parse(source, language)
    if root.has_error:
        warn(f"syntax errors while parsing {language} module; evaluating what could be parsed")
    return _ModuleEvaluator(src, root).exports()


def evaluate_expression_text(text: str) -> Any:
    """
    Evaluate a single JSON-like expression, such as the contents of a `tsconfig.json`.

    Comments, trailing commas, single quotes and unquoted keys are accepted, as JavaScript allows them.

    Parameters:
    - `text`: The expression source.

    Returns:
    - The evaluated value.

    Raises:
    - `ValueError`: If the text does not parse as a single expression.
    """

    src, root = _parse("(" + text + "\n)", "javascript")
    stmts = _ModuleEvaluator._children(root)
    if root.has_error or len(stmts) != 1 or stmts[0].type != "expression_statement":
        raise ValueError("not a single expression")

    inner = _ModuleEvaluator._children(stmts[0])
    if not inner:
        raise ValueError("empty expression")
    return _ModuleEvaluator(src, root).evaluate(inner[0])
