"""
Catalog documents for aperture-sync.

A document is the file holding the catalog. Two formats are supported:

    TypeScriptDocument - a .ts/.js module exporting the item array
                         (e.g. `export const items: GalleryItem[] = [...]`)
                         and, in reconcile mode, a config object with a
                         `filters` array.
    JsonDocument       - a .json file whose top-level object maps the
                         collection and config object names to values.

Both expose the same small surface used by the stores:

    document.get_collection(name)  -> Collection | None
    document.create_collection(name) -> Collection
    document.get_object(name)      -> RecordNode | None
    collection.records()           -> list[RecordNode]
    collection.append(record)      -> RecordNode
    collection.remove(node)
    node.to_record() / node.set(key, value)
    document.save()                -> bool (False when nothing changed)

TypeScript Editing:
    The module is never re-printed as a whole. A scanner masks strings and
    comments, locates the declarations by name and splits array and object
    literals at top-level commas. Only the literals that were edited are
    regenerated; all other text, including comments and formatting of
    untouched items, is written back byte for byte.

    Values are understood when they are string literals, arrays of string
    literals, numbers, booleans or null. Anything else (identifiers, calls,
    nested objects) is kept as a RawExpression and re-emitted verbatim.

Saving:
    The new content is written to a temporary file in the same directory
    and renamed over the original. A crash mid-run can leave the catalog
    as it was before the run, never half written.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aperture_sync.core.exceptions import StoreError
from aperture_sync.core.logger import get_logger
from aperture_sync.utils import atomic_write_text, ensure_directory


logger = get_logger(__name__)


TYPE_IMPORT_MODULE = "@shashank-sharma/aperture-theme"
TYPE_NAME = "GalleryItem"
TYPE_IMPORT_LINE = f"import type {{ {TYPE_NAME} }} from '{TYPE_IMPORT_MODULE}';"

TYPESCRIPT_SUFFIXES = (".ts", ".tsx", ".mts", ".cts")

# Matched against masked source, so the module path is not compared
_TYPE_BINDING_RE = re.compile(
    r"\bimport\s+(?:type\s+)?\{[^}]*\b" + TYPE_NAME + r"\b(?!\s+as\b)[^}]*\}\s*from\b"
    r"|\b(?:type|interface|class)\s+" + TYPE_NAME + r"\b"
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_NUMBER_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_OPENERS = "([{"
_CLOSERS = ")]}"


@dataclass(frozen=True)
class RawExpression:
    """A TypeScript expression kept as source text."""
    text: str


# ============================================================================
# JavaScript literal helpers
# ============================================================================

def escape_js_string(value: str) -> str:
    """Escape a value for a single-quoted JavaScript string literal."""
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


_SIMPLE_ESCAPES = {
    "n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
}


def unescape_js_string(body: str) -> str:
    """Decode the escapes of a JavaScript string literal body."""
    out: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\" or i + 1 >= len(body):
            out.append(char)
            i += 1
            continue

        nxt = body[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt == "x" and i + 3 < len(body):
            out.append(chr(int(body[i + 2:i + 4], 16)))
            i += 4
        elif nxt == "u" and body[i + 2:i + 3] == "{":
            end = body.index("}", i + 3)
            out.append(chr(int(body[i + 3:end], 16)))
            i = end + 1
        elif nxt == "u":
            out.append(chr(int(body[i + 2:i + 6], 16)))
            i += 6
        elif nxt == "\r" and body[i + 2:i + 3] == "\n":
            i += 3
        elif nxt in "\r\n":
            # Line continuation
            i += 2
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


def render_value(value: Any) -> str:
    """
    Render a Python value as TypeScript source.

    Examples:
        render_value("it's")          # "'it\\'s'"
        render_value(["All", "Music"])  # "['All', 'Music']"
    """
    if isinstance(value, RawExpression):
        return value.text
    if isinstance(value, str):
        return f"'{escape_js_string(value)}'"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        props = ", ".join(f"{render_key(k)}: {render_value(v)}" for k, v in value.items())
        return "{ " + props + " }"
    raise TypeError(f"Cannot render {type(value).__name__} as TypeScript")


def render_key(key: str) -> str:
    return key if _IDENTIFIER_RE.match(key) else f"'{escape_js_string(key)}'"


# ============================================================================
# Scanner
# ============================================================================

def _string_end(text: str, start: int) -> int:
    """Return the index just past the string literal opening at start."""
    quote = text[start]
    i = start + 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        if quote == "`" and text.startswith("${", i):
            i = _template_expression_end(text, i + 2)
            continue
        if char == "\n" and quote != "`":
            break
        i += 1
    raise ValueError(f"unterminated string literal at offset {start}")


def _template_expression_end(text: str, start: int) -> int:
    """Return the index just past the '}' closing a template ${ expression."""
    depth = 1
    i = start
    while i < len(text):
        char = text[i]
        if char in "'\"`":
            i = _string_end(text, i)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise ValueError(f"unterminated template expression at offset {start}")


_REGEX_PRECEDING_CHARS = "(,=:[!&|?{};+-*%<>~^"
_REGEX_PRECEDING_WORDS = frozenset({
    "return", "typeof", "case", "do", "else", "in", "of", "new",
    "delete", "void", "throw", "instanceof", "yield", "await",
})


def _regex_allowed(scanned: list[str], index: int) -> bool:
    """
    Whether a '/' at index starts a regular expression literal.

    Decided from the previous significant character of the already masked
    text: after an operator, an opening bracket, a keyword or at the start
    of the module it is a regex, otherwise a division.
    """
    i = index - 1
    while i >= 0 and scanned[i].isspace():
        i -= 1
    if i < 0:
        return True
    if scanned[i] in _REGEX_PRECEDING_CHARS:
        return True
    word_end = i + 1
    while i >= 0 and (scanned[i].isalnum() or scanned[i] in "_$"):
        i -= 1
    return "".join(scanned[i + 1:word_end]) in _REGEX_PRECEDING_WORDS


def _regex_end(text: str, start: int) -> int | None:
    """
    Return the index just past the closing '/' of the regex opening at start.

    None when the line ends first; the slash is then left as plain text.
    """
    in_class = False
    i = start + 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == "\n":
            break
        if char == "[":
            in_class = True
        elif char == "]":
            in_class = False
        elif char == "/" and not in_class:
            return i + 1
        i += 1
    return None


def mask_source(text: str) -> str:
    """
    Blank out comments and string contents, keeping offsets and newlines.

    Comments become spaces, string and regular expression bodies become
    '_' (delimiters kept), so brackets, commas and keywords left in the
    result are structural. A '/' starts a regular expression only where a
    division cannot appear.

    Raises:
        ValueError: On an unterminated string, template or block comment.
    """
    out = list(text)
    i = 0
    n = len(text)

    def blank(start: int, end: int, fill: str) -> None:
        for k in range(start, end):
            if out[k] != "\n":
                out[k] = fill

    while i < n:
        char = text[i]
        if char in "'\"`":
            end = _string_end(text, i)
            blank(i + 1, end - 1, "_")
            i = end
        elif text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            blank(i, end, " ")
            i = end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ValueError(f"unterminated block comment at offset {i}")
            blank(i, end + 2, " ")
            i = end + 2
        elif char == "/" and _regex_allowed(out, i):
            end = _regex_end(text, i)
            if end is None:
                i += 1
                continue
            blank(i + 1, end - 1, "_")
            i = end
        else:
            i += 1
    return "".join(out)


def _matching_bracket(masked: str, start: int) -> int:
    """Return the index of the bracket closing the one at start."""
    depth = 0
    for i in range(start, len(masked)):
        char = masked[i]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return i
    raise ValueError(f"unbalanced bracket at offset {start}")


def _split_top_level(masked: str, start: int, end: int) -> list[tuple[int, int]]:
    """Split masked[start:end] at depth-0 commas into (start, end) spans."""
    spans = []
    depth = 0
    segment_start = start
    for i in range(start, end):
        char = masked[i]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        elif char == "," and depth == 0:
            spans.append((segment_start, i))
            segment_start = i + 1
    spans.append((segment_start, end))
    return spans


def _core_bounds(masked: str, start: int, end: int) -> tuple[int, int] | None:
    """Return the span of masked[start:end] without surrounding whitespace."""
    core_start = start
    while core_start < end and masked[core_start].isspace():
        core_start += 1
    if core_start == end:
        return None
    core_end = end
    while masked[core_end - 1].isspace():
        core_end -= 1
    return core_start, core_end


def _line_indent(text: str, offset: int) -> str:
    line_start = text.rfind("\n", 0, offset) + 1
    indent_end = line_start
    while indent_end < len(text) and text[indent_end] in " \t":
        indent_end += 1
    return text[line_start:indent_end]


def _child_leading(first_leading: str | None, parent_indent: str) -> str:
    """Leading trivia for a new child, copied from the first existing child."""
    if first_leading is None:
        return "\n" + parent_indent + "  "
    if "\n" in first_leading:
        return "\n" + first_leading.rsplit("\n", 1)[1]
    return " "


def parse_literal(text: str, masked: str) -> Any:
    """
    Interpret a literal's source text.

    Args:
        text: The literal source (already trimmed).
        masked: The same span of the masked source.

    Returns:
        str, list[str], int, float, bool, None, or RawExpression for
        anything else.
    """
    if len(text) >= 2 and text[0] in "'\"`" and _string_end(text, 0) == len(text):
        body = text[1:-1]
        if text[0] == "`" and "${" in body:
            return RawExpression(text)
        return unescape_js_string(body)

    if text.startswith("[") and text.endswith("]") and _matching_bracket(masked, 0) == len(text) - 1:
        values = []
        for start, end in _split_top_level(masked, 1, len(text) - 1):
            bounds = _core_bounds(masked, start, end)
            if bounds is None:
                continue
            value = parse_literal(text[bounds[0]:bounds[1]], masked[bounds[0]:bounds[1]])
            if not isinstance(value, str):
                return RawExpression(text)
            values.append(value)
        return values

    if text in ("true", "false"):
        return text == "true"
    if text == "null":
        return None
    if _NUMBER_RE.match(text):
        return float(text) if any(c in text for c in ".eE") else int(text)

    return RawExpression(text)


# ============================================================================
# TypeScript literal nodes
# ============================================================================

class Property:
    """One 'key: value' entry of an object literal."""

    def __init__(
        self,
        leading: str,
        key: str | None,
        prefix: str,
        value_text: str,
        value: Any,
        trailing: str = ""
    ) -> None:
        self.leading = leading
        self.key = key
        self.prefix = prefix
        self.value_text = value_text
        self.value = value
        self.trailing = trailing

    def render(self) -> str:
        return self.prefix + self.value_text + self.trailing


class ObjectLiteral:
    """
    A TypeScript object literal that can be read as a record and edited.

    Untouched literals render as their original text.
    """

    def __init__(
        self,
        original: str | None,
        properties: list[Property],
        tail: str,
        trailing_comma: bool,
        indent: str
    ) -> None:
        self.original = original
        self.properties = properties
        self.tail = tail
        self.trailing_comma = trailing_comma
        self.indent = indent
        self.dirty = original is None

    @classmethod
    def parse(cls, text: str, masked: str, start: int, end: int) -> "ObjectLiteral":
        """Parse text[start:end], which spans '{' .. '}' inclusive."""
        properties: list[Property] = []
        tail = ""
        trailing_comma = False
        spans = _split_top_level(masked, start + 1, end - 1)

        for index, (seg_start, seg_end) in enumerate(spans):
            bounds = _core_bounds(masked, seg_start, seg_end)
            if bounds is None:
                tail = text[seg_start:seg_end]
                trailing_comma = index > 0
                continue
            core_start, core_end = bounds
            leading = text[seg_start:core_start]
            trailing = text[core_end:seg_end]
            if index == len(spans) - 1:
                tail, trailing = trailing, ""
            properties.append(
                _parse_property(text, masked, leading, core_start, core_end, trailing)
            )

        return cls(
            original=text[start:end],
            properties=properties,
            tail=tail,
            trailing_comma=trailing_comma,
            indent=_line_indent(text, start),
        )

    @classmethod
    def new(cls, record: dict[str, Any], indent: str) -> "ObjectLiteral":
        """Create a multi-line literal from a record."""
        node = cls(original=None, properties=[], tail="\n" + indent, trailing_comma=True, indent=indent)
        for key, value in record.items():
            node.set(key, value)
        return node

    def get(self, key: str, default: Any = None) -> Any:
        for prop in self.properties:
            if prop.key == key:
                return prop.value
        return default

    def to_record(self) -> dict[str, Any]:
        """Return the keyed properties as a dict (spreads and methods omitted)."""
        return {p.key: p.value for p in self.properties if p.key is not None}

    def set(self, key: str, value: Any) -> None:
        """Replace the value of key, or append the property if missing."""
        value = list(value) if isinstance(value, tuple) else value
        value_text = render_value(value)
        for prop in self.properties:
            if prop.key == key:
                if isinstance(prop.value, RawExpression) or prop.value != value:
                    prop.value_text = value_text
                    prop.value = value
                    self.dirty = True
                return

        first_leading = self.properties[0].leading if self.properties else None
        if first_leading is None and self.original is not None and "\n" not in self.original:
            first_leading = " "
        self.properties.append(Property(
            leading=_child_leading(first_leading, self.indent),
            key=key,
            prefix=f"{render_key(key)}: ",
            value_text=value_text,
            value=value,
        ))
        if self.original is not None and not self.original[1:-1].strip():
            # Previously empty: close on its own line when multi-line
            self.tail = "\n" + self.indent if "\n" in self.properties[-1].leading else " "
        self.dirty = True

    def render(self) -> str:
        if not self.dirty and self.original is not None:
            return self.original
        return "{" + _join_children(
            [(p.leading, p.render()) for p in self.properties], self.trailing_comma
        ) + self.tail + "}"


def _parse_property(
    text: str,
    masked: str,
    leading: str,
    core_start: int,
    core_end: int,
    trailing: str
) -> Property:
    core_masked = masked[core_start:core_end]
    core_text = text[core_start:core_end]

    key = None
    colon = -1
    if core_masked[0] in "'\"":
        key_end = _string_end(core_text, 0)
        rest = core_masked[key_end:]
        if rest.lstrip().startswith(":"):
            key = unescape_js_string(core_text[1:key_end - 1])
            colon = key_end + rest.index(":")
    else:
        match = re.match(r"[A-Za-z_$][\w$]*\s*:", core_masked)
        if match:
            key = core_text[:match.end() - 1].strip()
            colon = match.end() - 1

    if key is None:
        # Spread, shorthand or method: opaque
        return Property(leading, None, "", core_text, RawExpression(core_text), trailing)

    value_start = colon + 1
    while value_start < len(core_text) and core_masked[value_start].isspace():
        value_start += 1
    value_text = core_text[value_start:]
    return Property(
        leading=leading,
        key=key,
        prefix=core_text[:value_start],
        value_text=value_text,
        value=parse_literal(value_text, core_masked[value_start:]),
        trailing=trailing,
    )


def _join_children(children: list[tuple[str, str]], trailing_comma: bool) -> str:
    parts = []
    for index, (leading, body) in enumerate(children):
        parts.append(leading + body)
        if index < len(children) - 1 or trailing_comma:
            parts.append(",")
    return "".join(parts)


class Element:
    """One element of an array literal."""

    def __init__(self, leading: str, text: str, trailing: str, node: ObjectLiteral | None) -> None:
        self.leading = leading
        self.text = text
        self.trailing = trailing
        self.node = node

    def render(self) -> str:
        body = self.node.render() if self.node is not None else self.text
        return body + self.trailing


class ArrayLiteral:
    """A TypeScript array literal holding the catalog items."""

    def __init__(self, start: int, end: int, elements: list[Element], tail: str,
                 trailing_comma: bool, indent: str) -> None:
        self.start = start
        self.end = end
        self.elements = elements
        self.tail = tail
        self.trailing_comma = trailing_comma
        self.indent = indent
        self.structure_changed = False

    @classmethod
    def parse(cls, text: str, masked: str, start: int, end: int) -> "ArrayLiteral":
        """Parse text[start:end], which spans '[' .. ']' inclusive."""
        elements: list[Element] = []
        tail = ""
        trailing_comma = False
        spans = _split_top_level(masked, start + 1, end - 1)

        for index, (seg_start, seg_end) in enumerate(spans):
            bounds = _core_bounds(masked, seg_start, seg_end)
            if bounds is None:
                tail = text[seg_start:seg_end]
                trailing_comma = index > 0
                continue
            core_start, core_end = bounds
            trailing = text[core_end:seg_end]
            if index == len(spans) - 1:
                tail, trailing = trailing, ""
            node = None
            if masked[core_start] == "{" and _matching_bracket(masked, core_start) == core_end - 1:
                node = ObjectLiteral.parse(text, masked, core_start, core_end)
            elements.append(Element(
                leading=text[seg_start:core_start],
                text=text[core_start:core_end],
                trailing=trailing,
                node=node,
            ))

        return cls(start, end, elements, tail, trailing_comma, _line_indent(text, start))

    @property
    def dirty(self) -> bool:
        return self.structure_changed or any(
            e.node is not None and e.node.dirty for e in self.elements
        )

    def records(self) -> list[ObjectLiteral]:
        return [e.node for e in self.elements if e.node is not None]

    def remove(self, node: ObjectLiteral) -> None:
        for index, element in enumerate(self.elements):
            if element.node is node:
                del self.elements[index]
                self.structure_changed = True
                return
        raise KeyError("record is not part of this collection")

    def append(self, record: dict[str, Any]) -> ObjectLiteral:
        first_leading = self.elements[0].leading if self.elements else None
        leading = _child_leading(first_leading, self.indent)
        element_indent = leading.rsplit("\n", 1)[1] if "\n" in leading else self.indent
        node = ObjectLiteral.new(record, element_indent)

        if not self.elements:
            self.trailing_comma = True
            if "\n" not in self.tail:
                self.tail = "\n" + self.indent

        self.elements.append(Element(leading=leading, text="", trailing="", node=node))
        self.structure_changed = True
        return node

    def render(self) -> str:
        return "[" + _join_children(
            [(e.leading, e.render()) for e in self.elements], self.trailing_comma
        ) + self.tail + "]"


# ============================================================================
# Documents
# ============================================================================

class TypeScriptDocument:
    """
    Catalog stored in a TypeScript or JavaScript module.

    Attributes:
        path: Module path.
        text: Source as loaded ("" for a missing file).
        exists: Whether the file existed when loaded.
        typed: Whether declarations get the GalleryItem type (.ts files).
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.typed = path.suffix in TYPESCRIPT_SUFFIXES
        self.exists = path.exists()
        self.text = ""
        self._masked = ""
        self._collections: dict[str, ArrayLiteral] = {}
        self._objects: dict[str, ObjectLiteral] = {}
        self._object_spans: dict[str, tuple[int, int]] = {}
        self._new_declarations: list[tuple[str, ArrayLiteral]] = []
        self._needs_type_import = False

        if self.exists:
            try:
                self.text = path.read_text(encoding="utf-8")
            except OSError as e:
                raise StoreError(
                    f"Failed to read catalog file {path}: {e}",
                    details={"path": str(path), "original_error": str(e)}
                ) from e
            try:
                self._masked = mask_source(self.text)
            except ValueError as e:
                raise StoreError(
                    f"Could not parse {path}: {e}",
                    details={"path": str(path), "original_error": str(e)}
                ) from e

    def _find_initializer(self, name: str) -> int | None:
        """Return the offset of the initializer of `const|let|var name`."""
        pattern = re.compile(
            rf"\b(?:const|let|var)\s+{re.escape(name)}\b"
        )
        match = pattern.search(self._masked)
        if match is None:
            return None

        i = match.end()
        while i < len(self._masked):
            char = self._masked[i]
            if (
                char == "="
                and self._masked[i + 1:i + 2] not in ("=", ">")
                and self._masked[i - 1] not in "=!<>"
            ):
                i += 1
                while i < len(self._masked) and self._masked[i].isspace():
                    i += 1
                return i
            if char in ";":
                return None
            i += 1
        return None

    def _literal_span(self, name: str, opener: str) -> tuple[int, int] | None:
        start = self._find_initializer(name)
        if start is None:
            return None
        if self._masked[start:start + 1] != opener:
            kind = "an array literal" if opener == "[" else "an object literal"
            raise StoreError(
                f"`{name}` in {self.path} is not {kind}",
                details={"path": str(self.path), "name": name}
            )
        try:
            return start, _matching_bracket(self._masked, start) + 1
        except ValueError as e:
            raise StoreError(
                f"Could not parse `{name}` in {self.path}: {e}",
                details={"path": str(self.path), "name": name}
            ) from e

    def _parse(self, literal_type, name: str, span: tuple[int, int]):
        try:
            return literal_type.parse(self.text, self._masked, *span)
        except (ValueError, IndexError) as e:
            raise StoreError(
                f"Could not parse `{name}` in {self.path}: {e}",
                details={"path": str(self.path), "name": name}
            ) from e

    def get_collection(self, name: str) -> ArrayLiteral | None:
        """
        Return the array literal declared as `name`, or None if absent.

        Raises:
            StoreError: If `name` is declared with something other than an
                        array literal.
        """
        if name in self._collections:
            return self._collections[name]
        for declared_name, array in self._new_declarations:
            if declared_name == name:
                return array

        span = self._literal_span(name, "[")
        if span is None:
            return None
        array = self._parse(ArrayLiteral, name, span)
        self._collections[name] = array
        return array

    def create_collection(self, name: str) -> ArrayLiteral:
        """Declare `export const <name> = [];` at the end of the module."""
        array = ArrayLiteral(start=-1, end=-1, elements=[], tail="", trailing_comma=True, indent="")
        self._new_declarations.append((name, array))
        self._needs_type_import = self.typed
        return array

    def get_object(self, name: str) -> ObjectLiteral | None:
        """Return the object literal declared as `name`, or None if absent."""
        if name in self._objects:
            return self._objects[name]
        span = self._literal_span(name, "{")
        if span is None:
            return None
        node = self._parse(ObjectLiteral, name, span)
        self._objects[name] = node
        self._object_spans[name] = span
        return node

    def create_object(self, name: str) -> ObjectLiteral | None:
        """Config objects are not generated in modules; always None."""
        return None

    def ensure_type_import(self) -> None:
        """Request the GalleryItem type import (added on render if missing)."""
        if self.typed:
            self._needs_type_import = True

    def _has_type_import(self) -> bool:
        """Whether GalleryItem is already bound, imported from any module or declared locally."""
        return _TYPE_BINDING_RE.search(self._masked) is not None

    def render(self) -> str:
        """Return the module text with every pending edit applied."""
        splices: list[tuple[int, int, str]] = []
        for array in self._collections.values():
            if array.dirty:
                splices.append((array.start, array.end, array.render()))
        for name, node in self._objects.items():
            if node.dirty:
                start, end = self._object_spans[name]
                splices.append((start, end, node.render()))

        text = self.text
        for start, end, replacement in sorted(splices, reverse=True):
            text = text[:start] + replacement + text[end:]

        for name, array in self._new_declarations:
            annotation = f": {TYPE_NAME}[]" if self.typed else ""
            declaration = f"export const {name}{annotation} = {array.render()};\n"
            if text and not text.endswith("\n"):
                text += "\n"
            text += ("\n" if text else "") + declaration

        if self._needs_type_import and not self._has_type_import():
            separator = "" if not text or text.startswith(("import", "\n")) else "\n"
            text = TYPE_IMPORT_LINE + "\n" + separator + text

        return text

    def save(self) -> bool:
        """
        Write pending edits atomically.

        Returns:
            True if the file was written, False if nothing changed.
        """
        text = self.render()
        if self.exists and text == self.text:
            return False
        ensure_directory(self.path.parent)
        atomic_write_text(self.path, text)
        self.text = text
        self.exists = True
        return True


class JsonRecord:
    """A JSON object inside a collection (or a top-level config object)."""

    def __init__(self, data: dict[str, Any], document: "JsonDocument") -> None:
        self.data = data
        self.document = document

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_record(self) -> dict[str, Any]:
        return dict(self.data)

    def set(self, key: str, value: Any) -> None:
        value = list(value) if isinstance(value, tuple) else value
        if key in self.data and self.data[key] == value:
            return
        self.data[key] = value
        self.document.dirty = True


class JsonCollection:
    """A JSON list of records."""

    def __init__(self, items: list[Any], document: "JsonDocument") -> None:
        self.items = items
        self.document = document
        self._records = [JsonRecord(item, document) for item in items if isinstance(item, dict)]

    def records(self) -> list[JsonRecord]:
        return list(self._records)

    def remove(self, node: JsonRecord) -> None:
        for index, item in enumerate(self.items):
            if item is node.data:
                del self.items[index]
                self._records.remove(node)
                self.document.dirty = True
                return
        raise KeyError("record is not part of this collection")

    def append(self, record: dict[str, Any]) -> JsonRecord:
        data = dict(record)
        self.items.append(data)
        node = JsonRecord(data, self.document)
        self._records.append(node)
        self.document.dirty = True
        return node


class JsonDocument:
    """
    Catalog stored in a JSON file.

    Layout:
        {
          "items": [ {"id": "yt:abc", "kind": "yt-video", ...} ],
          "defaultConfig": { "filters": ["All", "Music"] }
        }
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.exists = path.exists()
        self.dirty = False
        self.data: dict[str, Any] = {}

        if self.exists:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise StoreError(
                    f"Invalid JSON in {path}: {e}",
                    details={"path": str(path), "original_error": str(e)}
                ) from e
            except OSError as e:
                raise StoreError(
                    f"Failed to read catalog file {path}: {e}",
                    details={"path": str(path), "original_error": str(e)}
                ) from e
            if not isinstance(data, dict):
                raise StoreError(
                    f"{path} must contain a JSON object",
                    details={"path": str(path)}
                )
            self.data = data
        self._collections: dict[str, JsonCollection] = {}

    def get_collection(self, name: str) -> JsonCollection | None:
        if name in self._collections:
            return self._collections[name]
        if name not in self.data:
            return None
        items = self.data[name]
        if not isinstance(items, list):
            raise StoreError(
                f"`{name}` in {self.path} is not a list",
                details={"path": str(self.path), "name": name}
            )
        collection = JsonCollection(items, self)
        self._collections[name] = collection
        return collection

    def create_collection(self, name: str) -> JsonCollection:
        self.data[name] = []
        self.dirty = True
        return self.get_collection(name)

    def get_object(self, name: str) -> JsonRecord | None:
        value = self.data.get(name)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise StoreError(
                f"`{name}` in {self.path} is not an object",
                details={"path": str(self.path), "name": name}
            )
        return JsonRecord(value, self)

    def create_object(self, name: str) -> JsonRecord:
        self.data[name] = {}
        self.dirty = True
        return JsonRecord(self.data[name], self)

    def ensure_type_import(self) -> None:
        pass

    def render(self) -> str:
        return json.dumps(self.data, indent=2, ensure_ascii=False) + "\n"

    def save(self) -> bool:
        """Write the document atomically if anything changed."""
        if self.exists and not self.dirty:
            return False
        ensure_directory(self.path.parent)
        atomic_write_text(self.path, self.render())
        self.exists = True
        self.dirty = False
        return True


def open_document(path: Path) -> TypeScriptDocument | JsonDocument:
    """Pick the document type by file suffix (.json, anything else is a module)."""
    if path.suffix.lower() == ".json":
        return JsonDocument(path)
    return TypeScriptDocument(path)
