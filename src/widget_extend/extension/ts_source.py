"""Structural view over generated TypeScript sources.

Sources are parsed with the tree-sitter TypeScript grammar.  Patches locate
their anchors as syntax nodes and queue byte-range edits which are applied in
one pass by :meth:`TypeScriptSource.render`.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from tree_sitter_language_pack import get_parser

_LANGUAGE = "typescript"
_CLASS_NODES = {"class_declaration", "abstract_class_declaration"}


@lru_cache(maxsize=1)
def _parser() -> Any:
    return get_parser(_LANGUAGE)


@dataclass(frozen=True)
class DecoratedClass:
    """A class declaration carrying a specific decorator."""

    name: str
    declaration: Any
    class_node: Any
    decorator: Any
    config: Optional[Any]

    @property
    def start(self) -> int:
        """Offset of the whole declaration, decorators and ``export`` included."""

        return self.declaration.start_byte


class TypeScriptSource:
    def __init__(self, text: str) -> None:
        self._data = text.encode("utf-8")
        self._tree = _parser().parse(self._data)
        self._edits: List[Tuple[int, int, int, bytes]] = []

    @property
    def root(self) -> Any:
        return self._tree.root_node

    def text_of(self, node: Any) -> str:
        return self._data[node.start_byte : node.end_byte].decode("utf-8")

    def walk(self, node: Any | None = None) -> Iterator[Any]:
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    # -- imports ---------------------------------------------------------

    def import_statements(self) -> List[Any]:
        return [child for child in self.root.children if child.type == "import_statement"]

    def import_source(self, statement: Any) -> str:
        source = statement.child_by_field_name("source")
        if source is None:
            return ""
        return self.text_of(source).strip("'\"`")

    def find_import(self, module: str) -> Optional[Any]:
        for statement in self.import_statements():
            if self.import_source(statement) == module:
                return statement
        return None

    def named_imports(self, statement: Any) -> Optional[Any]:
        for node in self.walk(statement):
            if node.type == "named_imports":
                return node
        return None

    def imported_names(self, statement: Any) -> List[str]:
        names: List[str] = []
        for node in self.walk(statement):
            if node.type == "import_specifier":
                name = node.child_by_field_name("name")
                names.append(self.text_of(name if name is not None else node))
        return names

    def after_imports_offset(self) -> int:
        """Offset of the line following the last import statement (0 without imports)."""

        statements = self.import_statements()
        if not statements:
            return 0
        return self.line_end(statements[-1].end_byte)

    # -- decorators and classes ------------------------------------------

    def decorator_name(self, decorator: Any) -> str:
        for child in decorator.named_children:
            if child.type == "call_expression":
                function = child.child_by_field_name("function")
                return self.text_of(function) if function is not None else ""
            if child.type in {"identifier", "member_expression"}:
                return self.text_of(child)
        return ""

    def decorators(self, class_node: Any) -> List[Any]:
        own = [child for child in class_node.children if child.type == "decorator"]
        parent = class_node.parent
        if parent is not None and parent.type == "export_statement":
            return [child for child in parent.children if child.type == "decorator"] + own
        return own

    def _decorator_config(self, decorator: Any) -> Optional[Any]:
        for child in decorator.named_children:
            if child.type != "call_expression":
                continue
            arguments = child.child_by_field_name("arguments")
            if arguments is None:
                return None
            for argument in arguments.named_children:
                if argument.type == "object":
                    return argument
        return None

    def find_decorated_class(self, decorator_name: str) -> Optional[DecoratedClass]:
        for node in self.walk():
            if node.type not in _CLASS_NODES:
                continue
            for decorator in self.decorators(node):
                if self.decorator_name(decorator) != decorator_name:
                    continue
                parent = node.parent
                declaration = parent if parent is not None and parent.type == "export_statement" else node
                name = node.child_by_field_name("name")
                return DecoratedClass(
                    name=self.text_of(name) if name is not None else "",
                    declaration=declaration,
                    class_node=node,
                    decorator=decorator,
                    config=self._decorator_config(decorator),
                )
        return None

    def object_entry(self, obj: Any, key: str) -> Optional[Any]:
        for child in obj.named_children:
            if child.type != "pair":
                continue
            key_node = child.child_by_field_name("key")
            if key_node is not None and self.text_of(key_node).strip("'\"") == key:
                return child
        return None

    def class_method(self, class_node: Any, name: str) -> Optional[Any]:
        body = class_node.child_by_field_name("body")
        if body is None:
            return None
        for child in body.named_children:
            if child.type != "method_definition":
                continue
            name_node = child.child_by_field_name("name")
            if name_node is not None and self.text_of(name_node) == name:
                return child
        return None

    # -- layout ----------------------------------------------------------

    def line_start(self, offset: int) -> int:
        return self._data.rfind(b"\n", 0, offset) + 1

    def line_end(self, offset: int) -> int:
        index = self._data.find(b"\n", offset)
        return len(self._data) if index == -1 else index + 1

    def indentation_at(self, offset: int) -> str:
        prefix = self._data[self.line_start(offset) : offset].decode("utf-8")
        return prefix if not prefix.strip() else ""

    # -- edits -----------------------------------------------------------

    def insert(self, offset: int, text: str) -> None:
        self.replace(offset, offset, text)

    def replace(self, start: int, end: int, text: str) -> None:
        self._edits.append((start, end, len(self._edits), text.encode("utf-8")))

    def render(self) -> str:
        data = self._data
        for start, end, _, payload in sorted(self._edits, key=lambda edit: (edit[0], edit[2]), reverse=True):
            data = data[:start] + payload + data[end:]
        return data.decode("utf-8")


def indent_block(lines: Sequence[str], indent: str) -> str:
    """Join *lines*, indenting all but the first (which lands at an indented anchor)."""

    if not lines:
        return ""
    rendered = [lines[0]]
    for line in lines[1:]:
        rendered.append(f"{indent}{line}" if line else "")
    return "\n".join(rendered)


__all__ = ["DecoratedClass", "TypeScriptSource", "indent_block"]
