"""Patches applied to the generated wrapper sources.

Every patch is a pure ``str -> str`` function over one generated file.  Anchors
are syntax nodes (TypeScript) or parsed start tags (templates).  Required
anchors raise :class:`PatchAnchorError`; append-style anchors log a warning and
leave the source untouched.  None of the patches guard against being applied
twice.
"""

from __future__ import annotations

import logging
from html.parser import HTMLParser
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from widget_extend.artifacts.artifact_store import ArtifactStore
from widget_extend.contracts.errors import PatchAnchorError

from .naming import handler_name, output_property, package_specifier
from .ts_source import TypeScriptSource, indent_block

_LOGGER = logging.getLogger(__name__)

ANGULAR_CORE = "@angular/core"
FOUNDATION_CORE = "@backbase/foundation-ang/core"
BASE_MODULE = "BackbaseCoreModule"
ROUTE_COPY_DECORATOR = "CopyRoutes"

NG_MODULE = "NgModule"
COMPONENT = "Component"
CONSTRUCTOR = "constructor"

Patch = Callable[[str], str]


# -- module source -----------------------------------------------------------


def inject_module_imports(source: str, *, module_reference: str, widget_id: str) -> str:
    """Import the base module and the widget module right before ``@NgModule``."""

    ts = TypeScriptSource(source)
    declaration = ts.find_decorated_class(NG_MODULE)
    if declaration is None:
        _LOGGER.warning("inject_module_imports: no @%s declaration, source left unchanged", NG_MODULE)
        return source
    ts.insert(
        declaration.start,
        f"import {{ {BASE_MODULE} }} from '{FOUNDATION_CORE}';\n"
        f"import {{ {module_reference} }} from '{package_specifier(widget_id)}';\n\n",
    )
    return ts.render()


def register_module_dependencies(source: str, *, module_reference: str, component_class: str) -> str:
    """Prepend the base module configuration and the widget module to ``imports``."""

    ts = TypeScriptSource(source)
    declaration = ts.find_decorated_class(NG_MODULE)
    entry = None
    if declaration is not None and declaration.config is not None:
        entry = ts.object_entry(declaration.config, "imports")
    array = entry.child_by_field_name("value") if entry is not None else None
    if array is None or array.type != "array":
        _LOGGER.warning("register_module_dependencies: no @%s imports list, source left unchanged", NG_MODULE)
        return source

    indent = ts.indentation_at(entry.start_byte) + "  "
    references = [
        f"{BASE_MODULE}.withConfig({{ classMap: {{ {component_class} }} }})",
        module_reference,
    ]
    ts.insert(array.start_byte + 1, "".join(f"\n{indent}{reference}," for reference in references))
    return ts.render()


# -- component source ----------------------------------------------------------


def _require_component(ts: TypeScriptSource, patch: str, path: Optional[Path]):
    declaration = ts.find_decorated_class(COMPONENT)
    if declaration is None:
        raise PatchAnchorError(patch, f"@{COMPONENT}", path)
    return declaration


def inject_route_copy(
    source: str,
    *,
    original_component: str,
    widget_id: str,
    path: Optional[Path] = None,
) -> str:
    """Import the route-copy decorator and apply it to the wrapper component."""

    ts = TypeScriptSource(source)
    declaration = _require_component(ts, "inject_route_copy", path)

    imports = (
        f"import {{ {ROUTE_COPY_DECORATOR} }} from '{FOUNDATION_CORE}';\n"
        f"import {{ {original_component} }} from '{package_specifier(widget_id)}';\n"
    )
    ts.insert(ts.after_imports_offset(), imports)

    decorator = declaration.decorator
    indent = ts.indentation_at(decorator.start_byte)
    ts.insert(decorator.start_byte, f"@{ROUTE_COPY_DECORATOR}({original_component})\n{indent}")
    return ts.render()


def rewrite_template_url(source: str, template_file: str, *, path: Optional[Path] = None) -> str:
    """Point the component at *template_file* instead of its inline template."""

    ts = TypeScriptSource(source)
    declaration = _require_component(ts, "rewrite_template_url", path)
    entry = None
    if declaration.config is not None:
        entry = ts.object_entry(declaration.config, "template")
        if entry is None:
            entry = ts.object_entry(declaration.config, "templateUrl")
    if entry is None:
        raise PatchAnchorError("rewrite_template_url", "template", path)

    reference = template_file if template_file.startswith((".", "/")) else f"./{template_file}"
    ts.replace(entry.start_byte, entry.end_byte, f"templateUrl: '{reference}'")
    return ts.render()


def _ensure_core_imports(ts: TypeScriptSource, names: Sequence[str]) -> None:
    statement = ts.find_import(ANGULAR_CORE)
    if statement is None:
        ts.insert(0, f"import {{ {', '.join(names)} }} from '{ANGULAR_CORE}';\n")
        return
    existing = set(ts.imported_names(statement))
    missing = [name for name in names if name not in existing]
    if not missing:
        return
    named = ts.named_imports(statement)
    if named is None:
        ts.insert(ts.after_imports_offset(), f"import {{ {', '.join(missing)} }} from '{ANGULAR_CORE}';\n")
        return
    specifiers = [child for child in named.named_children if child.type == "import_specifier"]
    if specifiers:
        ts.insert(specifiers[-1].end_byte, "".join(f", {name}" for name in missing))
    else:
        ts.insert(named.start_byte + 1, f" {', '.join(missing)} ")


def wire_component_outputs(source: str, outputs: Sequence[str], *, path: Optional[Path] = None) -> str:
    """Declare an ``@Output`` emitter and a forwarding handler per output.

    Event names that are not identifiers keep their public name as the
    ``@Output`` alias on a camelCased member.
    """

    ts = TypeScriptSource(source)
    declaration = _require_component(ts, "wire_component_outputs", path)
    constructor = ts.class_method(declaration.class_node, CONSTRUCTOR)
    if constructor is None:
        raise PatchAnchorError("wire_component_outputs", f"{CONSTRUCTOR}()", path)
    if not outputs:
        return source

    _ensure_core_imports(ts, ("Output", "EventEmitter"))
    indent = ts.indentation_at(constructor.start_byte)
    lines: List[str] = []
    for output in outputs:
        member = output_property(output)
        alias = "" if member == output else f"'{output}'"
        lines.append(f"@Output({alias}) {member} = new EventEmitter<any>();")
    for output in outputs:
        lines.extend(
            [
                "",
                f"{handler_name(output)}($event: any) {{",
                f"  this.{output_property(output)}.emit($event);",
                "}",
            ]
        )
    ts.insert(constructor.start_byte, f"{indent_block(lines, indent)}\n\n{indent}")
    return ts.render()


# -- template ------------------------------------------------------------------


class _StartTagLocator(HTMLParser):
    """Finds the first start tag named *tag*; comment contents are skipped."""

    def __init__(self, tag: str) -> None:
        super().__init__(convert_charrefs=False)
        self._tag = tag.lower()
        self.found: Optional[Tuple[Tuple[int, int], str]] = None

    def _match(self, tag: str) -> None:
        if self.found is None and tag == self._tag:
            self.found = (self.getpos(), self.get_starttag_text() or "")

    def handle_starttag(self, tag, attrs):
        self._match(tag)

    def handle_startendtag(self, tag, attrs):
        self._match(tag)


def _absolute_offset(text: str, position: Tuple[int, int]) -> int:
    lineno, column = position
    offset = 0
    for _ in range(lineno - 1):
        offset = text.index("\n", offset) + 1
    return offset + column


def wire_template_outputs(template: str, tag_name: str, outputs: Sequence[str]) -> str:
    """Bind each output of the wrapped widget tag to its wrapper handler."""

    if not outputs:
        return template
    locator = _StartTagLocator(tag_name)
    locator.feed(template)
    locator.close()
    if locator.found is None:
        _LOGGER.warning("wire_template_outputs: <%s> not found, template left unchanged", tag_name)
        return template

    position, tag_text = locator.found
    start = _absolute_offset(template, position)
    closing = "/>" if tag_text.rstrip().endswith("/>") else ">"
    body = tag_text[: tag_text.rstrip().rfind(closing)].rstrip()
    bindings = "".join(f' ({output})="{handler_name(output)}($event)"' for output in outputs)
    spacing = " " if closing == "/>" else ""
    patched = f"{body}{bindings}{spacing}{closing}"
    return template[:start] + patched + template[start + len(tag_text) :]


# -- file application ----------------------------------------------------------


async def apply_patches(store: ArtifactStore, path: Path, patches: Sequence[Patch]) -> str:
    """Read *path*, run *patches* in memory and overwrite the whole file once."""

    text = await store.read_text(path)
    for patch in patches:
        text = patch(text)
    await store.write_text(path, text)
    return text


__all__ = [
    "ANGULAR_CORE",
    "BASE_MODULE",
    "FOUNDATION_CORE",
    "ROUTE_COPY_DECORATOR",
    "Patch",
    "apply_patches",
    "inject_module_imports",
    "inject_route_copy",
    "register_module_dependencies",
    "rewrite_template_url",
    "wire_component_outputs",
    "wire_template_outputs",
]
