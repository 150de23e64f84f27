from __future__ import annotations

import json
from pathlib import Path

import pytest

from widget_extend import project_config
from widget_extend.orchestrator import log
from widget_extend.ports.generator_port import GenerationRequest

WIDGET_ID = "foo-widget-ang"

MODEL_XML = """<?xml version="1.0" encoding="UTF-8"?>
<catalog>
    <widget>
        <name>foo-widget-ang</name>
        <properties>
            <property name="classId" viewHint="none"><value type="string">FooWidgetComponent</value></property>
            <property name="title"><value type="string">Foo</value></property>
            <property name="render.requires"><value type="string">render-bb-widget-3</value></property>
            <property name="itemsPerPage"><value type="int">10</value></property>
            <!-- layout -->
            <property name="showHeader"><value type="boolean">true</value></property>
            <property name="output.itemSelected"><value type="string">foo.item.selected</value></property>
            <property name="output."><value type="string"></value></property>
            <property name="output.pageChanged"><value type="string">foo.page.changed</value></property>
        </properties>
    </widget>
</catalog>
"""

BUNDLE_JS = (
    "var FooWidgetComponent = (function () {\n"
    "    FooWidgetComponent.decorators = [\n"
    "        { type: Component, args: [{ selector: 'bb-foo-widget', template: "
    r'"<ng-template #header data-customizable>\n  <h1 class=\"title\">{{ title }}</h1>\n</ng-template>'
    r'<ng-template #footer><p>Footer</p><!-- end --></ng-template>"'
    " }] }\n"
    "    ];\n"
    "    return FooWidgetComponent;\n"
    "}());\n"
)

COMPONENT_TS = """import { Component, OnInit } from '@angular/core';

@Component({
  selector: 'lib-{module}',
  template: `
    <p>
      {module} works!
    </p>
  `,
  styles: []
})
export class {component} implements OnInit {

  constructor() { }

  ngOnInit() {
  }

}
"""

MODULE_TS = """import { NgModule } from '@angular/core';
import { {component} } from './{module}.component';

@NgModule({
  declarations: [{component}],
  imports: [
  ],
  exports: [{component}]
})
export class {module_class} { }
"""


def _pascal(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("-"))


def render_component(module: str) -> str:
    return COMPONENT_TS.replace("{module}", module).replace("{component}", f"{_pascal(module)}Component")


def render_module(module: str) -> str:
    return (
        MODULE_TS.replace("{module_class}", f"{_pascal(module)}Module")
        .replace("{module}", module)
        .replace("{component}", f"{_pascal(module)}Component")
    )


class FakeGenerator:
    """Writes an Angular CLI style library skeleton under ``libs/``."""

    def __init__(self, library_root: str = "libs") -> None:
        self.library_root = library_root
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> None:
        self.requests.append(request)
        source_dir = request.workspace / self.library_root / request.module_name / "src" / "lib"
        source_dir.mkdir(parents=True)
        (source_dir / f"{request.module_name}.component.ts").write_text(
            render_component(request.module_name), "utf-8"
        )
        (source_dir / f"{request.module_name}.module.ts").write_text(render_module(request.module_name), "utf-8")


def install_widget(dist: Path, widget_id: str = WIDGET_ID) -> Path:
    root = dist / widget_id
    (root / "esm5").mkdir(parents=True)
    items = root / "backbase-items" / widget_id
    items.mkdir(parents=True)

    (root / "package.json").write_text(
        json.dumps({"name": f"@backbase/{widget_id}", "description": "Foo widget", "version": "1.2.0"}),
        "utf-8",
    )
    (root / f"backbase-{widget_id}.d.ts").write_text("export * from './public_api';\n", "utf-8")
    (root / "public_api.d.ts").write_text(
        "export declare class FooWidgetComponent {\n}\nexport declare class FooWidgetModule {\n}\n",
        "utf-8",
    )
    (root / "esm5" / f"backbase-{widget_id}.js").write_text(BUNDLE_JS, "utf-8")
    (items / "model.xml").write_text(MODEL_XML, "utf-8")
    (items / "icon.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    return root


@pytest.fixture(autouse=True)
def _reset_state():
    project_config.reload()
    log.configure(None)
    yield
    project_config.reload()
    log.configure(None)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    install_widget(tmp_path / "node_modules" / "@backbase")
    (tmp_path / "node_modules" / "@backbase" / "foundation-ang").mkdir()
    return tmp_path


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()
