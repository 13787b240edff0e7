"""Shared fixtures: schema directories, model representation trees, containers."""

from __future__ import annotations

import hashlib
import zipfile
from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from efmucontainer.container import ContainerOperation, CoreCallArguments, run_operation

if TYPE_CHECKING:
    from pathlib import Path

CONTAINER_SCHEMA = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:element name="Content">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="ModelRepresentation" minOccurs="0" maxOccurs="unbounded">
          <xs:complexType>
            <xs:attribute name="name" type="xs:string" use="required"/>
            <xs:attribute name="kind" type="xs:string" use="required"/>
            <xs:attribute name="manifest" type="xs:string" use="required"/>
            <xs:attribute name="checksum" type="xs:string" use="required"/>
            <xs:attribute name="manifestRefId" type="xs:string" use="required"/>
          </xs:complexType>
        </xs:element>
      </xs:sequence>
      <xs:attribute name="id" type="xs:string" use="required"/>
      <xs:attribute name="xsdVersion" type="xs:string" use="required"/>
      <xs:attribute name="efmiVersion" type="xs:string" use="required"/>
      <xs:attribute name="name" type="xs:string" use="required"/>
      <xs:attribute name="generationDateAndTime" type="xs:dateTime" use="required"/>
      <xs:attribute name="activeFmu" type="xs:string" use="optional"/>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""

SUB_MANIFEST_SCHEMA = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:element name="Manifest">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="Files" minOccurs="0">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="File" minOccurs="0" maxOccurs="unbounded">
                <xs:complexType>
                  <xs:attribute name="id" type="xs:string" use="required"/>
                  <xs:attribute name="name" type="xs:string" use="required"/>
                  <xs:attribute name="path" type="xs:string" use="required"/>
                  <xs:attribute name="needsChecksum" type="xs:boolean" use="required"/>
                  <xs:attribute name="checksum" type="xs:string" use="optional"/>
                  <xs:attribute name="role" type="xs:string" use="required"/>
                </xs:complexType>
              </xs:element>
            </xs:sequence>
          </xs:complexType>
        </xs:element>
      </xs:sequence>
      <xs:attribute name="id" type="xs:string" use="required"/>
      <xs:attribute name="kind" type="xs:string" use="required"/>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""

KINDS = ("ProductionCode", "BehavioralModel", "AlgorithmCode", "EquationCode", "BinaryCode")


def sha1_of(path: Path) -> str:
    return hashlib.sha1(path.read_bytes()).hexdigest()


def write_fmu(path: Path, members: dict[str, str] | None = None) -> Path:
    """Write a small FMU archive."""
    members = members or {
        "modelDescription.xml": "<fmiModelDescription/>",
        "binaries/linux64/model.so": "binary",
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return path


def sub_manifest_xml(
    kind: str,
    manifest_id: str,
    files: list[dict[str, str]] | None,
) -> str:
    """Render a sub-manifest; files=None omits the Files element."""
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<Manifest xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"'
        f' xsi:noNamespaceSchemaLocation="../schemas/{kind}/efmi{kind}Manifest.xsd"'
        f' id="{manifest_id}" kind="{kind}">',
    ]
    if files is not None:
        lines.append("  <Files>")
        for f in files:
            attrs = " ".join(f'{k}="{v}"' for k, v in f.items())
            lines.append(f"    <File {attrs}/>")
        lines.append("  </Files>")
    lines.append("</Manifest>")
    return "\n".join(lines) + "\n"


@pytest.fixture
def schema_dir(tmp_path: Path) -> Path:
    """Schema directory with the container schema and one schema per kind."""
    root = tmp_path / "schemas"
    root.mkdir()
    (root / "efmiContainerManifest.xsd").write_text(CONTAINER_SCHEMA)
    for kind in KINDS:
        kind_dir = root / kind
        kind_dir.mkdir()
        (kind_dir / f"efmi{kind}Manifest.xsd").write_text(SUB_MANIFEST_SCHEMA)
    (root / "README.txt").write_text("not a schema")
    return root


@pytest.fixture
def make_subtree(tmp_path: Path) -> Callable[..., Path]:
    """Factory for model representation input directories.

    Production code trees contain ``src/code.c`` (checksummed) and, unless
    ``fmu=None``, an FMU file (``model.fmu``) or folder (``FMU``).
    """

    def _make(
        dirname: str,
        *,
        kind: str = "ProductionCode",
        manifest_id: str = "{11111111-2222-3333-4444-555555555555}",
        code: str = "int main(void) { return 0; }\n",
        fmu: str | None = "model.fmu",
        extra_files: list[dict[str, str]] | None = None,
        with_listing: bool = True,
    ) -> Path:
        root = tmp_path / "inputs" / dirname
        (root / "src").mkdir(parents=True)
        code_file = root / "src" / "code.c"
        code_file.write_text(code)

        files = [
            {
                "id": "code",
                "name": "code.c",
                "path": "./src",
                "needsChecksum": "true",
                "checksum": sha1_of(code_file),
                "role": "Code",
            }
        ]
        if fmu == "FMU":
            (root / "FMU").mkdir()
            (root / "FMU" / "modelDescription.xml").write_text("<fmiModelDescription/>")
            files.append({"id": "fmu", "name": "FMU", "path": "./", "needsChecksum": "false", "role": "FMUFolder"})
        elif fmu is not None:
            write_fmu(root / fmu)
            files.append({"id": "fmu", "name": fmu, "path": "./", "needsChecksum": "false", "role": "FMU"})
        files.extend(extra_files or [])

        (root / "manifest.xml").write_text(sub_manifest_xml(kind, manifest_id, files if with_listing else None))
        return root

    return _make


@pytest.fixture
def container_file(tmp_path: Path, schema_dir: Path) -> Path:
    """Freshly created, empty container named 'demo'."""
    output = tmp_path / "out" / "demo.fmu"
    result, _ = run_operation(
        CoreCallArguments(
            operation=ContainerOperation.CREATE,
            input_dir=schema_dir,
            name="demo",
            output_path=output,
        )
    )
    assert result.ok, result.message
    return output


def read_archive_names(path: Path) -> set[str]:
    with zipfile.ZipFile(path) as archive:
        return set(archive.namelist())
