"""In-memory view of a package XML file."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO
from xml.etree import ElementTree as ET

from pydantic import BaseModel

LEGACY_DOCUMENT_TYPE_ROOT = "DocumentType"


class PackageInfo(BaseModel):
    """The ``<info><package>`` block. Missing name or version fields are empty strings."""

    name: str = ""
    version: str = ""

    @classmethod
    def from_element(cls, info: ET.Element) -> PackageInfo | None:
        """None when ``<info>`` carries no ``<package>`` block."""
        package = info.find("package")
        if package is None:
            return None
        return cls(
            name=package.findtext("name", default=""),
            version=package.findtext("version", default=""),
        )


@dataclass
class PackageDescriptor:
    """
    Sections of one package document. Each section is independent; ``None``
    means there is nothing of that kind to import.
    """

    root: ET.Element
    info: PackageInfo | None = None
    data_types: list[ET.Element] | None = None
    templates: list[ET.Element] | None = None
    macros: list[ET.Element] | None = None
    document_types: ET.Element | None = None

    @classmethod
    def load(cls, stream: BinaryIO) -> PackageDescriptor:
        """Parse ``stream``. Malformed XML raises ``ET.ParseError``."""
        return cls.from_root(ET.parse(stream).getroot())

    @staticmethod
    def read(path: str) -> PackageDescriptor:
        """Open and parse the package file at ``path``."""
        with open(path, "rb") as stream:
            return PackageDescriptor.load(stream)

    @classmethod
    def from_root(cls, root: ET.Element) -> PackageDescriptor:
        descriptor = cls(root=root)

        info = root.find("info")
        if info is not None:
            descriptor.info = PackageInfo.from_element(info)

        section = root.find("DataTypes")
        if section is not None:
            descriptor.data_types = section.findall("DataType")

        section = root.find("Templates")
        if section is not None:
            descriptor.templates = section.findall("Template")

        section = root.find("Macros")
        if section is not None:
            descriptor.macros = section.findall("macro")

        # Two explicit formats: a DocumentTypes collection, or the legacy
        # single-type file whose root is the DocumentType itself.
        section = root.find("DocumentTypes")
        if section is not None:
            descriptor.document_types = section
        elif root.tag == LEGACY_DOCUMENT_TYPE_ROOT:
            descriptor.document_types = root

        return descriptor


__all__ = ["LEGACY_DOCUMENT_TYPE_ROOT", "PackageDescriptor", "PackageInfo"]
