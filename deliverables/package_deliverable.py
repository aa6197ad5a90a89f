"""
package_deliverable.py
----------------------
The ``package`` deliverable: imports package XML files into the backend.

Each named package is unpacked in its own asyncio task. Inside a package the
phases run strictly in order (info, data types, templates, macros, document
types) because later phases may reference entities declared earlier.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Sequence, TextIO
from xml.etree import ElementTree as ET

from connectors.backend_interface import PackagingService, SettingsProvider
from deliverables.deliverable import Deliverable, DeliverableResponse
from deliverables.package_descriptor import PackageDescriptor, PackageInfo

logger = logging.getLogger(__name__)

DIRECTORY_FLAG = "-f:"


class PackageDeliverable(Deliverable):
    """Replays package files into the backend through the packaging service."""

    def __init__(
        self,
        reader: TextIO,
        writer: TextIO,
        settings: SettingsProvider,
        packaging_service: PackagingService,
    ):
        super().__init__(reader, writer)
        self.settings = settings
        self.packaging_service = packaging_service

    async def run(self, command: str, args: Sequence[str]) -> DeliverableResponse:
        packages = [a for a in args if not a.startswith(DIRECTORY_FLAG)]

        if not packages:
            self.write_line("No packages were provided, use `help package` to see usage")
            return DeliverableResponse.CONTINUE

        override = next((a for a in args if a.startswith(DIRECTORY_FLAG)), None)
        if override is not None:
            chauffeur_folder = override[len(DIRECTORY_FLAG):]
        else:
            chauffeur_folder = self.settings.try_get_chauffeur_directory()
            if chauffeur_folder is None:
                return DeliverableResponse.CONTINUE

        results = await asyncio.gather(
            *(self.unpack(name, chauffeur_folder) for name in packages),
            return_exceptions=True,
        )

        response = DeliverableResponse.CONTINUE
        for name, result in zip(packages, results):
            if isinstance(result, BaseException):
                logger.error("Package '%s' failed to install", name, exc_info=result)
                self.write_line(f"Failed to install package '{name}': {result}")
                response = DeliverableResponse.FINISHED_WITH_ERROR
        return response

    async def unpack(self, name: str, chauffeur_folder: str) -> None:
        """Import one package. Parse and backend errors propagate to the caller."""
        file_location = os.path.join(chauffeur_folder, f"{name}.xml")
        if not os.path.isfile(file_location):
            self.write_line(f"The package '{name}' is not found in the Chauffeur folder")
            return

        logger.info("Unpacking %s", file_location)
        descriptor = await asyncio.to_thread(PackageDescriptor.read, file_location)

        if descriptor.info is not None:
            self._print_info(descriptor.info)

        if descriptor.data_types is not None:
            await self._unpack_data_types(descriptor.data_types)

        if descriptor.templates is not None:
            await self._unpack_templates(descriptor.templates)

        if descriptor.macros is not None:
            await self._unpack_macros(descriptor.macros)

        if descriptor.document_types is not None:
            await self._unpack_document_types(descriptor.document_types)

    async def directions(self) -> bool:
        self.write_line("Imports one or more packages into the backend.")
        self.write_line()
        self.write_line("package <name> [<name> ...] [-f:<directory>]")
        self.write_line("\tInstalls <name>.xml from the Chauffeur folder. Packages are installed in parallel.")
        self.write_line("\tEach package imports its data types, templates, macros and document types, in that order.")
        self.write_line("-f:<directory>")
        self.write_line("\tReads the package files from <directory> instead of the configured Chauffeur folder.")
        return True

    # -----------------------------------------------------------------------
    # phases

    def _print_info(self, info: PackageInfo) -> None:
        self.write_line(f"Installing package {info.name} v{info.version}")

    async def _unpack_data_types(self, elements: list[ET.Element]) -> None:
        for element in elements:
            self.write_line(f"Importing DataType '{element.get('Name', '')}'")
            wrapper = ET.Element("DataTypes")
            wrapper.append(element)
            await asyncio.to_thread(self.packaging_service.import_data_type_definitions, wrapper)

    async def _unpack_templates(self, elements: list[ET.Element]) -> None:
        for element in elements:
            self.write_line(f"Importing Template '{element.findtext('Name', default='')}'")
            await asyncio.to_thread(self.packaging_service.import_templates, element)

    async def _unpack_macros(self, elements: list[ET.Element]) -> None:
        for element in elements:
            self.write_line(f"Importing Macro '{element.findtext('name', default='')}'")
            await asyncio.to_thread(self.packaging_service.import_macros, element)

    async def _unpack_document_types(self, element: ET.Element) -> None:
        self.write_line("Importing content types")
        content_types = await asyncio.to_thread(self.packaging_service.import_content_types, element)
        logger.info("Imported %d content types", len(content_types or []))
