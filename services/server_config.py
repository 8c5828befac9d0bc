"""Section/setting edits of the server.hsconf XML document."""
from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from pathlib import Path

from platform_setup.constants import IDENTIFIER_PATTERN, IMMUTABLE_CONFIG
from platform_setup.logging_config import get_logger
from services.errors import InvalidIdentifierError, PersistenceError
from services.security import SettingEncryptor

logger = get_logger("server_config")

_IDENTIFIER = re.compile(IDENTIFIER_PATTERN)
ENCRYPTED_ATTRIBUTE = "encrypted"


def validate_identifier(kind: str, name: str) -> None:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise InvalidIdentifierError(f"Invalid {kind} name {name!r}: only letters are allowed")


def apply_setting_to_tree(root: ET.Element, section: str, setting: str, text: str, encrypted: bool = False) -> ET.Element:
    """Replace ``section/setting`` under ``root`` with a fresh node holding ``text``.

    Any previous node of the same name is removed first so no stale attributes
    survive. The section is appended to the root when missing.
    """
    validate_identifier("section", section)
    validate_identifier("setting", setting)

    section_elem = root.find(section)
    if section_elem is None:
        section_elem = ET.SubElement(root, section)

    for existing in section_elem.findall(setting):
        section_elem.remove(existing)

    setting_elem = ET.SubElement(section_elem, setting)
    if encrypted:
        setting_elem.set(ENCRYPTED_ATTRIBUTE, "true")
    setting_elem.text = text
    return root


def read_setting_from_tree(root: ET.Element, section: str, setting: str) -> ET.Element | None:
    validate_identifier("section", section)
    validate_identifier("setting", setting)
    section_elem = root.find(section)
    if section_elem is None:
        return None
    return section_elem.find(setting)


class ConfigDocumentEditor:
    def __init__(
        self,
        path: Path,
        *,
        encryptor: SettingEncryptor | None = None,
        root_element: str = IMMUTABLE_CONFIG.config_root_element,
    ) -> None:
        self._path = Path(path)
        self._encryptor = encryptor
        self._root_element = root_element

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ET.Element:
        if not self._path.exists():
            logger.info("%s not found, starting from an empty document", self._path)
            return ET.Element(self._root_element)
        try:
            return ET.parse(self._path).getroot()
        except (ET.ParseError, OSError) as exc:
            raise PersistenceError(f"Unable to read {self._path}: {exc}") from exc

    def save(self, root: ET.Element) -> None:
        ET.indent(root, space="  ")
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            ET.ElementTree(root).write(tmp_path, encoding="utf-8", xml_declaration=True)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise PersistenceError(f"Unable to write {self._path}: {exc}") from exc

    def apply_setting(self, section: str, setting: str, value: str, encrypted: bool = False) -> ET.Element:
        validate_identifier("section", section)
        validate_identifier("setting", setting)

        text = value
        if encrypted:
            if self._encryptor is None:
                logger.warning("No encryptor configured, %s/%s stored without encryption", section, setting)
            else:
                text = self._encryptor.encrypt(value)

        root = self.load()
        apply_setting_to_tree(root, section, setting, text, encrypted)
        self.save(root)
        logger.info("Set %s/%s in %s", section, setting, self._path)
        return root

    def get_setting(self, section: str, setting: str) -> str | None:
        validate_identifier("section", section)
        validate_identifier("setting", setting)
        if not self._path.exists():
            return None
        elem = read_setting_from_tree(self.load(), section, setting)
        if elem is None:
            return None
        text = elem.text or ""
        if elem.get(ENCRYPTED_ATTRIBUTE, "").lower() == "true" and self._encryptor is not None:
            return self._encryptor.decrypt(text)
        return text
