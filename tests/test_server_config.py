from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from services.errors import EncryptionError, InvalidIdentifierError, PersistenceError
from services.security import FernetSettingEncryptor
from services.server_config import ConfigDocumentEditor, apply_setting_to_tree


class FailingEncryptor:
    def encrypt(self, plain_text: str) -> str:
        raise EncryptionError("no key")

    def decrypt(self, cipher_text: str) -> str:
        raise EncryptionError("no key")


def _empty_root() -> ET.Element:
    return ET.Element("EnvironmentConfiguration")


def test_apply_to_empty_document_creates_one_section_and_setting() -> None:
    root = apply_setting_to_tree(_empty_root(), "CacheInvalidationConfiguration", "ServiceUsername", "admin")
    sections = list(root)
    assert len(sections) == 1
    assert sections[0].tag == "CacheInvalidationConfiguration"
    settings = list(sections[0])
    assert len(settings) == 1
    assert settings[0].tag == "ServiceUsername"
    assert settings[0].text == "admin"
    assert settings[0].attrib == {}


def test_apply_twice_is_idempotent() -> None:
    once = apply_setting_to_tree(_empty_root(), "Section", "Setting", "value", True)
    twice = apply_setting_to_tree(
        apply_setting_to_tree(_empty_root(), "Section", "Setting", "value", True),
        "Section",
        "Setting",
        "value",
        True,
    )
    assert ET.tostring(once) == ET.tostring(twice)


def test_replacing_setting_drops_stale_attributes() -> None:
    root = apply_setting_to_tree(_empty_root(), "Section", "Setting", "old", True)
    apply_setting_to_tree(root, "Section", "Setting", "new", False)
    matches = root.find("Section").findall("Setting")
    assert len(matches) == 1
    assert matches[0].text == "new"
    assert "encrypted" not in matches[0].attrib


def test_new_section_is_appended_last() -> None:
    root = _empty_root()
    ET.SubElement(root, "PlatformDatabaseConfiguration")
    apply_setting_to_tree(root, "SessionDatabaseConfiguration", "Server", "db01")
    assert [child.tag for child in root] == ["PlatformDatabaseConfiguration", "SessionDatabaseConfiguration"]


@pytest.mark.parametrize("section, setting", [("bad-name!", "Setting"), ("Section", "Server2"), ("", "Setting")])
def test_invalid_identifiers_leave_document_unchanged(section: str, setting: str) -> None:
    root = apply_setting_to_tree(_empty_root(), "Section", "Setting", "value")
    before = ET.tostring(root)
    with pytest.raises(InvalidIdentifierError):
        apply_setting_to_tree(root, section, setting, "value")
    assert ET.tostring(root) == before


def test_editor_persists_and_reads_back(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    editor = ConfigDocumentEditor(path)
    editor.apply_setting("CacheInvalidationConfiguration", "ServiceUsername", "admin")
    assert path.exists()
    assert not (tmp_path / "server.hsconf.tmp").exists()
    assert editor.get_setting("CacheInvalidationConfiguration", "ServiceUsername") == "admin"
    assert editor.get_setting("CacheInvalidationConfiguration", "ServicePassword") is None


def test_editor_file_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    path.write_text(
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<EnvironmentConfiguration>\n  <PlatformDatabaseConfiguration>\n"
        "    <Server>db01</Server>\n  </PlatformDatabaseConfiguration>\n</EnvironmentConfiguration>\n",
        encoding="utf-8",
    )
    editor = ConfigDocumentEditor(path)
    editor.apply_setting("PlatformDatabaseConfiguration", "Catalog", "outsystems")
    first = path.read_bytes()
    editor.apply_setting("PlatformDatabaseConfiguration", "Catalog", "outsystems")
    assert path.read_bytes() == first
    assert editor.get_setting("PlatformDatabaseConfiguration", "Server") == "db01"


def test_invalid_identifier_does_not_touch_file(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    editor = ConfigDocumentEditor(path)
    with pytest.raises(InvalidIdentifierError):
        editor.apply_setting("bad-name!", "Setting", "value")
    assert not path.exists()


def test_encryption_failure_leaves_file_unchanged(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    ConfigDocumentEditor(path).apply_setting("Section", "Setting", "plain")
    before = path.read_bytes()
    editor = ConfigDocumentEditor(path, encryptor=FailingEncryptor())
    with pytest.raises(EncryptionError):
        editor.apply_setting("Section", "Secret", "value", encrypted=True)
    assert path.read_bytes() == before


def test_encrypted_without_encryptor_marks_node_only(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    ConfigDocumentEditor(path).apply_setting("Section", "Password", "secret", encrypted=True)
    elem = ET.parse(path).getroot().find("Section/Password")
    assert elem.get("encrypted") == "true"
    assert elem.text == "secret"


def test_fernet_encryptor_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    editor = ConfigDocumentEditor(path, encryptor=FernetSettingEncryptor())
    editor.apply_setting("Section", "Password", "secret", encrypted=True)
    stored = ET.parse(path).getroot().find("Section/Password")
    assert stored.text != "secret"
    assert editor.get_setting("Section", "Password") == "secret"


def test_corrupt_document_reports_persistence_error(tmp_path: Path) -> None:
    path = tmp_path / "server.hsconf"
    path.write_text("<EnvironmentConfiguration>", encoding="utf-8")
    with pytest.raises(PersistenceError):
        ConfigDocumentEditor(path).apply_setting("Section", "Setting", "value")


def test_failed_write_keeps_original_and_removes_temp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "server.hsconf"
    editor = ConfigDocumentEditor(path)
    editor.apply_setting("Section", "Setting", "old")
    before = path.read_bytes()

    def failing_replace(src, dst) -> None:  # type: ignore[no-untyped-def]
        raise OSError("disk full")

    monkeypatch.setattr("services.server_config.os.replace", failing_replace)
    with pytest.raises(PersistenceError):
        editor.apply_setting("Section", "Setting", "new")
    assert not (tmp_path / "server.hsconf.tmp").exists()
    assert path.read_bytes() == before
