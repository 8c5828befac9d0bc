"""CLI entrypoint for scripted Platform Server provisioning."""
from __future__ import annotations

import argparse
import getpass
import os
import sys
from pathlib import Path
from typing import Sequence

from platform_setup.logging_config import setup_logging
from platform_setup.user_settings import SettingsStore
from services.config_tool import Credential
from services.installer import InstallerArtifactSource, OperationResult, PlatformServerService
from services.security import FernetSettingEncryptor

_PASSWORD_ENV = {
    "platform": "PLATFORM_DB_PASSWORD",
    "log": "LOG_DB_PASSWORD",
    "session": "SESSION_DB_PASSWORD",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Platform Server install, upgrade and configuration automation")
    parser.add_argument("--debug", action="store_true", help="Log to the console at DEBUG level")
    parser.add_argument("--settings", type=Path, help="Path to a settings.json file")
    parser.add_argument("--log-dir", type=Path, help="Directory for the log file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("version", help="Show the locally installed Platform Server version")

    platform = subparsers.add_parser("platform-version", help="Query Service Center for the platform version")
    platform.add_argument("--host", help="Service Center host (defaults to the configured host)")

    install = subparsers.add_parser("install", help="Install or upgrade Platform Server")
    install.add_argument("version", help="Desired version, e.g. 11.0.424.0")
    install.add_argument("--install-dir", type=Path, help="Target directory for fresh installs")
    install.add_argument("--installer", type=Path, help="Use this installer instead of the download cache")

    get_config = subparsers.add_parser("get-config", help="Read a setting from server.hsconf")
    get_config.add_argument("section")
    get_config.add_argument("setting")
    get_config.add_argument("--encryption", action="store_true", help="Decrypt values marked as encrypted")

    set_config = subparsers.add_parser("set-config", help="Write a setting to server.hsconf")
    set_config.add_argument("section")
    set_config.add_argument("setting")
    set_config.add_argument("value")
    set_config.add_argument("--encrypted", action="store_true", help="Mark the setting as encrypted")
    set_config.add_argument("--encryption", action="store_true", help="Encrypt values marked as encrypted")

    apply = subparsers.add_parser("apply-config", help="Run the configuration tool")
    for kind in _PASSWORD_ENV:
        apply.add_argument(
            f"--{kind}-db-user",
            help=f"{kind.capitalize()} database admin user; password from {_PASSWORD_ENV[kind]} or prompt",
        )
    apply.add_argument(
        "--configure-cache-service",
        action="store_true",
        help="Also configure the cache invalidation service (11.0 only)",
    )
    return parser


def _credential(kind: str, username: str | None) -> Credential | None:
    if not username:
        return None
    password = os.environ.get(_PASSWORD_ENV[kind])
    if password is None:
        password = getpass.getpass(f"{kind.capitalize()} database password for {username}: ")
    return Credential.from_plain(username, password)


def _report(result: OperationResult) -> int:
    stream = sys.stdout if result.success else sys.stderr
    print(result.message, file=stream)
    if not result.success and result.output:
        print(result.output, file=stream)
    return 0 if result.success else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug, log_dir=args.log_dir)
    settings = SettingsStore(args.settings).load()

    encryptor = FernetSettingEncryptor() if getattr(args, "encryption", False) else None
    if args.command == "install" and args.installer:
        artifacts = InstallerArtifactSource(args.installer.parent, installer_path=args.installer)
        service = PlatformServerService(settings, artifacts=artifacts)
    else:
        service = PlatformServerService(settings, encryptor=encryptor)

    if args.command == "version":
        return _report(service.get_installed_version())
    if args.command == "platform-version":
        return _report(service.get_platform_version(args.host))
    if args.command == "install":
        return _report(service.install_or_upgrade(args.version, args.install_dir))
    if args.command == "get-config":
        return _report(service.get_server_config(args.section, args.setting))
    if args.command == "set-config":
        return _report(service.set_server_config(args.section, args.setting, args.value, encrypted=args.encrypted))
    if args.command == "apply-config":
        return _report(
            service.apply_configuration(
                platform_cred=_credential("platform", args.platform_db_user),
                log_cred=_credential("log", args.log_db_user),
                session_cred=_credential("session", args.session_db_user),
                configure_cache_service=args.configure_cache_service,
            )
        )
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
