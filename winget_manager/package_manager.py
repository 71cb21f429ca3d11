#!/usr/bin/env python3
"""
Package operations on top of the winget runner and parser.

Each operation assembles a winget command line, runs it once and either
parses the table output into records or reports success from the exit
code. Every operation has an ``_async`` twin with the same semantics.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union, cast

from loguru import logger

from .exceptions import action_guard
from .info import WinGetInfo
from .models import Package, PinnedPackage, ProcessResult, RecordKind

PackageRef = Union[str, Package]

# Minimum winget versions of subcommands
_PIN_MIN_VERSION = (1, 5)
_DOWNLOAD_MIN_VERSION = (1, 6)


class WinGetPackageManager(WinGetInfo):
    """
    Search, install, upgrade, uninstall and pin winget packages.

    Listing operations treat the exit code as data, since winget exits
    non-zero when nothing matched, and return the parsed rows. Changing
    operations return True only for exit code 0.

    Example:
        >>> manager = WinGetPackageManager()
        >>> for package in manager.get_upgradeable_packages():
        ...     print(package.name, package.version, "->", package.available_version)
    """

    # ------------------------------------------------------------------
    # Argument assembly
    # ------------------------------------------------------------------

    def _all_agreements(self) -> List[str]:
        if not self.config.accept_agreements:
            return []
        return ["--accept-source-agreements", "--accept-package-agreements"]

    @staticmethod
    def _target_args(package: PackageRef) -> List[str]:
        """Select a package by exact id, or by exact name when the id was truncated."""
        if isinstance(package, Package):
            if package.has_shortened_id or not package.id:
                logger.debug(f"Selecting {package.name!r} by name, its id {package.id!r} is incomplete")
                return ["--exact", "--name", package.name]
            return ["--exact", "--id", package.id]
        return ["--exact", "--id", str(package)]

    def _search_args(self, query: str, source: Optional[str], exact: bool) -> List[str]:
        args = ["search", "--query", query]
        if source:
            args += ["--source", source]
        if exact:
            args.append("--exact")
        return args + self._source_agreement()

    def _list_args(self, query: Optional[str], source: Optional[str]) -> List[str]:
        args = ["list"]
        if query:
            args += ["--query", query]
        if source:
            args += ["--source", source]
        return args + self._source_agreement()

    def _upgradeable_args(self, include_unknown: bool) -> List[str]:
        args = ["upgrade"]
        if include_unknown:
            args.append("--include-unknown")
        return args + self._source_agreement()

    def _install_args(self, package: PackageRef, version: Optional[str], source: Optional[str]) -> List[str]:
        args = ["install", *self._target_args(package)]
        if version:
            args += ["--version", version]
        if source:
            args += ["--source", source]
        return args + ["--silent"] + self._all_agreements()

    def _upgrade_args(self, package: PackageRef) -> List[str]:
        return ["upgrade", *self._target_args(package), "--silent"] + self._all_agreements()

    def _upgrade_all_args(self) -> List[str]:
        return ["upgrade", "--all", "--silent"] + self._all_agreements()

    def _uninstall_args(self, package: PackageRef) -> List[str]:
        return ["uninstall", *self._target_args(package), "--silent"] + self._source_agreement()

    def _download_args(self, package: PackageRef, directory: Union[str, Path]) -> List[str]:
        return [
            "download",
            *self._target_args(package),
            "--download-directory",
            str(directory),
        ] + self._all_agreements()

    def _pin_add_args(
        self, package: PackageRef, blocking: bool, version: Optional[str], installed: bool
    ) -> List[str]:
        args = ["pin", "add", *self._target_args(package)]
        if version:
            args += ["--version", version]
        elif blocking:
            args.append("--blocking")
        if installed:
            args.append("--installed")
        return args + self._source_agreement()

    def _pin_remove_args(self, package: PackageRef, installed: bool) -> List[str]:
        args = ["pin", "remove", *self._target_args(package)]
        if installed:
            args.append("--installed")
        return args + self._source_agreement()

    def _packages(self, result: ProcessResult) -> List[Package]:
        return cast(List[Package], self._parser.parse(result, RecordKind.PACKAGE))

    def _pinned(self, result: ProcessResult) -> List[PinnedPackage]:
        return cast(List[PinnedPackage], self._parser.parse(result, RecordKind.PINNED_PACKAGE))

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def search_package(
        self, query: str, source: Optional[str] = None, exact: bool = False
    ) -> List[Package]:
        """
        Search winget sources for packages.

        Args:
            query: Text to search for.
            source: Restrict the search to one source, e.g. "winget".
            exact: Match the query exactly.

        Returns:
            List of matching packages, empty when nothing matched.
        """
        with action_guard("Searching packages"):
            return self._packages(self._execute(self._search_args(query, source, exact)))

    async def search_package_async(
        self, query: str, source: Optional[str] = None, exact: bool = False
    ) -> List[Package]:
        with action_guard("Searching packages"):
            result = await self._execute_async(self._search_args(query, source, exact))
            return self._packages(result)

    def get_installed_packages(
        self, query: Optional[str] = None, source: Optional[str] = None
    ) -> List[Package]:
        """List installed packages, optionally filtered by a query or source."""
        with action_guard("Listing installed packages"):
            return self._packages(self._execute(self._list_args(query, source)))

    async def get_installed_packages_async(
        self, query: Optional[str] = None, source: Optional[str] = None
    ) -> List[Package]:
        with action_guard("Listing installed packages"):
            result = await self._execute_async(self._list_args(query, source))
            return self._packages(result)

    def get_upgradeable_packages(self, include_unknown: bool = False) -> List[Package]:
        """
        List installed packages with a newer version available.

        Args:
            include_unknown: Also list packages whose installed version is unknown.
        """
        with action_guard("Listing upgradeable packages"):
            return self._packages(self._execute(self._upgradeable_args(include_unknown)))

    async def get_upgradeable_packages_async(self, include_unknown: bool = False) -> List[Package]:
        with action_guard("Listing upgradeable packages"):
            result = await self._execute_async(self._upgradeable_args(include_unknown))
            return self._packages(result)

    # ------------------------------------------------------------------
    # Install / upgrade / uninstall
    # ------------------------------------------------------------------

    def install_package(
        self, package: PackageRef, version: Optional[str] = None, source: Optional[str] = None
    ) -> bool:
        """
        Install a package silently.

        Args:
            package: Package id or a Package from a previous search.
            version: Install this version instead of the latest.
            source: Install from this source.

        Returns:
            True if winget reported success.
        """
        with action_guard("Installing package"):
            result = self._execute(self._install_args(package, version, source))
            return self._succeeded(f"Installing {_label(package)}", result)

    async def install_package_async(
        self, package: PackageRef, version: Optional[str] = None, source: Optional[str] = None
    ) -> bool:
        with action_guard("Installing package"):
            result = await self._execute_async(self._install_args(package, version, source))
            return self._succeeded(f"Installing {_label(package)}", result)

    def upgrade_package(self, package: PackageRef) -> bool:
        """Upgrade one package to the latest version."""
        with action_guard("Upgrading package"):
            result = self._execute(self._upgrade_args(package))
            return self._succeeded(f"Upgrading {_label(package)}", result)

    async def upgrade_package_async(self, package: PackageRef) -> bool:
        with action_guard("Upgrading package"):
            result = await self._execute_async(self._upgrade_args(package))
            return self._succeeded(f"Upgrading {_label(package)}", result)

    def upgrade_all_packages(self) -> bool:
        """Upgrade every package winget can upgrade."""
        with action_guard("Upgrading all packages"):
            return self._succeeded("Upgrading all packages", self._execute(self._upgrade_all_args()))

    async def upgrade_all_packages_async(self) -> bool:
        with action_guard("Upgrading all packages"):
            result = await self._execute_async(self._upgrade_all_args())
            return self._succeeded("Upgrading all packages", result)

    def uninstall_package(self, package: PackageRef) -> bool:
        """Uninstall a package silently."""
        with action_guard("Uninstalling package"):
            result = self._execute(self._uninstall_args(package))
            return self._succeeded(f"Uninstalling {_label(package)}", result)

    async def uninstall_package_async(self, package: PackageRef) -> bool:
        with action_guard("Uninstalling package"):
            result = await self._execute_async(self._uninstall_args(package))
            return self._succeeded(f"Uninstalling {_label(package)}", result)

    def download(self, package: PackageRef, directory: Union[str, Path]) -> bool:
        """
        Download a package installer into a directory.

        Raises:
            ActionFailedError: If the installed winget is older than 1.6.
        """
        self._require_version("Downloading installers", *_DOWNLOAD_MIN_VERSION)
        with action_guard("Downloading package"):
            result = self._execute(self._download_args(package, directory))
            return self._succeeded(f"Downloading {_label(package)}", result)

    async def download_async(self, package: PackageRef, directory: Union[str, Path]) -> bool:
        await self._require_version_async("Downloading installers", *_DOWNLOAD_MIN_VERSION)
        with action_guard("Downloading package"):
            result = await self._execute_async(self._download_args(package, directory))
            return self._succeeded(f"Downloading {_label(package)}", result)

    def hash(self, file_path: Union[str, Path]) -> str:
        """Return winget's SHA256 hash output for a local installer file."""
        with action_guard("Hashing file"):
            return self._parser.parse_string(self._execute(["hash", "--file", str(file_path)]))

    async def hash_async(self, file_path: Union[str, Path]) -> str:
        with action_guard("Hashing file"):
            result = await self._execute_async(["hash", "--file", str(file_path)])
            return self._parser.parse_string(result)

    # ------------------------------------------------------------------
    # Pins
    # ------------------------------------------------------------------

    def get_pinned_packages(self) -> List[PinnedPackage]:
        """List all pins."""
        self._require_version("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Listing pinned packages"):
            return self._pinned(self._execute(["pin", "list"] + self._source_agreement()))

    async def get_pinned_packages_async(self) -> List[PinnedPackage]:
        await self._require_version_async("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Listing pinned packages"):
            result = await self._execute_async(["pin", "list"] + self._source_agreement())
            return self._pinned(result)

    def pin_add(
        self, package: PackageRef, blocking: bool = False, version: Optional[str] = None
    ) -> bool:
        """
        Pin a package from its available versions.

        Args:
            package: Package id or Package.
            blocking: Block all upgrades instead of a plain pin.
            version: Version pattern such as ``23.*``; takes precedence over `blocking`.
        """
        self._require_version("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Adding pin"):
            result = self._execute(self._pin_add_args(package, blocking, version, installed=False))
            return self._succeeded(f"Pinning {_label(package)}", result)

    async def pin_add_async(
        self, package: PackageRef, blocking: bool = False, version: Optional[str] = None
    ) -> bool:
        await self._require_version_async("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Adding pin"):
            result = await self._execute_async(
                self._pin_add_args(package, blocking, version, installed=False)
            )
            return self._succeeded(f"Pinning {_label(package)}", result)

    def pin_add_installed(
        self, package: PackageRef, blocking: bool = False, version: Optional[str] = None
    ) -> bool:
        """Pin the installed version of a package."""
        self._require_version("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Adding pin"):
            result = self._execute(self._pin_add_args(package, blocking, version, installed=True))
            return self._succeeded(f"Pinning installed {_label(package)}", result)

    async def pin_add_installed_async(
        self, package: PackageRef, blocking: bool = False, version: Optional[str] = None
    ) -> bool:
        await self._require_version_async("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Adding pin"):
            result = await self._execute_async(
                self._pin_add_args(package, blocking, version, installed=True)
            )
            return self._succeeded(f"Pinning installed {_label(package)}", result)

    def pin_remove(self, package: PackageRef) -> bool:
        """Remove the pin of a package."""
        self._require_version("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Removing pin"):
            result = self._execute(self._pin_remove_args(package, installed=False))
            return self._succeeded(f"Unpinning {_label(package)}", result)

    async def pin_remove_async(self, package: PackageRef) -> bool:
        await self._require_version_async("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Removing pin"):
            result = await self._execute_async(self._pin_remove_args(package, installed=False))
            return self._succeeded(f"Unpinning {_label(package)}", result)

    def pin_remove_installed(self, package: PackageRef) -> bool:
        """Remove the pin of an installed package."""
        self._require_version("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Removing pin"):
            result = self._execute(self._pin_remove_args(package, installed=True))
            return self._succeeded(f"Unpinning installed {_label(package)}", result)

    async def pin_remove_installed_async(self, package: PackageRef) -> bool:
        await self._require_version_async("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Removing pin"):
            result = await self._execute_async(self._pin_remove_args(package, installed=True))
            return self._succeeded(f"Unpinning installed {_label(package)}", result)

    def reset_pins(self) -> bool:
        """Remove every pin."""
        self._require_version("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Resetting pins"):
            return self._succeeded("Resetting pins", self._execute(["pin", "reset", "--force"]))

    async def reset_pins_async(self) -> bool:
        await self._require_version_async("Pinning", *_PIN_MIN_VERSION)
        with action_guard("Resetting pins"):
            result = await self._execute_async(["pin", "reset", "--force"])
            return self._succeeded("Resetting pins", result)


def _label(package: PackageRef) -> str:
    if isinstance(package, Package):
        return package.id or package.name
    return str(package)
