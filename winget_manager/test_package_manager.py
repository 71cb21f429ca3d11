from unittest.mock import AsyncMock, MagicMock

import pytest

from .config import WinGetConfig
from .exceptions import ActionFailedError, ToolNotFoundError
from .models import Package, PinType, ProcessResult
from .package_manager import WinGetPackageManager
from .runner import ProcessRunner

UPGRADE_LINES = [
    "Name                          Id                        Version      Available    Source",
    "----------------------------------------------------------------------------------------",
    "7-Zip 23.01 (x64)             7zip.7zip                 23.01        24.08        winget",
    "Git                           Git.Git                   2.44.0       2.46.0       winget",
    "2 upgrades available.",
]

PIN_LINES = [
    "Name             Id                   Version   Source  Pin type  Pinned version",
    "--------------------------------------------------------------------------------",
    "PowerToys        Microsoft.PowerToys  0.78.0    winget  Pinning   0.78.*",
]


# --- Fixtures ---


def _reply(lines=(), exit_code=0):
    return ProcessResult(output_lines=lines, exit_code=exit_code)


@pytest.fixture
def runner():
    """A ProcessRunner double answering `--version` with v1.6.2771."""
    mock_runner = MagicMock(spec=ProcessRunner)
    replies = {"--version": _reply(["v1.6.2771"])}

    def execute(command, arguments=None):
        return replies.get(arguments[0], mock_runner.default_reply)

    async def execute_async(command, arguments=None):
        return execute(command, arguments)

    mock_runner.default_reply = _reply()
    mock_runner.replies = replies
    mock_runner.execute.side_effect = execute
    mock_runner.execute_async = AsyncMock(side_effect=execute_async)
    return mock_runner


@pytest.fixture
def manager(runner):
    return WinGetPackageManager(runner=runner)


def _last_arguments(mock):
    return mock.call_args[0][1]


# --- Listing ---


def test_get_upgradeable_packages(manager, runner):
    runner.default_reply = _reply(UPGRADE_LINES)

    packages = manager.get_upgradeable_packages()

    assert [p.id for p in packages] == ["7zip.7zip", "Git.Git"]
    assert packages[1].available_version == "2.46.0"
    assert _last_arguments(runner.execute) == ["upgrade", "--accept-source-agreements"]


def test_listing_treats_exit_code_as_data(manager, runner):
    runner.default_reply = _reply(
        ["No installed package found matching input criteria."], exit_code=-1978335212
    )
    assert manager.get_installed_packages(query="nothing") == []


def test_search_arguments(manager, runner):
    manager.search_package("vscode", source="winget", exact=True)

    assert _last_arguments(runner.execute) == [
        "search",
        "--query",
        "vscode",
        "--source",
        "winget",
        "--exact",
        "--accept-source-agreements",
    ]


def test_agreements_can_be_disabled(runner):
    manager = WinGetPackageManager(WinGetConfig(accept_agreements=False), runner=runner)
    manager.get_installed_packages()
    assert _last_arguments(runner.execute) == ["list"]


def test_listing_wraps_unexpected_errors(manager, runner):
    runner.execute.side_effect = RuntimeError("boom")

    with pytest.raises(ActionFailedError) as exc_info:
        manager.get_installed_packages()
    assert isinstance(exc_info.value.original_error, RuntimeError)


def test_listing_passes_tool_not_found(manager, runner):
    runner.execute.side_effect = ToolNotFoundError("winget")

    with pytest.raises(ToolNotFoundError):
        manager.search_package("git")


# --- Changing operations ---


def test_install_by_id(manager, runner):
    assert manager.install_package("Git.Git", version="2.44.0") is True
    assert _last_arguments(runner.execute) == [
        "install",
        "--exact",
        "--id",
        "Git.Git",
        "--version",
        "2.44.0",
        "--silent",
        "--accept-source-agreements",
        "--accept-package-agreements",
    ]


def test_shortened_id_targets_by_name(manager, runner):
    package = Package(name="Microsoft Visual C++ 2015", id="Microsoft.VCRedi…", has_shortened_id=True)

    manager.upgrade_package(package)

    arguments = _last_arguments(runner.execute)
    assert arguments[:4] == ["upgrade", "--exact", "--name", "Microsoft Visual C++ 2015"]


def test_failed_uninstall_returns_false(manager, runner):
    runner.default_reply = _reply(exit_code=1)
    assert manager.uninstall_package("Git.Git") is False


def test_upgrade_all(manager, runner):
    assert manager.upgrade_all_packages() is True
    assert _last_arguments(runner.execute)[:3] == ["upgrade", "--all", "--silent"]


def test_hash_returns_text(manager, runner):
    runner.default_reply = _reply(["Sha256: 0123abcd"])
    assert manager.hash("setup.exe") == "Sha256: 0123abcd"
    assert _last_arguments(runner.execute) == ["hash", "--file", "setup.exe"]


def test_download_requires_1_6(manager, runner, tmp_path):
    assert manager.download("Git.Git", tmp_path) is True

    runner.replies["--version"] = _reply(["v1.5.1881"])
    with pytest.raises(ActionFailedError, match="requires winget 1.6"):
        manager.download("Git.Git", tmp_path)


# --- Pins ---


def test_get_pinned_packages(manager, runner):
    runner.default_reply = _reply(PIN_LINES)

    pins = manager.get_pinned_packages()

    assert pins[0].id == "Microsoft.PowerToys"
    assert pins[0].pin_type is PinType.PINNING
    assert _last_arguments(runner.execute)[:2] == ["pin", "list"]


def test_pins_need_1_5(manager, runner):
    runner.replies["--version"] = _reply(["v1.4.11071"])

    with pytest.raises(ActionFailedError) as exc_info:
        manager.get_pinned_packages()
    assert exc_info.value.context["installed_version"] == "1.4.11071"


def test_unknown_version_counts_as_oldest(manager, runner):
    runner.replies["--version"] = _reply(["garbage"])

    with pytest.raises(ActionFailedError):
        manager.reset_pins()


def test_pins_on_missing_winget(manager, runner):
    runner.execute.side_effect = ToolNotFoundError("winget")

    with pytest.raises(ToolNotFoundError):
        manager.pin_add("Git.Git")


def test_pin_add_arguments(manager, runner):
    manager.pin_add("Git.Git", blocking=True)
    assert _last_arguments(runner.execute)[:6] == [
        "pin",
        "add",
        "--exact",
        "--id",
        "Git.Git",
        "--blocking",
    ]

    manager.pin_add_installed("Git.Git", version="2.*")
    arguments = _last_arguments(runner.execute)
    assert "--version" in arguments and "2.*" in arguments
    assert "--installed" in arguments
    assert "--blocking" not in arguments


def test_pin_remove_installed(manager, runner):
    assert manager.pin_remove_installed("Git.Git") is True
    assert _last_arguments(runner.execute)[:2] == ["pin", "remove"]
    assert "--installed" in _last_arguments(runner.execute)


# --- Asynchronous operations ---


@pytest.mark.asyncio
async def test_get_upgradeable_packages_async(manager, runner):
    runner.default_reply = _reply(UPGRADE_LINES)

    packages = await manager.get_upgradeable_packages_async(include_unknown=True)

    assert len(packages) == 2
    assert "--include-unknown" in _last_arguments(runner.execute_async)
    runner.execute.assert_not_called()


@pytest.mark.asyncio
async def test_pin_add_async_checks_version_without_blocking(manager, runner):
    assert await manager.pin_add_async("Git.Git") is True

    runner.execute.assert_not_called()
    assert runner.execute_async.await_count == 2


@pytest.mark.asyncio
async def test_download_async_too_old(manager, runner, tmp_path):
    runner.replies["--version"] = _reply(["v1.5.1881"])

    with pytest.raises(ActionFailedError):
        await manager.download_async("Git.Git", tmp_path)


@pytest.mark.asyncio
async def test_install_async_wraps_errors(manager, runner):
    runner.execute_async.side_effect = ValueError("bad output")

    with pytest.raises(ActionFailedError):
        await manager.install_package_async("Git.Git")
