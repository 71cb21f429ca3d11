import json

import pytest

from .cli import EXIT_FAILED, EXIT_NOT_INSTALLED, EXIT_OK, main
from .exceptions import ActionFailedError, ToolNotFoundError
from .models import Package, Source

TABLE = (
    "Name    Argument                                      Explicit\n"
    "--------------------------------------------------------------\n"
    "winget  https://cdn.winget.microsoft.com/cache        false\n"
)


@pytest.fixture(autouse=True)
def quiet_logging(mocker):
    """Keep the CLI from reconfiguring the global loguru sinks."""
    return mocker.patch("winget_manager.cli.setup_logging")


def test_no_command_prints_help(capsys):
    assert main([]) == EXIT_FAILED
    assert "usage" in capsys.readouterr().out


def test_upgradeable_as_json(mocker, capsys):
    mocker.patch(
        "winget_manager.cli.WinGetPackageManager.get_upgradeable_packages",
        return_value=[Package(name="Git", id="Git.Git", version="2.44.0", available_version="2.46.0")],
    )

    assert main(["--json", "upgradeable"]) == EXIT_OK

    rows = json.loads(capsys.readouterr().out)
    assert rows[0]["available_version"] == "2.46.0"


def test_sources_as_text(mocker, capsys):
    mocker.patch(
        "winget_manager.cli.WinGetSourceManager.get_installed_sources",
        return_value=[Source(name="winget", arg="https://cdn.winget.microsoft.com/cache")],
    )

    assert main(["sources"]) == EXIT_OK
    assert "https://cdn.winget.microsoft.com/cache" in capsys.readouterr().out


def test_version_not_installed(mocker):
    mocker.patch("winget_manager.cli.WinGetPackageManager.winget_version", new="")
    assert main(["version"]) == EXIT_NOT_INSTALLED


def test_tool_not_found_exit_code(mocker):
    mocker.patch(
        "winget_manager.cli.WinGetPackageManager.get_installed_packages",
        side_effect=ToolNotFoundError("winget"),
    )
    assert main(["list"]) == EXIT_NOT_INSTALLED


def test_action_failed_exit_code(mocker):
    mocker.patch(
        "winget_manager.cli.WinGetPackageManager.search_package",
        side_effect=ActionFailedError("Searching packages failed."),
    )
    assert main(["search", "git"]) == EXIT_FAILED


def test_parse_saved_output(tmp_path, capsys):
    saved = tmp_path / "sources.txt"
    saved.write_text(TABLE, encoding="utf-8")

    assert main(["--json", "parse", str(saved), "--kind", "source"]) == EXIT_OK
    assert json.loads(capsys.readouterr().out)[0]["name"] == "winget"


def test_parse_missing_file(tmp_path):
    assert main(["parse", str(tmp_path / "missing.txt")]) == EXIT_FAILED


def test_invalid_config_file(tmp_path):
    config = tmp_path / "config.json"
    config.write_text("[]", encoding="utf-8")
    assert main(["--config", str(config), "sources"]) == EXIT_FAILED
