import json
from unittest.mock import MagicMock

import pytest

from .exceptions import ActionFailedError
from .models import ProcessResult, Source
from .runner import ProcessRunner
from .source_manager import WinGetSourceManager, sources_from_export

SOURCE_LINES = [
    "Name    Argument                                      Explicit",
    "--------------------------------------------------------------",
    "msstore https://storeedgefd.dsx.mp.microsoft.com/v9.0 false",
    "winget  https://cdn.winget.microsoft.com/cache        false",
]

EXPORT_LINES = [
    json.dumps(
        {
            "Arg": "https://cdn.winget.microsoft.com/cache",
            "Data": "Microsoft.Winget.Source_8wekyb3d8bbwe",
            "Identifier": "Microsoft.Winget.Source_8wekyb3d8bbwe",
            "Name": "winget",
            "TrustLevel": ["Trusted"],
            "Type": "Microsoft.PreIndexed.Package",
            "Explicit": False,
        }
    ),
    "not json at all",
    "{broken",
]


# --- Fixtures ---


@pytest.fixture
def runner():
    """A ProcessRunner double returning a fixed result."""
    mock_runner = MagicMock(spec=ProcessRunner)
    mock_runner.execute.return_value = ProcessResult(output_lines=SOURCE_LINES)
    mock_runner.execute_async.return_value = ProcessResult(output_lines=SOURCE_LINES)
    return mock_runner


@pytest.fixture
def manager(runner):
    return WinGetSourceManager(runner=runner)


def _last_arguments(mock):
    return mock.call_args[0][1]


# --- Tests ---


def test_get_installed_sources(manager, runner):
    sources = manager.get_installed_sources()

    assert [s.name for s in sources] == ["msstore", "winget"]
    assert sources[1].arg == "https://cdn.winget.microsoft.com/cache"
    assert _last_arguments(runner.execute) == ["source", "list"]


def test_get_installed_sources_by_name(manager):
    sources = manager.get_installed_sources("WinGet")
    assert [s.name for s in sources] == ["winget"]


def test_add_source_arguments(manager, runner):
    assert manager.add_source("corp", "https://winget.corp.example/api", "Microsoft.Rest") is True
    assert _last_arguments(runner.execute) == [
        "source",
        "add",
        "--name",
        "corp",
        "--arg",
        "https://winget.corp.example/api",
        "--type",
        "Microsoft.Rest",
        "--accept-source-agreements",
    ]


def test_remove_source_failure(manager, runner):
    runner.execute.return_value = ProcessResult(exit_code=-1978335222)
    assert manager.remove_source("corp") is False


def test_reset_and_update(manager, runner):
    assert manager.reset_sources() is True
    assert _last_arguments(runner.execute) == ["source", "reset", "--force"]
    assert manager.update_sources() is True
    assert _last_arguments(runner.execute) == ["source", "update"]


def test_export_sources(manager, runner):
    runner.execute.return_value = ProcessResult(output_lines=EXPORT_LINES[:1])

    assert json.loads(manager.export_sources("winget"))["Name"] == "winget"
    assert _last_arguments(runner.execute) == ["source", "export", "--name", "winget"]


def test_export_sources_to_file(manager, runner, tmp_path):
    runner.execute.return_value = ProcessResult(output_lines=EXPORT_LINES[:1])
    target = tmp_path / "sources.json"

    assert manager.export_sources_to_file(target) is True
    assert json.loads(target.read_text(encoding="utf-8"))["Type"] == "Microsoft.PreIndexed.Package"
    assert manager.export_sources_to_file("") is False


def test_sources_from_export_skips_bad_lines():
    sources = sources_from_export(ProcessResult(output_lines=EXPORT_LINES))

    assert sources == [
        Source(
            name="winget",
            arg="https://cdn.winget.microsoft.com/cache",
            type="Microsoft.PreIndexed.Package",
            identifier="Microsoft.Winget.Source_8wekyb3d8bbwe",
            trust_level="Trusted",
            explicit="false",
        )
    ]


def test_errors_are_wrapped(manager, runner):
    runner.execute.side_effect = UnicodeError("bad bytes")

    with pytest.raises(ActionFailedError, match="Listing sources failed"):
        manager.get_installed_sources()


@pytest.mark.asyncio
async def test_async_variants(manager, runner, tmp_path):
    sources = await manager.get_installed_sources_async()
    assert len(sources) == 2

    runner.execute_async.return_value = ProcessResult(output_lines=EXPORT_LINES[:1])
    exported = await manager.export_sources_to_object_async()
    assert exported[0].identifier == "Microsoft.Winget.Source_8wekyb3d8bbwe"

    target = tmp_path / "sources.json"
    assert await manager.export_sources_to_file_async(target) is True
    assert target.exists()

    assert await manager.add_source_async("corp", "https://winget.corp.example/api") is True
    assert "--type" not in _last_arguments(runner.execute_async)
    runner.execute.assert_not_called()
