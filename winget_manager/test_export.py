import json

import pytest

from .export import (
    export_output_to_file,
    export_output_to_file_async,
    export_output_to_string,
    export_records_to_file,
    export_text_to_file,
    export_text_to_file_async,
)
from .models import Package, ProcessResult


@pytest.fixture
def settings_result():
    """Captured output of `winget settings export`."""
    return ProcessResult(
        output_lines=[
            "   - ",
            '{"$schema":"https://aka.ms/winget-settings-export.schema.json","adminSettings":{}}',
        ],
        command=["winget", "settings", "export"],
    )


def test_export_output_to_string_is_unfiltered(settings_result):
    text = export_output_to_string(settings_result)
    assert text == "   - \n" + settings_result.output_lines[1]


def test_export_output_to_file(tmp_path, settings_result):
    target = tmp_path / "exports" / "settings.json"

    assert export_output_to_file(settings_result, target) is True
    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "   - "
    assert json.loads(lines[1])["adminSettings"] == {}


@pytest.mark.parametrize("path", [None, "", "   "])
def test_export_without_destination(path, settings_result):
    assert export_output_to_file(settings_result, path) is False


def test_export_propagates_file_system_errors(tmp_path, settings_result):
    directory = tmp_path / "is_a_directory"
    directory.mkdir()

    with pytest.raises(OSError):
        export_output_to_file(settings_result, directory)


@pytest.mark.asyncio
async def test_export_output_to_file_async(tmp_path, settings_result):
    target = tmp_path / "settings.json"

    assert await export_output_to_file_async(settings_result, str(target)) is True
    assert target.read_text(encoding="utf-8") == export_output_to_string(settings_result)


@pytest.mark.asyncio
async def test_export_async_without_destination(settings_result):
    assert await export_output_to_file_async(settings_result, "") is False


def test_export_records_to_file(tmp_path):
    target = tmp_path / "packages.json"
    packages = [Package(name="Git", id="Git.Git", version="2.44.0")]

    assert export_records_to_file(packages, target) is True
    assert json.loads(target.read_text(encoding="utf-8"))[0]["id"] == "Git.Git"


def test_export_text_to_file(tmp_path):
    target = tmp_path / "nested" / "hash.txt"

    assert export_text_to_file("Größe: 42\n", target) is True
    assert target.read_text(encoding="utf-8") == "Größe: 42\n"
    assert export_text_to_file("ignored", None) is False


@pytest.mark.asyncio
async def test_export_text_to_file_async(tmp_path):
    target = tmp_path / "settings.json"

    assert await export_text_to_file_async("{}", target) is True
    assert target.read_text(encoding="utf-8") == "{}"
