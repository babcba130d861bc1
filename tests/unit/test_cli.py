import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from dexapi import cli
from dexapi.models import ImportResult


@pytest.fixture
def patched_client(fake_api):
    """Makes the CLI build its service around the fake PokeAPI."""
    with patch("dexapi.cli.PokeAPIClient", return_value=fake_api.client):
        yield fake_api.client


@pytest.mark.parametrize("argv", [
    ["full", "--pokemon", "0"],
    ["pokemon", "--limit", "2000"],
])
def test_out_of_range_limit_exits_before_importing(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2
    assert "Invalid limit" in capsys.readouterr().out


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_print_result_summary(capsys):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    result = ImportResult(
        success=False,
        total_records=3,
        successful_imports=2,
        failed_imports=1,
        augmented_imports=1,
        errors=("Missing stats for: missingno",),
        source="PokeAPI v2 - Pokemon",
        start_time=start,
        end_time=start + timedelta(milliseconds=1500),
    )

    cli.print_result(result)

    out = capsys.readouterr().out
    assert "Status: FAILED" in out
    assert "Successful: 2" in out
    assert "(of which augmented: 1)" in out
    assert "Duration: 1500 ms" in out
    assert "- Missing stats for: missingno" in out


@pytest.mark.asyncio
async def test_generations_command_succeeds(patched_client, fake_api, settings, capsys):
    fake_api.add_generation(1)
    args = cli.build_parser().parse_args(["generations"])

    exit_code = await cli.run(args, settings)

    assert exit_code == 0
    assert "Source: PokeAPI v2 - Generations" in capsys.readouterr().out
    patched_client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_pokemon_command_honours_offset(patched_client, fake_api, settings):
    for dex in (11, 12):
        fake_api.add_pokemon(dex, f"mon-{dex}", names=[("en", f"Mon {dex}")])
    args = cli.build_parser().parse_args(["pokemon", "--limit", "2", "--offset", "10"])

    exit_code = await cli.run(args, settings)

    assert exit_code == 0
    assert fake_api.calls("pokemon") == [11, 12]


@pytest.mark.asyncio
async def test_failed_import_exits_with_2(patched_client, fake_api, settings):
    fake_api.client.is_healthy.return_value = False
    args = cli.build_parser().parse_args(["full", "--pokemon", "5"])

    assert await cli.run(args, settings) == 2


@pytest.mark.asyncio
async def test_health_command_lists_healthy_importers(patched_client, settings, capsys):
    args = cli.build_parser().parse_args(["health"])

    assert await cli.run(args, settings) == 0
    assert "PokeAPI v2 - Types" in capsys.readouterr().out


def test_offset_with_batch_size_is_rejected(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["pokemon", "--limit", "5", "--offset", "3", "--batch-size", "2"])

    assert excinfo.value.code == 2
    assert "--offset cannot be combined with --batch-size" in capsys.readouterr().out
