import pytest

from repomap.agent.tools import read_file


@pytest.mark.asyncio
async def test_reads_whole_file(tmp_path) -> None:
    target = tmp_path / "file1.ts"
    target.write_text("export const one = 1\n", encoding="utf-8")

    assert await read_file(str(target)) == "export const one = 1\n"


@pytest.mark.asyncio
async def test_missing_file_returns_message(tmp_path) -> None:
    target = tmp_path / "absent.ts"
    assert await read_file(str(target)) == f"File not found: {target}"


@pytest.mark.asyncio
async def test_directory_is_not_a_file(tmp_path) -> None:
    assert await read_file(str(tmp_path)) == f"{tmp_path} is not a file"


@pytest.mark.asyncio
async def test_undecodable_file_reports_failure(tmp_path) -> None:
    target = tmp_path / "blob.bin"
    target.write_bytes(b"\xff\xfe\xfa")

    result = await read_file(str(target))

    assert result.startswith("File reading failed - ")
