from pathlib import Path

from xproject.infrastructure.persistence.atomic_io import atomic_write


class TestAtomicWrite:
    async def test_writes_text_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "build" / "xcode-archive.log"

        await atomic_write(target, "line\n")

        assert target.read_text() == "line\n"

    async def test_writes_bytes(self, tmp_path: Path) -> None:
        target = tmp_path / "export.plist"

        await atomic_write(target, b"<plist/>")

        assert target.read_bytes() == b"<plist/>"

    async def test_replaces_existing_file_without_leftovers(self, tmp_path: Path) -> None:
        target = tmp_path / "out.log"
        target.write_text("old")

        await atomic_write(target, "new")

        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["out.log"]
