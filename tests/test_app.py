"""
Tests for the command line interface.
"""

import json

import pytest

from meetglobe import __version__
from meetglobe.app import main, parse_participant
from meetglobe.errors import ValidationError


@pytest.fixture
def data_dir(clean_env, tmp_path, cities_file):
    """Data directory holding the test city dataset; cities_file already lives in tmp_path."""
    return tmp_path


def run(data_dir, *argv):
    return main(["--data-dir", str(data_dir), *argv])


def _meeting_id(output: str) -> str:
    for line in output.splitlines():
        if line.startswith("Meeting: "):
            return line[len("Meeting: "):]
    raise AssertionError(f"No meeting id in output: {output!r}")


class TestParseParticipant:
    """Test "Name, City" parsing."""

    def test_splits_on_first_comma(self):
        assert parse_participant("Ann, Washington, D.C.") == ("Ann", " Washington, D.C.")

    def test_requires_comma(self):
        with pytest.raises(ValidationError):
            parse_participant("Ann")


class TestCommands:
    """Test the subcommands end to end against a temporary data directory."""

    def test_version(self, capsys):
        main(["--version"])
        assert capsys.readouterr().out.strip() == __version__

    def test_no_command_prints_help(self, clean_env, capsys):
        main([])
        assert "usage:" in capsys.readouterr().out

    def test_create_show_delete(self, data_dir, capsys):
        run(data_dir, "create-meeting", "--title", "Standup",
            "--participant", "alice, paris", "--participant", "Bob, London")
        out = capsys.readouterr().out
        meeting_id = _meeting_id(out)
        assert meeting_id.startswith("standup-")
        assert "Participants: 2" in out

        run(data_dir, "show", "--id", meeting_id)
        payload = json.loads(capsys.readouterr().out)
        assert payload["meeting"]["title"] == "Standup"
        assert len(payload["points"]) == 2
        assert payload["arcs"] == [{"startLat": 48.8566, "startLng": 2.3522, "endLat": 51.5072, "endLng": -0.1276}]
        assert payload["warnings"] == []

        run(data_dir, "delete-meeting", "--id", meeting_id)
        assert f"Deleted: {meeting_id}" in capsys.readouterr().out

        with pytest.raises(SystemExit) as exc:
            run(data_dir, "show", "--id", meeting_id)
        assert exc.value.code == 1

    def test_create_from_input_file(self, data_dir, capsys):
        path = data_dir / "meeting.json"
        path.write_text(json.dumps({
            "title": "Planning",
            "participants": [{"name": "Carol", "city": "Atlantis"}, {"name": "Dan", "city": "Tokyo"}],
        }))

        run(data_dir, "create-meeting", "--input", str(path))

        out = capsys.readouterr().out
        assert "Title: Planning" in out
        assert "[warn] City 'Atlantis' for participant Carol has no known coordinates" in out

    @pytest.mark.parametrize("content, message", [
        ("{not json", "not valid JSON"),
        ('"Standup"', "object or a participant list"),
        ('{"title": "Standup", "participants": "Ann, Paris"}', "must be a list"),
    ])
    def test_malformed_input_file(self, data_dir, content, message):
        path = data_dir / "meeting.json"
        path.write_text(content)

        with pytest.raises(SystemExit) as exc:
            run(data_dir, "create-meeting", "--input", str(path))
        assert message in str(exc.value.code)

    def test_invalid_title_exits_2(self, data_dir, capsys):
        with pytest.raises(SystemExit) as exc:
            run(data_dir, "create-meeting", "--title", "!!!", "--participant", "Ann, Paris")
        assert exc.value.code == 2
        assert "[invalid]" in capsys.readouterr().err
        assert not (data_dir / "meetings").exists()

    def test_list_meetings(self, data_dir, capsys):
        run(data_dir, "list-meetings")
        assert "No meetings." in capsys.readouterr().out

        run(data_dir, "create-meeting", "--title", "Retro", "--participant", "Ann, Paris")
        capsys.readouterr()
        run(data_dir, "list-meetings")
        out = capsys.readouterr().out
        assert "Found 1 meetings" in out
        assert "Retro (1 participants)" in out

    def test_add_and_list_members(self, data_dir, capsys):
        run(data_dir, "add-member", "--name", "ann lee", "--city", "nairobi")
        assert capsys.readouterr().out.startswith("[new] Ann Lee (Nairobi)")

        run(data_dir, "add-member", "--name", "ANN LEE", "--city", "Nairobi")
        assert capsys.readouterr().out.startswith("[existing] Ann Lee (Nairobi)")

        run(data_dir, "add-member", "--name", "Zed", "--city", "Atlantis")
        assert "[warn]" in capsys.readouterr().out

        run(data_dir, "list-members")
        out = capsys.readouterr().out
        assert "Found 2 members" in out
        assert "Zed (Atlantis)  [no coordinates]" in out

    def test_check_city(self, data_dir, capsys):
        run(data_dir, "check-city", "--city", "  NEW YORK ")
        assert capsys.readouterr().out.strip() == "New York [US]: lat=40.7128, lng=-74.006"

        with pytest.raises(SystemExit) as exc:
            run(data_dir, "check-city", "--city", "Atlantis")
        assert exc.value.code == 1

    def test_missing_city_dataset(self, clean_env, tmp_path):
        with pytest.raises(SystemExit) as exc:
            run(tmp_path / "empty", "check-city", "--city", "Paris")
        assert str(exc.value.code).startswith("Error: City dataset not found")

    def test_migrate_then_sqlite_backend(self, data_dir, clean_env, capsys):
        run(data_dir, "create-meeting", "--title", "Standup", "--participant", "Ann, Paris")
        meeting_id = _meeting_id(capsys.readouterr().out)

        run(data_dir, "migrate")
        out = capsys.readouterr().out
        assert "Members: migrated=1 skipped=0" in out
        assert "Meetings: migrated=1 skipped=0" in out

        clean_env.setenv("MEETGLOBE_BACKEND", "sqlite")
        run(data_dir, "show", "--id", meeting_id)
        payload = json.loads(capsys.readouterr().out)
        assert payload["meeting"]["id"] == meeting_id

    def test_repair(self, data_dir, capsys):
        (data_dir / "members.json").write_text(json.dumps([
            {"id": "a", "name": "Ann", "city": "Paris"},
            {"id": "b", "name": "Ann", "city": "Paris"},
        ]))
        run(data_dir, "repair")
        assert "merged=1 members=1" in capsys.readouterr().out
