import pytest

from shrine.local.teams import TeamNotFoundError, TeamStore


def _team(name, **spec):
    return {
        "apiVersion": "shrine/v1",
        "kind": "Team",
        "metadata": {"name": name},
        "spec": spec,
    }


def test_operations(tmp_path):
    store = TeamStore(tmp_path)
    team = _team("team-a", displayName="Team Alpha", contact="alpha@example.com")

    store.save_team(team)
    resource_id = team["metadata"]["resourceID"]
    assert resource_id != ""

    loaded = store.load_team("team-a")
    assert loaded["metadata"]["name"] == "team-a"
    assert loaded["spec"]["displayName"] == "Team Alpha"
    assert loaded["metadata"]["resourceID"] == resource_id

    teams = store.list_teams()
    assert [t["metadata"]["name"] for t in teams] == ["team-a"]

    store.delete_team("team-a")
    with pytest.raises(TeamNotFoundError):
        store.load_team("team-a")


def test_load_non_existent(tmp_path):
    with pytest.raises(TeamNotFoundError, match="ghost"):
        TeamStore(tmp_path).load_team("ghost")


def test_delete_non_existent(tmp_path):
    with pytest.raises(TeamNotFoundError, match="not found"):
        TeamStore(tmp_path).delete_team("ghost")


def test_list_persistence(tmp_path):
    store1 = TeamStore(tmp_path)
    store1.save_team(_team("team1"))
    store1.save_team(_team("team2"))

    teams = TeamStore(tmp_path).list_teams()
    assert sorted(t["metadata"]["name"] for t in teams) == ["team1", "team2"]


def test_existing_resource_id_kept(tmp_path):
    store = TeamStore(tmp_path)
    team = _team("team-a")
    team["metadata"]["resourceID"] = "fixed-id"
    store.save_team(team)

    assert store.load_team("team-a")["metadata"]["resourceID"] == "fixed-id"


def test_names_are_case_insensitive_on_disk(tmp_path):
    store = TeamStore(tmp_path)
    store.save_team(_team("Team-B"))

    assert (tmp_path / "teams" / "team-b.json").is_file()
    assert store.load_team("TEAM-B")["metadata"]["name"] == "Team-B"


def test_list_skips_broken_files(tmp_path, capsys):
    store = TeamStore(tmp_path)
    store.save_team(_team("good"))
    (tmp_path / "teams" / "bad.json").write_text("{not json")
    (tmp_path / "teams" / "notes.txt").write_text("ignored")

    teams = store.list_teams()

    assert [t["metadata"]["name"] for t in teams] == ["good"]
    assert 'failed to load team file "bad.json"' in capsys.readouterr().out