from shrine.local.deployments import DeploymentStore
from shrine.state import Deployment


def test_load_team_file_format(tmp_path):
    team_dir = tmp_path / "team-a"
    team_dir.mkdir()
    data = """
# Team deployments
container web abc123
  # indented comment
container api def456 # inline comment

invalid-line
service db ghi789
container svc cid999 deadbeef
"""
    (team_dir / "deployments.txt").write_text(data)

    store = DeploymentStore(tmp_path)
    got = {d.name: d for d in store.list("team-a")}

    assert got == {
        "web": Deployment("container", "web", "abc123"),
        "api": Deployment("container", "api", "def456"),
        "db": Deployment("service", "db", "ghi789"),
        "svc": Deployment("container", "svc", "cid999", "deadbeef"),
    }


def test_persistence(tmp_path):
    dep = Deployment("container", "web", "abc123", "aabbcc")
    DeploymentStore(tmp_path).record("team-x", dep)

    assert DeploymentStore(tmp_path).list("team-x") == [dep]


def test_persistence_without_hash(tmp_path):
    dep = Deployment("container", "web", "abc123")
    DeploymentStore(tmp_path).record("team-x", dep)

    assert DeploymentStore(tmp_path).list("team-x") == [dep]


def test_record_update_list_remove(tmp_path):
    store = DeploymentStore(tmp_path)
    web = Deployment("container", "web", "abc123")
    api = Deployment("container", "api", "def456")
    store.record("team-a", web)
    store.record("team-a", api)

    web_updated = Deployment("container", "web", "newid")
    store.record("team-a", web_updated)

    got = sorted(store.list("team-a"), key=lambda d: d.name)
    assert got == [api, web_updated]

    store.remove("team-a", "web")
    assert store.list("team-a") == [api]

    store.remove("team-a", "non-existent")
    assert store.list("team-a") == [api]


def test_empty_team(tmp_path):
    assert DeploymentStore(tmp_path).list("unknown-team") == []


def test_team_isolation(tmp_path):
    store = DeploymentStore(tmp_path)
    dep_a = Deployment("container", "web", "aaa")
    dep_b = Deployment("container", "web", "bbb")
    store.record("team-a", dep_a)
    store.record("team-b", dep_b)

    assert store.list("team-a") == [dep_a]
    assert store.list("team-b") == [dep_b]


def test_file_is_sorted_by_name(tmp_path):
    store = DeploymentStore(tmp_path)
    store.record("t", Deployment("container", "zeta", "z1", "h"))
    store.record("t", Deployment("container", "alpha", "a1", "h"))

    lines = (tmp_path / "t" / "deployments.txt").read_text().splitlines()
    assert lines == ["container alpha a1 h", "container zeta z1 h"]


def test_no_temp_files_left(tmp_path):
    store = DeploymentStore(tmp_path)
    store.record("t", Deployment("container", "web", "id"))

    assert [p.name for p in (tmp_path / "t").iterdir()] == ["deployments.txt"]