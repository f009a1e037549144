import pytest

from shrine.local.subnets import SubnetStore
from shrine.state import NoAvailableSubnetsError, SubnetNotFoundError

SAMPLE = """
# This is a comment
team-a=10.100.5.0/24
  # indented comment
team-b=10.100.6.0/24 # inline comment

invalid-line
team-c=not-a-cidr
"""


def test_load_parses_valid_lines(tmp_path):
    (tmp_path / "subnets.txt").write_text(SAMPLE)
    store = SubnetStore(tmp_path)
    assert store.list_subnets() == {
        "team-a": "10.100.5.0/24",
        "team-b": "10.100.6.0/24",
    }


def test_load_marks_octets_taken(tmp_path):
    (tmp_path / "subnets.txt").write_text(SAMPLE)
    store = SubnetStore(tmp_path)
    assert store.allocate_subnet("team-new") == "10.100.7.0/24"


def test_invalid_entries_are_skipped(tmp_path):
    (tmp_path / "subnets.txt").write_text(SAMPLE)
    store = SubnetStore(tmp_path)
    with pytest.raises(SubnetNotFoundError):
        store.get_subnet("team-c")


def test_persistence_across_instances(tmp_path):
    store = SubnetStore(tmp_path)
    cidr = store.allocate_subnet("team-x")
    reloaded = SubnetStore(tmp_path)
    assert reloaded.get_subnet("team-x") == cidr
    assert reloaded.allocate_subnet("team-y") == "10.100.6.0/24"


def test_saved_file_is_sorted(tmp_path):
    store = SubnetStore(tmp_path)
    store.allocate_subnet("team-b")
    store.allocate_subnet("team-a")
    assert (tmp_path / "subnets.txt").read_text() == (
        "team-a=10.100.6.0/24\nteam-b=10.100.5.0/24\n"
    )


def test_interface(tmp_path):
    store = SubnetStore(tmp_path)

    cidr1 = store.allocate_subnet("team-a")
    assert cidr1 == "10.100.5.0/24"

    assert store.allocate_subnet("team-a") == cidr1
    assert store.get_subnet("team-a") == cidr1

    with pytest.raises(SubnetNotFoundError):
        store.get_subnet("non-existent")

    assert store.list_subnets() == {"team-a": cidr1}

    store.release_subnet("team-a")
    with pytest.raises(SubnetNotFoundError):
        store.get_subnet("team-a")

    store.release_subnet("team-a")
    assert store.list_subnets() == {}


def test_release_frees_octet(tmp_path):
    store = SubnetStore(tmp_path)
    store.allocate_subnet("team-a")
    store.release_subnet("team-a")
    assert store.allocate_subnet("team-b") == "10.100.5.0/24"


def test_defensive_copy(tmp_path):
    store = SubnetStore(tmp_path)
    store.allocate_subnet("team-a")
    subnets = store.list_subnets()
    subnets["team-a"] = "MODIFIED"
    assert store.get_subnet("team-a") == "10.100.5.0/24"


def test_exhaustion(tmp_path):
    store = SubnetStore(tmp_path)
    for i in range(5, 256):
        assert store.allocate_subnet(f"team-{i}") == f"10.100.{i}.0/24"
    with pytest.raises(NoAvailableSubnetsError):
        store.allocate_subnet("one-too-many")