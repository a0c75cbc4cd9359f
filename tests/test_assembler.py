from taste_mixer.core import CandidateTrack
from taste_mixer.pipeline import PlaylistMode, assemble, remove_track


def _tracks(prefix, count):
    return [CandidateTrack(id=f"{prefix}{i}", name=f"{prefix}{i}") for i in range(count)]


def test_replace_keeps_first_fifty_in_order() -> None:
    generated = _tracks("g", 80)

    playlist = assemble(generated, PlaylistMode.REPLACE, existing=_tracks("old", 3))

    assert len(playlist) == 50
    assert [t.id for t in playlist] == [f"g{i}" for i in range(50)]


def test_replace_with_nothing_generated_empties_playlist() -> None:
    assert assemble([], PlaylistMode.REPLACE, existing=_tracks("old", 3)) == []


def test_append_keeps_existing_and_skips_duplicates() -> None:
    existing = _tracks("t", 3)
    generated = [CandidateTrack(id="t1", name="dup")] + _tracks("n", 2)

    playlist = assemble(generated, PlaylistMode.APPEND, existing=existing)

    assert [t.id for t in playlist] == ["t0", "t1", "t2", "n0", "n1"]
    assert playlist[1].name == "t1"


def test_append_fills_only_remaining_capacity() -> None:
    existing = _tracks("e", 45)

    playlist = assemble(_tracks("g", 20), PlaylistMode.APPEND, existing=existing)

    assert len(playlist) == 50
    assert playlist[:45] == existing
    assert [t.id for t in playlist[45:]] == [f"g{i}" for i in range(5)]


def test_append_with_nothing_generated_keeps_existing() -> None:
    existing = _tracks("e", 4)

    assert assemble([], "append", existing=existing) == existing


def test_remove_track_drops_only_that_entry() -> None:
    playlist = _tracks("t", 3)

    assert [t.id for t in remove_track(playlist, "t1")] == ["t0", "t2"]
    assert len(playlist) == 3


def test_append_never_exceeds_max_size_with_oversized_existing() -> None:
    existing = _tracks("e", 60)

    playlist = assemble(_tracks("n", 1), PlaylistMode.APPEND, existing=existing)

    assert len(playlist) == 50
    assert playlist == existing[:50]
