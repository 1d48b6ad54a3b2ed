import threading

import pytest

from diforge import Container, DIForgeCircularDependencyError, DIForgeResolutionError
from diforge._internal.resolution_stack import (
    constructing,
    current_resolution_path,
    ensure_not_constructing,
)


class _Leaf:
    pass


class _Branch:
    def __init__(self, leaf: _Leaf) -> None:
        self.path = current_resolution_path()
        self.leaf = leaf


class _Recorder:
    def __init__(self) -> None:
        self.path = current_resolution_path()


class _Parent:
    def __init__(self, recorder: _Recorder) -> None:
        self.recorder = recorder


class _Broken:
    def __init__(self, missing: "_Missing") -> None:
        self.missing = missing


class _Missing:
    def __init__(self, value: int) -> None:
        self.value = value


def test_path_is_empty_outside_resolution() -> None:
    assert current_resolution_path() == ()


def test_constructing_pushes_and_pops() -> None:
    with constructing(_Leaf):
        with constructing(_Branch):
            assert current_resolution_path() == (_Leaf, _Branch)
        assert current_resolution_path() == (_Leaf,)

    assert current_resolution_path() == ()


def test_constructing_restores_path_after_exception() -> None:
    with pytest.raises(RuntimeError), constructing(_Leaf):
        raise RuntimeError

    assert current_resolution_path() == ()


def test_ensure_not_constructing_reports_path() -> None:
    with constructing(_Branch), constructing(_Leaf):
        with pytest.raises(DIForgeCircularDependencyError) as exc_info:
            ensure_not_constructing(_Branch)

    assert exc_info.value.dependency is _Branch
    assert exc_info.value.resolution_path == [_Branch, _Leaf]


def test_ensure_not_constructing_accepts_new_key() -> None:
    with constructing(_Branch):
        ensure_not_constructing(_Leaf)


def test_container_tracks_keys_under_construction(container: Container) -> None:
    parent = container.make(_Parent)

    assert parent.recorder.path == (_Parent, _Recorder)
    assert current_resolution_path() == ()


def test_path_is_cleared_after_failed_resolution(container: Container) -> None:
    with pytest.raises(DIForgeResolutionError):
        container.make(_Broken)

    assert current_resolution_path() == ()


def test_disabled_detection_does_not_track_keys(
    container_without_cycle_detection: Container,
) -> None:
    recorder = container_without_cycle_detection.make(_Recorder)

    assert recorder.path == ()


def test_paths_are_isolated_between_threads(container: Container) -> None:
    paths: list[tuple[object, ...]] = []

    def resolve_in_thread() -> None:
        paths.append(container.make(_Recorder).path)

    threads = [threading.Thread(target=resolve_in_thread) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert paths == [(_Recorder,)] * 4
