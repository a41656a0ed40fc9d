"""Tests for identifier assignment."""

import hashlib
import re
import struct

import pytest

from ninjaxcode.generators.xcode.model import (
    ProductType,
    PBXProject,
    assign_ids,
    generate_id,
)
from ninjaxcode.generators.xcode.validator import find_id_collisions


def _reference_id(seed: str, key: str, counter: int) -> str:
    digest = hashlib.sha1(f"{seed} {key} {counter}".encode()).digest()
    chunks = struct.unpack("<5I", digest)
    words = (chunks[0] ^ chunks[3], chunks[1] ^ chunks[4], chunks[2])
    return struct.pack("<3I", *words).hex().upper()


@pytest.fixture()
def project() -> PBXProject:
    project = PBXProject("products", "Debug", "../../", {})
    project.add_source_file_to_indexing_target("base/strings.cc")
    project.add_aggregate_target("All", "script")
    app = project.add_native_target(
        "app", "", "App.app", ProductType.APPLICATION.value, ".", "script"
    )
    tests = project.add_native_target(
        "tests", "", "Tests.xctest", ProductType.UNIT_TEST_BUNDLE.value, ".", "script"
    )
    tests.add_dependency(app, project)
    return project


class TestGenerateId:
    def test_format(self) -> None:
        assert re.fullmatch(r"[0-9A-F]{24}", generate_id("seed", "key", 0))

    def test_folding(self) -> None:
        assert generate_id("products", "Sources", 7) == _reference_id(
            "products", "Sources", 7
        )

    def test_counter_changes_id(self) -> None:
        assert generate_id("p", "k", 0) != generate_id("p", "k", 1)


class TestAssignIds:
    def test_depth_first_order(self, project: PBXProject) -> None:
        assign_ids(project)
        assert project.id == generate_id("products", "products", 0)
        assert project.configurations.id == generate_id(
            "products", 'Build configuration list for PBXProject "products"', 1
        )
        assert project.configurations.configurations[0].id == generate_id(
            "products", "Debug", 2
        )
        assert project.main_group.id == generate_id("products", "", 3)
        assert project.sources.id == generate_id("products", "Source", 4)

    def test_stable(self, project: PBXProject) -> None:
        other = PBXProject("products", "Debug", "../../", {})
        other.add_source_file_to_indexing_target("base/strings.cc")
        assign_ids(project)
        assign_ids(other)
        assert other.main_group.id == project.main_group.id
        assert other.sources.id == project.sources.id

    def test_assigned_once(self, project: PBXProject) -> None:
        assign_ids(project)
        with pytest.raises(RuntimeError, match="already assigned"):
            assign_ids(project)


class TestCollisionScan:
    def test_no_collision(self, project: PBXProject) -> None:
        assign_ids(project)
        assert find_id_collisions(project) == {}

    def test_collision_is_reported(self, project: PBXProject) -> None:
        assign_ids(project)
        project.products.id = project.sources.id
        collisions = find_id_collisions(project)
        assert list(collisions) == [project.sources.id]
        assert collisions[project.sources.id] == [project.sources, project.products]
