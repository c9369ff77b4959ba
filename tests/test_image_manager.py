"""
Unit tests for the image resolution controller.
"""
import pytest
from docker.errors import APIError

from conftest import FakeAPIClient, image, messages
from dockimage.managers.image.base import (
    ImageBuildError,
    ImageManagerError,
    ImageNotFoundError,
    ImagePullError,
    ImagePushError,
    ImageRemoveError,
    ImageResolveError,
)
from dockimage.managers.image.index import fetch_local_images, search_local_images
from dockimage.managers.image_manager import ImageManager

FOO_ID = "sha256:f00f00f00f00aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
BUILT_ID = "sha256:b0b0b0b0b0b0bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"


def resource(build_context=None, **overrides):
    res = {
        "name": "foo:latest",
        "build": [],
        "force_build": False,
        "keep_locally": False,
        "push_remote": False,
    }
    if build_context is not None:
        res["build"] = [{
            "path": str(build_context),
            "dockerfile": "Dockerfile",
            "tag": [],
            "force_remove": False,
            "remove": True,
            "no_cache": False,
            "target": "",
            "build_arg": {},
            "label": {},
        }]
    res.update(overrides)
    return res


def manager(client, credentials=None):
    return ImageManager(credentials=credentials, docker_client=client)


class TestFindImage:
    """Tests for ImageManager.find_image."""

    def test_local_hit_does_not_pull(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        record, pull_output = manager(client).find_image("foo")
        assert record["Id"] == FOO_ID
        assert pull_output is None
        assert "pull" not in client.call_names()

    def test_pull_on_miss_then_search_again(self):
        client = FakeAPIClient()
        client.pull_adds = [image(FOO_ID, ["foo:latest"])]
        record, pull_output = manager(client).find_image("foo:latest")
        assert record["Id"] == FOO_ID
        assert pull_output
        assert client.call_names() == ["images", "pull", "images"]

    def test_empty_name(self):
        with pytest.raises(ImageManagerError):
            manager(FakeAPIClient()).find_image("")

    def test_pull_failure(self):
        client = FakeAPIClient()
        client.pull_error = APIError("not found")
        with pytest.raises(ImagePullError):
            manager(client).find_image("foo")

    def test_pulled_but_still_missing(self):
        client = FakeAPIClient()
        with pytest.raises(ImageNotFoundError):
            manager(client).find_image("foo")


class TestCreate:
    """Tests for the create cycle."""

    def test_without_build_pulls(self):
        client = FakeAPIClient()
        client.pull_adds = [image(FOO_ID, ["foo:latest"])]
        resolved = manager(client).create(resource())

        assert resolved.image_id == FOO_ID
        assert resolved.latest == FOO_ID
        assert resolved.resource_id == FOO_ID + "foo:latest"
        assert resolved.pull_output
        assert resolved.build_output is None

    def test_build_skipped_when_pull_succeeds(self, build_context):
        """force_build=False with a pullable image completes via pull, not build."""
        client = FakeAPIClient()
        client.pull_adds = [image(FOO_ID, ["foo:latest"])]
        resolved = manager(client).create(resource(build_context))

        assert "build" not in client.call_names()
        assert resolved.build_output is None
        assert resolved.pull_output
        assert resolved.image_id == FOO_ID

    def test_build_skipped_when_local(self, build_context):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        resolved = manager(client).create(resource(build_context))
        assert "build" not in client.call_names()
        assert "pull" not in client.call_names()
        assert resolved.pull_output is None

    def test_falls_back_to_build_when_pull_fails(self, build_context):
        client = FakeAPIClient()
        client.pull_error = APIError("not found")
        client.build_adds = [image(BUILT_ID, ["foo:latest"])]
        resolved = manager(client).create(resource(build_context))

        assert "build" in client.call_names()
        assert resolved.image_id == BUILT_ID
        assert resolved.build_output.startswith("Step 1/1")
        assert resolved.pull_output is None

    def test_force_build_always_builds(self, build_context):
        """force_build=True builds even when an identical image exists locally."""
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        resolved = manager(client).create(resource(build_context, force_build=True))

        assert client.call_names().count("build") == 1
        assert "pull" not in client.call_names()
        assert resolved.build_output is not None

    def test_every_build_block_runs(self, build_context):
        client = FakeAPIClient()
        client.build_adds = [image(BUILT_ID, ["foo:latest"])]
        res = resource(build_context, force_build=True)
        res["build"] = res["build"] * 2
        manager(client).create(res)
        assert client.call_names().count("build") == 2

    def test_build_failure_carries_log(self, build_context):
        client = FakeAPIClient()
        client.build_chunks = messages(
            {"stream": "Step 1/1 : FROM nothing\n"},
            {"errorDetail": {"message": "boom"}, "error": "boom"},
        )
        with pytest.raises(ImageBuildError) as excinfo:
            manager(client).create(resource(build_context, force_build=True))
        assert "Step 1/1 : FROM nothing" in str(excinfo.value)
        assert "ERROR: boom" in excinfo.value.output

    def test_unresolved_after_build_is_hard_failure(self, build_context):
        client = FakeAPIClient()
        with pytest.raises(ImageResolveError):
            manager(client).create(resource(build_context, force_build=True))
        assert "push" not in client.call_names()

    def test_push_after_resolution(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        resolved = manager(client).create(resource(push_remote=True))
        assert client.call_names()[-2:] == ["push", "images"]
        assert "digest" in resolved.push_output

    def test_push_failure_after_build_keeps_local_image(self, build_context):
        """A push failure fails the cycle but the built image stays resolvable."""
        client = FakeAPIClient()
        client.build_adds = [image(BUILT_ID, ["foo:latest"])]
        client.push_error = APIError("denied")
        image_manager = manager(client)

        with pytest.raises(ImagePushError) as excinfo:
            image_manager.create(resource(build_context, force_build=True, push_remote=True))
        assert "foo:latest" in str(excinfo.value)

        record = search_local_images(fetch_local_images(client), "foo:latest")
        assert record["Id"] == BUILT_ID


class TestRead:
    """Tests for the read cycle."""

    def test_found(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        resolved = manager(client).read(resource(name="foo"))
        assert resolved.resource_id == FOO_ID + "foo"

    def test_missing_returns_none(self):
        assert manager(FakeAPIClient()).read(resource()) is None

    def test_does_not_pull(self):
        client = FakeAPIClient()
        manager(client).read(resource())
        assert client.call_names() == ["images"]

    def test_carries_previous_outputs(self):
        client = FakeAPIClient()
        client.pull_adds = [image(FOO_ID, ["foo:latest"])]
        image_manager = manager(client)
        created = image_manager.create(resource())

        again = image_manager.read(resource(), created)
        assert again.pull_output == created.pull_output


class TestUpdate:
    """Tests for the update cycle."""

    def test_never_builds(self, build_context):
        client = FakeAPIClient()
        with pytest.raises(ImageResolveError):
            manager(client).update(resource(build_context, force_build=True))
        assert "build" not in client.call_names()

    def test_pushes_when_requested(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        resolved = manager(client).update(resource(push_remote=True))
        assert resolved.image_id == FOO_ID
        assert resolved.push_output


class TestDelete:
    """Tests for the delete cycle."""

    def test_removes_found_image(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        removed = manager(client).delete(resource())
        assert removed == [{"Deleted": FOO_ID}]
        assert ("remove_image", FOO_ID) in client.calls

    def test_keep_locally(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        assert manager(client).delete(resource(keep_locally=True)) == []
        assert client.calls == []

    def test_missing_image_is_not_an_error(self):
        client = FakeAPIClient()
        assert manager(client).delete(resource()) == []
        assert "remove_image" not in client.call_names()

    def test_empty_name(self):
        with pytest.raises(ImageManagerError):
            manager(FakeAPIClient()).delete(resource(name=""))

    def test_remove_failure(self):
        client = FakeAPIClient([image(FOO_ID, ["foo:latest"])])
        client.remove_error = APIError("image is in use")
        with pytest.raises(ImageRemoveError):
            manager(client).delete(resource())
