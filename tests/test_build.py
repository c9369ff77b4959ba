"""
Unit tests for the image builder.
"""
import pytest
from docker.errors import APIError

from conftest import FakeAPIClient, messages
from dockimage.managers.image.base import ImageBuildError
from dockimage.managers.image.build import ImageBuilder


def build_spec(path, **overrides):
    spec = {
        "path": str(path),
        "dockerfile": "Dockerfile",
        "tag": [],
        "force_remove": False,
        "remove": True,
        "no_cache": False,
        "target": "",
        "build_arg": {},
        "label": {},
    }
    spec.update(overrides)
    return spec


class TestBuildOptions:
    """Tests for ImageBuilder.build_options."""

    def test_tags_start_with_image_name(self, build_context):
        options = ImageBuilder.build_options(build_spec(build_context, tag=["foo:1", "foo:2"]), "foo:latest")
        assert options["tags"] == ["foo:latest", "foo:1", "foo:2"]

    def test_no_builder_version_option(self, build_context):
        """The daemon default (classic) builder is used; no version is sent."""
        options = ImageBuilder.build_options(build_spec(build_context), "foo")
        assert set(options) == {
            "dockerfile", "tags", "forcerm", "rm", "nocache", "target", "buildargs", "labels",
        }

    def test_flags_and_maps_copied(self, build_context):
        build_arg = {"VERSION": "1"}
        spec = build_spec(
            build_context,
            force_remove=True,
            remove=False,
            no_cache=True,
            target="runtime",
            build_arg=build_arg,
            label={"team": "core"},
        )
        options = ImageBuilder.build_options(spec, "foo")
        assert options["forcerm"] is True
        assert options["rm"] is False
        assert options["nocache"] is True
        assert options["target"] == "runtime"
        assert options["buildargs"] == {"VERSION": "1"}
        assert options["buildargs"] is not build_arg
        assert options["labels"] == {"team": "core"}

    def test_none_maps_are_safe(self, build_context):
        options = ImageBuilder.build_options(build_spec(build_context, build_arg=None, label=None), "foo")
        assert options["buildargs"] == {}
        assert options["labels"] == {}


class TestImageBuilder:
    """Tests for ImageBuilder.build."""

    def test_successful_build(self, build_context):
        client = FakeAPIClient()
        client.build_chunks = messages(
            {"stream": "Step 1/2 : FROM scratch\n"},
            {"stream": "Successfully built abc\n"},
        )
        output = ImageBuilder(client).build(build_spec(build_context, build_arg={"A": "1"}), "foo:latest")

        assert output.splitlines() == ["Step 1/2 : FROM scratch", "Successfully built abc"]
        name, kwargs = client.calls[0]
        assert name == "build"
        assert kwargs["tag"] == "foo:latest"
        assert kwargs["custom_context"] is True
        assert kwargs["dockerfile"] == "Dockerfile"
        assert kwargs["buildargs"] == {"A": "1"}
        assert kwargs["rm"] is True
        assert kwargs["target"] is None
        assert kwargs["decode"] is False

    def test_archive_keeps_dockerfile_despite_ignore(self, build_context):
        """The build never excludes its own Dockerfile."""
        (build_context / ".dockerignore").write_text("Dockerfile\n*.env\n", encoding="utf-8")
        client = FakeAPIClient()
        ImageBuilder(client).build(build_spec(build_context), "foo")

        assert "Dockerfile" in client.build_context_names
        assert "app.txt" in client.build_context_names
        assert "secret.env" not in client.build_context_names

    def test_extra_tags_applied(self, build_context):
        client = FakeAPIClient()
        ImageBuilder(client).build(
            build_spec(build_context, tag=["registry.example.com/foo:1", "foo"]), "foo:latest"
        )
        assert client.calls[1:] == [
            ("tag", "foo:latest", "registry.example.com/foo", "1"),
            ("tag", "foo:latest", "foo", None),
        ]

    def test_tag_failure_keeps_log(self, build_context):
        client = FakeAPIClient()
        client.tag_result = False
        with pytest.raises(ImageBuildError) as excinfo:
            ImageBuilder(client).build(build_spec(build_context, tag=["foo:1"]), "foo")
        assert "Step 1/1" in excinfo.value.output

    def test_error_message_fails_with_log(self, build_context):
        """An error in the stream fails the build but returns the full log."""
        client = FakeAPIClient()
        client.build_chunks = messages(
            {"stream": "Step 1/2 : FROM nothing\n"},
            {"errorDetail": {"message": "pull access denied"}, "error": "pull access denied"},
        )
        with pytest.raises(ImageBuildError) as excinfo:
            ImageBuilder(client).build(build_spec(build_context), "foo")

        assert "pull access denied" in str(excinfo.value)
        assert excinfo.value.output.splitlines() == [
            "Step 1/2 : FROM nothing",
            "ERROR: pull access denied",
        ]

    def test_transport_failure(self, build_context):
        client = FakeAPIClient()
        client.build_error = APIError("connection refused")
        with pytest.raises(ImageBuildError) as excinfo:
            ImageBuilder(client).build(build_spec(build_context), "foo")
        assert "foo" in str(excinfo.value)
        assert excinfo.value.output == ""

    def test_unreadable_context_is_a_build_error(self, build_context, monkeypatch):
        """Archive failures surface as ImageBuildError, not a bare OSError."""

        def broken_tar(context_dir, patterns, dockerfile=None):
            raise OSError(f"Can not read file in context: {context_dir}/app.txt")

        monkeypatch.setattr("dockimage.managers.image.build.tar_with_excludes", broken_tar)
        client = FakeAPIClient()
        with pytest.raises(ImageBuildError) as excinfo:
            ImageBuilder(client).build(build_spec(build_context), "foo")
        assert "Can not read file in context" in str(excinfo.value)
        assert "build" not in client.call_names()

    def test_home_directory_is_expanded(self, build_context, monkeypatch):
        monkeypatch.setenv("HOME", str(build_context.parent))
        client = FakeAPIClient()
        ImageBuilder(client).build(build_spec("~/context"), "foo")
        assert "Dockerfile" in client.build_context_names
