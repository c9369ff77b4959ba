"""Shared test fixtures for dockimage."""

import json
import tarfile
from typing import Any, Dict, Iterator, List, Optional

import pytest


def messages(*items: Dict[str, Any]) -> List[bytes]:
    """Encode progress messages the way the daemon streams them."""
    return [json.dumps(item).encode("utf-8") + b"\r\n" for item in items]


def image(image_id: str, tags: Optional[List[str]] = None, digests: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "Id": image_id,
        "RepoTags": tags,
        "RepoDigests": digests,
        "Size": 1024,
    }


class FakeAPIClient:
    """In-memory stand-in for the docker.APIClient methods used by dockimage."""

    def __init__(self, images: Optional[List[Dict[str, Any]]] = None) -> None:
        self.image_list: List[Dict[str, Any]] = list(images or [])
        self.calls: List[tuple] = []

        self.list_error: Optional[Exception] = None

        self.pull_chunks: List[bytes] = messages({"status": "Pulling from library/foo", "id": "latest"})
        self.pull_error: Optional[Exception] = None
        self.pull_adds: List[Dict[str, Any]] = []

        self.push_chunks: List[bytes] = messages({"status": "latest: digest: sha256:abc size: 528"})
        self.push_error: Optional[Exception] = None

        self.build_chunks: List[bytes] = messages({"stream": "Step 1/1 : FROM scratch\n"})
        self.build_error: Optional[Exception] = None
        self.build_adds: List[Dict[str, Any]] = []
        self.build_context_names: List[str] = []

        self.tag_result = True
        self.remove_error: Optional[Exception] = None

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def images(self, name=None, quiet=False, all=False, filters=None):
        self.calls.append(("images", all))
        if self.list_error is not None:
            raise self.list_error
        return [dict(item) for item in self.image_list]

    def pull(self, repository, tag=None, stream=False, auth_config=None, decode=False, **kwargs) -> Iterator[bytes]:
        self.calls.append(("pull", repository, tag, auth_config))
        if self.pull_error is not None:
            raise self.pull_error
        self.image_list.extend(self.pull_adds)
        return iter(self.pull_chunks)

    def push(self, repository, tag=None, stream=False, auth_config=None, decode=False) -> Iterator[bytes]:
        self.calls.append(("push", repository, tag, auth_config))
        if self.push_error is not None:
            raise self.push_error
        return iter(self.push_chunks)

    def build(self, **kwargs) -> Iterator[bytes]:
        self.calls.append(("build", kwargs))
        fileobj = kwargs.get("fileobj")
        if fileobj is not None:
            with tarfile.open(fileobj=fileobj) as archive:
                self.build_context_names = archive.getnames()
        if self.build_error is not None:
            raise self.build_error
        self.image_list.extend(self.build_adds)
        return iter(self.build_chunks)

    def tag(self, image, repository, tag=None, force=False):
        self.calls.append(("tag", image, repository, tag))
        return self.tag_result

    def remove_image(self, image, force=False, noprune=False):
        self.calls.append(("remove_image", image))
        if self.remove_error is not None:
            raise self.remove_error
        self.image_list = [item for item in self.image_list if item["Id"] != image]
        return [{"Deleted": image}]


@pytest.fixture()
def fake_client() -> FakeAPIClient:
    return FakeAPIClient()


@pytest.fixture()
def build_context(tmp_path):
    """A build context directory with a Dockerfile and a couple of files."""
    context = tmp_path / "context"
    context.mkdir()
    (context / "Dockerfile").write_text("FROM scratch\nCOPY app.txt /\n", encoding="utf-8")
    (context / "app.txt").write_text("hello\n", encoding="utf-8")
    (context / "secret.env").write_text("TOKEN=1\n", encoding="utf-8")
    return context


@pytest.fixture()
def isolated_docker_config(tmp_path, monkeypatch):
    """Point the docker SDK config lookup at an empty home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("DOCKER_CONFIG", raising=False)
    monkeypatch.delenv("DOCKER_PASSWORD", raising=False)
    return home
