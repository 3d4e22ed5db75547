"""Tests for deskrel.core.workspace module."""

from __future__ import annotations

from pathlib import Path

import pytest

from deskrel.core.config import BundleConfig, PublishConfig
from deskrel.core.workspace import Workspace, detect_workspace


class TestWorkspacePaths:
    def test_resolve_relative_and_absolute(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path)
        assert ws.resolve("target") == tmp_path / "target"
        assert ws.resolve(str(tmp_path / "abs")) == tmp_path / "abs"

    def test_resolve_home(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path)
        assert ws.resolve("~/Library") == Path.home() / "Library"

    def test_cargo_output(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path)
        assert ws.cargo_output("x86_64-apple-darwin", "goosed") == (
            tmp_path / "target" / "x86_64-apple-darwin" / "release" / "goosed"
        )

    def test_bundle_paths(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path)
        bundle = BundleConfig()
        assert ws.bundle_bin_dir(bundle) == tmp_path / "ui" / "desktop" / "src" / "bin"
        assert ws.bundle_output_dir(bundle) == (
            tmp_path / "ui" / "desktop" / "out" / "Goose-darwin-x64"
        )
        assert ws.artifacts_dir(PublishConfig()) == tmp_path / "dist"


class TestDetectWorkspace:
    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DESKREL_WORKSPACE", str(tmp_path))
        assert detect_workspace(start_dir=Path("/")).root == tmp_path.resolve()

    def test_finds_config_in_parent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DESKREL_WORKSPACE", raising=False)
        (tmp_path / "deskrel.toml").write_text("", encoding="utf-8")
        nested = tmp_path / "ui" / "desktop"
        nested.mkdir(parents=True)
        assert detect_workspace(start_dir=nested).root == tmp_path.resolve()

    def test_falls_back_to_start_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DESKREL_WORKSPACE", raising=False)
        assert detect_workspace(start_dir=tmp_path).root == tmp_path.resolve()
