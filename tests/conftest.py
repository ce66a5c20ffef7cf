from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Optional

import pytest

from upkeep.models import DependencyCandidate, DependencyKind, Workspace

WorkspaceFactory = Callable[..., Workspace]


@pytest.fixture(autouse=True)
def reset_upkeep_logging() -> Generator[None, None, None]:
    """Undo setup_logging() between tests so caplog keeps working."""
    yield
    root = logging.getLogger("upkeep")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True


@pytest.fixture
def make_workspace(tmp_path: Path) -> WorkspaceFactory:
    """Build in-memory workspaces with the given dependency maps."""

    def factory(
        name: Optional[str] = "@acme/app",
        dependencies: Optional[Dict[str, Any]] = None,
        dev_dependencies: Optional[Dict[str, Any]] = None,
        cwd: Optional[Path] = None,
        **extra: Any,
    ) -> Workspace:
        manifest: Dict[str, Any] = {}
        if name is not None:
            manifest["name"] = name
        manifest.update(extra)
        if dependencies is not None:
            manifest["dependencies"] = dict(dependencies)
        if dev_dependencies is not None:
            manifest["devDependencies"] = dict(dev_dependencies)
        return Workspace(cwd=cwd or tmp_path, manifest=manifest)

    return factory


@pytest.fixture
def make_candidate(make_workspace: WorkspaceFactory) -> Callable[..., DependencyCandidate]:
    def factory(
        name: str,
        current_range: str,
        workspace: Optional[Workspace] = None,
        kind: DependencyKind = DependencyKind.DEPENDENCIES,
    ) -> DependencyCandidate:
        owner = workspace if workspace is not None else make_workspace()
        return DependencyCandidate.from_entry(owner, kind, name, current_range)

    return factory


def _write_manifest(directory: Path, manifest: Dict[str, Any], *, indent: Any = 2) -> Path:
    """Write ``directory/package.json`` and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(manifest, indent=indent) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def monorepo(tmp_path: Path) -> Path:
    """A three-workspace repository rooted at ``tmp_path / "repo"``."""
    root = tmp_path / "repo"
    _write_manifest(
        root,
        {
            "name": "acme",
            "private": True,
            "workspaces": ["packages/*"],
            "devDependencies": {"typescript": "^5.0.0"},
        },
    )
    _write_manifest(
        root / "packages" / "web",
        {
            "name": "@acme/web",
            "version": "1.0.0",
            "dependencies": {
                "react": "^18.0.0",
                "lodash": "4.17.0",
                "@acme/ui": "workspace:^",
            },
            "devDependencies": {"@types/react": "^18.0.0"},
        },
    )
    _write_manifest(
        root / "packages" / "ui",
        {
            "name": "@acme/ui",
            "version": "2.1.0",
            "dependencies": {"react": "^18.0.0", "clsx": "^1.2.0"},
        },
    )
    return root


@pytest.fixture
def write_manifest() -> Callable[..., Path]:
    return _write_manifest
