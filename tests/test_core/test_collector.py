from __future__ import annotations

from pathlib import Path

import pytest

from upkeep.core.project import Project
from upkeep.core.exclusion import ExclusionMatcher, ExclusionSpecParser
from upkeep.core.collector import collect_candidates, resolve_required_workspaces
from upkeep.exceptions import UnknownWorkspace
from upkeep.models import DependencyKind


def _matcher(argument: str = "") -> ExclusionMatcher:
    return ExclusionMatcher(ExclusionSpecParser().parse(argument))


@pytest.mark.unit
class TestCollectCandidates:
    """Tests for collect_candidates on in-memory projects."""

    def test_exclusion_scenario(self, tmp_path: Path, make_workspace) -> None:
        workspace = make_workspace(
            "@acme/app",
            dependencies={"react": "18.0.0", "@types/node": "20.0.0", "lodash": "4.0.0"},
        )
        project = Project(tmp_path, [workspace])

        candidates = collect_candidates(project, _matcher("react,@types/*"), str(tmp_path))

        assert [c.name for c in candidates] == ["lodash"]

    def test_sorted_by_descriptor(self, tmp_path: Path, make_workspace) -> None:
        workspace = make_workspace(
            dependencies={"zod": "^3.0.0", "react": "^18.0.0"},
            dev_dependencies={"@types/react": "^18.0.0", "react-dom": "^18.0.0"},
        )

        candidates = collect_candidates(Project(tmp_path, [workspace]), _matcher(), "/")

        assert [c.descriptor for c in candidates] == [
            "@types/react@^18.0.0",
            "react-dom@^18.0.0",
            "react@^18.0.0",
            "zod@^3.0.0",
        ]

    def test_dedup_keeps_first_owner(self, tmp_path: Path, make_workspace) -> None:
        web = make_workspace("@acme/web", dev_dependencies={"react": "^18.0.0"})
        ui = make_workspace("@acme/ui", dependencies={"react": "^18.0.0"})
        legacy = make_workspace("@acme/legacy", dependencies={"react": "^17.0.0"})

        candidates = collect_candidates(Project(tmp_path, [web, ui, legacy]), _matcher(), "/")

        assert [c.descriptor for c in candidates] == ["react@^17.0.0", "react@^18.0.0"]
        assert candidates[1].owning_workspace is web
        assert candidates[1].kind is DependencyKind.DEV_DEPENDENCIES

    def test_skips_workspace_dependencies(self, tmp_path: Path, make_workspace) -> None:
        ui = make_workspace("@acme/ui", version="2.1.0")
        web = make_workspace(
            "@acme/web",
            dependencies={
                "@acme/ui": "^2.0.0",
                "@acme/icons": "workspace:*",
                "react": "^18.0.0",
            },
        )

        candidates = collect_candidates(Project(tmp_path, [ui, web]), _matcher(), "/")

        assert [c.name for c in candidates] == ["react"]

    def test_registry_copy_of_workspace_name_is_kept(
        self, tmp_path: Path, make_workspace
    ) -> None:
        ui = make_workspace("@acme/ui", version="2.1.0")
        web = make_workspace("@acme/web", dependencies={"@acme/ui": "^1.0.0"})

        candidates = collect_candidates(Project(tmp_path, [ui, web]), _matcher(), "/")

        assert [c.descriptor for c in candidates] == ["@acme/ui@^1.0.0"]

    def test_unnamed_workspaces_do_not_participate(
        self, tmp_path: Path, make_workspace
    ) -> None:
        root = make_workspace(None, dependencies={"react": "^18.0.0"})

        assert collect_candidates(Project(tmp_path, [root]), _matcher(), "/") == []

    def test_required_workspaces_restrict_scope(self, tmp_path: Path, make_workspace) -> None:
        web = make_workspace("@acme/web", dependencies={"react": "^18.0.0"})
        ui = make_workspace("@acme/ui", dependencies={"clsx": "^1.0.0"})

        candidates = collect_candidates(
            Project(tmp_path, [web, ui]), _matcher(), "/", required=[ui]
        )

        assert [c.name for c in candidates] == ["clsx"]

    def test_workspace_scoped_exclusion(self, tmp_path: Path, make_workspace) -> None:
        app = make_workspace("@mx/app", dependencies={"react": "19.1.0"})
        other = make_workspace("@mx/other", dependencies={"react": "19.1.0"})

        candidates = collect_candidates(
            Project(tmp_path, [app, other]), _matcher("@mx/app#react@npm:^19.0.0"), "/"
        )

        # The descriptor survives through @mx/other, which now owns it
        assert len(candidates) == 1
        assert candidates[0].owning_workspace is other


@pytest.mark.unit
class TestResolveRequiredWorkspaces:
    def test_no_names_means_everything(self, tmp_path: Path, make_workspace) -> None:
        project = Project(tmp_path, [make_workspace("@acme/web")])

        assert resolve_required_workspaces(project, []) is None

    def test_names_resolved_in_order(self, tmp_path: Path, make_workspace) -> None:
        web = make_workspace("@acme/web")
        ui = make_workspace("@acme/ui")
        project = Project(tmp_path, [web, ui])

        assert resolve_required_workspaces(project, ["@acme/ui", "@acme/web", "@acme/ui"]) == [
            ui,
            web,
        ]

    def test_unknown_name(self, tmp_path: Path, make_workspace) -> None:
        project = Project(tmp_path, [make_workspace("@acme/web")])

        with pytest.raises(UnknownWorkspace, match="Workspace not found: @acme/nope"):
            resolve_required_workspaces(project, ["@acme/nope"])


@pytest.mark.integration
class TestCollectFromDisk:
    def test_monorepo(self, monorepo: Path) -> None:
        project = Project.find(monorepo / "packages" / "web")

        candidates = collect_candidates(project, _matcher("typescript"), str(monorepo))

        assert [c.descriptor for c in candidates] == [
            "@types/react@^18.0.0",
            "clsx@^1.2.0",
            "lodash@4.17.0",
            "react@^18.0.0",
        ]
