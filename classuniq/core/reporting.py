"""Report generation for class uniqueness analysis."""

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .analyzer import ArtifactSet, ClassUniquenessAnalyzer
from .issues import Issue, IssueCollection, IssueKind, IssueSeverity

IDENTICAL_KIND: IssueKind = "identical_duplicate_classes"
DIFFERING_KIND: IssueKind = "differing_duplicate_classes"


def _describe(jars: ArtifactSet) -> List[str]:
    return sorted(str(jar) for jar in jars)


def _issue_for_group(analyzer: ClassUniquenessAnalyzer, jars: ArtifactSet) -> Issue:
    shared = analyzer.get_shared_classes_in_problem_jars(jars)
    differing = analyzer.get_differing_shared_classes_in_problem_jars(jars)
    artifacts = _describe(jars)

    kind: IssueKind
    if differing:
        kind = DIFFERING_KIND
        severity = IssueSeverity.ERROR.value
        message = (
            f"{len(differing)} of {len(shared)} shared classes differ between "
            f"{', '.join(artifacts)}"
        )
        suggestions = [
            "Classpath order decides which implementation is loaded; "
            "remove or align one of these artifacts",
        ]
    else:
        kind = IDENTICAL_KIND
        severity = IssueSeverity.WARNING.value
        message = (
            f"{len(shared)} identical classes are duplicated across "
            f"{', '.join(artifacts)}"
        )
        suggestions = ["Identical copies are usually shading or relocation leftovers"]

    return Issue(
        kind=kind,
        message=message,
        severity=severity,
        artifacts=artifacts,
        evidence={
            "shared_classes": sorted(shared),
            "differing_classes": sorted(differing),
        },
        suggestions=suggestions,
    )


def build_issues(analyzer: ClassUniquenessAnalyzer) -> IssueCollection:
    """One issue per distinct problem jar group, most severe first."""
    issues = IssueCollection()
    for jars in analyzer.distinct_problem_jars():
        issues.add(_issue_for_group(analyzer, jars))
    issues.sort()
    return issues


class Reporter:
    """Renders issues for the terminal or as JSON."""

    SEVERITY_STYLES = {
        IssueSeverity.ERROR.value: ("ERROR", "bold red"),
        IssueSeverity.WARNING.value: ("WARN", "yellow"),
    }

    def __init__(self, console: Optional[Console] = None, max_classes_shown: int = 10):
        self.console = console or Console()
        self.max_classes_shown = max_classes_shown

    def _class_cell(self, issue: Issue) -> Text:
        differing = set(issue.evidence.get("differing_classes", []))
        shared: List[str] = issue.evidence.get("shared_classes", [])
        # differing classes first, they are the ones worth reading
        ordered = sorted(shared, key=lambda name: (name not in differing, name))

        text = Text()
        for i, name in enumerate(ordered[:self.max_classes_shown]):
            if i:
                text.append("\n")
            text.append(name, style="red" if name in differing else "dim")
        hidden = len(ordered) - self.max_classes_shown
        if hidden > 0:
            text.append(f"\n… and {hidden} more", style="italic")
        return text

    def render_text(self, issues: Iterable[Issue], artifact_count: Optional[int] = None) -> None:
        """Print a table of duplicate groups."""
        issues = list(issues)
        if not issues:
            checked = f" across {artifact_count} artifacts" if artifact_count is not None else ""
            self.console.print(f"[green]✓ All classes are unique{checked}[/green]")
            return

        table = Table(title="Duplicate classes on the classpath", show_lines=True)
        table.add_column("Severity", no_wrap=True)
        table.add_column("Artifacts")
        table.add_column("Shared", justify="right")
        table.add_column("Differing", justify="right")
        table.add_column("Classes")

        for issue in issues:
            label, style = self.SEVERITY_STYLES.get(issue.severity, (str(issue.severity), ""))
            table.add_row(
                Text(label, style=style),
                Text("\n".join(issue.artifacts)),
                str(len(issue.evidence.get("shared_classes", []))),
                str(len(issue.evidence.get("differing_classes", []))),
                self._class_cell(issue),
            )

        self.console.print(table)

        differing = sum(1 for i in issues if i.kind == DIFFERING_KIND)
        self.console.print(
            f"{len(issues)} problem jar groups, "
            f"[red]{differing} with differing classes[/red], "
            f"[yellow]{len(issues) - differing} identical only[/yellow]"
        )

    def to_json(self, issues: Iterable[Issue], artifact_count: Optional[int] = None) -> str:
        """Serialize issues with a small summary header."""
        issues = list(issues)
        payload: Dict[str, Any] = {
            "generated_at": datetime.now().isoformat(),
            "summary": {
                "artifacts": artifact_count,
                "problem_groups": len(issues),
                "differing_groups": sum(1 for i in issues if i.kind == DIFFERING_KIND),
            },
            "issues": [issue.to_dict() for issue in issues],
        }
        return json.dumps(payload, indent=2)

    def render_json(self, issues: Iterable[Issue], artifact_count: Optional[int] = None) -> None:
        # plain print; coordinates like g:x:1 would otherwise become emoji
        self.console.print(self.to_json(issues, artifact_count), markup=False, emoji=False, highlight=False, soft_wrap=True)
