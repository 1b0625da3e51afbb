"""A Rich-powered terminal rendering of asset bundles and question sets."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from ..services.media import complete_image_url, format_duration, video_embed_url
from ..services.models import (
    AssetBundle,
    ObjectiveQuestion,
    QuestionKind,
    SubjectiveQuestion,
    TIERS,
    TieredSets,
    tier_label,
)
from ..services.view_session import SetState, SetView, Toast, ViewError


KIND_LABELS: Dict[str, str] = {
    "book": "📘 Book",
    "chapter": "📖 Chapter",
    "topic": "📝 Topic",
    "subtopic": "🔖 Subtopic",
}

TIER_STYLES: Dict[str, str] = {
    "L1": "green",
    "L2": "blue",
    "L3": "magenta",
}


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


class BundleRenderer:
    """Render view state to a terminal."""

    def __init__(self, *, console: Optional[Console] = None, asset_base_url: str = "") -> None:
        self._console = console or Console()
        self._asset_base_url = asset_base_url

    @property
    def console(self) -> Console:
        return self._console

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render_bundle(self, bundle: AssetBundle) -> None:
        console = self._console
        console.print(self._build_header(bundle))
        console.print(self._build_summaries(bundle))
        console.print(self._build_videos(bundle))
        console.print(self._build_pyqs(bundle))
        console.print(self._build_tiers("Objective Questions", bundle.objective_sets, "objective"))
        console.print(self._build_tiers("Subjective Questions", bundle.subjective_sets, "subjective"))

    def render_set(self, view: SetView) -> None:
        question_set = view.question_set
        count = len(question_set.questions)
        subtitle = f"{question_set.level_label} Level • {count} {'Question' if count == 1 else 'Questions'}"
        if question_set.total_questions and question_set.total_questions != count:
            subtitle += f" (Total: {question_set.total_questions})"

        style = TIER_STYLES.get(question_set.level, "magenta")
        self._console.rule(f"[bold {style}]Questions in \"{question_set.name}\"")
        self._console.print(Text(subtitle, style="dim"), justify="center")

        if view.state is SetState.LOADING:
            self._console.print(Panel("Loading questions…", border_style="cyan", box=box.ROUNDED))
            return

        if view.state is not SetState.POPULATED:
            body = Text("No questions in this set\n", style="bold")
            body.append(view.empty_hint, style="dim")
            if view.can_retry:
                body.append("\nRun the command again to retry loading questions.", style="yellow")
            self._console.print(Panel(body, border_style="yellow", box=box.ROUNDED))
            return

        for index, question in enumerate(question_set.questions, start=1):
            if isinstance(question, ObjectiveQuestion):
                self._console.print(self._build_objective(index, question, style))
            elif isinstance(question, SubjectiveQuestion):
                self._console.print(self._build_subjective(index, question, style))

    def render_error(self, error: ViewError) -> None:
        body = Text(error.message)
        if error.retryable:
            body.append("\nThe content service may be unavailable; try again.", style="dim")
        self._console.print(
            Panel(
                body,
                title="Oops! Something went wrong",
                border_style="red",
                box=box.ROUNDED,
            )
        )

    def render_toasts(self, toasts: Iterable[Toast]) -> None:
        for toast in toasts:
            style = "green" if toast.level == "success" else "red"
            self._console.print(Text(f"• {toast.message}", style=style))

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------
    def _build_header(self, bundle: AssetBundle) -> Panel:
        kind = bundle.kind.value
        label = KIND_LABELS.get(kind, kind.title())
        if bundle.ref.is_workbook and kind == "book":
            label = "📒 Workbook"
        title = Text(bundle.item.title or "Untitled", style="bold")
        if bundle.item.description:
            title.append("\n")
            title.append(bundle.item.description, style="dim")
        cover = complete_image_url(bundle.item.cover_image, self._asset_base_url)
        if kind == "book" and cover:
            title.append("\n")
            title.append(f"Cover: {cover}", style="cyan")
        return Panel(title, title=label, border_style="magenta", box=box.ROUNDED)

    @staticmethod
    def _build_summaries(bundle: AssetBundle) -> Panel:
        if not bundle.summaries:
            return Panel(Text("No summary content available yet.", style="dim"), title="Summary")
        blocks = []
        for summary in bundle.summaries:
            block = Text(summary.content)
            if summary.created_at:
                block.append(f"\nAdded on {summary.created_at[:10]}", style="magenta")
            blocks.append(block)
        return Panel(Group(*blocks), title="Summary", border_style="magenta", box=box.ROUNDED)

    @staticmethod
    def _build_videos(bundle: AssetBundle) -> Panel:
        if not bundle.videos:
            return Panel(Text("No videos available yet.", style="dim"), title="Videos")
        table = Table(box=box.SIMPLE, expand=True)
        table.add_column("Title", style="bold")
        table.add_column("Length", justify="right")
        table.add_column("Link", style="cyan", overflow="fold")
        for video in bundle.videos:
            table.add_row(video.title, format_duration(video.duration), video_embed_url(video))
        return Panel(table, title="Videos", border_style="cyan", box=box.ROUNDED)

    @staticmethod
    def _build_pyqs(bundle: AssetBundle) -> Panel:
        if not bundle.pyqs:
            return Panel(
                Text("No previous year questions available yet", style="dim"),
                title="Previous Year Questions",
            )
        blocks = []
        for pyq in bundle.pyqs:
            block = Text(pyq.heading or "Undated", style="bold blue")
            if pyq.difficulty:
                block.append(f"  [{pyq.difficulty.capitalize()}]", style="yellow")
            block.append(f"\nQuestion: {pyq.question}", style="white")
            if pyq.answer:
                block.append(f"\nAnswer: {pyq.answer}", style="white")
            blocks.append(block)
        return Panel(
            Group(*blocks), title="Previous Year Questions", border_style="blue", box=box.ROUNDED
        )

    @staticmethod
    def _build_tiers(title: str, tiers: TieredSets, kind: QuestionKind) -> Panel:
        table = Table(box=box.SIMPLE, expand=True)
        table.add_column("Level")
        table.add_column("Set", style="bold")
        table.add_column("ID", style="dim")
        table.add_column("Questions", justify="right")
        table.add_column("Description", style="dim")
        for tier in TIERS:
            sets = tiers[tier]
            style = TIER_STYLES[tier]
            if not sets:
                table.add_row(
                    Text(f"{tier} - {tier_label(tier)}", style=style),
                    Text(f"No {tier_label(tier).lower()} level question sets found.", style="dim"),
                    "",
                    "0",
                    "",
                )
                continue
            for question_set in sets:
                table.add_row(
                    Text(f"{tier} - {tier_label(tier)}", style=style),
                    question_set.name,
                    question_set.id,
                    str(question_set.display_count),
                    question_set.description or "No description available",
                )
        return Panel(table, title=f"{title} ({tiers.total_sets})", box=box.ROUNDED)

    @staticmethod
    def _build_objective(index: int, question: ObjectiveQuestion, style: str) -> Panel:
        lines = Table.grid(padding=(0, 1))
        lines.add_column(justify="right")
        lines.add_column()
        for option_index, option in enumerate(question.options):
            correct = option_index == question.correct_answer
            lines.add_row(
                Text(option_letter(option_index), style="bold green" if correct else "dim"),
                Text(option, style="green" if correct else ""),
            )
        footer = Text(
            f"Added on {question.created_at[:10] if question.created_at else 'Unknown date'}",
            style="dim",
        )
        return Panel(
            Group(lines, Rule(style="dim"), footer),
            title=Text(f"{index}. {question.question}", style=f"bold {style}"),
            title_align="left",
            box=box.ROUNDED,
        )

    @staticmethod
    def _build_subjective(index: int, question: SubjectiveQuestion, style: str) -> Panel:
        body = Text("Answer:\n", style="bold")
        body.append(question.answer or "—", style="")
        keywords = question.keyword_list
        if keywords:
            body.append("\nKeywords: ", style="bold")
            body.append(" · ".join(keywords), style="cyan")
        return Panel(
            body,
            title=Text(f"{index}. {question.question}", style=f"bold {style}"),
            title_align="left",
            box=box.ROUNDED,
        )


__all__ = ["BundleRenderer", "option_letter"]
