"""Synchronizes one translated document with a changed source document.

Pipeline: decompose -> diff -> locate -> translate -> apply -> maintain
the heading alignment table. Every error propagates; a run either
returns a complete document or raises.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .applier import PatchApplier
from .config import SyncSettings
from .decomposer import BlockDecomposer, heading_level, heading_text
from .differ import StructuralDiffer
from .heading_map import extract_heading_map, inject_heading_map, update
from .locator import TargetLocator
from .observer import LoggingObserver, MatchObserver, setup_logging
from .sections import parse_sections
from .translator import TranslationRequest, Translator
from .types import (
    Change,
    ChangeKind,
    Mapping,
    ParsedDocument,
    Patch,
    Strategy,
    SyncResult,
    Unit,
    UnitKind,
)

if TYPE_CHECKING:
    from .glossary import Glossary

logger = logging.getLogger(__name__)


class FileSynchronizer:
    """Projects source revisions onto a translated document."""

    def __init__(
        self,
        translator: Translator,
        settings: SyncSettings | None = None,
        observer: MatchObserver | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            translator: Produces replacement text for changed units
            settings: Granularity, matching and concurrency settings
            observer: Telemetry sink for matching decisions
        """
        self._translator = translator
        self._settings = settings or SyncSettings()
        self._observer = observer or LoggingObserver()
        self._decomposer = BlockDecomposer()
        setup_logging(self._settings.log_level)

    async def sync(
        self,
        old_source: str,
        new_source: str,
        target: str,
        file_path: str,
        source_language: str,
        target_language: str,
        glossary: Glossary | None = None,
    ) -> SyncResult:
        """Apply the changes between old_source and new_source to target.

        Returns:
            SyncResult with the updated target content

        Raises:
            TranslationError: If any translation fails.
            ApplyError: If the patches cannot be applied.
        """
        old_units = self._decompose(old_source)
        new_units = self._decompose(new_source)
        target_units = self._decompose(target)

        changes = StructuralDiffer(self._settings, self._observer).diff(old_units, new_units)
        if not changes:
            logger.info("%s: no changes", file_path)
            return SyncResult(content=target, heading_map=extract_heading_map(target))

        counts = {kind: sum(1 for c in changes if c.kind == kind) for kind in ChangeKind}
        logger.info(
            "%s: %d added, %d modified, %d deleted",
            file_path,
            counts[ChangeKind.ADDED],
            counts[ChangeKind.MODIFIED],
            counts[ChangeKind.DELETED],
        )

        heading_map = extract_heading_map(target)
        locator = TargetLocator(
            heading_map,
            source_units=old_units,
            new_units=new_units,
            settings=self._settings,
            observer=self._observer,
        )
        located = [change for change in changes if not _touches_frontmatter(change)]
        mappings = locator.locate_all(located, target_units)

        patches = await self._translate(
            mappings, new_units, source_language, target_language, glossary
        )
        content = PatchApplier(self._decomposer).apply(target_units, patches)

        source_doc = parse_sections(new_source)
        target_doc = parse_sections(content)
        table = update(
            heading_map,
            source_doc.sections,
            target_doc.sections,
            title_heading=_title_of(source_doc),
            target_title=_title_of(target_doc),
        )
        content = inject_heading_map(content, table)

        return SyncResult(content=content, changes=changes, mappings=mappings, heading_map=table)

    def _decompose(self, text: str) -> list[Unit]:
        if self._settings.granularity == "block":
            return self._decomposer.decompose(text)
        return self._decomposer.decompose_sections(text)

    async def _translate(
        self,
        mappings: Sequence[Mapping],
        new_units: Sequence[Unit],
        source_language: str,
        target_language: str,
        glossary: Glossary | None,
    ) -> list[Patch]:
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def patch_for(mapping: Mapping) -> Patch:
            if mapping.strategy == Strategy.DELETE:
                return Patch(mapping)
            request = self._request(
                mapping, new_units, source_language, target_language, glossary
            )
            async with semaphore:
                text = await self._translator.translate(request)
            return Patch(mapping, text)

        tasks = [asyncio.ensure_future(patch_for(m)) for m in mappings]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # A failed run discards every mapping; stop the pending requests.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def _request(
        self,
        mapping: Mapping,
        new_units: Sequence[Unit],
        source_language: str,
        target_language: str,
        glossary: Glossary | None,
    ) -> TranslationRequest:
        change = mapping.change
        new_unit = change.new_unit
        if new_unit is None:
            raise ValueError(f"{change.kind.value} change has no new unit to translate")
        context = self._decomposer.context_of(
            new_units, new_unit, self._settings.context_window
        )
        if mapping.strategy == Strategy.EXACT_MATCH and mapping.target_unit is not None:
            return TranslationRequest(
                mode="update",
                text=new_unit.text,
                old_text=change.old_unit.text if change.old_unit else None,
                current_translation=mapping.target_unit.text,
                context_before=context.before,
                context_after=context.after,
                source_language=source_language,
                target_language=target_language,
                glossary=glossary,
            )
        return TranslationRequest(
            mode="new",
            text=new_unit.text,
            context_before=context.before,
            context_after=context.after,
            source_language=source_language,
            target_language=target_language,
            glossary=glossary,
        )


def _touches_frontmatter(change: Change) -> bool:
    unit = change.new_unit or change.old_unit
    return unit is not None and unit.kind == UnitKind.FRONTMATTER


def _title_of(doc: ParsedDocument) -> str | None:
    """Text of the # title heading at the top of the preamble."""
    if not doc.preamble:
        return None
    first_line = doc.preamble.split("\n", 1)[0]
    if heading_level(first_line) != 1:
        return None
    return heading_text(first_line)
