"""Applies a batch of located patches to the target unit sequence.

Every target unit gets a stable slot once, before anything is applied.
Deletions become tombstones, replacements are recorded per slot and
insertions are collected on side lists keyed by their anchor's slot. A
single ordered merge pass then produces the output sequence, so no
operation ever has to adjust the position of another.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import replace

from .decomposer import BlockDecomposer
from .exceptions import ApplyError
from .types import Patch, Strategy, Unit, UnitKind

logger = logging.getLogger(__name__)


class PatchApplier:
    """Splices replacement, insertion and deletion patches into a target."""

    def __init__(self, decomposer: BlockDecomposer | None = None) -> None:
        self._decomposer = decomposer or BlockDecomposer()

    def apply(self, target_units: Sequence[Unit], patches: Sequence[Patch]) -> str:
        """Apply patches and return the reconstructed target text.

        The input sequence is never modified. Any failure aborts the
        whole batch.

        Raises:
            ApplyError: If a patch cannot be applied.
        """
        try:
            units = self.apply_units(target_units, patches)
            return self._decomposer.reconstruct(units)
        except ApplyError:
            raise
        except Exception as e:
            raise ApplyError(f"Failed to apply patches: {e}") from e

    def apply_units(self, target_units: Sequence[Unit], patches: Sequence[Patch]) -> list[Unit]:
        """Apply patches and return the new unit sequence."""
        slots = {id(unit): slot for slot, unit in enumerate(target_units)}
        tombstones: set[int] = set()
        replacements: dict[int, str] = {}
        inserts_after: dict[int, list[Unit]] = defaultdict(list)
        at_start: list[Unit] = []
        appended: list[Unit] = []

        for n, patch in enumerate(patches):
            mapping = patch.mapping
            strategy = mapping.strategy

            if strategy == Strategy.DELETE:
                slot = self._slot_of(slots, mapping.target_unit, n)
                tombstones.add(slot)
                continue

            if patch.text is None:
                logger.debug("skipping %s patch %d without replacement text", strategy.value, n)
                continue

            if strategy == Strategy.EXACT_MATCH:
                slot = self._slot_of(slots, mapping.target_unit, n)
                replacements[slot] = patch.text
            elif strategy == Strategy.INSERT:
                unit = self._new_unit(patch)
                if mapping.at_start:
                    at_start.append(unit)
                elif mapping.insert_after is None:
                    appended.append(unit)
                else:
                    slot = slots.get(id(mapping.insert_after))
                    if slot is None:
                        logger.warning("insertion anchor for patch %d not in target; appending", n)
                        appended.append(unit)
                    else:
                        inserts_after[slot].append(unit)
            else:
                raise ApplyError(f"Unknown strategy {strategy!r}", applied=n)

        result: list[Unit] = []
        leading = 0
        if target_units and target_units[0].kind == UnitKind.FRONTMATTER:
            leading = 1
        if not leading:
            result.extend(at_start)

        for slot, unit in enumerate(target_units):
            if slot not in tombstones:
                if slot in replacements:
                    unit = replace(unit, text=replacements[slot])
                result.append(unit)
            if slot == 0 and leading:
                result.extend(at_start)
            result.extend(inserts_after.get(slot, ()))

        result.extend(appended)
        return result

    def _slot_of(self, slots: dict[int, int], unit: Unit | None, n: int) -> int:
        if unit is None:
            raise ApplyError(f"Patch {n} has no target unit", applied=n)
        slot = slots.get(id(unit))
        if slot is None:
            raise ApplyError(f"Target unit of patch {n} is not part of the target", applied=n)
        return slot

    def _new_unit(self, patch: Patch) -> Unit:
        source = patch.mapping.change.new_unit
        kind = source.kind if source is not None else UnitKind.PARAGRAPH
        return Unit(kind=kind, text=patch.text or "")


def apply(target_units: Sequence[Unit], patches: Sequence[Patch]) -> str:
    """Apply patches with the default decomposer."""
    return PatchApplier().apply(target_units, patches)
