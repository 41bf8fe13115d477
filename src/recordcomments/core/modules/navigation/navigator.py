"""Stack-based drill-down for resolving field mentions through blocks and locales."""

from collections.abc import Callable
from typing import Protocol

import structlog

from recordcomments.core.modules.navigation.keyboard import ListNavigator
from recordcomments.core.modules.navigation.models import (
    BlockFieldType,
    BlockInfo,
    BlockStep,
    FieldInfo,
    FieldStep,
    LocaleStep,
    NavigationStep,
    ViewMode,
)

logger = structlog.get_logger(__name__)


class FieldSource(Protocol):
    """Lists the blocks and nested fields the navigator drills into."""

    async def list_blocks(self, field: FieldInfo, locale: str | None) -> list[BlockInfo]: ...

    async def list_block_fields(
        self, field: FieldInfo, block: BlockStep, base_path: str, locale: str | None
    ) -> list[FieldInfo]: ...


def current_field(stack: list[NavigationStep]) -> FieldInfo | None:
    for step in reversed(stack):
        if isinstance(step, FieldStep):
            return step.field
    return None


def selected_locale(stack: list[NavigationStep]) -> str | None:
    for step in stack:
        if isinstance(step, LocaleStep):
            return step.locale
    return None


def view_mode_for(stack: list[NavigationStep]) -> ViewMode:
    """The view is a pure function of the stack's tail."""
    if not stack:
        return ViewMode.FIELDS

    last_step = stack[-1]
    if isinstance(last_step, BlockStep):
        return ViewMode.NESTED_FIELDS

    if isinstance(last_step, LocaleStep):
        field = current_field(stack)
        return ViewMode.BLOCKS if field is not None and field.is_block_container else ViewMode.FIELDS

    if last_step.field.needs_locale_choice:
        return ViewMode.LOCALES
    if last_step.field.is_block_container:
        return ViewMode.BLOCKS
    return ViewMode.FIELDS


def build_field_path(stack: list[NavigationStep], leaf: FieldInfo | None = None) -> str:
    """Join field API keys and block indices; locale steps add nothing to the path."""
    if not stack:
        return leaf.field_path if leaf is not None else ""

    parts: list[str] = []
    last_field: FieldInfo | None = None
    for step in stack:
        if isinstance(step, FieldStep):
            parts.append(step.field.api_key)
            last_field = step.field
        elif isinstance(step, BlockStep):
            # A single block has no array index
            if last_field is None or last_field.block_field_type is not BlockFieldType.SINGLE_BLOCK:
                parts.append(str(step.block_index))
    if leaf is not None:
        parts.append(leaf.api_key)
    return ".".join(parts)


def build_breadcrumb(stack: list[NavigationStep]) -> str:
    parts: list[str] = []
    for step in stack:
        if isinstance(step, FieldStep):
            parts.append(step.field.label)
        elif isinstance(step, LocaleStep):
            parts.append(f"({step.locale.upper()})")
        else:
            parts.append(f"{step.block_model_name} #{step.block_index + 1}")
    return " > ".join(parts)


class FieldNavigator:
    """Resolves a field mention in as many selection steps as the field's structure needs.

    Keyboard and mouse share the same transitions: `handle_key` activates the
    highlighted entry through the same `select_*` methods a click would call.
    In the blocks view the first entry selects the whole container field.
    """

    def __init__(
        self,
        source: FieldSource,
        fields: list[FieldInfo],
        on_resolve: Callable[[FieldInfo, str | None], None],
    ) -> None:
        self._source = source
        self._on_resolve = on_resolve
        self.fields = list(fields)
        self.stack: list[NavigationStep] = []
        self.blocks: list[BlockInfo] = []
        self.nested_fields: list[FieldInfo] = []
        # Incremented per load so a slow listing never overwrites a newer view
        self._load_sequence = 0
        self.list = ListNavigator(self._activate, self.back)
        self.list.reset(len(self.fields))

    @property
    def view_mode(self) -> ViewMode:
        return view_mode_for(self.stack)

    @property
    def current_field(self) -> FieldInfo | None:
        return current_field(self.stack)

    @property
    def selected_locale(self) -> str | None:
        return selected_locale(self.stack)

    @property
    def breadcrumb(self) -> str:
        return build_breadcrumb(self.stack)

    @property
    def locales(self) -> list[str]:
        field = self.current_field
        return list(field.available_locales or []) if field is not None else []

    def set_fields(self, fields: list[FieldInfo]) -> None:
        """Replace the top-level candidates (e.g. after the query changed)."""
        self.fields = list(fields)
        if self.view_mode is ViewMode.FIELDS:
            self.list.reset(len(self.fields))

    def reset(self) -> None:
        self._load_sequence += 1
        self.stack = []
        self.blocks = []
        self.nested_fields = []
        self.list.reset(len(self.fields))

    async def handle_key(self, key: str) -> bool:
        return await self.list.handle_key(key)

    async def select_field(self, field: FieldInfo) -> None:
        if field.is_block_container or field.needs_locale_choice:
            await self._push(FieldStep(field=field))
            return

        locale = self.selected_locale
        if locale is None and field.localized and field.available_locales and len(field.available_locales) == 1:
            locale = field.available_locales[0]

        resolved = field.model_copy(
            update={
                "field_path": build_field_path(self.stack, field),
                "localized": field.localized or self.selected_locale is not None,
            }
        )
        self._resolve(resolved, locale)

    async def select_locale(self, locale: str) -> None:
        field = self.current_field
        if field is None:
            return
        if field.is_block_container:
            await self._push(LocaleStep(locale=locale))
            return
        self._resolve(field.model_copy(update={"field_path": build_field_path(self.stack)}), locale)

    async def select_block(self, block: BlockInfo, auto: bool = False) -> None:
        await self._push(
            BlockStep(block_index=block.index, block_model_id=block.model_id, block_model_name=block.model_name, auto=auto)
        )

    async def select_entire_field(self) -> None:
        field = self.current_field
        if field is None:
            return
        self._resolve(field.model_copy(update={"field_path": build_field_path(self.stack)}), self.selected_locale)

    async def back(self) -> None:
        if not self.stack:
            return
        popped = self.stack.pop()
        # Skip the blocks view of a single block, it would auto-advance straight back
        if isinstance(popped, BlockStep) and popped.auto and self.stack:
            self.stack.pop()
        await self._refresh()

    async def _push(self, step: NavigationStep) -> None:
        self.stack.append(step)
        await self._refresh()

    def _resolve(self, field: FieldInfo, locale: str | None) -> None:
        logger.debug("field_mention_resolved", field_path=field.field_path, locale=locale, depth=len(self.stack))
        self._on_resolve(field, locale)
        self.reset()

    async def _refresh(self) -> None:
        self._load_sequence += 1
        sequence = self._load_sequence
        mode = self.view_mode
        field = self.current_field

        if mode is ViewMode.BLOCKS and field is not None:
            blocks = await self._source.list_blocks(field, self.selected_locale)
            if sequence != self._load_sequence:
                return
            self.blocks = blocks
            if field.block_field_type is BlockFieldType.SINGLE_BLOCK and len(blocks) == 1:
                # A single block needs no choice
                await self.select_block(blocks[0], auto=True)
                return
            self.list.reset(len(blocks) + 1)
        elif mode is ViewMode.NESTED_FIELDS and field is not None and isinstance(block_step := self.stack[-1], BlockStep):
            nested_fields = await self._source.list_block_fields(
                field, block_step, build_field_path(self.stack), self.selected_locale
            )
            if sequence != self._load_sequence:
                return
            self.nested_fields = nested_fields
            self.list.reset(len(nested_fields))
        elif mode is ViewMode.LOCALES:
            self.list.reset(len(self.locales))
        else:
            self.list.reset(len(self.fields))

    async def _activate(self, index: int) -> None:
        mode = self.view_mode
        if mode is ViewMode.LOCALES:
            await self.select_locale(self.locales[index])
        elif mode is ViewMode.BLOCKS:
            if index == 0:
                await self.select_entire_field()
            else:
                await self.select_block(self.blocks[index - 1])
        elif mode is ViewMode.NESTED_FIELDS:
            await self.select_field(self.nested_fields[index])
        else:
            await self.select_field(self.fields[index])
