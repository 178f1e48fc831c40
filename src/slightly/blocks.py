"""Block types and the render pipeline.

Block type settings are built once by running ``SETTINGS_STAGES`` in order.
Rendering a block runs the stages registered for its name, each one a plain
``(content, block, context) -> content`` function.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from slightly.assets import AssetQueue, enqueue_api_fetch, enqueue_color_scheme_module
from slightly.color_scheme import Identity
from slightly.interactivity import (
    COLOR_SCHEME_NAMESPACE,
    InteractivityStore,
    build_color_scheme_state,
    inject_toggle_directives,
)
from slightly.logging_config import log_with_fields
from slightly.settings import Settings

logger = logging.getLogger(__name__)

BUTTON_BLOCK = "core/button"


@dataclass(frozen=True)
class BlockSupports:
    interactivity: bool = False


@dataclass(frozen=True)
class BlockSettings:
    name: str
    supports: BlockSupports = BlockSupports()


SettingsStage = Callable[[BlockSettings], BlockSettings]


def enable_button_interactivity(settings: BlockSettings) -> BlockSettings:
    if settings.name != BUTTON_BLOCK:
        return settings
    return replace(settings, supports=replace(settings.supports, interactivity=True))


SETTINGS_STAGES: tuple[SettingsStage, ...] = (enable_button_interactivity,)


class BlockTypeRegistry:
    def __init__(self, stages: Sequence[SettingsStage] = SETTINGS_STAGES) -> None:
        self._stages = tuple(stages)
        self._types: dict[str, BlockSettings] = {}

    def register(self, settings: BlockSettings) -> BlockSettings:
        for stage in self._stages:
            settings = stage(settings)
        self._types[settings.name] = settings
        return settings

    def get(self, name: str) -> BlockSettings | None:
        return self._types.get(name)

    def supports_interactivity(self, name: str) -> bool:
        settings = self._types.get(name)
        return settings is not None and settings.supports.interactivity


def default_block_types() -> BlockTypeRegistry:
    registry = BlockTypeRegistry()
    for name in ("core/site-title", "core/navigation", "core/buttons", BUTTON_BLOCK):
        registry.register(BlockSettings(name=name))
    return registry


@dataclass(frozen=True)
class Block:
    name: str
    inner_html: str


@dataclass
class RenderContext:
    identity: Identity
    cookies: Mapping[str, str]
    settings: Settings
    block_types: BlockTypeRegistry
    state: InteractivityStore = field(default_factory=InteractivityStore)
    assets: AssetQueue = field(default_factory=AssetQueue)


RenderStage = Callable[[str, Block, RenderContext], str]


class RenderPipeline:
    def __init__(self) -> None:
        self._stages: dict[str, list[RenderStage]] = {}

    def add(self, block_name: str, stage: RenderStage) -> None:
        self._stages.setdefault(block_name, []).append(stage)

    def render(self, block: Block, context: RenderContext) -> str:
        content = block.inner_html
        for stage in self._stages.get(block.name, ()):
            content = stage(content, block, context)
        return content

    def render_all(self, blocks: Iterable[Block], context: RenderContext) -> list[str]:
        return [self.render(block, context) for block in blocks]


def render_color_scheme_toggle(content: str, block: Block, context: RenderContext) -> str:
    if not context.block_types.supports_interactivity(block.name):
        return content

    updated, found = inject_toggle_directives(content)
    if not found:
        return content

    if not context.state.has_state(COLOR_SCHEME_NAMESPACE):
        state = build_color_scheme_state(context.identity, context.cookies, context.settings)
        context.state.set_state(COLOR_SCHEME_NAMESPACE, state.as_state())
        log_with_fields(
            logger,
            logging.DEBUG,
            "color scheme state registered",
            color_scheme=state.color_scheme,
            user_id=state.user_id,
        )

    if context.identity.is_authenticated:
        enqueue_api_fetch(context.assets, context.settings)

    # Without the built module the button stays a plain submit for the form fallback.
    if enqueue_color_scheme_module(context.assets, context.settings):
        # The client runtime owns the click, so the form must not post as well.
        updated, _ = inject_toggle_directives(updated, {"type": "button"})

    return updated


def default_pipeline() -> RenderPipeline:
    pipeline = RenderPipeline()
    pipeline.add(BUTTON_BLOCK, render_color_scheme_toggle)
    return pipeline
