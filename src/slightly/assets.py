from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlencode

from markupsafe import Markup
from pydantic import BaseModel, ValidationError

from slightly.logging_config import log_with_fields
from slightly.settings import Settings

logger = logging.getLogger(__name__)

STYLE_HANDLE = "slightly-style"
COLOR_SCHEME_MODULE_HANDLE = "slightly-color-scheme"
EDITOR_SCRIPT_HANDLE = "slightly-editor"
API_FETCH_HANDLE = "slightly-api-fetch"

STATIC_URL = "/static"
ASSETS_URL = f"{STATIC_URL}/js"
# Vendor script modules, one file per module id, e.g. "@wordpress/interactivity"
# is served from "/static/js/modules/wordpress/interactivity.js".
SCRIPT_MODULES_URL = f"{ASSETS_URL}/modules"
IMPORT_MAP_ID = "slightly-importmap"


class AssetManifest(BaseModel):
    """Build output that sits next to each bundled script."""

    dependencies: list[str] = []
    version: str = ""


def load_asset_manifest(path: Path) -> AssetManifest | None:
    if not path.is_file():
        return None

    try:
        return AssetManifest.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        log_with_fields(
            logger,
            logging.WARNING,
            "skipping unreadable asset manifest",
            path=path,
            error=type(exc).__name__,
        )
        return None


def script_module_url(module_id: str) -> str:
    return f"{SCRIPT_MODULES_URL}/{module_id.lstrip('@')}.js"


@dataclass(frozen=True)
class Asset:
    handle: str
    src: str
    dependencies: tuple[str, ...] = ()
    version: str | None = None
    in_footer: bool = False

    @property
    def url(self) -> str:
        if not self.version:
            return self.src
        return f"{self.src}?{urlencode({'ver': self.version})}"


class AssetQueue:
    """Styles and scripts requested while rendering a single page.

    Classic script dependencies are handles of other enqueued scripts and are
    printed first. A script whose dependency was never enqueued is withheld.
    Script module dependencies are module ids, resolved through an import map.
    """

    def __init__(self) -> None:
        self._styles: dict[str, Asset] = {}
        self._scripts: dict[str, Asset] = {}
        self._script_modules: dict[str, Asset] = {}
        self._resolved: tuple[list[Asset], set[str]] | None = None

    def enqueue_style(self, asset: Asset) -> None:
        self._styles.setdefault(asset.handle, asset)

    def enqueue_script(self, asset: Asset) -> None:
        self._scripts.setdefault(asset.handle, asset)
        self._resolved = None

    def enqueue_script_module(self, asset: Asset) -> None:
        self._script_modules.setdefault(asset.handle, asset)

    @property
    def styles(self) -> list[Asset]:
        return list(self._styles.values())

    @property
    def scripts(self) -> list[Asset]:
        return list(self._scripts.values())

    @property
    def script_modules(self) -> list[Asset]:
        return list(self._script_modules.values())

    def is_enqueued(self, handle: str) -> bool:
        return handle in self._styles or handle in self._scripts or handle in self._script_modules

    def _resolve_scripts(self) -> tuple[list[Asset], set[str]]:
        """Printable scripts, dependencies first, and the handles that belong in the head."""
        if self._resolved is not None:
            return self._resolved

        ordered: dict[str, Asset] = {}
        withheld: set[str] = set()

        def visit(handle: str, chain: tuple[str, ...]) -> bool:
            if handle in ordered:
                return True
            asset = self._scripts.get(handle)
            if asset is None or handle in withheld or handle in chain:
                return False
            for dependency in asset.dependencies:
                if not visit(dependency, (*chain, handle)):
                    withheld.add(handle)
                    log_with_fields(
                        logger,
                        logging.WARNING,
                        "withholding script with unmet dependency",
                        handle=handle,
                        dependency=dependency,
                    )
                    return False
            ordered[handle] = asset
            return True

        for handle in self._scripts:
            visit(handle, ())

        # A head script pulls its dependencies into the head with it.
        in_head: set[str] = set()
        for asset in reversed(ordered.values()):
            if not asset.in_footer or asset.handle in in_head:
                in_head.add(asset.handle)
                in_head.update(asset.dependencies)

        self._resolved = (list(ordered.values()), in_head)
        return self._resolved

    def import_map(self) -> dict[str, str]:
        imports: dict[str, str] = {}
        for module in self._script_modules.values():
            for module_id in module.dependencies:
                imports.setdefault(module_id, script_module_url(module_id))
        return dict(sorted(imports.items()))

    def head_tags(self) -> Markup:
        scripts, in_head = self._resolve_scripts()
        tags = [
            Markup('<link rel="stylesheet" id="{}-css" href="{}">').format(style.handle, style.url)
            for style in self.styles
        ]
        tags.extend(
            Markup('<script id="{}-js" src="{}"></script>').format(script.handle, script.url)
            for script in scripts
            if script.handle in in_head
        )
        return Markup("\n").join(tags)

    def footer_tags(self) -> Markup:
        scripts, in_head = self._resolve_scripts()
        tags = [
            Markup('<script id="{}-js" src="{}"></script>').format(script.handle, script.url)
            for script in scripts
            if script.handle not in in_head
        ]

        imports = self.import_map()
        if imports:
            # The map has to precede every module that imports through it.
            payload = json.dumps({"imports": imports}, sort_keys=True).replace("</", "<\\/")
            tags.append(
                Markup('<script type="importmap" id="{}">{}</script>').format(
                    IMPORT_MAP_ID, Markup(payload)
                )
            )

        tags.extend(
            Markup('<script type="module" id="{}-js-module" src="{}"></script>').format(
                module.handle, module.url
            )
            for module in self.script_modules
        )
        return Markup("\n").join(tags)


def enqueue_theme_styles(queue: AssetQueue, settings: Settings) -> None:
    queue.enqueue_style(
        Asset(
            handle=STYLE_HANDLE,
            src=f"{STATIC_URL}/style.css",
            version=settings.theme_version,
        )
    )


def _built_script(
    settings: Settings,
    name: str,
    handle: str,
    *,
    in_footer: bool = False,
) -> Asset | None:
    manifest = load_asset_manifest(settings.assets_dir / f"{name}.asset.json")
    if manifest is None:
        return None

    return Asset(
        handle=handle,
        src=f"{ASSETS_URL}/{name}.js",
        dependencies=tuple(manifest.dependencies),
        version=manifest.version or None,
        in_footer=in_footer,
    )


def enqueue_api_fetch(queue: AssetQueue, settings: Settings) -> bool:
    script = _built_script(settings, "api-fetch", API_FETCH_HANDLE)
    if script is None:
        return False
    queue.enqueue_script(script)
    return True


def enqueue_color_scheme_module(queue: AssetQueue, settings: Settings) -> bool:
    module = _built_script(settings, "color-scheme", COLOR_SCHEME_MODULE_HANDLE)
    if module is None:
        return False
    queue.enqueue_script_module(module)
    return True


def enqueue_editor_assets(queue: AssetQueue, settings: Settings) -> bool:
    script = _built_script(settings, "editor", EDITOR_SCRIPT_HANDLE, in_footer=True)
    if script is None:
        return False
    queue.enqueue_script(script)
    return True
