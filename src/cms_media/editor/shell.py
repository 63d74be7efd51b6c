"""Rich text editing shell: image commands and the embedded media picker."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from bs4 import Tag

from cms_media.alt_text.client import AltTextError, alt_text_client_from_config
from cms_media.browser.engine import (
    OK,
    ListError,
    Outcome,
    PreconditionNotMet,
    media_browser_from_config,
)
from cms_media.editor.document import (
    CAPTION_CLASS,
    CAPTION_STYLE,
    POSITION_STYLES,
    SIZE_WIDTHS,
    ImagePosition,
    ImageSize,
    RichTextDocument,
    format_style,
    style_value,
    update_style,
)
from cms_media.storage.models import is_pdf

if TYPE_CHECKING:
    from cms_media.alt_text.client import AltTextClient
    from cms_media.browser.engine import MediaBrowser
    from cms_media.config import AppConfig

logger = logging.getLogger(__name__)

NO_IMAGE_SELECTED = "Please select an image first."
CAPTION_PROMPT = "Enter a caption for this image:"


class EditorShell:
    """Hosts a RichTextDocument and adds image-centric commands.

    A double-click on an image arms *replace mode*: the next asset picked in
    the media browser overwrites that image's ``src`` instead of inserting a
    new node. Replace mode is disarmed after every insertion and whenever
    the browser is closed without a pick.
    """

    def __init__(
        self,
        document: RichTextDocument,
        browser: MediaBrowser,
        alt_text_client: AltTextClient,
        alert: Callable[[str], None],
        prompt: Callable[[str], str | None],
        image_folder: str | None = None,
    ) -> None:
        """Initialise the shell.

        Args:
            document: Content being edited.
            browser: Media browser embedded as the image picker.
            alt_text_client: Client for the generate-alt-text function.
            alert: Shows a blocking message to the user.
            prompt: Asks the user for text; returns None when cancelled.
            image_folder: Folder the picker is locked to, if any.
        """
        self.document = document
        self._browser = browser
        self._browser.on_select = self._handle_browser_select
        self._alt_text = alt_text_client
        self._alert = alert
        self._prompt = prompt
        self._image_folder = image_folder
        self._replace_target: Tag | None = None

    @property
    def browser(self) -> MediaBrowser:
        return self._browser

    @property
    def replace_target(self) -> Tag | None:
        return self._replace_target

    # ------------------------------------------------------------------
    # Media picker
    # ------------------------------------------------------------------

    def open_media_browser(self) -> None:
        """Open the picker; a failed first listing stays visible in the browser."""
        try:
            self._browser.open(initial_folder=self._image_folder)
        except ListError as exc:
            logger.warning("[open_media_browser] initial listing failed; error:%s", exc.message)

    def close_media_browser(self) -> None:
        """Close the picker without a pick; replace mode is disarmed."""
        self._replace_target = None
        self._browser.close()

    def on_image_double_click(self, image: Tag) -> None:
        """Arm replace mode for ``image`` and open the picker."""
        self._replace_target = image
        self.document.selected_image = image
        logger.info("[on_image_double_click] replace mode armed; src:%s", image.get("src"))
        self.open_media_browser()

    def _handle_browser_select(self, url: str) -> None:
        self.insert_image(url)
        self._browser.close()

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def insert_image(self, url: str) -> Tag:
        """Replace the armed image's source, or insert a new image at the cursor.

        PDF URLs are inserted as a link paragraph rather than an image.

        Returns:
            The replaced or newly inserted node.
        """
        target = self._replace_target
        self._replace_target = None
        if target is not None:
            target["src"] = url
            logger.info("[insert_image] replaced image source; src:%s", url)
            return target

        if is_pdf(url):
            filename = unquote(PurePosixPath(urlparse(url).path).name)
            node = self.document.new_tag("p")
            node.append(self.document.new_tag("a", text=f"PDF: {filename}", href=url))
        else:
            node = self.document.new_tag("img", src=url)
        self.document.insert_at_cursor(node)
        logger.info("[insert_image] inserted node; tag:%s;url:%s", node.name, url)
        return node

    # ------------------------------------------------------------------
    # Image toolbar
    # ------------------------------------------------------------------

    def _require_image(self) -> Tag | None:
        image = self.document.selected_image
        if image is None:
            self._alert(NO_IMAGE_SELECTED)
        return image

    def float_image(self, position: ImagePosition | str) -> Outcome:
        """Apply left/center/right/full layout to the selected image."""
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        layout = POSITION_STYLES[ImagePosition(position)]
        update_style(image, display="block", height="auto")
        update_style(image, **{name.replace("-", "_"): value for name, value in layout.items()})
        return OK

    def resize_image(self, size: ImageSize | str) -> Outcome:
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        width = SIZE_WIDTHS[ImageSize(size)]
        update_style(image, float="none", max_width=width, margin="1rem auto")
        return OK

    def toggle_rounded(self) -> Outcome:
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        rounded = style_value(image, "border-radius") == "12px"
        update_style(image, border_radius="0" if rounded else "12px")
        return OK

    def toggle_shadow(self) -> Outcome:
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        shadow = style_value(image, "box-shadow")
        update_style(image, box_shadow=None if shadow else "0 2px 12px rgba(0,0,0,0.15)")
        return OK

    def toggle_border(self) -> Outcome:
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        border = style_value(image, "border")
        update_style(image, border=None if border else "2px solid #eee")
        return OK

    def delete_image(self) -> Outcome:
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        if self._replace_target is image:
            self._replace_target = None
        self.document.remove(image)
        return OK

    def add_caption(self) -> Outcome:
        """Prompt for a caption and place it right after the selected image.

        An existing caption directly after the image is updated in place.
        """
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        text = self._prompt(CAPTION_PROMPT)
        if text is None or not text.strip():
            return PreconditionNotMet("No caption entered")

        existing = image.next_sibling
        if isinstance(existing, Tag) and CAPTION_CLASS in (existing.get("class") or []):
            existing.string = text.strip()
            return OK

        caption = self.document.new_tag(
            "p", text=text.strip(), **{"class": CAPTION_CLASS, "style": format_style(CAPTION_STYLE)}
        )
        self.document.insert_after(image, caption)
        return OK

    # ------------------------------------------------------------------
    # Alt text
    # ------------------------------------------------------------------

    def generate_alt_text(self) -> Outcome:
        """Set ``alt`` on the selected image from the alt-text function."""
        image = self._require_image()
        if image is None:
            return PreconditionNotMet(NO_IMAGE_SELECTED)
        src = image.get("src")
        if not src:
            self._alert("The selected image has no source.")
            return PreconditionNotMet("Image has no source")
        try:
            alt = self._alt_text.generate(str(src))
        except AltTextError as exc:
            logger.warning("[generate_alt_text] failed; src:%s;error:%s", src, exc)
            self._alert(f"Alt text generation failed: {exc}")
            return Outcome(reason=str(exc))
        image["alt"] = alt
        return OK

    def generate_all_alt_text(self) -> int:
        """Set ``alt`` on every image with a source.

        Failed images keep their current ``alt``; one alert summarizes them.

        Returns:
            Number of images updated.
        """
        updated = 0
        failed: list[str] = []
        for image in self.document.images:
            src = image.get("src")
            if not src:
                continue
            try:
                image["alt"] = self._alt_text.generate(str(src))
            except AltTextError as exc:
                logger.warning("[generate_all_alt_text] failed; src:%s;error:%s", src, exc)
                failed.append(str(src))
                continue
            updated += 1
        logger.info(
            "[generate_all_alt_text] complete; updated:%d;failed:%d", updated, len(failed)
        )
        if failed:
            self._alert(f"Alt text generation failed for {len(failed)} image(s).")
        return updated


def editor_shell_from_config(
    config: AppConfig,
    html: str,
    alert: Callable[[str], None],
    prompt: Callable[[str], str | None],
    image_folder: str | None = None,
) -> EditorShell:
    """Construct an EditorShell over ``html`` from application configuration."""
    return EditorShell(
        document=RichTextDocument(html),
        browser=media_browser_from_config(config),
        alt_text_client=alt_text_client_from_config(config),
        alert=alert,
        prompt=prompt,
        image_folder=image_folder,
    )
