"""
Settings for new documents and for how documents are written.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field

from .constants import DEFAULT_FONT, DEFAULT_FONT_SIZE, MAX_FONT_SIZE, MIN_FONT_SIZE
from .errors import ValidationError
from .models.section import Margins, PageSize


@dataclass
class DocumentOptions:
    """Options passed to ``create_document`` and kept on the document.

    Attributes:
        default_font: Font written to the style defaults of new documents
        default_font_size: Default size in half-points (22 = 11pt)
        page_size: Page size of the first section
        margins: Margins of the first section
        creator: Author recorded in docProps/core.xml
        application: Application name recorded in docProps/app.xml
        compression: zipfile compression method used when saving
        validate_on_save: Run the validator before writing
        dedup_media: Store identical image bytes only once
    """

    default_font: str = DEFAULT_FONT
    default_font_size: int = DEFAULT_FONT_SIZE
    page_size: PageSize = field(default_factory=lambda: PageSize.LETTER)  # type: ignore[attr-defined]
    margins: Margins = field(default_factory=Margins)
    creator: str | None = None
    application: str = "docx-engine"
    compression: int = zipfile.ZIP_DEFLATED
    validate_on_save: bool = True
    dedup_media: bool = True

    def __post_init__(self) -> None:
        if not self.default_font or not self.default_font.strip():
            raise ValidationError("default font must not be blank", op="DocumentOptions", field="default_font")
        if (
            isinstance(self.default_font_size, bool)
            or not isinstance(self.default_font_size, int)
            or not MIN_FONT_SIZE <= self.default_font_size <= MAX_FONT_SIZE
        ):
            raise ValidationError(
                f"default font size must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE} half-points",
                op="DocumentOptions",
                field="default_font_size",
                value=self.default_font_size,
            )
        if self.compression not in (zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED):
            raise ValidationError(
                "compression must be ZIP_STORED or ZIP_DEFLATED",
                op="DocumentOptions",
                field="compression",
                value=self.compression,
            )
