import pytest

from fileforge.exceptions import InvalidRequestError, ValidationError
from fileforge.models.job import JobOperation
from fileforge.models.options import ProcessingOptions
from fileforge.pipeline.classifier import IMAGE_FORMATS, VIDEO_FORMATS, MediaCategory
from fileforge.pipeline.strategy import (
    PDF_QUALITY_TIERS,
    StrategyKind,
    VIDEO_QUALITY_TIERS,
    legal_targets,
    resolve_tier,
    select,
)

_SOURCES = {
    MediaCategory.IMAGE: "jpg",
    MediaCategory.VIDEO: "mp4",
    MediaCategory.PDF: "pdf",
    MediaCategory.OFFICE: "docx",
}
_ALL_TARGETS = sorted(IMAGE_FORMATS | VIDEO_FORMATS | {"pdf", "docx", "txt", "svg"})


@pytest.mark.parametrize("category", list(MediaCategory))
@pytest.mark.parametrize("operation", list(JobOperation))
@pytest.mark.parametrize("target", _ALL_TARGETS)
def test_select_matches_legality_matrix(category, operation, target) -> None:
    legal = legal_targets(category, operation)
    if target in legal:
        strategy = select(category, operation, target, source_format=_SOURCES[category])
        assert strategy.target_format == target
        assert strategy.operation is operation
    else:
        with pytest.raises(ValidationError):
            select(category, operation, target, source_format=_SOURCES[category])


def test_office_to_png_names_the_rule() -> None:
    with pytest.raises(InvalidRequestError, match="Office documents can only be converted to PDF"):
        select(MediaCategory.OFFICE, JobOperation.CONVERT, "png", source_format="docx")


def test_office_conversion_defaults_to_pdf() -> None:
    strategy = select(MediaCategory.OFFICE, JobOperation.CONVERT, None, source_format="xlsx")
    assert strategy.kind is StrategyKind.OFFICE_TO_PDF
    assert strategy.target_format == "pdf"


@pytest.mark.parametrize("category", [MediaCategory.IMAGE, MediaCategory.VIDEO, MediaCategory.PDF])
def test_conversion_without_format_is_rejected(category) -> None:
    with pytest.raises(ValidationError, match="Format is required"):
        select(category, JobOperation.CONVERT, None, source_format=_SOURCES[category])


def test_office_compression_is_rejected() -> None:
    with pytest.raises(InvalidRequestError, match="cannot be compressed"):
        select(MediaCategory.OFFICE, JobOperation.COMPRESS, None, source_format="doc")


@pytest.mark.parametrize(
    ("category", "operation", "target", "kind"),
    [
        (MediaCategory.IMAGE, JobOperation.COMPRESS, None, StrategyKind.IMAGE_RECOMPRESS),
        (MediaCategory.IMAGE, JobOperation.CONVERT, "webp", StrategyKind.IMAGE_REFORMAT),
        (MediaCategory.IMAGE, JobOperation.CONVERT, "pdf", StrategyKind.IMAGE_TO_PDF),
        (MediaCategory.PDF, JobOperation.COMPRESS, None, StrategyKind.PDF_RECOMPRESS),
        (MediaCategory.PDF, JobOperation.CONVERT, "png", StrategyKind.PDF_TO_IMAGE),
        (MediaCategory.VIDEO, JobOperation.COMPRESS, None, StrategyKind.VIDEO_RECOMPRESS),
        (MediaCategory.VIDEO, JobOperation.CONVERT, "webm", StrategyKind.VIDEO_REFORMAT),
        (MediaCategory.OFFICE, JobOperation.CONVERT, "pdf", StrategyKind.OFFICE_TO_PDF),
    ],
)
def test_each_legal_pair_has_one_strategy(category, operation, target, kind) -> None:
    assert select(category, operation, target, source_format=_SOURCES[category]).kind is kind


def test_compression_keeps_source_format_by_default() -> None:
    strategy = select(MediaCategory.IMAGE, JobOperation.COMPRESS, None, source_format="png")
    assert strategy.target_format == "png"
    assert strategy.image_quality == 80


def test_image_quality_and_max_size_flow_into_strategy() -> None:
    opts = ProcessingOptions.parse(quality=50, format="webp", max_size_mb=5)
    strategy = select(MediaCategory.IMAGE, JobOperation.COMPRESS, opts.format, source_format="jpg", options=opts)
    assert strategy.image_quality == 50
    assert strategy.max_size_mb == 5.0
    assert strategy.target_format == "webp"


def test_image_tier_quality_is_rejected() -> None:
    opts = ProcessingOptions.parse(quality="high")
    with pytest.raises(ValidationError):
        select(MediaCategory.IMAGE, JobOperation.COMPRESS, None, source_format="jpg", options=opts)


@pytest.mark.parametrize(
    ("quality", "tier"),
    [(None, "medium"), (1, "medium"), (50, "medium"), (80, "medium"), (100, "medium"),
     ("low", "low"), ("HIGH", "high"), ("prepress", "medium")],
)
def test_resolve_tier(quality, tier) -> None:
    assert resolve_tier(quality) == tier


def test_unknown_tier_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        resolve_tier("ultra")


def test_pdf_and_video_tier_parameters() -> None:
    pdf = select(
        MediaCategory.PDF,
        JobOperation.COMPRESS,
        None,
        source_format="pdf",
        options=ProcessingOptions.parse(quality="low"),
    )
    assert pdf.pdf_quality == PDF_QUALITY_TIERS["low"]
    assert (pdf.pdf_quality.pdf_settings, pdf.pdf_quality.resolution_dpi) == ("screen", 72)

    video = select(
        MediaCategory.VIDEO,
        JobOperation.COMPRESS,
        None,
        source_format="mov",
        options=ProcessingOptions.parse(quality="high"),
    )
    assert video.video_quality == VIDEO_QUALITY_TIERS["high"]
    assert (video.video_quality.crf, video.video_quality.preset) == (18, "slow")
    assert video.target_format == "mov"


@pytest.mark.parametrize("category", [MediaCategory.PDF, MediaCategory.VIDEO])
def test_numeric_quality_uses_the_medium_tier(category) -> None:
    strategy = select(
        category,
        JobOperation.COMPRESS,
        None,
        source_format=_SOURCES[category],
        options=ProcessingOptions.parse(quality=80),
    )
    if category is MediaCategory.PDF:
        assert (strategy.pdf_quality.pdf_settings, strategy.pdf_quality.resolution_dpi) == ("ebook", 150)
    else:
        assert (strategy.video_quality.crf, strategy.video_quality.preset) == (23, "medium")
