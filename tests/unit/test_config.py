"""Tests for upload task configuration."""

import pytest
from pydantic import ValidationError

from largeupload.config import UploadTaskOptions, parse_bytes
from largeupload.const import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RANGE_SIZE,
    MAX_RANGE_SIZE,
    RANGE_ALIGNMENT,
)
from largeupload.models import ProgressCallback


@pytest.mark.parametrize(
    "value, expected",
    [
        (327680, 327680),
        ("0b", 0),
        ("1", 1),
        ("1k", 1024),
        ("320kb", 327680),
        ("5mb", 5 * 1024 * 1024),
        ("60m", 60 * 1024 * 1024),
        ("1gb", 1024 * 1024 * 1024),
        ("  1KB  ", 1024),
        ("5 MB", 5 * 1024 * 1024),
    ],
)
def test_parse_bytes_valid(value, expected: int) -> None:
    assert parse_bytes(value) == expected


@pytest.mark.parametrize(
    "value", ["", "   ", "nope", "kb", "1KiB", "1gbps", "-1kb", "1.5gb"]
)
def test_parse_bytes_invalid_raises(value: str) -> None:
    with pytest.raises(ValueError):
        parse_bytes(value)


class TestUploadTaskOptions:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("LARGEUPLOAD_RANGE_SIZE", raising=False)
        monkeypatch.delenv("LARGEUPLOAD_MAX_RETRIES", raising=False)

        options = UploadTaskOptions()

        assert options.max_retries == DEFAULT_MAX_RETRIES

        assert options.range_size == DEFAULT_RANGE_SIZE
        assert options.range_size % RANGE_ALIGNMENT == 0
        assert options.bandwidth_limit is None
        assert options.progress_callback is None

    def test_range_size_accepts_units(self) -> None:
        assert UploadTaskOptions(range_size="10mb").range_size == 10 * 1024 * 1024

    def test_range_size_is_capped(self) -> None:
        assert UploadTaskOptions(range_size="100mb").range_size == MAX_RANGE_SIZE

    def test_unaligned_range_size_warns(self, caplog) -> None:
        with caplog.at_level("WARNING", logger="largeupload.config"):
            options = UploadTaskOptions(range_size=1024 * 1024)

        assert options.range_size == 1024 * 1024
        assert "not a multiple" in caplog.text

    @pytest.mark.parametrize("range_size", [0, -1, "0kb"])
    def test_non_positive_range_size_rejected(self, range_size) -> None:
        with pytest.raises(ValidationError):
            UploadTaskOptions(range_size=range_size)

    def test_max_retries_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            UploadTaskOptions(max_retries=0)

    def test_bandwidth_limit_accepts_units(self) -> None:
        assert UploadTaskOptions(bandwidth_limit="2mb").bandwidth_limit == 2 * 1024**2

    def test_progress_callback_is_kept_as_is(self) -> None:
        callback = ProgressCallback(extra_callback_params="ctx")

        assert UploadTaskOptions(progress_callback=callback).progress_callback is callback

    def test_progress_callback_type_checked(self) -> None:
        with pytest.raises(ValidationError):
            UploadTaskOptions(progress_callback=lambda _: None)

    def test_max_retries_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("LARGEUPLOAD_MAX_RETRIES", "3")

        assert UploadTaskOptions().max_retries == 3

    def test_zero_max_retries_from_environment_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("LARGEUPLOAD_MAX_RETRIES", "0")

        with pytest.raises(ValidationError):
            UploadTaskOptions()

    def test_range_size_from_environment_accepts_units(self, monkeypatch) -> None:
        monkeypatch.setenv("LARGEUPLOAD_RANGE_SIZE", "5mb")

        assert UploadTaskOptions().range_size == 5 * 1024 * 1024

    def test_range_size_from_environment_is_capped(self, monkeypatch) -> None:
        monkeypatch.setenv("LARGEUPLOAD_RANGE_SIZE", str(100 * 1024 * 1024))

        assert UploadTaskOptions().range_size == MAX_RANGE_SIZE

    def test_explicit_range_size_overrides_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("LARGEUPLOAD_RANGE_SIZE", "garbage")

        assert UploadTaskOptions(range_size="1mb").range_size == 1024 * 1024
