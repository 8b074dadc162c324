"""Tests for core entities."""

from datetime import datetime, timezone

import pytest

from release_notifier.core import (
    CategoryKind,
    DeliveryReport,
    Failure,
    FailureKind,
    GenerationResult,
    ReleaseRecord,
    RepositoryWatch,
)


def test_release_creation() -> None:
    """Test creating a valid release."""
    release = ReleaseRecord(
        repo="acme/widget",
        tag="v1.1.0",
        published_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        url="https://github.com/acme/widget/releases/tag/v1.1.0",
        body="- fix: null pointer on startup",
    )

    assert release.tag == "v1.1.0"
    assert release.repo == "acme/widget"


def test_release_validation() -> None:
    """Test release validation."""
    with pytest.raises(ValueError, match="Tag cannot be empty"):
        ReleaseRecord(
            repo="acme/widget",
            tag="",
            published_at=datetime.now(timezone.utc),
            url="https://github.com/acme/widget",
        )

    with pytest.raises(ValueError, match="Repository cannot be empty"):
        RepositoryWatch(repo="")


def test_category_kind_parse() -> None:
    """Test parsing category kinds from model output."""
    assert CategoryKind.parse("feat") is CategoryKind.FEATURE
    assert CategoryKind.parse(" FIX ") is CategoryKind.FIX
    assert CategoryKind.parse("security") is None
    assert CategoryKind.parse(None) is None
    assert CategoryKind.parse(3) is None


def test_failure_retryable() -> None:
    """Test transient versus permanent failures."""
    assert Failure(FailureKind.NETWORK).retryable
    assert Failure(FailureKind.RATE_LIMITED).retryable
    assert not Failure(FailureKind.AUTH).retryable
    assert not Failure(FailureKind.REJECTED).retryable
    assert str(Failure(FailureKind.AUTH, "bad token")) == "auth: bad token"


def test_generation_result_ok() -> None:
    """Test generation result success flag."""
    assert GenerationResult(text="{}").ok
    assert not GenerationResult(failure=Failure(FailureKind.TIMEOUT)).ok


def test_delivery_report_delivered() -> None:
    """Test a partial delivery is not delivered."""
    assert DeliveryReport(total=2, sent=2).delivered
    assert not DeliveryReport(total=2, sent=1).delivered
    assert not DeliveryReport(total=1, sent=0, failure=Failure(FailureKind.REJECTED)).delivered
