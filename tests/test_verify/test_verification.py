"""Tests for post-fix verification."""

from __future__ import annotations

from contentfix.core.config import VerificationConfig
from contentfix.core.models import Document, FixType
from contentfix.verify.engine import (
    NOT_AVAILABLE,
    VerificationEngine,
    check_alt_text,
    check_headings,
    check_meta_description,
    check_title,
    check_word_count,
)

from conftest import no_sleep, words_html


def _doc(**kwargs) -> Document:
    return Document(id=1, kind="posts", **kwargs)


class TestChecks:
    def test_alt_text(self):
        assert check_alt_text(_doc(content='<img src="a.jpg" alt="A">')).verified
        result = check_alt_text(_doc(content='<img src="a.jpg" alt="A"><img src="b.jpg" alt=" ">'))
        assert not result.verified
        assert "1 of 2" in result.details

    def test_alt_text_without_images(self):
        assert check_alt_text(_doc(content="<p>x</p>")).verified

    def test_meta_description_bounds(self):
        assert check_meta_description(_doc(excerpt="m" * 120)).verified
        assert check_meta_description(_doc(excerpt="<p>" + "m" * 160 + "</p>")).verified
        assert not check_meta_description(_doc(excerpt="m" * 119)).verified
        assert not check_meta_description(_doc(excerpt="m" * 161)).verified

    def test_title_bounds(self):
        assert check_title(_doc(title="t" * 30)).verified
        assert check_title(_doc(title="t" * 60)).verified
        assert not check_title(_doc(title="A")).verified

    def test_headings(self):
        assert check_headings(_doc(content="<h1>a</h1><h2>b</h2><h3>c</h3>")).verified
        assert not check_headings(_doc(content="<h1>a</h1><h1>b</h1>")).verified
        assert not check_headings(_doc(content="<h2>a</h2>")).verified
        result = check_headings(_doc(content="<h1>a</h1><h4>b</h4>"))
        assert not result.verified
        assert "skip" in result.details

    def test_word_count(self):
        assert check_word_count(_doc(content=words_html(300))).verified
        assert not check_word_count(_doc(content=words_html(299))).verified


class TestVerificationEngine:
    def test_unsupported_type_is_unavailable(self, client, cms):
        engine = VerificationEngine(sleep=no_sleep)
        result = engine.verify(client, 1, FixType.CANONICAL_URL)
        assert result.verified
        assert not result.available
        assert result.details == NOT_AVAILABLE
        assert cms.calls == []

    def test_none_type_is_unavailable(self, client):
        result = VerificationEngine(sleep=no_sleep).verify(client, 1, None)
        assert not result.available

    def test_waits_then_fetches_fresh(self, client, cms):
        cms.add(1, content='<img src="a.jpg" alt="ok">')
        sleeps: list[float] = []
        engine = VerificationEngine(VerificationConfig(settle_delay=2.5), sleep=sleeps.append)
        result = engine.verify(client, 1, FixType.MISSING_ALT_TEXT)
        assert result.verified
        assert sleeps == [2.5]
        _, path, params, _ = cms.calls[-1]
        assert path == "posts/1"
        assert "_cb" in params

    def test_zero_delay_does_not_sleep(self, client, cms):
        cms.add(1)
        sleeps: list[float] = []
        engine = VerificationEngine(VerificationConfig(settle_delay=0), sleep=sleeps.append)
        engine.verify(client, 1, FixType.HEADING_STRUCTURE)
        assert sleeps == []

    def test_uses_content_kind(self, client, cms):
        cms.add(4, kind="pages", title="t" * 40)
        engine = VerificationEngine(VerificationConfig(settle_delay=0))
        assert engine.verify(client, 4, FixType.TITLE_TAG, content_kind="pages").verified

    def test_fetch_failure_is_a_failed_verification(self, client):
        engine = VerificationEngine(VerificationConfig(settle_delay=0))
        result = engine.verify(client, 404, FixType.TITLE_TAG)
        assert not result.verified
        assert result.available
        assert result.details.startswith("Verification failed")

    def test_has_check(self):
        engine = VerificationEngine()
        assert engine.has_check(FixType.THIN_CONTENT)
        assert not engine.has_check(FixType.STRUCTURED_DATA)
        assert not engine.has_check(None)
