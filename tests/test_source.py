"""
Tests for source references — parsing and canonical URLs.
"""

import pytest

from execman.core.errors import ErrorKind, MalformedSourceError
from execman.core.services.release.source import SourceRef, parse_source, to_url


class TestParseSource:
    def test_host_owner_repo(self):
        ref = parse_source("github.com/sfkleach/pathman")
        assert ref == SourceRef("github.com", "sfkleach", "pathman", "")
        assert ref.url == "https://github.com/sfkleach/pathman"
        assert ref.name == "pathman"

    def test_version_suffix(self):
        ref = parse_source("github.com/sfkleach/pathman@v0.3.0")
        assert ref.version == "v0.3.0"
        assert ref.url == "https://github.com/sfkleach/pathman"

    def test_https_scheme_and_git_suffix(self):
        ref = parse_source("https://github.com/sfkleach/pathman.git")
        assert (ref.owner, ref.repo) == ("sfkleach", "pathman")

    def test_owner_repo_shorthand(self):
        ref = parse_source("sfkleach/pathman")
        assert ref.host == "github.com"
        assert ref.slug == "sfkleach/pathman"

    def test_trailing_slash(self):
        assert parse_source("github.com/o/r/").repo == "r"

    @pytest.mark.parametrize("text", [
        "",
        "pathman",
        "github.com/",
        "github.com/a/b/c",
        "github.com/o/r@",
        "github.com/../r",
        "github.com/o/r;rm",
    ])
    def test_malformed(self, text):
        with pytest.raises(MalformedSourceError) as exc:
            parse_source(text)
        assert exc.value.kind is ErrorKind.MALFORMED_SOURCE
        assert exc.value.context["source"] == text

    def test_other_host_rejected(self):
        with pytest.raises(MalformedSourceError, match="unsupported host"):
            parse_source("gitlab.com/o/r")


class TestToUrl:
    def test_round_trip_with_parse(self):
        url = to_url("o", "r")
        assert url == "https://github.com/o/r"
        assert parse_source(url).url == url
