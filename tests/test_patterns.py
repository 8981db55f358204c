"""Tests for assetpipe.patterns module."""

from pathlib import Path

from assetpipe.patterns import GlobPattern, PatternSet, SourceMatch


def make_tree(root, files):
    """Create empty files (with parent dirs) under root."""
    for name in files:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(name)


class TestGlobPatternCompilation:
    """Tests for pattern compilation."""

    def test_base_stops_at_first_wildcard(self, tmp_path):
        pattern = GlobPattern("src/assets/**/*.png", base_path=tmp_path)
        assert pattern.base == tmp_path / "src/assets"
        assert pattern.glob == "**/*.png"
        assert pattern.is_literal is False

    def test_literal_pattern(self, tmp_path):
        """Test a pattern without wildcards names one file."""
        pattern = GlobPattern("src/js/app.js", base_path=tmp_path)
        assert pattern.base == tmp_path / "src/js"
        assert pattern.glob == "app.js"
        assert pattern.is_literal is True

    def test_absolute_pattern_ignores_base_path(self, tmp_path):
        pattern = GlobPattern(str(tmp_path / "src" / "*.css"), base_path="/elsewhere")
        assert pattern.base == tmp_path / "src"

    def test_wildcard_at_root(self, tmp_path):
        pattern = GlobPattern("*.html", base_path=tmp_path)
        assert pattern.base == tmp_path / "."
        assert pattern.matches(tmp_path / "index.html")

    def test_trailing_double_star_globs_files(self, tmp_path):
        pattern = GlobPattern("src/**", base_path=tmp_path)
        assert pattern.glob == "**/*"


class TestGlobPatternMatches:
    """Tests for matching paths against a pattern."""

    def test_star_does_not_cross_directories(self, tmp_path):
        pattern = GlobPattern("src/*.js", base_path=tmp_path)
        assert pattern.matches(tmp_path / "src/app.js")
        assert not pattern.matches(tmp_path / "src/lib/util.js")

    def test_double_star_matches_any_depth(self, tmp_path):
        pattern = GlobPattern("src/**/*.js", base_path=tmp_path)
        assert pattern.matches(tmp_path / "src/app.js")
        assert pattern.matches(tmp_path / "src/lib/deep/util.js")
        assert not pattern.matches(tmp_path / "src/app.css")

    def test_question_mark(self, tmp_path):
        pattern = GlobPattern("img/icon?.png", base_path=tmp_path)
        assert pattern.matches(tmp_path / "img/icon1.png")
        assert not pattern.matches(tmp_path / "img/icon10.png")

    def test_special_regex_chars_escaped(self, tmp_path):
        pattern = GlobPattern("data/*.json", base_path=tmp_path)
        assert not pattern.matches(tmp_path / "data/testXjson")

    def test_character_class(self, tmp_path):
        pattern = GlobPattern("src/[ab].js", base_path=tmp_path)
        assert pattern.base == tmp_path / "src"
        assert pattern.matches(tmp_path / "src/a.js")
        assert pattern.matches(tmp_path / "src/b.js")
        assert not pattern.matches(tmp_path / "src/c.js")

    def test_negated_character_class(self, tmp_path):
        pattern = GlobPattern("src/[!a]*.js", base_path=tmp_path)
        assert pattern.matches(tmp_path / "src/main.js")
        assert not pattern.matches(tmp_path / "src/app.js")

    def test_unclosed_bracket_is_literal(self, tmp_path):
        pattern = GlobPattern("src/[draft*", base_path=tmp_path)
        assert pattern.matches(tmp_path / "src/[draft-1")
        assert not pattern.matches(tmp_path / "src/draft-1")

    def test_outside_base(self, tmp_path):
        pattern = GlobPattern("src/**/*", base_path=tmp_path)
        assert not pattern.matches(tmp_path / "other/file.txt")

    def test_string_path(self, tmp_path):
        pattern = GlobPattern("src/*.js", base_path=tmp_path)
        assert pattern.matches(str(tmp_path / "src/app.js"))


class TestGlobPatternMatch:
    """Tests for listing files."""

    def test_lists_files_with_relative_paths(self, tmp_path):
        make_tree(tmp_path, ["src/index.html", "src/fonts/a.woff", "other/x.txt"])
        pattern = GlobPattern("src/**/*", base_path=tmp_path)

        matches = list(pattern.match())

        assert matches == [
            SourceMatch(tmp_path / "src/fonts/a.woff", Path("fonts/a.woff")),
            SourceMatch(tmp_path / "src/index.html", Path("index.html")),
        ]

    def test_directories_are_skipped(self, tmp_path):
        make_tree(tmp_path, ["src/sub/file.txt"])
        pattern = GlobPattern("src/*", base_path=tmp_path)
        assert list(pattern.match()) == []

    def test_missing_base(self, tmp_path):
        pattern = GlobPattern("nothing/**/*", base_path=tmp_path)
        assert list(pattern.match()) == []

    def test_literal_file(self, tmp_path):
        make_tree(tmp_path, ["src/js/app.js", "src/js/other.js"])
        pattern = GlobPattern("src/js/app.js", base_path=tmp_path)
        assert [m.relative for m in pattern.match()] == [Path("app.js")]

    def test_character_class_lists_files(self, tmp_path):
        make_tree(tmp_path, ["src/a.js", "src/b.js", "src/c.js"])
        pattern = GlobPattern("src/[ab].js", base_path=tmp_path)
        assert [m.relative for m in pattern.match()] == [Path("a.js"), Path("b.js")]


class TestPatternSet:
    """Tests for include/exclude pattern sets."""

    def test_exclusions(self, tmp_path):
        make_tree(tmp_path, [
            "src/index.html",
            "src/scss/app.scss",
            "src/js/app.js",
            "src/fonts/a.woff",
        ])
        patterns = PatternSet(
            ["src/**/*", "!src/scss/**/*", "!src/js/**/*"],
            base_path=tmp_path,
        )

        relatives = sorted(m.relative.as_posix() for m in patterns.match())

        assert relatives == ["fonts/a.woff", "index.html"]

    def test_matches(self, tmp_path):
        patterns = PatternSet(["src/**/*", "!src/scss/**/*"], base_path=tmp_path)
        assert patterns.matches(tmp_path / "src/index.html")
        assert not patterns.matches(tmp_path / "src/scss/app.scss")
        assert not patterns.matches(tmp_path / "elsewhere/x.html")

    def test_overlapping_includes_yield_once(self, tmp_path):
        make_tree(tmp_path, ["src/index.html"])
        patterns = PatternSet(["src/*.html", "src/**/*"], base_path=tmp_path)
        assert len(list(patterns.match())) == 1

    def test_split_includes_and_excludes(self, tmp_path):
        patterns = PatternSet(["a/*", "!a/b", "c/*"], base_path=tmp_path)
        assert [p.pattern for p in patterns.includes] == ["a/*", "c/*"]
        assert [p.pattern for p in patterns.excludes] == ["a/b"]
