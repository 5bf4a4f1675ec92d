# /// script
# dependencies = ["jinja2", "markdown"]
# ///
"""
notesite: Build a static article site from a single flat notes file.

Usage:
    uv run --script notesite.py -notes notes.txt -baseDir docs

Each note starts with a "# Heading" line and may carry a "Date: YYYY/MM/DD"
line and a "Tags: a, b" line; everything else is markdown. Outputs
index.html, one {N}.html per note, and tag/{tag}.html per tag.
"""

import argparse
import datetime as dt
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

import markdown
from jinja2 import Environment
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup

_jinja_env = Environment(autoescape=True)
Template = _jinja_env.from_string

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_NOTES = "notes.txt"
DEFAULT_BASE_DIR = "docs"
SITE_TITLE = "Articles of interest"

HEADING_PREFIX = "# "
DATE_PREFIX = "Date:"
TAGS_PREFIX = "Tags:"
DATE_FORMAT = "%Y/%m/%d"
DATE_RE = re.compile(r"\d{4}/\d{2}/\d{2}")

TAG_DIR = "tag"


@dataclass
class Article:
    header: str
    content: Markup
    tags: list[str] = field(default_factory=list)
    date: dt.date | None = None
    index: int = 0  # 1-based position in the notes file

    @property
    def link(self) -> str:
        return f"{self.index}.html"

    @property
    def display_date(self) -> str:
        # "2 Mar 2015"
        return f"{self.date.day} {self.date:%b %Y}"


# ---------------------------------------------------------------------------
# Step 1: Render markdown
# ---------------------------------------------------------------------------

class NofollowTreeprocessor(Treeprocessor):
    """Mark every generated link rel="nofollow"."""

    def run(self, root):
        for a in root.iter("a"):
            if a.get("href") is not None:
                a.set("rel", "nofollow")


class NofollowExtension(Extension):
    def extendMarkdown(self, md):
        # after "inline" (20) has turned link text into <a> elements
        md.treeprocessors.register(NofollowTreeprocessor(md), "nofollow", 5)


def render_markdown(source: str) -> Markup:
    """Convert markdown to an HTML fragment.

    Raw HTML in the source is passed through as-is, so the result is
    marked safe for the page templates.
    """
    return Markup(markdown.markdown(
        source,
        extensions=["fenced_code", "tables", NofollowExtension()],
    ))


# ---------------------------------------------------------------------------
# Step 2: Parse notes
# ---------------------------------------------------------------------------

def parse_article(heading: str, lines: list[str]) -> Article:
    """Build an Article from a heading line and the lines under it.

    The last Date: and Tags: lines win; every other line goes to markdown,
    with the heading line itself on top. Raises ValueError when the date is
    missing or not YYYY/MM/DD.
    """
    header = heading.lstrip("# ").strip()
    source = [heading]
    date_line = ""
    tags_line = ""

    for line in lines:
        if line.startswith(DATE_PREFIX):
            date_line = line
            continue
        if line.startswith(TAGS_PREFIX):
            tags_line = line
            continue
        source.append(line)

    raw_date = date_line[len(DATE_PREFIX):].strip()
    try:
        if not DATE_RE.fullmatch(raw_date):
            raise ValueError(f"{raw_date!r} is not zero-padded YYYY/MM/DD")
        parsed_date = dt.datetime.strptime(raw_date, DATE_FORMAT).date()
    except ValueError as exc:
        raise ValueError(
            f"article {header!r}: invalid date {raw_date!r}, expected YYYY/MM/DD"
        ) from exc

    # No Tags: line still yields one empty tag, filed under tag/.html
    tags = [tag.strip() for tag in tags_line[len(TAGS_PREFIX):].split(",")]

    return Article(
        header=header,
        content=render_markdown("\n".join(source)),
        tags=tags,
        date=parsed_date,
    )


def parse_file(path) -> list[Article]:
    """Split a notes file into articles, newest (bottom of file) first.

    Indexes follow file order and are assigned before the reversal, so the
    first note is always 1.html. Lines above the first heading belong to
    the first note.
    """
    articles: list[Article] = []
    heading = None
    lines: list[str] = []

    def close_article():
        article = parse_article(heading, lines)
        article.index = len(articles) + 1
        articles.append(article)

    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.rstrip("\n")
            if line.startswith(HEADING_PREFIX):
                if heading is not None:
                    close_article()
                    lines = []
                heading = line
                continue
            lines.append(line)

    if heading is not None:
        close_article()

    articles.reverse()
    print(f"  Parsed {len(articles)} articles from {path}")
    return articles


# ---------------------------------------------------------------------------
# Step 3: Generate HTML
# ---------------------------------------------------------------------------

INDEX_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
</head>
<body>
<h1>{{ title }}</h1>
{% for article in articles %}
<p><a href="{{ article.link }}">{{ article.header }}</a></p>
{% endfor %}
</body>
</html>
""")

ARTICLE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ article.header }} — {{ title }}</title>
</head>
<body>
<div class="content">
{{ article.content }}
</div>
<p>Date: {{ article.display_date }}</p>
<p>
{% for tag in article.tags %}<a href="{{ tag_dir }}/{{ tag|urlencode }}.html">{{ tag }}</a>
{% endfor %}
</p>
</body>
</html>
""")

TAG_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ tag }} — {{ title }}</title>
</head>
<body>
<h1>Tag: {{ tag }}</h1>
{% for article in articles %}
<p><a href="/{{ article.link }}">{{ article.header }}</a></p>
{% endfor %}
</body>
</html>
""")


def write_page(path: Path, html: str):
    """Write html from the start of path, creating it if needed.

    The file is not truncated: if an older page was longer, its tail stays.
    """
    fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
    with open(fd, "w", encoding="utf-8") as f:
        f.write(html)


def generate_index(base_dir: Path, articles: list[Article]):
    index_html = INDEX_TEMPLATE.render(title=SITE_TITLE, articles=articles)
    write_page(base_dir / "index.html", index_html)
    print(f"  Wrote index.html ({len(articles)} articles)")


def generate_article_pages(base_dir: Path, articles: list[Article]):
    for article in articles:
        article_html = ARTICLE_TEMPLATE.render(
            title=SITE_TITLE,
            article=article,
            tag_dir=TAG_DIR,
        )
        write_page(base_dir / article.link, article_html)
    print(f"  Wrote {len(articles)} article pages")


def group_by_tag(articles: list[Article]) -> dict[str, list[Article]]:
    """Map each tag to its articles, in first-seen tag order."""
    tag_articles: dict[str, list[Article]] = {}
    for article in articles:
        for tag in article.tags:
            tag_articles.setdefault(tag, []).append(article)
    return tag_articles


def generate_tag_pages(base_dir: Path, articles: list[Article]):
    tags_dir = base_dir / TAG_DIR
    tags_dir.mkdir(mode=0o700, exist_ok=True)

    tag_articles = group_by_tag(articles)
    for tag, articles_for_tag in tag_articles.items():
        tag_html = TAG_TEMPLATE.render(
            title=SITE_TITLE,
            tag=tag,
            articles=articles_for_tag,
        )
        write_page(tags_dir / f"{tag}.html", tag_html)

    print(f"  Wrote {len(tag_articles)} tag pages")


def generate(notes_path, base_dir) -> list[Article]:
    """Parse the notes file and write the whole site under base_dir.

    Stops at the first error. Nothing is written unless the notes file
    parses cleanly, but a failure while writing leaves earlier pages behind.
    """
    base_dir = Path(base_dir)
    articles = parse_file(notes_path)
    generate_index(base_dir, articles)
    generate_article_pages(base_dir, articles)
    generate_tag_pages(base_dir, articles)
    return articles


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build a static site from a notes file.")
    parser.add_argument("-notes", "--notes", dest="notes", default=DEFAULT_NOTES,
                        help="the file with all notes")
    parser.add_argument("-baseDir", "--base-dir", dest="base_dir", default=DEFAULT_BASE_DIR,
                        help="the base dir to create the site in")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    base_dir = Path(args.base_dir)

    try:
        print("Step 1: Parsing notes...")
        articles = parse_file(args.notes)

        print("Step 2: Writing index...")
        generate_index(base_dir, articles)

        print("Step 3: Writing article pages...")
        generate_article_pages(base_dir, articles)

        print("Step 4: Writing tag pages...")
        generate_tag_pages(base_dir, articles)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(f"\nDone! Site written to {args.base_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
