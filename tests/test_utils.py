# File: tests/test_utils.py
import pytest

from product_scout.parser.html_parser import extract_hrefs, parse_html
from product_scout.utils import is_navigable_href, make_absolute, read_lines, remove_duplicates

BASE = "https://shop.example.com/catalog/"


@pytest.mark.parametrize(
    "href,expected",
    [
        ("https://cdn.example.net/a.jpg", "https://cdn.example.net/a.jpg"),
        ("http://old.example/a", "http://old.example/a"),
        ("//cdn.example.net/b.jpg", "https://cdn.example.net/b.jpg"),
        ("/product/x100", "https://shop.example.com/product/x100"),
        ("item/7", "https://shop.example.com/catalog/item/7"),
        ("  /trim  ", "https://shop.example.com/trim"),
    ],
)
def test_make_absolute(href, expected):
    assert make_absolute(href, BASE) == expected


@pytest.mark.parametrize(
    "href,expected",
    [("/a", True), ("mailto:x@y.z", False), ("JavaScript:void(0)", False),
     ("tel:+100", False), ("#reviews", False), ("   ", False)],
)
def test_is_navigable_href(href, expected):
    assert is_navigable_href(href) is expected


def test_remove_duplicates_keeps_first_occurrence():
    assert remove_duplicates(["b", "", "a", "b", "c", "a"]) == ["b", "a", "c"]
    assert remove_duplicates(u for u in ["x", "x"]) == ["x"]


def test_read_lines(tmp_path):
    path = tmp_path / "list.txt"
    path.write_text(" one \n\n two\n   \n", encoding="utf-8")
    assert read_lines(path) == ["one", "two"]
    with pytest.raises(FileNotFoundError):
        read_lines(tmp_path / "absent.txt")


def test_extract_hrefs_and_visible_text():
    parsed = parse_html(
        "<title> Shop </title><a href='/a'>A</a><a href='mailto:x'>M</a><a>no href</a>"
        "<script>var hidden = 1;</script><p>Shown  text</p>"
    )
    assert extract_hrefs(parsed.soup) == ["/a"]
    assert parsed.title == "Shop"
    assert parsed.url == ""
    text = parsed.visible_text()
    assert "hidden" not in text
    assert "Shown  text" in text
    assert parsed.visible_text(limit=4) == text[:4]
