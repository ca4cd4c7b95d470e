"""
Pytest fixtures and configuration for WillsX auto-linker tests.
"""

import json

import pytest
from pathlib import Path

from willsx_autolinker.config import LinkerSettings
from willsx_autolinker.models import KeywordEntry


@pytest.fixture
def estate_dictionary() -> list[KeywordEntry]:
    """Single-keyword dictionary used by the documented scenarios."""
    return [KeywordEntry(keyword="estate planning", url="/services/estate-planning")]


@pytest.fixture
def service_dictionary() -> list[KeywordEntry]:
    """Several service keywords in priority order."""
    return [
        KeywordEntry(keyword="will", url="/services/wills/"),
        KeywordEntry(keyword="estate planning", url="/services/estate-planning/"),
        KeywordEntry(keyword="power of attorney", url="/services/power-of-attorney/"),
        KeywordEntry(keyword="probate", url="/services/probate/"),
        KeywordEntry(keyword="inheritance tax", url="/services/inheritance-tax/"),
    ]


@pytest.fixture
def scenario_settings() -> LinkerSettings:
    """max 5 links per post, 1 per keyword."""
    return LinkerSettings(max_links_per_post=5, max_links_per_keyword=1)


@pytest.fixture
def sample_post_html() -> str:
    """Rendered blog post content."""
    return (
        "<h2>Why You Need a Will</h2>\n"
        "<p>Writing a will is the first step in estate planning. Without a will, "
        "the law decides who inherits.</p>\n"
        "<p>Read our <a href=\"/guides/probate\">probate guide</a> before applying for probate.</p>\n"
        "<ul>\n"
        "<li>Lasting power of attorney</li>\n"
        "<li>Inheritance tax planning</li>\n"
        "</ul>\n"
        "<!-- more -->\n"
        "<p class=\"cta\">Talk to us about estate planning today.</p>"
    )


@pytest.fixture
def sample_keywords_csv(tmp_path: Path) -> Path:
    """Create a sample keywords CSV file."""
    csv_path = tmp_path / "keywords.csv"
    csv_content = """keyword,url
will,https://willsx.co.uk/services/wills/
estate planning,https://willsx.co.uk/services/estate-planning/
Estate Planning,https://willsx.co.uk/duplicate/
probate,/services/probate/
,https://willsx.co.uk/empty-keyword/
inheritance tax,
"""
    csv_path.write_text(csv_content)
    return csv_path


@pytest.fixture
def sample_keywords_excel(tmp_path: Path) -> Path:
    """Create a sample keywords Excel file."""
    import pandas as pd

    xlsx_path = tmp_path / "keywords.xlsx"
    data = {
        "Anchor Text": ["will", "probate", "power of attorney"],
        "Target URL": ["/services/wills/", "/services/probate/", "/services/power-of-attorney/"],
    }
    df = pd.DataFrame(data)
    df.to_excel(xlsx_path, index=False)
    return xlsx_path


@pytest.fixture
def options_file(tmp_path: Path) -> Path:
    """Create an options file with settings and keywords."""
    path = tmp_path / "options.json"
    options = {
        "willsx_autolinker_enabled": True,
        "willsx_autolinker_max_links": 3,
        "willsx_autolinker_max_links_per_keyword": 1,
        "willsx_autolinker_link_target": "new-window",
        "willsx_autolinker_keywords": {
            "will": "https://willsx.co.uk/services/wills/",
            "probate": "https://willsx.co.uk/services/probate/",
        },
    }
    path.write_text(json.dumps(options))
    return path
