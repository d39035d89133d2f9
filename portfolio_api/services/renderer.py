"""Static portfolio site rendering."""

from datetime import UTC, datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from portfolio_api.schemas.portfolio import PortfolioData

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

# Output file name -> template name
SITE_FILES = {
    "index.html": "index.html.j2",
    "styles.css": "styles.css.j2",
    "script.js": "script.js.j2",
    "README.md": "README.md.j2",
}


def build_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


_env = build_environment()


def render_portfolio(data: PortfolioData) -> dict[str, str]:
    """Render the portfolio site as a mapping of file name to file content."""
    context = {
        "data": data,
        "info": data.personal_info,
        "year": datetime.now(UTC).year,
        "social": [
            (icon, url)
            for icon, url in (
                ("fab fa-linkedin", data.personal_info.social.linkedin),
                ("fab fa-github", data.personal_info.social.github),
                ("fab fa-twitter", data.personal_info.social.twitter),
                ("fab fa-medium", data.personal_info.social.medium),
                ("fas fa-globe", data.personal_info.social.website),
            )
            if url
        ],
    }
    return {
        filename: _env.get_template(template).render(**context)
        for filename, template in SITE_FILES.items()
    }
