"""
Render a page from a base template, shared blocks and an optional theme.

Usage: python examples/render_page.py [--dev] [--dark]
"""
import sys
from pathlib import Path

from template_composer import CompileMode, parse, set_compile_mode
from template_composer.config import ComposerConfiguration
from template_composer.logging import configure_logging

template_dir = Path(__file__).parent / 'templates'

config = ComposerConfiguration(trim_blocks=True, log_level="DEBUG")
configure_logging(config)

if "--dev" in sys.argv:
    set_compile_mode(CompileMode.DEVELOPMENT)

page = (
    parse(template_dir / 'page.html', config)
    .register_function('shout', lambda s: s.upper())
    .register_blocks(str(template_dir / 'partials' / '*.html'))
)

themes = [str(template_dir / 'themes' / 'dark' / '*.html')] if "--dark" in sys.argv else []

context = {
    'title': 'Shopping list',
    'items': ['apples', 'bread', 'coffee'],
}

page.execute(sys.stdout, context, *themes)
