import os
import sys
sys.path.insert(0, os.path.abspath('../..'))

# Project information
project = 'Virtsession'
copyright = '2026, Virtsession Authors'
author = 'Virtsession Authors'
release = '0.1.0'

# Sphinx general settings
extensions = [
    'sphinx.ext.autodoc',
    'sphinx_multiversion',
]
templates_path = ['_templates']
exclude_patterns = []
language = 'en'
autodoc_member_order = 'bysource'

# HTML output settings
html_theme = 'alabaster'
html_static_path = ['_static']
html_sidebars = {
    '**': [
        'about.html',
        'navigation.html',
        'relations.html',
        'searchbox.html',
        'versioning.html',
    ]
}
