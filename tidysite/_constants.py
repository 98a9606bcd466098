"""Common literal values used across tidysite.

These constants keep filenames, URL templates, and chunk defaults centralized
so the loader, renderer, and tests import the same values without drifting.

Examples
--------
>>> from tidysite import _constants
>>> _constants.DEFAULT_INDEX_URL_TEMPLATE.format(package="recipes")
'https://recipes.tidymodels.org/reference/index.json'
>>> _constants.UNNAMED_CHUNK_TEMPLATE.format(index=3)
'unnamed-chunk-3'
"""

DEFAULT_INDEX_URL_TEMPLATE = "https://{package}.tidymodels.org/reference/index.json"
UNNAMED_CHUNK_TEMPLATE = "unnamed-chunk-{index}"
ARTICLE_SUFFIXES = (".Rmd", ".rmd", ".md", ".qmd")
EXECUTABLE_ENGINES = frozenset({"python", "py"})
CACHE_ENTRY_TEMPLATE = "{article}-{label}-{digest}"
PAGE_FILENAME = "index.html"
