"""Common literal values used across pagesmith.

These constants keep folder names, file names and tuning knobs centralized so
the site model, the generation pipeline and tests can import the same values
without drifting. Intended for internal use within the pagesmith package.

Examples
--------
>>> from pagesmith import _constants
>>> _constants.FRAGMENT_SUFFIX
'._include_.html'
>>> _constants.TEMP_FOLDER_NAME.startswith(_constants.CONFIG_FOLDER_NAME)
True
"""

SITE_CONFIG_NAME = "site.yaml"
SITE_DATA_NAME = "siteData.json"
SITE_FOLDER_NAME = "_site"

CONFIG_FOLDER_NAME = "_pagesmith"
TEMP_FOLDER_NAME = "_pagesmith/.tmp"
USER_VARIABLES_PATH = "_pagesmith/variables.md"
FOOTERS_FOLDER_PATH = "_pagesmith/footers"
NAVIGATION_FOLDER_PATH = "_pagesmith/navigation"
BOILERPLATE_FOLDER_PATH = "_pagesmith/boilerplates"
LAYOUT_FOLDER_PATH = "_pagesmith/layouts"
LAYOUT_FOOTER_NAME = "footer.md"
LAYOUT_NAVIGATION_NAME = "navigation.md"
FAVICON_DEFAULT_PATH = "favicon.ico"

PAGE_TEMPLATE_NAME = "page.jinja"
FRAGMENT_SUFFIX = "._include_.html"
FRAGMENT_TEMP_SUFFIX = "._include_.md"
EXTERNAL_FRAGMENT_FOLDER = "_external"
TITLE_PREFIX_SEPARATOR = " - "

MAX_CONCURRENT_PAGE_GENERATION = 4
DEBOUNCE_DELAY = 1.0
BUILD_TIME_HINT_LIMIT = 30.0
REBUILD_TIME_HINT_LIMIT = 5.0
