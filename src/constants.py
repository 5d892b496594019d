"""Constants used in the project."""

import os


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    CATALOG_LOOKUP_URL = "https://itunes.apple.com/lookup"
    STORE_URL_TEMPLATE = "https://apps.apple.com/app/id{app_id}"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for the catalog lookup
    USER_AGENT = "relnotify/0.1"
    LOG_FORMAT = "[%(levelname)s] %(message)s"

    # Persistence
    STATE_DIR = os.path.join(os.path.expanduser("~"), ".relnotify")
    STATE_FILE = "state.json"
    KEY_LAST_CHECK_DATE = "lastCheckDate"
    KEY_SKIPPED_VERSION = "skippedVersion"

    # Environment overrides
    ENV_LOG_LEVEL = "RELNOTIFY_LOG_LEVEL"
    ENV_CATALOG_URL = "RELNOTIFY_CATALOG_URL"
    ENV_STATE_DIR = "RELNOTIFY_STATE_DIR"
    ENV_DISABLE = "RELNOTIFY_DISABLE"
