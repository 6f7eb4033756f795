"""BigScreen slideshow application.

Collects slides from the configured slide sources and arranges them into the
slide sequence shown on signage displays. Also provides the commands used to
manage slide sources.

License: GNU General Public License v3 (GPLv3)
"""

from .common import APPLICATION_NAME, APPLICATION_DESCRIPTION, VERSION, PROJECT_NAME
from .app import App
