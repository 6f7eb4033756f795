"""Package providing slide sources for table-based newsletters.

License: GNU General Public License v3 (GPLv3)
"""

from . source import SlideSource
