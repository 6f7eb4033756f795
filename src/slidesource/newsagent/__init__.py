"""Package providing feed article slide sources.

License: GNU General Public License v3 (GPLv3)
"""

from . source import SlideSource
