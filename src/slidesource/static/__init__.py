"""Package providing static single-slide sources.

License: GNU General Public License v3 (GPLv3)
"""

from . source import SlideSource
