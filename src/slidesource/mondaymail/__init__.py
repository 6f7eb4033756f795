"""Package providing slide sources which split newsletter editions into
sections.

License: GNU General Public License v3 (GPLv3)
"""

from . source import SlideSource
