"""Package providing social media timeline slide sources.

License: GNU General Public License v3 (GPLv3)
"""

from . source import SlideSource
