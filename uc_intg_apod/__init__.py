"""
Astronomy Picture of the Day widget for Unfolded Circle Remote.

Shows the daily APOD photo with its date, caption and copyright on a
media player entity, with loading and placeholder states.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

__version__ = "0.1.0"
__author__ = "Meir Miyara"
__email__ = "meir.miyara@gmail.com"
