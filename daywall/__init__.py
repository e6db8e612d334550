"""
daywall - change the desktop wallpaper once a day with a fresh image from wallscloud.net
"""

__version__ = "0.1.0"
